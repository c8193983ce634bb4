"""Logging setup for the dashboard, the CLI and the background workers."""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(threadName)-12s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "google.api_core", "urllib3")
_configured = False


def log_level() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def log_file_path(day: date | None = None) -> Path | None:
    """Daily log file, or None when file logging is switched off."""
    if os.environ.get("GHOSTBUSTER_NO_FILE_LOG"):
        return None
    base = Path(os.environ.get("GHOSTBUSTER_LOG_DIR") or DEFAULT_LOG_DIR)
    return base / f"ghostbuster_{(day or date.today()).isoformat()}.log"


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None


def _configure() -> None:
    level = log_level()
    root = logging.getLogger()
    root.setLevel(level)

    # Streamlit reruns the script; handlers are installed once per process
    if root.handlers:
        return

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    path = log_file_path()
    fh = _file_handler(path) if path is not None else None
    if fh is not None:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        root.addHandler(fh)


def get_logger(name: str) -> logging.Logger:
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)
