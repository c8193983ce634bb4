"""Load env configuration and static data paths."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ghostbuster.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
COMPANIES_PATH: Path = CONFIG_DIR / "companies.yaml"

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_TEMPERATURE = 0.4
DEFAULT_TIMEOUT_SEC = 30.0


@dataclass(frozen=True)
class AuditSettings:
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    temperature: float = DEFAULT_TEMPERATURE
    timeout_sec: float = DEFAULT_TIMEOUT_SEC


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _float_env(key: str, default: float) -> float:
    raw = get_env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


def load_settings() -> AuditSettings:
    """Settings for the generative-text service. A missing key is allowed."""
    return AuditSettings(
        api_key=get_env("GEMINI_API_KEY") or get_env("API_KEY"),
        model=get_env("GEMINI_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
        base_url=get_env("GEMINI_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        temperature=_float_env("AUDIT_TEMPERATURE", DEFAULT_TEMPERATURE),
        timeout_sec=_float_env("AUDIT_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC),
    )


def firebase_config(env_getter=get_env) -> dict[str, Any]:
    """Parse FIREBASE_CONFIG (JSON). Empty dict means local-only mode."""
    raw = env_getter("FIREBASE_CONFIG")
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        log.warning("FIREBASE_CONFIG is not valid JSON (%s) — history disabled", exc)
        return {}
    if not isinstance(data, dict):
        log.warning("FIREBASE_CONFIG must be a JSON object — history disabled")
        return {}
    return data
