"""Read-only company index loaded from config/companies.yaml."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ghostbuster.config import COMPANIES_PATH
from ghostbuster.log import get_logger
from ghostbuster.models import CompanyMetrics, CompanyProfile, SourceShare, clamp_unit

log = get_logger(__name__)


def _metrics(raw: dict[str, Any]) -> CompanyMetrics:
    return CompanyMetrics(
        jobs_count=int(raw.get("jobs_count", 0)),
        remote_percent=float(raw.get("remote_percent", 0)),
        avg_age_days=int(raw.get("avg_age_days", 0)),
        salary_min=str(raw.get("salary_min", "")),
        salary_max=str(raw.get("salary_max", "")),
        trend=float(raw.get("trend", 0.0)),
        sources=[SourceShare(name=str(s["name"]), value=float(s["value"]))
                 for s in raw.get("sources", [])],
        sparkline=[float(v) for v in raw.get("sparkline", [])],
    )


def load_companies(path: Path = COMPANIES_PATH) -> list[CompanyProfile]:
    if not path.exists():
        log.warning("Company index not found at %s", path)
        return []
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    companies = [
        CompanyProfile(
            id=int(c["id"]),
            name=str(c["name"]),
            location=str(c.get("location", "")),
            employees=str(c.get("employees", "")),
            website=str(c.get("website", "")),
            ghost_risk=clamp_unit(float(c.get("ghost_risk", 0.0))),
            metrics=_metrics(c.get("metrics") or {}),
            logo_color=str(c.get("logo_color", "#4f46e5")),
        )
        for c in data.get("companies", [])
    ]
    log.debug("Loaded %d companies from %s", len(companies), path.name)
    return companies


def search_companies(companies: list[CompanyProfile], query: str) -> list[CompanyProfile]:
    """Case-insensitive match on name or location; blank query returns all."""
    q = (query or "").strip().lower()
    if not q:
        return list(companies)
    return [c for c in companies if q in c.name.lower() or q in c.location.lower()]
