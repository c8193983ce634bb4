"""Data models for audits, history entries and company profiles."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

EMPLOYMENT_TYPES: tuple[str, ...] = (
    "Full-time", "Part-time", "Contract", "Freelance", "Internship",
)

INDUSTRIES: tuple[str, ...] = (
    "Technology", "Finance", "Healthcare", "Education",
    "Retail", "Manufacturing", "Other",
)


def clamp_unit(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def as_number(value: Any) -> float | None:
    """Return a finite float for real numbers, None otherwise (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


@dataclass
class AuditRequest:
    title: str
    requirements: str
    company: str = ""
    location: str = ""
    employment_type: str = EMPLOYMENT_TYPES[0]
    industry: str = INDUSTRIES[0]


@dataclass
class RiskFactor:
    name: str
    impact: float
    reason: str

    @classmethod
    def from_raw(cls, raw: Any) -> RiskFactor:
        """Lenient: the service may omit fields or send odd types."""
        if not isinstance(raw, dict):
            return cls(name=str(raw) if raw is not None else "", impact=0.0, reason="")
        impact = as_number(raw.get("impact"))
        return cls(
            name=str(raw.get("name") or ""),
            impact=clamp_unit(impact) if impact is not None else 0.0,
            reason=str(raw.get("reason") or ""),
        )


@dataclass
class AuditResult:
    score: float
    analysis: str
    factors: list[RiskFactor] = field(default_factory=list)
    fallback_applied: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class HistoryEntry:
    id: str
    job_title: str
    company: str
    score: float
    summary: str
    timestamp: datetime | None = None

    @classmethod
    def from_audit(cls, request: AuditRequest, result: AuditResult) -> HistoryEntry:
        return cls(
            id="",
            job_title=request.title,
            company=request.company,
            score=result.score,
            summary=result.analysis,
        )

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> HistoryEntry:
        score = as_number(data.get("score"))
        ts = data.get("timestamp")
        return cls(
            id=doc_id,
            job_title=str(data.get("jobTitle") or ""),
            company=str(data.get("company") or ""),
            score=score if score is not None else 0.0,
            summary=str(data.get("summary") or ""),
            timestamp=ts if isinstance(ts, datetime) else None,
        )

    def to_document(self) -> dict[str, Any]:
        """Fields written to the store; the timestamp is assigned server-side."""
        return {
            "jobTitle": self.job_title,
            "company": self.company,
            "score": self.score,
            "summary": self.summary,
        }


@dataclass
class SourceShare:
    name: str
    value: float


@dataclass
class CompanyMetrics:
    jobs_count: int
    remote_percent: float
    avg_age_days: int
    salary_min: str
    salary_max: str
    trend: float
    sources: list[SourceShare] = field(default_factory=list)
    sparkline: list[float] = field(default_factory=list)


@dataclass
class CompanyProfile:
    id: int
    name: str
    location: str
    employees: str
    website: str
    ghost_risk: float
    metrics: CompanyMetrics
    logo_color: str = "#4f46e5"
