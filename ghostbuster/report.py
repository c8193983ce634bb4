"""Tabular and Markdown views of audit history and results."""
from __future__ import annotations

from typing import Sequence

import pandas as pd

from ghostbuster.models import AuditRequest, AuditResult, HistoryEntry
from ghostbuster.risk import HIGH, format_percent, risk_tier

HISTORY_COLUMNS: list[str] = ["job_title", "company", "score", "risk", "summary", "audited"]


def history_frame(entries: Sequence[HistoryEntry]) -> pd.DataFrame:
    """One row per entry, in feed order. Unacknowledged writes show as 'Just now'."""
    rows = [
        {
            "job_title": e.job_title,
            "company": e.company,
            "score": e.score,
            "risk": risk_tier(e.score).label,
            "summary": e.summary,
            "audited": e.timestamp.strftime("%Y-%m-%d %H:%M") if e.timestamp else "Just now",
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def history_stats(entries: Sequence[HistoryEntry]) -> dict[str, float | int]:
    if not entries:
        return {"count": 0, "average": 0.0, "high_risk": 0}
    scores = [e.score for e in entries]
    return {
        "count": len(scores),
        "average": sum(scores) / len(scores),
        "high_risk": sum(1 for s in scores if risk_tier(s) is HIGH),
    }


def result_markdown(request: AuditRequest, result: AuditResult) -> str:
    """Shareable summary of one audit."""
    tier = risk_tier(result.score)
    where = f" @ {request.company}" if request.company else ""
    lines = [
        f"# Ghost Job Audit — {request.title}{where}",
        "",
        f"**Ghost risk:** {format_percent(result.score)} ({tier.verdict})",
        "",
        f"- Type: {request.employment_type}",
        f"- Industry: {request.industry}",
    ]
    if request.location:
        lines.append(f"- Location: {request.location}")
    if result.fallback_applied:
        lines.append("- Note: the AI reply had no usable score; a neutral 50% was assumed")
    lines += ["", result.analysis or "_No analysis returned._"]

    if result.factors:
        lines += ["", "## Risk Factors", "", "| Factor | Impact | Reason |", "|---|---|---|"]
        for f in result.factors:
            reason = f.reason.replace("|", "\\|")
            lines.append(f"| {f.name or '—'} | {format_percent(f.impact)} | {reason} |")
    return "\n".join(lines) + "\n"
