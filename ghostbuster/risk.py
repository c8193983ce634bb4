"""Risk tiers and display formatting for ghost-risk scores."""
from __future__ import annotations

from dataclasses import dataclass

from ghostbuster.models import clamp_unit

LOW_THRESHOLD = 0.3
HIGH_THRESHOLD = 0.6


@dataclass(frozen=True)
class RiskTier:
    key: str
    label: str          # company cards / history badges
    verdict: str        # audit result headline
    color: str
    background: str


LOW = RiskTier("low", "Low Risk", "Legitimate", "#059669", "#ecfdf5")
MODERATE = RiskTier("moderate", "Moderate Risk", "Moderate Risk", "#d97706", "#fffbeb")
HIGH = RiskTier("high", "High Risk", "High Probability", "#e11d48", "#fff1f2")


def risk_tier(score: float) -> RiskTier:
    """Both boundaries, 0.3 and 0.6, fall in the moderate band."""
    s = clamp_unit(float(score))
    if s > HIGH_THRESHOLD:
        return HIGH
    if s < LOW_THRESHOLD:
        return LOW
    return MODERATE


def format_percent(score: float) -> str:
    return f"{clamp_unit(float(score)) * 100:.0f}%"
