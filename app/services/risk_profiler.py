# app/services/risk_profiler.py

from typing import Dict, Optional, Union
from app.models.plan import RiskTier

# Checked in this order; a message with both kinds of keywords is conservative
CONSERVATIVE_KEYWORDS = ("safe", "conservative", "secure")
AGGRESSIVE_KEYWORDS = ("aggressive", "high return", "growth")

ALLOCATION_POLICIES = {
    RiskTier.CONSERVATIVE: {"equity": 20, "debt": 60, "gold": 10, "emergency": 10},
    RiskTier.MODERATE: {"equity": 50, "debt": 30, "gold": 10, "emergency": 10},
    RiskTier.AGGRESSIVE: {"equity": 70, "debt": 15, "gold": 10, "emergency": 5},
}

# Numeric levels used by older clients
RISK_LEVELS = {
    1: RiskTier.CONSERVATIVE,
    2: RiskTier.MODERATE,
    3: RiskTier.AGGRESSIVE,
}


def classify_risk(free_text: Optional[str]) -> RiskTier:
    """Rule-based risk profiler: keyword match on the user's message"""
    msg = (free_text or "").lower()
    if any(keyword in msg for keyword in CONSERVATIVE_KEYWORDS):
        return RiskTier.CONSERVATIVE
    if any(keyword in msg for keyword in AGGRESSIVE_KEYWORDS):
        return RiskTier.AGGRESSIVE
    return RiskTier.MODERATE


def default_allocation(tier: RiskTier) -> Dict[str, int]:
    return dict(ALLOCATION_POLICIES.get(tier, ALLOCATION_POLICIES[RiskTier.MODERATE]))


def risk_tier_from_level(level: Union[RiskTier, str, int, None]) -> RiskTier:
    """Accepts a RiskTier, a tier name or a 1/2/3 level; anything else is moderate"""
    if isinstance(level, RiskTier):
        return level
    if isinstance(level, bool):
        return RiskTier.MODERATE
    if isinstance(level, int):
        return RISK_LEVELS.get(level, RiskTier.MODERATE)
    if isinstance(level, str):
        value = level.strip().lower()
        if value.isdigit():
            return RISK_LEVELS.get(int(value), RiskTier.MODERATE)
        try:
            return RiskTier(value)
        except ValueError:
            return RiskTier.MODERATE
    return RiskTier.MODERATE
