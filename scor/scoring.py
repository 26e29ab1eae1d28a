# scoring.py
import math
from datetime import datetime, timezone
from typing import Optional, Tuple

from scor.config import ALGORITHM_WEIGHTS, RISK_THRESHOLDS
from scor.models import ComponentScores, CreditDecision, RiskTier

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    # halves round up, not to even
    return int(max(low, min(high, math.floor(value + 0.5))))


def calculate_treasury_health(total_value_usd: Optional[float]) -> int:
    """Log scale: $100K ~ 50, $1M ~ 75, $10M+ ~ 100."""
    if not total_value_usd or total_value_usd <= 0:
        return 0
    return _clamp(25 * math.log10(total_value_usd / 100000))


def calculate_activity_score(recent_transactions: Optional[int]) -> int:
    """Linear in 30-day transactions, saturates at 500."""
    if not recent_transactions or recent_transactions <= 0:
        return 0
    return _clamp(min(100, recent_transactions / 5))


def calculate_diversification_score(asset_count: Optional[int], native_ratio: float) -> int:
    if not asset_count or asset_count <= 0:
        return 0

    variety = min(60, asset_count * 15)
    # More than 70% in the native asset is over-concentrated
    concentration_penalty = max(0.0, (native_ratio - 0.7) * 100)
    balance_bonus = 20 if 0.3 < native_ratio < 0.7 else 0

    return _clamp(variety - concentration_penalty + balance_bonus)


def calculate_maturity_score(
    first_activity: Optional[datetime], now: Optional[datetime] = None
) -> int:
    """3+ years of history scores 100."""
    if first_activity is None:
        return 0
    now = now or datetime.now(timezone.utc)
    age_years = (now - first_activity).total_seconds() / SECONDS_PER_YEAR
    if age_years < 0:
        return 0
    return _clamp(min(100, age_years * 30))


def calculate_history_score(total_transactions: Optional[int]) -> int:
    """Log scale: 1000 txs ~ 75, 10000+ ~ 100."""
    if not total_transactions or total_transactions <= 0:
        return 0
    return _clamp(25 * math.log10(total_transactions))


def determine_risk_tier(score: int) -> RiskTier:
    if score >= RISK_THRESHOLDS["LOW"]:
        return RiskTier.LOW
    if score >= RISK_THRESHOLDS["MEDIUM_LOW"]:
        return RiskTier.MEDIUM_LOW
    if score >= RISK_THRESHOLDS["MEDIUM"]:
        return RiskTier.MEDIUM
    return RiskTier.HIGH


def aggregate(scores: ComponentScores) -> Tuple[int, RiskTier]:
    weighted = (
        scores.treasury * ALGORITHM_WEIGHTS["treasury"]
        + scores.activity * ALGORITHM_WEIGHTS["activity"]
        + scores.diversification * ALGORITHM_WEIGHTS["diversification"]
        + scores.maturity * ALGORITHM_WEIGHTS["maturity"]
        + scores.history * ALGORITHM_WEIGHTS["history"]
    )
    final_score = _clamp(weighted, low=1)
    return final_score, determine_risk_tier(final_score)


CREDIT_DECISIONS = {
    RiskTier.LOW: CreditDecision(
        approved=True,
        label="Approved for Financing",
        rationale="Strong treasury, consistent activity, and low risk indicators",
        max_advance_ratio=0.7,
    ),
    RiskTier.MEDIUM_LOW: CreditDecision(
        approved=True,
        label="Approved with Standard Terms",
        rationale="Good financial health with minor risk factors",
        max_advance_ratio=0.5,
    ),
    RiskTier.MEDIUM: CreditDecision(
        approved=False,
        label="Requires Further Review",
        rationale="Mixed risk indicators require additional due diligence",
        max_advance_ratio=0.3,
    ),
    RiskTier.HIGH: CreditDecision(
        approved=False,
        label="Not Recommended for Financing",
        rationale="Significant risk factors present",
        max_advance_ratio=0.1,
    ),
}


def generate_credit_decision(tier: RiskTier) -> CreditDecision:
    return CREDIT_DECISIONS[tier]
