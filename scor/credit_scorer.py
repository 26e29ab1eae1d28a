"""
Credit Scoring System
Combines the component scorers and the holdings analysis into a RiskResult
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from scor.config import KNOWN_DAO_NAMES, UNKNOWN_DAO_NAME
from scor.models import AccountSnapshot, ComponentScores, PriceSnapshot, RiskResult
from scor.scoring import (
    aggregate,
    calculate_activity_score,
    calculate_diversification_score,
    calculate_history_score,
    calculate_maturity_score,
    calculate_treasury_health,
    generate_credit_decision,
)
from scor.services.treasury_service import (
    analyze_portfolio,
    build_holdings,
    calculate_treasury_nav,
    describe_activity,
    detect_risk_factors,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CreditScorer:
    """
    Credit scoring system based on a DAO treasury's on-chain footprint
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utc_now

    def calculate_breakdown(
        self, account: AccountSnapshot, prices: PriceSnapshot, now: Optional[datetime] = None
    ) -> ComponentScores:
        """Score each dimension independently"""
        now = now or self.clock()
        nav = calculate_treasury_nav(account, prices)

        return ComponentScores(
            treasury=calculate_treasury_health(nav.total_value_usd),
            activity=calculate_activity_score(account.transaction_count_recent),
            diversification=calculate_diversification_score(nav.asset_count, nav.native_ratio),
            maturity=calculate_maturity_score(account.first_activity, now),
            history=calculate_history_score(account.transaction_count_total),
        )

    def calculate_score(
        self, subject: str, account: AccountSnapshot, prices: PriceSnapshot
    ) -> RiskResult:
        """Calculate the full risk result for one subject"""
        now = self.clock()
        nav = calculate_treasury_nav(account, prices)
        breakdown = self.calculate_breakdown(account, prices, now)
        final_score, tier = aggregate(breakdown)

        holdings = build_holdings(account, prices, nav.total_value_usd)
        risk_factors = detect_risk_factors(nav, account, breakdown)

        logger.info(
            "Risk calculation completed for %s: score=%d tier=%s treasury=$%.2f flags=%s",
            subject, final_score, tier.value, nav.total_value_usd, ",".join(risk_factors) or "none",
        )

        return RiskResult(
            subject=subject,
            name=KNOWN_DAO_NAMES.get(subject.lower(), UNKNOWN_DAO_NAME),
            final_score=final_score,
            risk_tier=tier,
            breakdown=breakdown,
            portfolio_value_usd=nav.total_value_usd,
            native_value_usd=nav.native_value_usd,
            token_value_usd=nav.token_value_usd,
            holdings=tuple(holdings),
            credit_decision=generate_credit_decision(tier),
            computed_at=now,
            activity=describe_activity(account, now),
            portfolio=analyze_portfolio(holdings, nav),
            risk_factors=risk_factors,
            payment_reliability=min(95, breakdown.activity + breakdown.history),
            price_source=prices.source,
        )
