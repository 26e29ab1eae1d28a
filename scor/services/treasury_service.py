"""
Treasury and holdings analysis service
Handles NAV calculation, holdings ranking, activity labels and risk flags
"""
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from scor.config import BLUE_CHIP_TOKENS, NATIVE_SYMBOL, STABLECOINS
from scor.models import (
    AccountSnapshot,
    ActivityProfile,
    ComponentScores,
    HoldingView,
    PortfolioMetrics,
    PriceSnapshot,
    TreasuryNav,
)


def calculate_treasury_nav(account: AccountSnapshot, prices: PriceSnapshot) -> TreasuryNav:
    native_value = account.native_balance * prices.native_price_usd

    token_value = 0.0
    priced_tokens = 0
    for token in account.token_balances:
        price = prices.price_for(token.symbol)
        if price:
            token_value += token.amount * price
            priced_tokens += 1

    total_value = native_value + token_value

    return TreasuryNav(
        native_value_usd=native_value,
        token_value_usd=token_value,
        total_value_usd=total_value,
        asset_count=1 + priced_tokens,
        native_ratio=native_value / total_value if total_value > 0 else 1.0,
        priced_token_count=priced_tokens,
    )


def _percentage(value: float, total_value: float) -> int:
    if total_value <= 0:
        return 0
    return int(math.floor(value * 100 / total_value + 0.5))


def determine_token_risk_level(symbol: str, percentage: int) -> str:
    symbol = symbol.upper()
    if symbol in STABLECOINS:
        return "low"
    if symbol in BLUE_CHIP_TOKENS:
        return "medium" if percentage > 30 else "low"
    return "high" if percentage > 20 else "medium"


def build_holdings(
    account: AccountSnapshot, prices: PriceSnapshot, total_value_usd: float
) -> List[HoldingView]:
    native_value = account.native_balance * prices.native_price_usd
    holdings = [
        HoldingView(
            symbol=NATIVE_SYMBOL,
            amount=account.native_balance,
            value_usd=native_value,
            percentage_of_portfolio=_percentage(native_value, total_value_usd),
            is_stable=False,
            risk_bucket="medium",
            price_usd=prices.native_price_usd,
        )
    ]

    for token in account.token_balances:
        price = prices.price_for(token.symbol)
        if not price:
            continue

        value = token.amount * price
        percentage = _percentage(value, total_value_usd)
        holdings.append(HoldingView(
            symbol=token.symbol,
            amount=token.amount,
            value_usd=value,
            percentage_of_portfolio=percentage,
            is_stable=token.symbol.upper() in STABLECOINS,
            risk_bucket=determine_token_risk_level(token.symbol, percentage),
            price_usd=price,
            contract_address=token.contract_address,
        ))

    # sorted() is stable, ties keep first-seen order
    return sorted(holdings, key=lambda h: h.value_usd, reverse=True)


def analyze_portfolio(holdings: Sequence[HoldingView], nav: TreasuryNav) -> PortfolioMetrics:
    total_value = sum(h.value_usd for h in holdings)
    stable_value = sum(h.value_usd for h in holdings if h.is_stable)

    distribution = {"low": 0.0, "medium": 0.0, "high": 0.0}
    for holding in holdings:
        distribution[holding.risk_bucket] += holding.percentage_of_portfolio

    return PortfolioMetrics(
        asset_count=nav.asset_count,
        native_ratio=round(nav.native_ratio, 2),
        stablecoin_ratio=round(stable_value / total_value, 2) if total_value > 0 else 0.0,
        top_holding_percentage=holdings[0].percentage_of_portfolio if holdings else 0,
        risk_distribution={k: int(v) for k, v in distribution.items()},
    )


def _activity_level(recent: int) -> str:
    if recent > 100:
        return "Very High"
    if recent > 50:
        return "High"
    if recent > 20:
        return "Medium"
    if recent > 5:
        return "Low"
    return "Very Low"


def _last_activity(recent: int) -> str:
    if recent > 100:
        return "within hours"
    if recent > 50:
        return "within a day"
    if recent > 10:
        return "within days"
    if recent > 0:
        return "within a week"
    return "over two weeks"


def _treasury_stability(recent: int) -> str:
    if recent > 50:
        return "Stable"
    if recent > 20:
        return "Moderate"
    return "Volatile"


def _wallet_age_bucket(age_days: Optional[int]) -> str:
    if age_days is None:
        return "Unknown"
    if age_days > 730:
        return "Very Mature"
    if age_days > 365:
        return "Mature"
    if age_days > 180:
        return "Established"
    if age_days > 30:
        return "New"
    return "Very New"


def describe_activity(account: AccountSnapshot, now: Optional[datetime] = None) -> ActivityProfile:
    now = now or datetime.now(timezone.utc)
    recent = max(0, account.transaction_count_recent)

    age_days = None
    if account.first_activity is not None:
        age_days = max(0, (now - account.first_activity).days)

    return ActivityProfile(
        activity_level=_activity_level(recent),
        last_activity=_last_activity(recent),
        treasury_stability=_treasury_stability(recent),
        wallet_age=_wallet_age_bucket(age_days),
        wallet_age_days=age_days,
        total_transactions=account.transaction_count_total,
        recent_transactions=account.transaction_count_recent,
        first_activity=account.first_activity,
    )


def detect_risk_factors(
    nav: TreasuryNav, account: AccountSnapshot, breakdown: ComponentScores
) -> Tuple[str, ...]:
    flags = {
        "high_native_concentration": nav.native_ratio > 0.8,
        "low_activity": account.transaction_count_recent < 10,
        "new_wallet": breakdown.maturity < 30,
        "small_treasury": nav.total_value_usd < 100000,
        "limited_diversification": nav.priced_token_count < 2,
    }
    return tuple(name for name, raised in flags.items() if raised)
