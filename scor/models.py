"""
Domain models for DAO credit analysis
Snapshots are built once per analysis; RiskResult is what gets cached.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class TokenBalance:
    symbol: str
    contract_address: str
    raw_balance: int
    decimals: int

    @property
    def amount(self) -> float:
        return self.raw_balance / (10 ** self.decimals)


@dataclass(frozen=True)
class AccountSnapshot:
    native_balance: float
    token_balances: Tuple[TokenBalance, ...] = ()
    transaction_count_total: int = 0
    transaction_count_recent: int = 0
    first_activity: Optional[datetime] = None


@dataclass(frozen=True)
class PriceSnapshot:
    native_price_usd: float
    token_prices_usd: Dict[str, float] = field(default_factory=dict)
    source: str = "live"

    def price_for(self, symbol: str) -> Optional[float]:
        return self.token_prices_usd.get(symbol.upper())


@dataclass(frozen=True)
class ComponentScores:
    treasury: int = 0
    activity: int = 0
    diversification: int = 0
    maturity: int = 0
    history: int = 0


class RiskTier(str, Enum):
    LOW = "Low"
    MEDIUM_LOW = "Medium-Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class CreditDecision:
    approved: bool
    label: str
    rationale: str
    max_advance_ratio: float


@dataclass(frozen=True)
class HoldingView:
    symbol: str
    amount: float
    value_usd: float
    percentage_of_portfolio: int
    is_stable: bool
    risk_bucket: str
    price_usd: float
    contract_address: str = ""


@dataclass(frozen=True)
class TreasuryNav:
    native_value_usd: float
    token_value_usd: float
    total_value_usd: float
    asset_count: int
    native_ratio: float
    priced_token_count: int


@dataclass(frozen=True)
class PortfolioMetrics:
    asset_count: int
    native_ratio: float
    stablecoin_ratio: float
    top_holding_percentage: int
    risk_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ActivityProfile:
    activity_level: str
    last_activity: str
    treasury_stability: str
    wallet_age: str
    wallet_age_days: Optional[int]
    total_transactions: int
    recent_transactions: int
    first_activity: Optional[datetime] = None


@dataclass(frozen=True)
class RiskResult:
    subject: str
    name: str
    final_score: int
    risk_tier: RiskTier
    breakdown: ComponentScores
    portfolio_value_usd: float
    native_value_usd: float
    token_value_usd: float
    holdings: Tuple[HoldingView, ...]
    credit_decision: CreditDecision
    computed_at: datetime
    activity: ActivityProfile
    portfolio: PortfolioMetrics
    risk_factors: Tuple[str, ...] = ()
    payment_reliability: int = 0
    price_source: str = "live"


@dataclass(frozen=True)
class CacheEntry:
    subject_key: str
    result: RiskResult
    stored_at: datetime
