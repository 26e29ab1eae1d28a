"""
Unit tests for NAV calculation, holdings ranking, portfolio metrics,
activity labels and risk flags.
"""

from datetime import datetime, timedelta, timezone

import pytest

from scor.models import AccountSnapshot, ComponentScores, PriceSnapshot, TokenBalance
from scor.services.treasury_service import (
    analyze_portfolio,
    build_holdings,
    calculate_treasury_nav,
    describe_activity,
    detect_risk_factors,
    determine_token_risk_level,
)

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
WEI = 10 ** 18


def _token(symbol, amount, decimals=18):
    return TokenBalance(symbol, f"0x{symbol.lower()}", int(amount * 10 ** decimals), decimals)


class TestTreasuryNav:

    @pytest.mark.unit
    def test_native_only(self):
        nav = calculate_treasury_nav(AccountSnapshot(native_balance=10), PriceSnapshot(2500.0))
        assert nav.total_value_usd == 25000.0
        assert nav.asset_count == 1
        assert nav.native_ratio == 1.0

    @pytest.mark.unit
    def test_zero_total_is_safe(self):
        nav = calculate_treasury_nav(AccountSnapshot(native_balance=0), PriceSnapshot(2500.0))
        assert nav.total_value_usd == 0
        assert nav.native_ratio == 1.0

    @pytest.mark.unit
    def test_unpriced_tokens_excluded(self, diversified_account, prices):
        nav = calculate_treasury_nav(diversified_account, prices)
        assert nav.priced_token_count == 3
        assert nav.asset_count == 4
        assert nav.token_value_usd == pytest.approx(1_700_000)
        assert nav.total_value_usd == pytest.approx(3_200_000)


class TestHoldings:

    @pytest.mark.unit
    def test_sorted_by_value_descending(self, diversified_account, prices):
        nav = calculate_treasury_nav(diversified_account, prices)
        holdings = build_holdings(diversified_account, prices, nav.total_value_usd)
        assert [h.symbol for h in holdings] == ["ETH", "USDC", "UNI", "WBTC"]
        values = [h.value_usd for h in holdings]
        assert values == sorted(values, reverse=True)

    @pytest.mark.unit
    def test_percentages_sum_to_hundred(self, diversified_account, prices):
        nav = calculate_treasury_nav(diversified_account, prices)
        holdings = build_holdings(diversified_account, prices, nav.total_value_usd)
        assert [h.percentage_of_portfolio for h in holdings] == [47, 31, 13, 9]
        assert sum(h.percentage_of_portfolio for h in holdings) <= 100

    @pytest.mark.unit
    def test_half_percentages_round_up(self):
        account = AccountSnapshot(native_balance=1, token_balances=(_token("DAI", 495),))
        holdings = build_holdings(account, PriceSnapshot(505.0, {"DAI": 1.0}), 1000.0)
        percentages = [h.percentage_of_portfolio for h in holdings]
        assert percentages == [51, 50]
        # each holding is rounded on its own, so the sum can exceed 100 by
        # at most half a point per holding
        assert sum(percentages) <= 100 + len(holdings) // 2

    @pytest.mark.unit
    def test_zero_total_gives_zero_percentages(self):
        account = AccountSnapshot(native_balance=0, token_balances=(_token("USDC", 0, 6),))
        holdings = build_holdings(account, PriceSnapshot(2500.0, {"USDC": 1.0}), 0)
        assert [h.percentage_of_portfolio for h in holdings] == [0, 0]

    @pytest.mark.unit
    def test_ties_keep_first_seen_order(self):
        account = AccountSnapshot(
            native_balance=0,
            token_balances=(_token("DAI", 100), _token("USDC", 100, 6)),
        )
        prices = PriceSnapshot(2500.0, {"DAI": 1.0, "USDC": 1.0})
        holdings = build_holdings(account, prices, 200)
        assert [h.symbol for h in holdings] == ["DAI", "USDC", "ETH"]

    @pytest.mark.unit
    def test_native_holding_is_medium_risk(self):
        account = AccountSnapshot(native_balance=1)
        (eth,) = build_holdings(account, PriceSnapshot(2500.0), 2500.0)
        assert eth.symbol == "ETH"
        assert eth.risk_bucket == "medium"
        assert eth.percentage_of_portfolio == 100
        assert eth.is_stable is False

    @pytest.mark.unit
    def test_stablecoin_flag(self, diversified_account, prices):
        holdings = build_holdings(diversified_account, prices, 3_200_000)
        stable = {h.symbol for h in holdings if h.is_stable}
        assert stable == {"USDC"}


class TestTokenRiskLevel:

    @pytest.mark.unit
    @pytest.mark.parametrize("symbol,pct,expected", [
        ("USDC", 90, "low"),
        ("dai", 5, "low"),
        ("WBTC", 30, "low"),
        ("WBTC", 31, "medium"),
        ("PEPE", 20, "medium"),
        ("PEPE", 21, "high"),
    ])
    def test_buckets(self, symbol, pct, expected):
        assert determine_token_risk_level(symbol, pct) == expected


class TestPortfolioMetrics:

    @pytest.mark.unit
    def test_metrics(self, diversified_account, prices):
        nav = calculate_treasury_nav(diversified_account, prices)
        holdings = build_holdings(diversified_account, prices, nav.total_value_usd)
        metrics = analyze_portfolio(holdings, nav)
        assert metrics.asset_count == 4
        assert metrics.native_ratio == 0.47
        assert metrics.stablecoin_ratio == 0.31
        assert metrics.top_holding_percentage == 47
        assert metrics.risk_distribution["medium"] == 47
        assert metrics.risk_distribution["high"] == 0

    @pytest.mark.unit
    def test_empty_holdings(self):
        nav = calculate_treasury_nav(AccountSnapshot(native_balance=0), PriceSnapshot(2500.0))
        metrics = analyze_portfolio([], nav)
        assert metrics.top_holding_percentage == 0
        assert metrics.stablecoin_ratio == 0.0


class TestDescribeActivity:

    @pytest.mark.unit
    @pytest.mark.parametrize("recent,level,last,stability", [
        (0, "Very Low", "over two weeks", "Volatile"),
        (3, "Very Low", "within a week", "Volatile"),
        (15, "Low", "within days", "Volatile"),
        (30, "Medium", "within days", "Moderate"),
        (75, "High", "within a day", "Stable"),
        (150, "Very High", "within hours", "Stable"),
    ])
    def test_activity_labels(self, recent, level, last, stability):
        profile = describe_activity(AccountSnapshot(native_balance=1, transaction_count_recent=recent), NOW)
        assert profile.activity_level == level
        assert profile.last_activity == last
        assert profile.treasury_stability == stability

    @pytest.mark.unit
    @pytest.mark.parametrize("age_days,expected", [
        (10, "Very New"),
        (90, "New"),
        (200, "Established"),
        (400, "Mature"),
        (1000, "Very Mature"),
    ])
    def test_wallet_age(self, age_days, expected):
        account = AccountSnapshot(native_balance=1, first_activity=NOW - timedelta(days=age_days))
        profile = describe_activity(account, NOW)
        assert profile.wallet_age == expected
        assert profile.wallet_age_days == age_days

    @pytest.mark.unit
    def test_unknown_wallet_age(self):
        profile = describe_activity(AccountSnapshot(native_balance=1), NOW)
        assert profile.wallet_age == "Unknown"
        assert profile.wallet_age_days is None


class TestRiskFactors:

    @pytest.mark.unit
    def test_healthy_treasury_has_no_flags(self, diversified_account, prices):
        nav = calculate_treasury_nav(diversified_account, prices)
        breakdown = ComponentScores(maturity=100)
        assert detect_risk_factors(nav, diversified_account, breakdown) == ()

    @pytest.mark.unit
    def test_empty_wallet_raises_every_flag(self):
        account = AccountSnapshot(native_balance=1)
        nav = calculate_treasury_nav(account, PriceSnapshot(2500.0))
        flags = detect_risk_factors(nav, account, ComponentScores())
        assert flags == (
            "high_native_concentration",
            "low_activity",
            "new_wallet",
            "small_treasury",
            "limited_diversification",
        )
