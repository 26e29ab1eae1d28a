"""
Report export service
Renders a RiskResult into a paginated plain-text risk assessment document
"""
import re
from datetime import datetime, timezone
from typing import List, Optional

from scor.config import ALGORITHM_WEIGHTS, NATIVE_SYMBOL
from scor.models import RiskResult

PAGE_BREAK = "\f"
DEFAULT_LINES_PER_PAGE = 50
RULE = "=" * 72

BREAKDOWN_LABELS = [
    ("treasury", "Treasury Health"),
    ("activity", "Activity Score"),
    ("diversification", "Diversification"),
    ("maturity", "Maturity Score"),
    ("history", "Transaction History"),
]


def _usd(value: float) -> str:
    return f"${value:,.2f}"


def _section(title: str) -> List[str]:
    return ["", title, "-" * len(title)]


def _header(result: RiskResult, generated_at: datetime) -> List[str]:
    source = "Live Blockchain Analysis (Etherscan + CoinGecko)"
    if result.price_source == "fallback":
        source += ", fallback prices"
    return [
        RULE,
        "SCOR - DAO RISK ASSESSMENT REPORT",
        RULE,
        f"Generated: {generated_at:%Y-%m-%d %H:%M} UTC",
        f"Analysis Date: {result.computed_at:%Y-%m-%d %H:%M} UTC",
        f"Data Source: {source}",
        "",
        f"DAO: {result.name}",
        f"Address: {result.subject}",
        f"Risk Score: {result.final_score}/100 ({result.risk_tier.value} Risk)",
    ]


def _decision(result: RiskResult) -> List[str]:
    decision = result.credit_decision
    banner = f"*** {decision.label.upper()} ***"
    return [
        "",
        banner.center(len(RULE)),
        f"Rationale: {decision.rationale}",
        f"Maximum advance: {decision.max_advance_ratio:.0%} of treasury value",
    ]


def _treasury(result: RiskResult) -> List[str]:
    activity = result.activity
    wallet_age = activity.wallet_age
    if activity.wallet_age_days is not None:
        wallet_age = f"{wallet_age} ({activity.wallet_age_days} days)"
    return _section("TREASURY OVERVIEW") + [
        f"Total Treasury Value:      {_usd(result.portfolio_value_usd)}",
        f"{NATIVE_SYMBOL} Value:                 {_usd(result.native_value_usd)}",
        f"Token Value:               {_usd(result.token_value_usd)}",
        f"Recent Activity (30d):     {activity.recent_transactions} transactions",
        f"Total Transaction History: {activity.total_transactions} transactions",
        f"Wallet Age:                {wallet_age}",
        f"Activity Level:            {activity.activity_level}",
        f"Treasury Stability:        {activity.treasury_stability}",
    ]


def _breakdown(result: RiskResult) -> List[str]:
    lines = _section("RISK ANALYSIS BREAKDOWN")
    for key, label in BREAKDOWN_LABELS:
        title = f"{label} ({ALGORITHM_WEIGHTS[key]:.0%})"
        lines.append(f"{title:<32}{getattr(result.breakdown, key):>3}/100")
    return lines


def _holdings(result: RiskResult) -> List[str]:
    lines = _section("HOLDINGS")
    if not result.holdings:
        return lines + ["No priced holdings"]

    lines.append(f"{'Asset':<10}{'Amount':>20}{'Value (USD)':>20}{'Share':>8}  Risk")
    for holding in result.holdings:
        lines.append(
            f"{holding.symbol:<10}{holding.amount:>20,.4f}{_usd(holding.value_usd):>20}"
            f"{holding.percentage_of_portfolio:>7}%  {holding.risk_bucket}"
        )
    return lines


def render_report(
    result: RiskResult,
    generated_at: Optional[datetime] = None,
    lines_per_page: int = DEFAULT_LINES_PER_PAGE,
) -> List[str]:
    """Return the report as a list of page strings"""
    generated_at = generated_at or datetime.now(timezone.utc)
    body = (
        _header(result, generated_at)
        + _decision(result)
        + _treasury(result)
        + _breakdown(result)
        + _holdings(result)
    )

    # two lines per page are reserved for the footer
    per_page = max(1, lines_per_page - 2)
    chunks = [body[i:i + per_page] for i in range(0, len(body), per_page)]

    pages = []
    for number, chunk in enumerate(chunks, start=1):
        footer = ["", f"CONFIDENTIAL - scor DAO risk assessment    Page {number} of {len(chunks)}"]
        pages.append("\n".join(chunk + footer))
    return pages


def export_report(result: RiskResult, generated_at: Optional[datetime] = None) -> str:
    return (PAGE_BREAK + "\n").join(render_report(result, generated_at=generated_at)) + "\n"


def report_filename(result: RiskResult) -> str:
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", result.name or "Unknown_DAO")
    return f"{safe_name}_Risk_Assessment_{result.computed_at:%Y-%m-%d}.txt"
