"""
Service layer package
Provides modular services for blockchain data, pricing, treasury analysis,
caching and report export
"""

# Blockchain data fetching
from .blockchain_service import EtherscanClient, extract_result

# Token prices
from .price_service import CoinGeckoClient, fallback_prices, map_prices, supported_symbols

# Treasury analysis
from .treasury_service import (
    analyze_portfolio,
    build_holdings,
    calculate_treasury_nav,
    describe_activity,
    detect_risk_factors,
    determine_token_risk_level,
)

# Result caching
from .cache_service import CacheBackend, InMemoryCacheBackend, ResultCache

# Report export
from .report_service import export_report, render_report, report_filename

__all__ = [
    "EtherscanClient",
    "extract_result",
    "CoinGeckoClient",
    "fallback_prices",
    "map_prices",
    "supported_symbols",
    "analyze_portfolio",
    "build_holdings",
    "calculate_treasury_nav",
    "describe_activity",
    "detect_risk_factors",
    "determine_token_risk_level",
    "CacheBackend",
    "InMemoryCacheBackend",
    "ResultCache",
    "export_report",
    "render_report",
    "report_filename",
]
