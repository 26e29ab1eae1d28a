# config.py
from typing import Dict, List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ETHERSCAN_API_KEY: str = ""
    ETHERSCAN_API_URL: str = "https://api.etherscan.io/v2/api"
    ETHERSCAN_CHAIN_ID: int = 1
    ETHERSCAN_PAGE_SIZE: int = 1000
    COINGECKO_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    CACHE_TTL_HOURS: int = 24
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

NATIVE_SYMBOL = "ETH"
WEI_PER_ETH = 10 ** 18
DEFAULT_TOKEN_DECIMALS = 18
RECENT_WINDOW_DAYS = 30

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"

# Weights of each component in the final score, sum = 1.00
ALGORITHM_WEIGHTS = {
    "treasury": 0.30,
    "activity": 0.25,
    "diversification": 0.20,
    "maturity": 0.15,
    "history": 0.10,
}

# Closed lower bounds, checked from the top down
RISK_THRESHOLDS = {
    "LOW": 80,
    "MEDIUM_LOW": 65,
    "MEDIUM": 45,
}

STABLECOINS = ["USDC", "USDT", "DAI", "BUSD"]
BLUE_CHIP_TOKENS = ["WBTC", "LINK", "UNI", "AAVE"]

# CoinGecko coin ids for the symbols we know how to price
COINGECKO_IDS: Dict[str, str] = {
    "ETH": "ethereum",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "WBTC": "wrapped-bitcoin",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
    "ENS": "ethereum-name-service",
}

FALLBACK_NATIVE_PRICE = 2500.0
FALLBACK_TOKEN_PRICES: Dict[str, float] = {
    "USDC": 1.00,
    "USDT": 1.00,
    "DAI": 1.00,
    "WBTC": 45000.0,
    "LINK": 15.0,
    "UNI": 7.0,
    "AAVE": 90.0,
    "ENS": 12.0,
}

KNOWN_DAO_NAMES = {
    "0x28c6c06298d514db089934071355e5743bf21d60": "Enterprise Treasury A",
    "0x21a31ee1afc51d94c2efccaa2092ad1028285549": "Enterprise Treasury B",
    "0xdfd5293d8e347dfe59e90efd55b2956a1343963d": "Enterprise Treasury C",
    "0x56eddb7aa87536c09ccc2793473599fd21a8b17f": "Enterprise Treasury D",
    "0x9696f59e4d72e237be84ffd425dcad154bf96976": "DeFi Protocol Treasury",
    "0x93a62da5a14c80f265dabc077fcee437b1a0efde": "DeFi Protocol Multisig",
    "0x5d3a536e4d6dbd6114cc1ead35777bab948e3643": "Compound cDAI",
    "0x3d9819210a31b4961b30ef54be2aed79b9c9cd3b": "Compound Ether",
    "0x57ab1ec28d129707052df4df418d58a2d46d5f51": "Synthetix SNX",
    "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2": "MakerDAO MKR Token",
    "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984": "Uniswap UNI Token",
}
UNKNOWN_DAO_NAME = "Unknown DAO"
