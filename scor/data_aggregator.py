"""
Blockchain Data Aggregator
Fetches account and price data concurrently and normalizes them into snapshots
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Tuple

from scor.exceptions import UpstreamUnavailable
from scor.models import AccountSnapshot, PriceSnapshot
from scor.normalizer import normalize
from scor.services.blockchain_service import EtherscanClient
from scor.services.price_service import CoinGeckoClient, fallback_prices, supported_symbols

logger = logging.getLogger(__name__)


class DataAggregator:
    """
    Aggregator over the two external collaborators:
    - chain data (fatal on failure)
    - prices (falls back to fixed defaults on failure)
    """

    def __init__(self, chain_client=None, price_client=None):
        self.chain_client = chain_client or EtherscanClient()
        self.price_client = price_client or CoinGeckoClient()

    async def get_snapshots(
        self, address: str, now: Optional[datetime] = None
    ) -> Tuple[AccountSnapshot, PriceSnapshot]:
        """Fire both fetches, await both, then normalize"""
        raw_account, raw_prices = await asyncio.gather(
            self.chain_client.fetch_account_data(address),
            self.price_client.fetch_prices(supported_symbols()),
            return_exceptions=True,
        )

        if isinstance(raw_account, BaseException):
            logger.error("Account data fetch failed for %s: %s", address, raw_account)
            raise raw_account

        if isinstance(raw_prices, (UpstreamUnavailable, asyncio.TimeoutError)):
            logger.warning("Using fallback prices due to price API error: %s", raw_prices)
            raw_prices = fallback_prices()
        elif isinstance(raw_prices, BaseException):
            raise raw_prices

        return normalize(raw_account, raw_prices, now=now)
