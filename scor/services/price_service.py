"""
Token price service
Spot USD prices from CoinGecko, with a fixed fallback table
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

import aiohttp

from scor.config import (
    COINGECKO_IDS,
    FALLBACK_NATIVE_PRICE,
    FALLBACK_TOKEN_PRICES,
    NATIVE_SYMBOL,
    settings,
)
from scor.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

SOURCE = "coingecko"


def supported_symbols() -> list:
    return [symbol for symbol in COINGECKO_IDS if symbol != NATIVE_SYMBOL]


def fallback_prices() -> Dict[str, Any]:
    return {
        "nativePrice": FALLBACK_NATIVE_PRICE,
        "tokenPrices": dict(FALLBACK_TOKEN_PRICES),
        "source": "fallback",
    }


def map_prices(data: Dict, symbols: Iterable[str]) -> Dict[str, Any]:
    """Map a CoinGecko {coin_id: {"usd": price}} body back to symbols"""
    native = (data.get(COINGECKO_IDS[NATIVE_SYMBOL]) or {}).get("usd")
    if not native:
        raise UpstreamUnavailable("CoinGecko response has no native asset price", source=SOURCE)

    token_prices = {}
    for symbol in symbols:
        coin_id = COINGECKO_IDS.get(symbol.upper())
        if not coin_id:
            continue
        price = (data.get(coin_id) or {}).get("usd")
        if price:
            token_prices[symbol.upper()] = price

    return {"nativePrice": native, "tokenPrices": token_prices, "source": "live"}


class CoinGeckoClient:
    """Price provider backed by the CoinGecko simple price endpoint."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or settings.COINGECKO_URL
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS

    async def fetch_prices(self, symbols: Iterable[str]) -> Dict[str, Any]:
        symbols = [s.upper() for s in symbols]
        coin_ids = [COINGECKO_IDS[NATIVE_SYMBOL]]
        coin_ids += [COINGECKO_IDS[s] for s in symbols if s in COINGECKO_IDS and s != NATIVE_SYMBOL]

        params = {"ids": ",".join(coin_ids), "vs_currencies": "usd"}
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.url, params=params) as resp:
                    if resp.status >= 400:
                        raise UpstreamUnavailable(
                            f"CoinGecko HTTP {resp.status}", source=SOURCE, status_code=resp.status
                        )
                    data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable("CoinGecko connection error", source=SOURCE, original_error=e)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable("CoinGecko request timed out", source=SOURCE, original_error=e)
        except ValueError as e:
            raise UpstreamUnavailable("CoinGecko returned a non-JSON body", source=SOURCE, original_error=e)

        if not isinstance(data, dict):
            raise UpstreamUnavailable("CoinGecko response is not an object", source=SOURCE)

        prices = map_prices(data, symbols)
        logger.info("Fetched prices: ETH=$%s, %d tokens", prices["nativePrice"], len(prices["tokenPrices"]))
        return prices
