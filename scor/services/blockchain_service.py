"""
Blockchain data fetching service
Pulls balance, transaction list and token transfers from the Etherscan v2 API
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from scor.config import settings
from scor.exceptions import DataFormatError, UpstreamUnavailable

logger = logging.getLogger(__name__)

SOURCE = "etherscan"
EMPTY_RESULT_MESSAGES = ("No transactions found", "No records found")


def extract_result(payload: Any, action: str) -> Any:
    """Unwrap an Etherscan envelope.

    An empty history comes back as status "0" with a "No transactions found"
    message; that is a valid, empty answer rather than a failure.
    """
    if not isinstance(payload, dict):
        raise DataFormatError(f"Etherscan {action} response is not an object")

    status = str(payload.get("status", ""))
    message = str(payload.get("message", ""))

    if status == "1":
        if "result" not in payload:
            raise DataFormatError(f"Etherscan {action} response has no result")
        return payload["result"]

    if message.startswith(EMPTY_RESULT_MESSAGES):
        return []

    detail = payload.get("result") if isinstance(payload.get("result"), str) else message
    raise UpstreamUnavailable(f"Etherscan API error on {action}: {detail or 'Unknown error'}", source=SOURCE)


class EtherscanClient:
    """Chain data provider backed by Etherscan."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        chain_id: Optional[int] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.ETHERSCAN_API_KEY
        self.api_url = api_url or settings.ETHERSCAN_API_URL
        self.chain_id = chain_id or settings.ETHERSCAN_CHAIN_ID
        self.page_size = page_size or settings.ETHERSCAN_PAGE_SIZE
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS

    def _params(self, action: str, address: str, **extra) -> Dict[str, Any]:
        params = {
            "chainid": self.chain_id,
            "module": "account",
            "action": action,
            "address": address,
            "apikey": self.api_key,
        }
        params.update(extra)
        return params

    async def _call(self, session: aiohttp.ClientSession, action: str, address: str, **extra) -> Any:
        params = self._params(action, address, **extra)
        try:
            async with session.get(self.api_url, params=params) as resp:
                if resp.status >= 400:
                    raise UpstreamUnavailable(
                        f"Etherscan HTTP {resp.status} on {action}",
                        source=SOURCE,
                        status_code=resp.status,
                    )
                payload = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(f"Etherscan connection error on {action}", source=SOURCE, original_error=e)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"Etherscan request timed out on {action}", source=SOURCE, original_error=e)
        except ValueError as e:
            raise UpstreamUnavailable(f"Etherscan returned a non-JSON body on {action}", source=SOURCE, original_error=e)

        return extract_result(payload, action)

    async def fetch_account_data(self, address: str) -> Dict[str, Any]:
        """Fetch balance, transactions and token transfers concurrently"""
        logger.info("Fetching blockchain data for %s", address)

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            balance, transactions, token_transfers = await asyncio.gather(
                self._call(session, "balance", address, tag="latest"),
                self._call(
                    session, "txlist", address,
                    startblock=0, endblock=99999999, page=1, offset=self.page_size, sort="desc",
                ),
                self._call(
                    session, "tokentx", address,
                    page=1, offset=self.page_size, sort="desc",
                ),
            )

        if not isinstance(transactions, list) or not isinstance(token_transfers, list):
            raise DataFormatError("Etherscan returned a non-list transaction result")

        logger.info(
            "Blockchain data received for %s: %d transactions, %d token transfers",
            address, len(transactions), len(token_transfers),
        )

        return {
            "address": address,
            "balance": balance,
            "transactions": transactions,
            "tokenTransfers": token_transfers,
        }
