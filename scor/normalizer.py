"""
Normalizer
Turns raw explorer/price payloads into AccountSnapshot and PriceSnapshot
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from scor.config import (
    DEFAULT_TOKEN_DECIMALS,
    FALLBACK_NATIVE_PRICE,
    RECENT_WINDOW_DAYS,
    WEI_PER_ETH,
)
from scor.exceptions import DataFormatError
from scor.models import AccountSnapshot, PriceSnapshot, TokenBalance


def _require(data: Dict, key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise DataFormatError(f"Missing required field '{key}' in {where}")
    return data[key]


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise DataFormatError(f"Field '{field_name}' must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise DataFormatError(f"Field '{field_name}' must be numeric, got {value!r}", e)


def _to_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise DataFormatError(f"Field '{field_name}' must be numeric, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DataFormatError(f"Field '{field_name}' must be numeric, got {value!r}", e)


def _parse_decimals(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_TOKEN_DECIMALS
    decimals = _to_int(value, "tokenDecimal")
    if decimals < 0:
        raise DataFormatError(f"Field 'tokenDecimal' must be non-negative, got {value!r}")
    return decimals


def _rescale(raw: int, from_decimals: int, to_decimals: int) -> int:
    if from_decimals == to_decimals:
        return raw
    if to_decimals > from_decimals:
        return raw * 10 ** (to_decimals - from_decimals)
    return raw // 10 ** (from_decimals - to_decimals)


def _aggregate_token_transfers(transfers: List[Dict]) -> Tuple[TokenBalance, ...]:
    # symbol -> [contract, raw, decimals]; first-seen contract wins
    balances: Dict[str, List] = {}

    for transfer in transfers:
        if not isinstance(transfer, dict):
            raise DataFormatError("Token transfer entries must be objects")

        symbol = str(_require(transfer, "tokenSymbol", "token transfer")).strip().upper()
        raw = _to_int(_require(transfer, "value", "token transfer"), "value")
        decimals = _parse_decimals(transfer.get("tokenDecimal"))
        contract = str(transfer.get("contractAddress") or "").lower()

        if symbol not in balances:
            balances[symbol] = [contract, raw, decimals]
        else:
            entry = balances[symbol]
            entry[1] += _rescale(raw, decimals, entry[2])

    return tuple(
        TokenBalance(symbol=symbol, contract_address=contract, raw_balance=raw, decimals=decimals)
        for symbol, (contract, raw, decimals) in balances.items()
    )


def normalize_account(raw_account: Dict, now: Optional[datetime] = None) -> AccountSnapshot:
    if not isinstance(raw_account, dict):
        raise DataFormatError("Account data must be an object")

    now = now or datetime.now(timezone.utc)

    balance_wei = _to_int(_require(raw_account, "balance", "account data"), "balance")
    if balance_wei < 0:
        raise DataFormatError(f"Field 'balance' must be non-negative, got {balance_wei}")

    transactions = _require(raw_account, "transactions", "account data")
    if not isinstance(transactions, list):
        raise DataFormatError("Field 'transactions' must be a list")

    transfers = raw_account.get("tokenTransfers") or []
    if not isinstance(transfers, list):
        raise DataFormatError("Field 'tokenTransfers' must be a list")

    window_start = now - timedelta(days=RECENT_WINDOW_DAYS)
    timestamps = []
    for tx in transactions:
        if not isinstance(tx, dict):
            raise DataFormatError("Transaction entries must be objects")
        seconds = _to_int(_require(tx, "timeStamp", "transaction"), "timeStamp")
        try:
            timestamps.append(datetime.fromtimestamp(seconds, tz=timezone.utc))
        except (OverflowError, OSError, ValueError) as e:
            raise DataFormatError(f"Field 'timeStamp' is out of range, got {seconds!r}", e)

    recent = sum(1 for ts in timestamps if ts > window_start)

    return AccountSnapshot(
        native_balance=balance_wei / WEI_PER_ETH,
        token_balances=_aggregate_token_transfers(transfers),
        transaction_count_total=len(transactions),
        transaction_count_recent=recent,
        first_activity=min(timestamps) if timestamps else None,
    )


def normalize_prices(raw_prices: Dict) -> PriceSnapshot:
    if not isinstance(raw_prices, dict):
        raise DataFormatError("Price data must be an object")

    native_price = raw_prices.get("nativePrice")
    native_price = _to_float(native_price, "nativePrice") if native_price is not None else 0.0
    if native_price <= 0:
        native_price = FALLBACK_NATIVE_PRICE

    token_prices_raw = raw_prices.get("tokenPrices") or {}
    if not isinstance(token_prices_raw, dict):
        raise DataFormatError("Field 'tokenPrices' must be an object")

    token_prices = {}
    for symbol, price in token_prices_raw.items():
        value = _to_float(price, f"tokenPrices.{symbol}")
        if value > 0:
            token_prices[str(symbol).upper()] = value

    return PriceSnapshot(
        native_price_usd=native_price,
        token_prices_usd=token_prices,
        source=raw_prices.get("source", "live"),
    )


def normalize(
    raw_account: Dict, raw_prices: Dict, now: Optional[datetime] = None
) -> Tuple[AccountSnapshot, PriceSnapshot]:
    return normalize_account(raw_account, now=now), normalize_prices(raw_prices)
