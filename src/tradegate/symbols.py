"""Symbol and timeframe normalization helpers."""

from __future__ import annotations

from collections.abc import Iterable

from tradegate.errors import ValidationError

BAR_TIMEFRAMES = ("1Min", "5Min", "15Min", "1Hour", "1Day", "1Week", "1Month")
HISTORY_TIMEFRAMES = ("1Min", "5Min", "15Min", "1H", "1D")
HISTORY_PERIODS = ("1D", "1W", "1M", "3M", "6M", "1A", "all")


def normalize_symbol(symbol: str, field_name: str = "symbol") -> str:
    """Upper-case and strip a ticker, rejecting blanks."""
    normalized = str(symbol or "").strip().upper()
    if not normalized:
        raise ValidationError(f"{field_name} is required.", fields=(field_name,))
    return normalized


def normalize_symbols(symbols: Iterable[str], field_name: str = "symbols") -> list[str]:
    """Normalize a symbol list, dropping blanks and duplicates while preserving order."""
    if isinstance(symbols, str):
        symbols = symbols.split(",")
    deduped: list[str] = []
    seen: set[str] = set()
    for symbol in symbols:
        normalized = str(symbol).strip().upper()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(normalized)
    if not deduped:
        raise ValidationError(f"{field_name} must contain at least one symbol.", fields=(field_name,))
    return deduped


def to_crypto_pair(symbol: str) -> str:
    """Normalize crypto symbols to Alpaca's slash pair format.

    Examples:
    - BTCUSDT -> BTC/USD
    - btc/usd -> BTC/USD
    - ETH-USD -> ETH/USD
    """
    raw = normalize_symbol(symbol)
    if "/" in raw:
        base, _, quote = raw.partition("/")
        if quote == "USDT":
            quote = "USD"
        return f"{base}/{quote}"
    compact = raw.replace("-", "")
    if compact.endswith("USDT") and len(compact) >= 7:
        compact = f"{compact[:-4]}USD"
    if compact.endswith("USD") and len(compact) > 3:
        return f"{compact[:-3]}/USD"
    return raw


def normalize_timeframe(value: str) -> str:
    """Map loose bar timeframe spellings onto Alpaca's names."""
    mapping = {
        "1min": "1Min",
        "1m": "1Min",
        "5min": "5Min",
        "5m": "5Min",
        "15min": "15Min",
        "15m": "15Min",
        "1h": "1Hour",
        "1hour": "1Hour",
        "1d": "1Day",
        "day": "1Day",
        "1day": "1Day",
        "1w": "1Week",
        "1week": "1Week",
        "1month": "1Month",
    }
    normalized = mapping.get(str(value).strip().lower())
    if normalized is None:
        supported = ", ".join(BAR_TIMEFRAMES)
        raise ValidationError(
            f"Unsupported bar timeframe '{value}'. Supported: {supported}.",
            fields=("timeframe",),
        )
    return normalized


def choice(value: str, allowed: Iterable[str], field_name: str) -> str:
    """Match ``value`` case-insensitively against ``allowed``; return the canonical spelling."""
    options = list(allowed)
    lookup = {option.lower(): option for option in options}
    matched = lookup.get(str(value).strip().lower())
    if matched is None:
        raise ValidationError(
            f"{field_name} must be one of: {', '.join(options)} (got '{value}').",
            fields=(field_name,),
        )
    return matched
