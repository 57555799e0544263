"""Map upstream JSON payloads onto domain models.

Decimal strings are passed through untouched; JSON numbers arrive as
``Decimal`` from the transport. Nullable upstream fields stay ``None`` so a
missing fill price is never mistaken for a real zero.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from tradegate.domain.models import (
    Account,
    Bar,
    BarSeries,
    CalendarDay,
    Clock,
    OptionContract,
    OptionSnapshot,
    Order,
    PortfolioHistory,
    Position,
    Quote,
    Snapshot,
    Trade,
    Watchlist,
)
from tradegate.errors import MalformedResponseError


def account(payload: Any) -> Account:
    item = _mapping(payload, "account")
    return Account(
        id=_required_text(item, "id", "account"),
        account_number=optional_text(item.get("account_number")),
        status=_required_text(item, "status", "account"),
        currency=optional_text(item.get("currency")),
        equity=optional_text(item.get("equity")),
        last_equity=optional_text(item.get("last_equity")),
        cash=optional_text(item.get("cash")),
        buying_power=optional_text(item.get("buying_power")),
        portfolio_value=optional_text(item.get("portfolio_value")),
        long_market_value=optional_text(item.get("long_market_value")),
        short_market_value=optional_text(item.get("short_market_value")),
        initial_margin=optional_text(item.get("initial_margin")),
        maintenance_margin=optional_text(item.get("maintenance_margin")),
        daytrading_buying_power=optional_text(item.get("daytrading_buying_power")),
        daytrade_count=_optional_int(item.get("daytrade_count")),
        pattern_day_trader=bool(item.get("pattern_day_trader", False)),
        trading_blocked=bool(item.get("trading_blocked", False)),
    )


def position(payload: Any) -> Position:
    item = _mapping(payload, "position")
    return Position(
        symbol=_required_text(item, "symbol", "position").upper(),
        qty=_required_text(item, "qty", "position"),
        side=optional_text(item.get("side")) or "long",
        asset_id=optional_text(item.get("asset_id")),
        asset_class=optional_text(item.get("asset_class")),
        exchange=optional_text(item.get("exchange")),
        avg_entry_price=optional_text(item.get("avg_entry_price")),
        current_price=optional_text(item.get("current_price")),
        market_value=optional_text(item.get("market_value")),
        cost_basis=optional_text(item.get("cost_basis")),
        unrealized_pl=optional_text(item.get("unrealized_pl")),
        unrealized_plpc=optional_text(item.get("unrealized_plpc")),
        lastday_price=optional_text(item.get("lastday_price")),
        change_today=optional_text(item.get("change_today")),
    )


def positions(payload: Any) -> tuple[Position, ...]:
    return tuple(position(item) for item in _sequence(payload, "positions"))


def order(payload: Any) -> Order:
    item = _mapping(payload, "order")
    return Order(
        id=_required_text(item, "id", "order"),
        symbol=_required_text(item, "symbol", "order").upper(),
        side=_required_text(item, "side", "order"),
        order_type=optional_text(item.get("order_type")) or _required_text(item, "type", "order"),
        time_in_force=_required_text(item, "time_in_force", "order"),
        status=_required_text(item, "status", "order"),
        client_order_id=optional_text(item.get("client_order_id")),
        asset_class=optional_text(item.get("asset_class")),
        order_class=optional_text(item.get("order_class")),
        qty=optional_text(item.get("qty")),
        notional=optional_text(item.get("notional")),
        filled_qty=optional_text(item.get("filled_qty")),
        filled_avg_price=optional_text(item.get("filled_avg_price")),
        limit_price=optional_text(item.get("limit_price")),
        stop_price=optional_text(item.get("stop_price")),
        trail_percent=optional_text(item.get("trail_percent")),
        trail_price=optional_text(item.get("trail_price")),
        extended_hours=bool(item.get("extended_hours", False)),
        created_at=optional_text(item.get("created_at")),
        updated_at=optional_text(item.get("updated_at")),
        submitted_at=optional_text(item.get("submitted_at")),
        filled_at=optional_text(item.get("filled_at")),
        canceled_at=optional_text(item.get("canceled_at")),
        expired_at=optional_text(item.get("expired_at")),
        failed_at=optional_text(item.get("failed_at")),
    )


def orders(payload: Any) -> tuple[Order, ...]:
    return tuple(order(item) for item in _sequence(payload, "orders"))


def bulk_results(payload: Any) -> tuple[dict[str, Any], ...]:
    """Per-item results of the bulk cancel/close endpoints (HTTP 207 lists)."""
    if payload is None or not payload:
        return ()
    if isinstance(payload, Mapping):
        return (dict(payload),)
    return tuple(dict(_mapping(item, "bulk result")) for item in _sequence(payload, "bulk"))


def clock(payload: Any) -> Clock:
    item = _mapping(payload, "clock")
    return Clock(
        timestamp=_required_text(item, "timestamp", "clock"),
        is_open=bool(item.get("is_open", False)),
        next_open=optional_text(item.get("next_open")),
        next_close=optional_text(item.get("next_close")),
    )


def calendar(payload: Any) -> tuple[CalendarDay, ...]:
    days: list[CalendarDay] = []
    for raw in _sequence(payload, "calendar"):
        item = _mapping(raw, "calendar day")
        days.append(
            CalendarDay(
                date=_required_text(item, "date", "calendar day"),
                open=_required_text(item, "open", "calendar day"),
                close=_required_text(item, "close", "calendar day"),
            )
        )
    return tuple(days)


def bar(payload: Any) -> Bar:
    item = _mapping(payload, "bar")
    return Bar(
        timestamp=_required_text(item, "t", "bar"),
        open=_required_decimal(item, "o", "bar"),
        high=_required_decimal(item, "h", "bar"),
        low=_required_decimal(item, "l", "bar"),
        close=_required_decimal(item, "c", "bar"),
        volume=_required_decimal(item, "v", "bar"),
        trade_count=optional_decimal(item.get("n")),
        vwap=optional_decimal(item.get("vw")),
    )


def bar_series(symbol: str, timeframe: str, payload: Any) -> BarSeries:
    """Build a most-recent-first bar series from a ``{"bars": [...]}`` payload."""
    item = _mapping(payload, "bars")
    raw_bars = item.get("bars")
    if isinstance(raw_bars, Mapping):
        raw_bars = raw_bars.get(symbol)
    bars = [bar(raw) for raw in (raw_bars or [])]
    bars.sort(key=lambda entry: entry.timestamp, reverse=True)
    return BarSeries(symbol=symbol, timeframe=timeframe, bars=tuple(bars))


def snapshot(symbol: str, payload: Any) -> Snapshot:
    item = _mapping(payload, "snapshot")
    return Snapshot(
        symbol=symbol,
        latest_trade=_trade(item.get("latestTrade")),
        latest_quote=_quote(item.get("latestQuote")),
        minute_bar=_optional_bar(item.get("minuteBar")),
        daily_bar=_optional_bar(item.get("dailyBar")),
        prev_daily_bar=_optional_bar(item.get("prevDailyBar")),
    )


def snapshots(symbols: list[str], payload: Any) -> dict[str, Snapshot | None]:
    """Map each requested symbol to its snapshot, or ``None`` when absent."""
    item = _mapping(payload, "snapshots")
    if isinstance(item.get("snapshots"), Mapping):
        item = item["snapshots"]
    result: dict[str, Snapshot | None] = {}
    for symbol in symbols:
        raw = item.get(symbol)
        result[symbol] = snapshot(symbol, raw) if raw else None
    return result


def crypto_snapshot(symbol: str, payload: Any) -> Snapshot:
    """Accept both the single-snapshot body and the keyed ``snapshots`` body."""
    item = _mapping(payload, "crypto snapshot")
    keyed = item.get("snapshots")
    if isinstance(keyed, Mapping):
        raw = keyed.get(symbol)
        if raw is None:
            raise MalformedResponseError(f"no crypto snapshot returned for {symbol}")
        return snapshot(symbol, raw)
    return snapshot(symbol, item)


def portfolio_history(payload: Any) -> PortfolioHistory:
    """Normalize the parallel arrays, refusing payloads whose lengths diverge."""
    item = _mapping(payload, "portfolio history")
    arrays = {
        key: list(item.get(key) or [])
        for key in ("timestamp", "equity", "profit_loss", "profit_loss_pct")
    }
    lengths = {key: len(values) for key, values in arrays.items()}
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{key}={length}" for key, length in lengths.items())
        raise MalformedResponseError(f"portfolio history arrays differ in length ({detail})")
    return PortfolioHistory(
        timestamps=tuple(_timestamp(value) for value in arrays["timestamp"]),
        equity=tuple(optional_decimal(value) for value in arrays["equity"]),
        profit_loss=tuple(optional_decimal(value) for value in arrays["profit_loss"]),
        profit_loss_pct=tuple(optional_decimal(value) for value in arrays["profit_loss_pct"]),
        base_value=optional_decimal(item.get("base_value")),
        timeframe=optional_text(item.get("timeframe")),
    )


def watchlist(payload: Any) -> Watchlist:
    item = _mapping(payload, "watchlist")
    assets = item.get("assets") or []
    symbols = tuple(
        str(asset.get("symbol", "")).upper()
        for asset in _sequence(assets, "watchlist assets")
        if isinstance(asset, Mapping) and asset.get("symbol")
    )
    return Watchlist(
        id=_required_text(item, "id", "watchlist"),
        name=_required_text(item, "name", "watchlist"),
        account_id=optional_text(item.get("account_id")),
        symbols=symbols,
    )


def watchlists(payload: Any) -> tuple[Watchlist, ...]:
    return tuple(watchlist(item) for item in _sequence(payload, "watchlists"))


def option_contracts(payload: Any) -> tuple[OptionContract, ...]:
    item = _mapping(payload, "option contracts")
    contracts: list[OptionContract] = []
    for raw in _sequence(item.get("option_contracts") or [], "option contracts"):
        entry = _mapping(raw, "option contract")
        contracts.append(
            OptionContract(
                id=_required_text(entry, "id", "option contract"),
                symbol=_required_text(entry, "symbol", "option contract"),
                underlying_symbol=_required_text(entry, "underlying_symbol", "option contract"),
                contract_type=_required_text(entry, "type", "option contract"),
                expiration_date=_required_text(entry, "expiration_date", "option contract"),
                strike_price=_required_text(entry, "strike_price", "option contract"),
                status=optional_text(entry.get("status")),
                tradable=bool(entry.get("tradable", False)),
                style=optional_text(entry.get("style")),
                open_interest=optional_text(entry.get("open_interest")),
                close_price=optional_text(entry.get("close_price")),
            )
        )
    return tuple(contracts)


def option_snapshots(payload: Any) -> dict[str, OptionSnapshot]:
    item = _mapping(payload, "option snapshots")
    raw_snapshots = item.get("snapshots") or {}
    result: dict[str, OptionSnapshot] = {}
    for symbol, raw in _mapping(raw_snapshots, "option snapshots").items():
        entry = _mapping(raw, "option snapshot")
        greeks = entry.get("greeks")
        result[symbol] = OptionSnapshot(
            symbol=symbol,
            latest_trade=_trade(entry.get("latestTrade")),
            latest_quote=_quote(entry.get("latestQuote")),
            implied_volatility=optional_decimal(entry.get("impliedVolatility")),
            greeks=dict(greeks) if isinstance(greeks, Mapping) else {},
        )
    return result


def optional_text(value: Any) -> str | None:
    """Return ``value`` as text, or ``None`` for null/blank upstream values."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return format(value, "f")
    text = str(value).strip()
    return text or None


def optional_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def _trade(value: Any) -> Trade | None:
    if not isinstance(value, Mapping):
        return None
    price = optional_decimal(value.get("p"))
    if price is None:
        return None
    return Trade(
        timestamp=optional_text(value.get("t")) or "",
        price=price,
        size=optional_decimal(value.get("s")),
    )


def _quote(value: Any) -> Quote | None:
    if not isinstance(value, Mapping):
        return None
    return Quote(
        timestamp=optional_text(value.get("t")) or "",
        bid_price=optional_decimal(value.get("bp")),
        bid_size=optional_decimal(value.get("bs")),
        ask_price=optional_decimal(value.get("ap")),
        ask_size=optional_decimal(value.get("as")),
    )


def _optional_bar(value: Any) -> Bar | None:
    if not isinstance(value, Mapping) or not value:
        return None
    return bar(value)


def _timestamp(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedResponseError(f"invalid portfolio history timestamp {value!r}") from None


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedResponseError(f"expected an object for {what}, got {type(payload).__name__}")
    return payload


def _sequence(payload: Any, what: str) -> list[Any]:
    if not isinstance(payload, list):
        raise MalformedResponseError(f"expected a list for {what}, got {type(payload).__name__}")
    return payload


def _required_text(item: Mapping[str, Any], key: str, what: str) -> str:
    text = optional_text(item.get(key))
    if text is None:
        raise MalformedResponseError(f"{what} is missing '{key}'")
    return text


def _required_decimal(item: Mapping[str, Any], key: str, what: str) -> Decimal:
    number = optional_decimal(item.get(key))
    if number is None:
        raise MalformedResponseError(f"{what} is missing numeric '{key}'")
    return number
