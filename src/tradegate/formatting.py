"""Plain-text rendering of gateway results, labelled with their mode."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from tradegate.domain.models import (
    Account,
    BarSeries,
    CalendarDay,
    Clock,
    Mode,
    ModeResult,
    OptionContract,
    OptionSnapshot,
    Order,
    PortfolioHistory,
    Position,
    Snapshot,
    Watchlist,
)

RECENT_BARS = 5
RECENT_HISTORY_POINTS = 5


def tag(mode: Mode) -> str:
    return f"[{mode.label}]"


def to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        return None


def money(value: Any) -> str:
    """``1234.5`` -> ``1,234.50``; unknown values render as ``n/a``."""
    number = to_decimal(value)
    if number is None:
        return "n/a"
    return f"{number:,.2f}"


def signed_money(value: Any) -> str:
    number = to_decimal(value)
    if number is None:
        return "n/a"
    sign = "+" if number >= 0 else "-"
    return f"{sign}${abs(number):,.2f}"


def percent(value: Decimal | None) -> str:
    if value is None:
        return "n/a"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def ratio_percent(value: Any) -> str:
    """Render an upstream ratio (``0.0123``) as ``+1.23%``."""
    number = to_decimal(value)
    return percent(number * 100 if number is not None else None)


def change_percent(current: Decimal | None, previous: Decimal | None) -> Decimal | None:
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def format_account(result: ModeResult[Account]) -> str:
    acct = result.data
    lines = [
        f"Alpaca Account {tag(result.mode)}",
        f"Status: {acct.status}",
        "",
        f"Equity: ${money(acct.equity)}",
        f"Cash: ${money(acct.cash)}",
        f"Buying Power: ${money(acct.buying_power)}",
        f"Portfolio Value: ${money(acct.portfolio_value)}",
        "",
        f"Long Market Value: ${money(acct.long_market_value)}",
        f"Short Market Value: ${money(acct.short_market_value)}",
        "",
        f"Day Trades (last 5 days): {acct.daytrade_count if acct.daytrade_count is not None else 'n/a'}",
        f"Pattern Day Trader: {'Yes' if acct.pattern_day_trader else 'No'}",
        f"DT Buying Power: ${money(acct.daytrading_buying_power)}",
    ]
    if acct.trading_blocked:
        lines.append("Trading is BLOCKED on this account.")
    return "\n".join(lines)


def _position_lines(position: Position) -> list[str]:
    return [
        f"{position.symbol} - {position.qty} @ ${money(position.avg_entry_price)} ({position.side})",
        f"  Current: ${money(position.current_price)} | Value: ${money(position.market_value)}",
        f"  P&L: {signed_money(position.unrealized_pl)} ({ratio_percent(position.unrealized_plpc)})",
    ]


def format_positions(result: ModeResult[tuple[Position, ...]]) -> str:
    positions = result.data
    if not positions:
        return f"No open positions {tag(result.mode)}"
    lines = [f"Open Positions {tag(result.mode)} ({len(positions)})", ""]
    for position in positions:
        lines.extend(_position_lines(position))
        lines.append("")
    return "\n".join(lines).rstrip()


def format_position(result: ModeResult[Position]) -> str:
    return "\n".join([f"Position {tag(result.mode)}", *_position_lines(result.data)])


def format_order(result: ModeResult[Order], heading: str = "Order") -> str:
    order = result.data
    size = order.qty if order.qty is not None else f"${money(order.notional)}"
    lines = [
        f"{heading} {tag(result.mode)}",
        f"{order.side.upper()} {size} {order.symbol}",
        f"Type: {order.order_type} | TIF: {order.time_in_force}",
    ]
    if order.limit_price:
        lines.append(f"Limit: ${money(order.limit_price)}")
    if order.stop_price:
        lines.append(f"Stop: ${money(order.stop_price)}")
    if order.trail_percent:
        lines.append(f"Trail: {order.trail_percent}%")
    if order.trail_price:
        lines.append(f"Trail: ${money(order.trail_price)}")
    if order.filled_avg_price:
        lines.append(f"Filled: {order.filled_qty} @ ${money(order.filled_avg_price)}")
    lines.append(f"Status: {order.status}")
    lines.append(f"Order ID: {order.id}")
    return "\n".join(lines)


def format_orders(result: ModeResult[tuple[Order, ...]], status: str = "open") -> str:
    orders = result.data
    if not orders:
        return f"No {status} orders {tag(result.mode)}"
    lines = [f"{status.capitalize()} Orders {tag(result.mode)} ({len(orders)})", ""]
    for order in orders:
        size = order.qty if order.qty is not None else f"${money(order.notional)}"
        filled = f" @ ${money(order.filled_avg_price)}" if order.filled_avg_price else ""
        lines.extend(
            [
                f"{order.side.upper()} {size} {order.symbol} ({order.order_type}){filled}",
                f"  Status: {order.status} | {order.submitted_at or order.created_at or 'n/a'}",
                f"  ID: {order.id}",
                "",
            ]
        )
    return "\n".join(lines).rstrip()


def format_cancelled(mode: Mode, order_id: str) -> str:
    return f"Order {order_id} cancelled {tag(mode)}"


def format_bulk(result: ModeResult[tuple[dict[str, Any], ...]], action: str) -> str:
    """Summarize a multi-status bulk response (cancel all / close all)."""
    items = result.data
    failed = [item for item in items if int(item.get("status", 200) or 200) >= 300]
    lines = [f"{action} {tag(result.mode)}: {len(items)} item(s)"]
    if failed:
        lines.append(f"{len(failed)} failed:")
        for item in failed:
            lines.append(f"  {item.get('symbol') or item.get('id')}: status {item.get('status')}")
    return "\n".join(lines)


def format_snapshot(result: ModeResult[Snapshot]) -> str:
    snap = result.data
    price = snap.latest_trade.price if snap.latest_trade else None
    if price is None and snap.daily_bar is not None:
        price = snap.daily_bar.close
    prev_close = snap.prev_daily_bar.close if snap.prev_daily_bar else None
    lines = [f"{snap.symbol}: ${money(price)} {tag(result.mode)}"]
    if price is not None and prev_close is not None:
        pct = change_percent(price, prev_close)
        lines.append(f"Change: {signed_money(price - prev_close)} ({percent(pct)})")
    quote = snap.latest_quote
    if quote is not None:
        lines.append(
            f"Bid: ${money(quote.bid_price)} x {quote.bid_size} | "
            f"Ask: ${money(quote.ask_price)} x {quote.ask_size}"
        )
    if snap.daily_bar is not None:
        day = snap.daily_bar
        lines.append(
            f"Today: O ${money(day.open)} H ${money(day.high)} L ${money(day.low)} V {day.volume:,}"
        )
    if prev_close is not None:
        lines.append(f"Prev Close: ${money(prev_close)}")
    return "\n".join(lines)


def format_snapshots(result: ModeResult[dict[str, Snapshot | None]]) -> str:
    lines = [f"Quotes {tag(result.mode)}"]
    for symbol, snap in result.data.items():
        if snap is None:
            lines.append(f"{symbol}: No data")
            continue
        price = snap.latest_trade.price if snap.latest_trade else None
        prev_close = snap.prev_daily_bar.close if snap.prev_daily_bar else None
        lines.append(f"{symbol}: ${money(price)} ({percent(change_percent(price, prev_close))})")
    return "\n".join(lines)


def format_bars(result: ModeResult[BarSeries], days: int | None = None) -> str:
    series = result.data
    if not series.bars:
        return f"No bar data for {series.symbol} {tag(result.mode)}"
    latest = series.bars[0]
    oldest = series.bars[-1]
    period = f", {days}d" if days is not None else ""
    lines = [
        f"{series.symbol} - {len(series)} bars ({series.timeframe}{period}) {tag(result.mode)}",
        f"Latest: ${money(latest.close)} | Period Return: "
        f"{percent(change_percent(latest.close, oldest.open))}",
        f"Period High: ${money(max(bar.high for bar in series.bars))}",
        f"Period Low: ${money(min(bar.low for bar in series.bars))}",
        "",
        "Recent bars:",
    ]
    for bar in series.bars[:RECENT_BARS]:
        lines.append(
            f"  {bar.timestamp[:10]}: O ${money(bar.open)} H ${money(bar.high)} "
            f"L ${money(bar.low)} C ${money(bar.close)} V {bar.volume:,}"
        )
    return "\n".join(lines)


def format_portfolio_history(
    result: ModeResult[PortfolioHistory],
    period: str = "1M",
    timeframe: str = "1D",
) -> str:
    history = result.data
    points = [
        (stamp, equity, pl)
        for stamp, equity, pl in zip(history.timestamps, history.equity, history.profit_loss)
        if equity is not None
    ]
    if not points:
        return f"No portfolio history {tag(result.mode)}"
    latest = points[-1][1]
    base = history.base_value if history.base_value else points[0][1]
    total_pl = sum((pl for _, _, pl in points if pl is not None), Decimal(0))
    lines = [
        f"Portfolio History {tag(result.mode)} - {period} @ {timeframe}",
        f"Base Value: ${money(base)}",
        f"Current Equity: ${money(latest)}",
        f"Period Return: {percent(change_percent(latest, base))}",
        f"Total P&L: {signed_money(total_pl)}",
        "",
        f"Last {min(RECENT_HISTORY_POINTS, len(points))} data points:",
    ]
    for stamp, equity, pl in points[-RECENT_HISTORY_POINTS:]:
        day = datetime.fromtimestamp(stamp, tz=UTC).date().isoformat()
        lines.append(f"  {day}: ${money(equity)} ({signed_money(pl)})")
    return "\n".join(lines)


def format_crypto_snapshot(result: ModeResult[Snapshot]) -> str:
    snap = result.data
    price = snap.latest_trade.price if snap.latest_trade else None
    lines = [f"{snap.symbol}: ${money(price)} {tag(result.mode)}"]
    if snap.latest_quote is not None:
        lines.append(
            f"Bid: ${money(snap.latest_quote.bid_price)} | Ask: ${money(snap.latest_quote.ask_price)}"
        )
    if snap.daily_bar is not None:
        day = snap.daily_bar
        lines.append(
            f"Daily: O ${money(day.open)} H ${money(day.high)} L ${money(day.low)} V {day.volume:,}"
        )
    return "\n".join(lines)


def format_option_contracts(result: ModeResult[tuple[OptionContract, ...]]) -> str:
    contracts = result.data
    if not contracts:
        return f"No option contracts found {tag(result.mode)}"
    lines = [f"Option Contracts {tag(result.mode)} ({len(contracts)})"]
    for contract in contracts:
        flag = "" if contract.tradable else " (not tradable)"
        lines.append(
            f"{contract.symbol}: {contract.contract_type} {contract.strike_price} "
            f"exp {contract.expiration_date}{flag}"
        )
    return "\n".join(lines)


def format_option_snapshots(result: ModeResult[dict[str, OptionSnapshot]]) -> str:
    if not result.data:
        return f"No option snapshots {tag(result.mode)}"
    lines = [f"Option Quotes {tag(result.mode)}"]
    for symbol, snap in result.data.items():
        price = snap.latest_trade.price if snap.latest_trade else None
        parts = [f"{symbol}: ${money(price)}"]
        if snap.latest_quote is not None:
            parts.append(
                f"Bid ${money(snap.latest_quote.bid_price)} / Ask ${money(snap.latest_quote.ask_price)}"
            )
        if snap.implied_volatility is not None:
            parts.append(f"IV {ratio_percent(snap.implied_volatility)}")
        if snap.greeks:
            parts.append(_greeks(snap.greeks))
        lines.append(" | ".join(parts))
    return "\n".join(lines)


def _greeks(greeks: Mapping[str, Any]) -> str:
    return " ".join(f"{name} {value}" for name, value in greeks.items())


def format_clock(result: ModeResult[Clock]) -> str:
    clock = result.data
    return "\n".join(
        [
            f"Market is {'OPEN' if clock.is_open else 'CLOSED'} {tag(result.mode)}",
            f"Next Open: {clock.next_open or 'n/a'}",
            f"Next Close: {clock.next_close or 'n/a'}",
        ]
    )


def format_calendar(result: ModeResult[tuple[CalendarDay, ...]]) -> str:
    if not result.data:
        return f"No trading days in range {tag(result.mode)}"
    lines = [f"Market Calendar {tag(result.mode)}"]
    lines.extend(f"{day.date}: {day.open} - {day.close}" for day in result.data)
    return "\n".join(lines)


def format_watchlists(result: ModeResult[tuple[Watchlist, ...]]) -> str:
    if not result.data:
        return f"No watchlists {tag(result.mode)}"
    lines = [f"Watchlists {tag(result.mode)}"]
    lines.extend(f"{item.name} (ID: {item.id})" for item in result.data)
    return "\n".join(lines)


def format_watchlist(result: ModeResult[Watchlist]) -> str:
    item = result.data
    symbols = ", ".join(item.symbols) or "(empty)"
    return f"{item.name} {tag(result.mode)}: {symbols}\nID: {item.id}"
