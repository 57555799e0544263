"""Tool definitions for an agent host.

Each tool wraps one gateway operation: it reads loosely typed JSON arguments,
calls the gateway and renders the result as text. Any ``GatewayError`` becomes
an error ``ToolResult`` carrying the mode the call targeted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tradegate import formatting
from tradegate.domain.models import Mode, ModeResult
from tradegate.domain.orders import CryptoOrderSpec, EquityOrderSpec, OptionOrderSpec
from tradegate.domain.watchlists import (
    AddWatchlistSymbol,
    CreateWatchlist,
    DeleteWatchlist,
    ListWatchlists,
    ViewWatchlist,
    WatchlistAction,
)
from tradegate.errors import GatewayError, ValidationError
from tradegate.gateway import Gateway

logger = logging.getLogger("tradegate.tools")

MAX_TOOL_ORDER_LIMIT = 100

Args = Mapping[str, Any]


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the host, with the mode the call ran against."""

    text: str
    is_error: bool = False
    mode: Mode | None = None


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    handler: Callable[[Gateway, Args], ToolResult]
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    destructive: bool = False

    def input_schema(self, require_mode: bool = False) -> dict[str, Any]:
        """JSON schema for the tool's arguments."""
        properties = {
            "mode": {
                "type": "string",
                "enum": [mode.value for mode in Mode],
                "description": "Account to act on: paper or live.",
            },
            **self.properties,
        }
        required = list(self.required)
        if require_mode:
            required.insert(0, "mode")
        if self.destructive:
            properties["confirm"] = {
                "type": "boolean",
                "description": "Must be true. This action cannot be undone.",
            }
            required.append("confirm")
        return {"type": "object", "properties": properties, "required": required}


class Toolbox:
    """Registry of every tool bound to one gateway."""

    def __init__(self, gateway: Gateway) -> None:
        self.gateway = gateway
        self.tools = {tool.name: tool for tool in build_tools()}

    def names(self) -> list[str]:
        return list(self.tools)

    def schemas(self) -> list[dict[str, Any]]:
        require_mode = self.gateway.requires_explicit_mode
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema(require_mode),
                "destructive": tool.destructive,
            }
            for tool in self.tools.values()
        ]

    def invoke(self, name: str, args: Args | None = None) -> ToolResult:
        tool = self.tools.get(name)
        if tool is None:
            return ToolResult(f"Unknown tool '{name}'.", is_error=True)
        args = dict(args or {})
        target = self._target_mode(args)
        try:
            if tool.destructive and args.get("confirm") is not True:
                raise ValidationError(
                    f"{name} is destructive; pass confirm=true to proceed.",
                    fields=("confirm",),
                )
            return tool.handler(self.gateway, args)
        except GatewayError as exc:
            if target is not None:
                exc.with_mode(target)
            logger.debug("tool error | %s | %s", name, exc)
            return ToolResult(str(exc), is_error=True, mode=exc.mode)

    def _target_mode(self, args: Args) -> Mode | None:
        """Mode the arguments point at, or None when it cannot be resolved."""
        try:
            return self.gateway.resolver.resolve_mode(args.get("mode"))
        except GatewayError:
            return None


def _ok(result: ModeResult[Any], text: str) -> ToolResult:
    return ToolResult(text, mode=result.mode)


def _required(args: Args, name: str) -> Any:
    value = args.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} is required.", fields=(name,))
    return value


def int_arg(args: Args, name: str, default: int) -> int:
    """Read an optional integer argument, rejecting non-numeric text."""
    value = args.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer.", fields=(name,)) from None


def _flag(args: Args, name: str, default: bool = False) -> bool:
    value = args.get(name)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _account(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_account(args.get("mode"))
    return _ok(result, formatting.format_account(result))


def _positions(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.list_positions(args.get("mode"))
    return _ok(result, formatting.format_positions(result))


def _position(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_position(args.get("mode"), _required(args, "symbol"))
    return _ok(result, formatting.format_position(result))


def _portfolio_history(gateway: Gateway, args: Args) -> ToolResult:
    period = args.get("period") or "1M"
    timeframe = args.get("timeframe") or "1D"
    result = gateway.get_portfolio_history(args.get("mode"), period, timeframe)
    return _ok(result, formatting.format_portfolio_history(result, period, timeframe))


def _quote(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_snapshot(args.get("mode"), _required(args, "symbol"))
    return _ok(result, formatting.format_snapshot(result))


def _quotes(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_snapshots(args.get("mode"), _required(args, "symbols"))
    return _ok(result, formatting.format_snapshots(result))


def _bars(gateway: Gateway, args: Args) -> ToolResult:
    days = int_arg(args, "days", 30)
    result = gateway.get_bars(
        args.get("mode"),
        _required(args, "symbol"),
        timeframe=args.get("timeframe") or "1Day",
        days=days,
        limit=int_arg(args, "limit", 50),
    )
    return _ok(result, formatting.format_bars(result, days))


def _crypto_quote(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_crypto_snapshot(args.get("mode"), _required(args, "symbol"))
    return _ok(result, formatting.format_crypto_snapshot(result))


def _option_contracts(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.search_option_contracts(
        args.get("mode"),
        _required(args, "underlying"),
        expiration_date=args.get("expiration_date"),
        contract_type=args.get("type"),
        strike_price_gte=args.get("strike_price_gte"),
        strike_price_lte=args.get("strike_price_lte"),
        limit=int_arg(args, "limit", 100),
    )
    return _ok(result, formatting.format_option_contracts(result))


def _option_quotes(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_option_snapshots(args.get("mode"), _required(args, "symbols"))
    return _ok(result, formatting.format_option_snapshots(result))


def _place_order(gateway: Gateway, args: Args) -> ToolResult:
    spec = EquityOrderSpec(
        symbol=_required(args, "symbol"),
        side=_required(args, "side"),
        qty=_required(args, "qty"),
        order_type=args.get("type") or "market",
        time_in_force=args.get("time_in_force") or "day",
        limit_price=args.get("limit_price"),
        stop_price=args.get("stop_price"),
        trail_percent=args.get("trail_percent"),
        trail_price=args.get("trail_price"),
        extended_hours=_flag(args, "extended_hours"),
        client_order_id=args.get("client_order_id"),
    )
    result = gateway.place_order(args.get("mode"), spec)
    return _ok(result, formatting.format_order(result, "Order Placed"))


def _place_crypto_order(gateway: Gateway, args: Args) -> ToolResult:
    spec = CryptoOrderSpec(
        symbol=_required(args, "symbol"),
        side=_required(args, "side"),
        qty=args.get("qty"),
        notional=args.get("notional"),
        order_type=args.get("type") or "market",
        time_in_force=args.get("time_in_force") or "gtc",
        limit_price=args.get("limit_price"),
        stop_price=args.get("stop_price"),
        client_order_id=args.get("client_order_id"),
    )
    result = gateway.place_order(args.get("mode"), spec)
    return _ok(result, formatting.format_order(result, "Crypto Order Placed"))


def _place_option_order(gateway: Gateway, args: Args) -> ToolResult:
    spec = OptionOrderSpec(
        contract_symbol=_required(args, "contract_symbol"),
        side=_required(args, "side"),
        qty=_required(args, "qty"),
        order_type=args.get("type") or "market",
        time_in_force=args.get("time_in_force") or "day",
        limit_price=args.get("limit_price"),
        stop_price=args.get("stop_price"),
        client_order_id=args.get("client_order_id"),
    )
    result = gateway.place_order(args.get("mode"), spec)
    return _ok(result, formatting.format_order(result, "Option Order Placed"))


def _orders(gateway: Gateway, args: Args) -> ToolResult:
    status = args.get("status") or "open"
    limit = min(int_arg(args, "limit", 20), MAX_TOOL_ORDER_LIMIT)
    result = gateway.list_orders(args.get("mode"), status=status, limit=limit)
    return _ok(result, formatting.format_orders(result, status))


def _order(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_order(args.get("mode"), _required(args, "order_id"))
    return _ok(result, formatting.format_order(result))


def _cancel_order(gateway: Gateway, args: Args) -> ToolResult:
    order_id = _required(args, "order_id")
    result = gateway.cancel_order(args.get("mode"), order_id)
    return _ok(result, formatting.format_cancelled(result.mode, order_id))


def _cancel_all_orders(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.cancel_all_orders(args.get("mode"))
    return _ok(result, formatting.format_bulk(result, "Cancelled all open orders"))


def _close_position(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.close_position(
        args.get("mode"),
        _required(args, "symbol"),
        qty=args.get("qty"),
        percentage=args.get("percentage"),
    )
    return _ok(result, formatting.format_order(result, "Position Close Order"))


def _close_all_positions(gateway: Gateway, args: Args) -> ToolResult:
    cancel_orders = _flag(args, "cancel_orders", True)
    result = gateway.close_all_positions(args.get("mode"), cancel_orders=cancel_orders)
    action = "Closed all positions" + (" and cancelled orders" if cancel_orders else "")
    return _ok(result, formatting.format_bulk(result, action))


def _clock(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_clock(args.get("mode"))
    return _ok(result, formatting.format_clock(result))


def _calendar(gateway: Gateway, args: Args) -> ToolResult:
    result = gateway.get_calendar(args.get("mode"), start=args.get("start"), end=args.get("end"))
    return _ok(result, formatting.format_calendar(result))


def watchlist_action(args: Args) -> WatchlistAction:
    """Build the watchlist action variant named by ``args["action"]``."""
    action = str(args.get("action") or "list").strip().lower()
    match action:
        case "list":
            return ListWatchlists()
        case "create":
            symbols = args.get("symbols") or ()
            if isinstance(symbols, str):
                symbols = [item for item in symbols.split(",") if item.strip()]
            return CreateWatchlist(name=_required(args, "name"), symbols=tuple(symbols))
        case "view":
            return ViewWatchlist(watchlist_id=_required(args, "watchlist_id"))
        case "add":
            return AddWatchlistSymbol(
                watchlist_id=_required(args, "watchlist_id"),
                symbol=_required(args, "symbol"),
            )
        case "delete":
            return DeleteWatchlist(watchlist_id=_required(args, "watchlist_id"))
        case _:
            raise ValidationError(
                f"Unknown watchlist action '{action}'. Expected list, create, view, add or delete.",
                fields=("action",),
            )


def _watchlists(gateway: Gateway, args: Args) -> ToolResult:
    action = watchlist_action(args)
    result = gateway.watchlist(args.get("mode"), action)
    match action:
        case ListWatchlists():
            text = formatting.format_watchlists(result)
        case CreateWatchlist(name=name):
            text = (
                f'Watchlist "{name}" created with {len(result.data.symbols)} symbols '
                f"{formatting.tag(result.mode)}\nID: {result.data.id}"
            )
        case DeleteWatchlist(watchlist_id=watchlist_id):
            text = f"Watchlist {watchlist_id} deleted {formatting.tag(result.mode)}"
        case _:
            text = formatting.format_watchlist(result)
    return _ok(result, text)


_STRING = {"type": "string"}
_NUMBER = {"type": ["number", "string"]}
_SIDE = {"type": "string", "enum": ["buy", "sell"]}


def build_tools() -> list[ToolDefinition]:
    """Every tool exposed to the host, in display order."""
    return [
        ToolDefinition(
            "alpaca_account",
            "Account status, equity, cash and buying power.",
            _account,
        ),
        ToolDefinition("alpaca_positions", "All open positions with unrealized P&L.", _positions),
        ToolDefinition(
            "alpaca_position",
            "A single open position.",
            _position,
            {"symbol": _STRING},
            ("symbol",),
        ),
        ToolDefinition(
            "alpaca_portfolio_history",
            "Equity curve and period return.",
            _portfolio_history,
            {
                "period": {"type": "string", "description": "1D, 1W, 1M, 3M, 6M, 1A or all."},
                "timeframe": {"type": "string", "description": "1Min, 5Min, 15Min, 1H or 1D."},
            },
        ),
        ToolDefinition(
            "alpaca_quote",
            "Latest trade, quote and daily bar for a stock.",
            _quote,
            {"symbol": _STRING},
            ("symbol",),
        ),
        ToolDefinition(
            "alpaca_quotes",
            "Latest prices for several stocks.",
            _quotes,
            {"symbols": {"type": ["array", "string"], "items": _STRING}},
            ("symbols",),
        ),
        ToolDefinition(
            "alpaca_bars",
            "Historical price bars, most recent first.",
            _bars,
            {
                "symbol": _STRING,
                "timeframe": {"type": "string", "description": "1Min ... 1Month. Default 1Day."},
                "days": {"type": "integer", "description": "Lookback in days (max 365)."},
                "limit": {"type": "integer", "description": "Max bars (max 200)."},
            },
            ("symbol",),
        ),
        ToolDefinition(
            "alpaca_crypto_quote",
            "Latest snapshot for a crypto pair such as BTC/USD.",
            _crypto_quote,
            {"symbol": _STRING},
            ("symbol",),
        ),
        ToolDefinition(
            "alpaca_option_contracts",
            "Search option contracts for an underlying.",
            _option_contracts,
            {
                "underlying": _STRING,
                "expiration_date": {"type": "string", "description": "YYYY-MM-DD"},
                "type": {"type": "string", "enum": ["call", "put"]},
                "strike_price_gte": _NUMBER,
                "strike_price_lte": _NUMBER,
                "limit": {"type": "integer"},
            },
            ("underlying",),
        ),
        ToolDefinition(
            "alpaca_option_quotes",
            "Snapshots, implied volatility and Greeks for option contracts.",
            _option_quotes,
            {"symbols": {"type": ["array", "string"], "items": _STRING}},
            ("symbols",),
        ),
        ToolDefinition(
            "alpaca_place_order",
            "Place a stock or ETF order.",
            _place_order,
            {
                "symbol": _STRING,
                "side": _SIDE,
                "qty": _NUMBER,
                "type": {
                    "type": "string",
                    "enum": ["market", "limit", "stop", "stop_limit", "trailing_stop"],
                },
                "time_in_force": {
                    "type": "string",
                    "enum": ["day", "gtc", "opg", "cls", "ioc", "fok"],
                },
                "limit_price": _NUMBER,
                "stop_price": _NUMBER,
                "trail_percent": _NUMBER,
                "trail_price": _NUMBER,
                "extended_hours": {"type": "boolean"},
                "client_order_id": _STRING,
            },
            ("symbol", "side", "qty"),
        ),
        ToolDefinition(
            "alpaca_place_crypto_order",
            "Place a crypto order sized by qty or notional.",
            _place_crypto_order,
            {
                "symbol": _STRING,
                "side": _SIDE,
                "qty": _NUMBER,
                "notional": _NUMBER,
                "type": {"type": "string", "enum": ["market", "limit", "stop_limit"]},
                "time_in_force": {"type": "string", "enum": ["gtc", "ioc"]},
                "limit_price": _NUMBER,
                "stop_price": _NUMBER,
                "client_order_id": _STRING,
            },
            ("symbol", "side"),
        ),
        ToolDefinition(
            "alpaca_place_option_order",
            "Place an order for an option contract (OCC symbol).",
            _place_option_order,
            {
                "contract_symbol": _STRING,
                "side": _SIDE,
                "qty": {"type": "integer"},
                "type": {"type": "string", "enum": ["market", "limit", "stop", "stop_limit"]},
                "time_in_force": {"type": "string", "enum": ["day", "gtc"]},
                "limit_price": _NUMBER,
                "stop_price": _NUMBER,
                "client_order_id": _STRING,
            },
            ("contract_symbol", "side", "qty"),
        ),
        ToolDefinition(
            "alpaca_orders",
            "List orders by status.",
            _orders,
            {
                "status": {"type": "string", "enum": ["open", "closed", "all"]},
                "limit": {"type": "integer", "description": "Max orders (max 100)."},
            },
        ),
        ToolDefinition(
            "alpaca_order",
            "A single order by id.",
            _order,
            {"order_id": _STRING},
            ("order_id",),
        ),
        ToolDefinition(
            "alpaca_cancel_order",
            "Cancel one open order.",
            _cancel_order,
            {"order_id": _STRING},
            ("order_id",),
        ),
        ToolDefinition(
            "alpaca_cancel_all_orders",
            "Cancel every open order.",
            _cancel_all_orders,
            destructive=True,
        ),
        ToolDefinition(
            "alpaca_close_position",
            "Close a position fully, or partially by qty or percentage.",
            _close_position,
            {"symbol": _STRING, "qty": _NUMBER, "percentage": _NUMBER},
            ("symbol",),
        ),
        ToolDefinition(
            "alpaca_close_all_positions",
            "Liquidate every open position.",
            _close_all_positions,
            {"cancel_orders": {"type": "boolean", "description": "Default true."}},
            destructive=True,
        ),
        ToolDefinition("alpaca_market_clock", "Whether the market is open now.", _clock),
        ToolDefinition(
            "alpaca_calendar",
            "Trading days and session hours.",
            _calendar,
            {
                "start": {"type": "string", "description": "YYYY-MM-DD"},
                "end": {"type": "string", "description": "YYYY-MM-DD"},
            },
        ),
        ToolDefinition(
            "alpaca_watchlists",
            "List, create, view, extend or delete watchlists.",
            _watchlists,
            {
                "action": {
                    "type": "string",
                    "enum": ["list", "create", "view", "add", "delete"],
                },
                "name": _STRING,
                "symbols": {"type": ["array", "string"], "items": _STRING},
                "watchlist_id": _STRING,
                "symbol": _STRING,
            },
            (),
        ),
    ]
