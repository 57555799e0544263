"""Dual-mode brokerage gateway.

Every operation takes the target ``mode`` first. With both paper and live
credentials configured the mode must be given explicitly; with one pair,
``None`` selects that pair. Each call resolves its own credentials and URL
and opens a short-lived HTTP session, so the gateway holds no mutable state
and calls may run concurrently.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Self, TypeVar, assert_never

import requests

from tradegate import normalize
from tradegate.config import Settings
from tradegate.credentials import CredentialResolver
from tradegate.domain.models import (
    EMPTY,
    Account,
    BarSeries,
    CalendarDay,
    Clock,
    Credentials,
    EmptyResult,
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
from tradegate.domain.orders import Number, OrderSpec
from tradegate.domain.watchlists import (
    AddWatchlistSymbol,
    CreateWatchlist,
    DeleteWatchlist,
    ListWatchlists,
    ViewWatchlist,
    WatchlistAction,
)
from tradegate.errors import GatewayError, ValidationError
from tradegate.logging.logger import OperationLogger
from tradegate.payloads import build_order, decimal_text
from tradegate.routing import EndpointRouter, Operation, clean_params, path_segment
from tradegate.symbols import (
    HISTORY_PERIODS,
    HISTORY_TIMEFRAMES,
    choice,
    normalize_symbol,
    normalize_symbols,
    normalize_timeframe,
    to_crypto_pair,
)
from tradegate.transport import TransportClient

T = TypeVar("T")
ModeArg = Mode | str | None
SessionFactory = Callable[[], requests.Session]

MAX_BAR_DAYS = 365
MAX_BAR_LIMIT = 200
MAX_ORDER_LIMIT = 500
ORDER_STATUSES = ("open", "closed", "all")


def destructive(func: Callable[..., T]) -> Callable[..., T]:
    """Mark a bulk operation that callers must confirm before invoking."""
    func.destructive = True  # type: ignore[attr-defined]
    return func


def is_destructive(func: Callable[..., Any]) -> bool:
    return bool(getattr(func, "destructive", False))


class _Call:
    """Per-call state: resolved mode, credentials and a lazily opened transport."""

    def __init__(self, gateway: Gateway, operation: Operation, credentials: Credentials) -> None:
        self.gateway = gateway
        self.operation = operation
        self.mode = credentials.mode
        self.credentials = credentials
        self._transport: TransportClient | None = None

    def url(self, path: str) -> str:
        return self.gateway.router.url(self.operation, self.mode, path)

    def send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        return self._open().send(method, self.url(path), params=clean_params(params), body=body)

    def fetch(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._open().fetch_data(self.url(path), params=clean_params(params))

    def result(self, data: T) -> ModeResult[T]:
        return ModeResult(mode=self.mode, data=data)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()

    def _open(self) -> TransportClient:
        if self._transport is None:
            self._transport = TransportClient(
                self.credentials,
                timeout=self.gateway.timeout,
                session=self.gateway.session_factory(),
            )
        return self._transport


class Gateway:
    """Single entry point for account, market-data, order and watchlist calls."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        resolver: CredentialResolver | None = None,
        router: EndpointRouter | None = None,
        session_factory: SessionFactory | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        settings = settings or Settings()
        self.resolver = resolver or CredentialResolver.from_settings(settings)
        self.router = router or EndpointRouter.from_settings(settings)
        self.timeout = settings.timeout_seconds
        self.data_feed = settings.data_feed
        self.session_factory = session_factory or requests.Session
        self.now = now or (lambda: datetime.now(tz=UTC))
        self.log = OperationLogger()

    @classmethod
    def from_env(cls) -> Self:
        return cls(Settings.from_env())

    @property
    def requires_explicit_mode(self) -> bool:
        return self.resolver.requires_explicit_mode

    @contextmanager
    def _call(
        self,
        operation: Operation,
        mode: ModeArg,
        details: dict[str, Any] | None = None,
    ) -> Iterator[_Call]:
        resolved: Mode | None = None
        call: _Call | None = None
        try:
            resolved = self.resolver.resolve_mode(mode)
            credentials = self.resolver.resolve(resolved)
            if operation.is_destructive:
                self.log.destructive(operation.value, resolved, details)
            else:
                self.log.operation(operation.value, resolved, details)
            call = _Call(self, operation, credentials)
            yield call
        except GatewayError as exc:
            if resolved is not None:
                exc.with_mode(resolved)
            self.log.failure(operation.value, resolved, exc)
            raise
        finally:
            if call is not None:
                call.close()

    # Account

    def get_account(self, mode: ModeArg) -> ModeResult[Account]:
        with self._call(Operation.ACCOUNT, mode) as call:
            return call.result(normalize.account(call.send("GET", "/v2/account")))

    def get_portfolio_history(
        self,
        mode: ModeArg,
        period: str = "1M",
        timeframe: str = "1D",
    ) -> ModeResult[PortfolioHistory]:
        with self._call(
            Operation.PORTFOLIO_HISTORY, mode, {"period": period, "timeframe": timeframe}
        ) as call:
            params = {
                "period": choice(period, HISTORY_PERIODS, "period"),
                "timeframe": choice(timeframe, HISTORY_TIMEFRAMES, "timeframe"),
            }
            payload = call.send("GET", "/v2/account/portfolio/history", params=params)
            return call.result(normalize.portfolio_history(payload))

    # Positions

    def list_positions(self, mode: ModeArg) -> ModeResult[tuple[Position, ...]]:
        with self._call(Operation.LIST_POSITIONS, mode) as call:
            return call.result(normalize.positions(call.send("GET", "/v2/positions")))

    def get_position(self, mode: ModeArg, symbol: str) -> ModeResult[Position]:
        with self._call(Operation.GET_POSITION, mode, {"symbol": symbol}) as call:
            path = f"/v2/positions/{path_segment(normalize_symbol(symbol))}"
            return call.result(normalize.position(call.send("GET", path)))

    def close_position(
        self,
        mode: ModeArg,
        symbol: str,
        qty: Number | None = None,
        percentage: Number | None = None,
    ) -> ModeResult[Order]:
        """Close all of a position, or part of it by ``qty`` or ``percentage``."""
        with self._call(
            Operation.CLOSE_POSITION,
            mode,
            {"symbol": symbol, "qty": qty, "percentage": percentage},
        ) as call:
            path = f"/v2/positions/{path_segment(normalize_symbol(symbol))}"
            if qty is not None and percentage is not None:
                raise ValidationError(
                    "Pass qty or percentage to close a position, not both.",
                    fields=("qty", "percentage"),
                )
            params: dict[str, Any] = {}
            if qty is not None:
                params["qty"] = decimal_text(qty, "qty")
            if percentage is not None:
                params["percentage"] = _percentage(percentage)
            return call.result(normalize.order(call.send("DELETE", path, params=params)))

    @destructive
    def close_all_positions(
        self,
        mode: ModeArg,
        cancel_orders: bool = True,
    ) -> ModeResult[tuple[dict[str, Any], ...]]:
        """Liquidate every open position. Bulk and irreversible."""
        with self._call(
            Operation.CLOSE_ALL_POSITIONS, mode, {"cancel_orders": cancel_orders}
        ) as call:
            payload = call.send("DELETE", "/v2/positions", params={"cancel_orders": cancel_orders})
            return call.result(normalize.bulk_results(payload))

    # Orders

    def list_orders(
        self,
        mode: ModeArg,
        status: str = "open",
        limit: int = 50,
    ) -> ModeResult[tuple[Order, ...]]:
        with self._call(Operation.LIST_ORDERS, mode, {"status": status, "limit": limit}) as call:
            params = {
                "status": choice(status, ORDER_STATUSES, "status"),
                "limit": _bounded_int(limit, 1, MAX_ORDER_LIMIT, "limit"),
                "direction": "desc",
            }
            return call.result(normalize.orders(call.send("GET", "/v2/orders", params=params)))

    def get_order(self, mode: ModeArg, order_id: str) -> ModeResult[Order]:
        with self._call(Operation.GET_ORDER, mode, {"order_id": order_id}) as call:
            path = f"/v2/orders/{path_segment(_identifier(order_id, 'order_id'))}"
            return call.result(normalize.order(call.send("GET", path)))

    def place_order(self, mode: ModeArg, spec: OrderSpec) -> ModeResult[Order]:
        """Validate ``spec`` and submit it; nothing is sent if validation fails."""
        with self._call(Operation.PLACE_ORDER, mode, {"spec": type(spec).__name__}) as call:
            request = build_order(spec)
            self.log.operation(
                "order_submit",
                call.mode,
                {
                    "asset_class": request.asset_class.value,
                    "symbol": request.symbol,
                    "side": request.body["side"],
                    "type": request.body["type"],
                    "qty": request.body.get("qty"),
                    "notional": request.body.get("notional"),
                },
            )
            payload = call.send("POST", "/v2/orders", body=request.body)
            return call.result(normalize.order(payload))

    def cancel_order(self, mode: ModeArg, order_id: str) -> ModeResult[EmptyResult]:
        with self._call(Operation.CANCEL_ORDER, mode, {"order_id": order_id}) as call:
            path = f"/v2/orders/{path_segment(_identifier(order_id, 'order_id'))}"
            call.send("DELETE", path)
            return call.result(EMPTY)

    @destructive
    def cancel_all_orders(self, mode: ModeArg) -> ModeResult[tuple[dict[str, Any], ...]]:
        """Cancel every open order. Bulk and irreversible."""
        with self._call(Operation.CANCEL_ALL_ORDERS, mode) as call:
            return call.result(normalize.bulk_results(call.send("DELETE", "/v2/orders")))

    # Market data

    def get_snapshot(self, mode: ModeArg, symbol: str) -> ModeResult[Snapshot]:
        with self._call(Operation.SNAPSHOT, mode, {"symbol": symbol}) as call:
            normalized = normalize_symbol(symbol)
            payload = call.fetch(
                f"/v2/stocks/{path_segment(normalized)}/snapshot",
                params={"feed": self.data_feed},
            )
            return call.result(normalize.snapshot(normalized, payload))

    def get_snapshots(
        self,
        mode: ModeArg,
        symbols: Iterable[str],
    ) -> ModeResult[dict[str, Snapshot | None]]:
        """Snapshots keyed by symbol; symbols the upstream omits map to ``None``."""
        with self._call(Operation.SNAPSHOTS, mode) as call:
            normalized = normalize_symbols(symbols)
            payload = call.fetch(
                "/v2/stocks/snapshots",
                params={"symbols": normalized, "feed": self.data_feed},
            )
            return call.result(normalize.snapshots(normalized, payload))

    def get_bars(
        self,
        mode: ModeArg,
        symbol: str,
        timeframe: str = "1Day",
        days: int = 30,
        limit: int = 50,
        end: str | date | None = None,
    ) -> ModeResult[BarSeries]:
        """Bars over the last ``days`` days, most recent first."""
        with self._call(
            Operation.BARS, mode, {"symbol": symbol, "timeframe": timeframe, "days": days}
        ) as call:
            normalized = normalize_symbol(symbol)
            resolved_timeframe = normalize_timeframe(timeframe)
            lookback = min(_bounded_int(days, 1, None, "days"), MAX_BAR_DAYS)
            start = (self.now() - timedelta(days=lookback)).date().isoformat()
            params = {
                "timeframe": resolved_timeframe,
                "start": start,
                "end": _date_text(end, "end"),
                "limit": min(_bounded_int(limit, 1, None, "limit"), MAX_BAR_LIMIT),
                "feed": self.data_feed,
                "sort": "desc",
            }
            payload = call.fetch(f"/v2/stocks/{path_segment(normalized)}/bars", params=params)
            return call.result(normalize.bar_series(normalized, resolved_timeframe, payload))

    def get_crypto_snapshot(self, mode: ModeArg, symbol: str) -> ModeResult[Snapshot]:
        with self._call(Operation.CRYPTO_SNAPSHOT, mode, {"symbol": symbol}) as call:
            pair = to_crypto_pair(symbol)
            payload = call.fetch(f"/v1beta3/crypto/us/snapshots/{path_segment(pair)}")
            return call.result(normalize.crypto_snapshot(pair, payload))

    # Options

    def search_option_contracts(
        self,
        mode: ModeArg,
        underlying: str,
        expiration_date: str | date | None = None,
        contract_type: str | None = None,
        strike_price_gte: Number | None = None,
        strike_price_lte: Number | None = None,
        limit: int = 100,
    ) -> ModeResult[tuple[OptionContract, ...]]:
        """Resolve contract symbols ahead of an option order."""
        with self._call(
            Operation.OPTION_CONTRACTS, mode, {"underlying": underlying}
        ) as call:
            params: dict[str, Any] = {
                "underlying_symbols": normalize_symbol(underlying, "underlying"),
                "expiration_date": _date_text(expiration_date, "expiration_date"),
                "limit": _bounded_int(limit, 1, 10000, "limit"),
            }
            if contract_type is not None:
                params["type"] = choice(contract_type, ("call", "put"), "contract_type")
            if strike_price_gte is not None:
                params["strike_price_gte"] = decimal_text(strike_price_gte, "strike_price_gte")
            if strike_price_lte is not None:
                params["strike_price_lte"] = decimal_text(strike_price_lte, "strike_price_lte")
            payload = call.send("GET", "/v2/options/contracts", params=params)
            return call.result(normalize.option_contracts(payload))

    def get_option_snapshots(
        self,
        mode: ModeArg,
        contract_symbols: Iterable[str],
    ) -> ModeResult[dict[str, OptionSnapshot]]:
        with self._call(Operation.OPTION_SNAPSHOTS, mode) as call:
            symbols = normalize_symbols(contract_symbols, "contract_symbols")
            payload = call.fetch("/v1beta1/options/snapshots", params={"symbols": symbols})
            return call.result(normalize.option_snapshots(payload))

    # Market status

    def get_clock(self, mode: ModeArg) -> ModeResult[Clock]:
        with self._call(Operation.CLOCK, mode) as call:
            return call.result(normalize.clock(call.send("GET", "/v2/clock")))

    def get_calendar(
        self,
        mode: ModeArg,
        start: str | date | None = None,
        end: str | date | None = None,
    ) -> ModeResult[tuple[CalendarDay, ...]]:
        with self._call(Operation.CALENDAR, mode, {"start": start, "end": end}) as call:
            params = {"start": _date_text(start, "start"), "end": _date_text(end, "end")}
            return call.result(normalize.calendar(call.send("GET", "/v2/calendar", params=params)))

    # Watchlists

    def list_watchlists(self, mode: ModeArg) -> ModeResult[tuple[Watchlist, ...]]:
        with self._call(Operation.LIST_WATCHLISTS, mode) as call:
            return call.result(normalize.watchlists(call.send("GET", "/v2/watchlists")))

    def create_watchlist(
        self,
        mode: ModeArg,
        name: str,
        symbols: Iterable[str] = (),
    ) -> ModeResult[Watchlist]:
        with self._call(Operation.CREATE_WATCHLIST, mode, {"name": name}) as call:
            title = str(name or "").strip()
            if not title:
                raise ValidationError("name is required to create a watchlist.", fields=("name",))
            members = list(symbols)
            body = {
                "name": title,
                "symbols": normalize_symbols(members) if members else [],
            }
            return call.result(normalize.watchlist(call.send("POST", "/v2/watchlists", body=body)))

    def get_watchlist(self, mode: ModeArg, watchlist_id: str) -> ModeResult[Watchlist]:
        with self._call(Operation.GET_WATCHLIST, mode, {"watchlist_id": watchlist_id}) as call:
            path = f"/v2/watchlists/{path_segment(_identifier(watchlist_id, 'watchlist_id'))}"
            return call.result(normalize.watchlist(call.send("GET", path)))

    def add_to_watchlist(
        self,
        mode: ModeArg,
        watchlist_id: str,
        symbol: str,
    ) -> ModeResult[Watchlist]:
        with self._call(
            Operation.ADD_TO_WATCHLIST, mode, {"watchlist_id": watchlist_id, "symbol": symbol}
        ) as call:
            path = f"/v2/watchlists/{path_segment(_identifier(watchlist_id, 'watchlist_id'))}"
            body = {"symbol": normalize_symbol(symbol)}
            return call.result(normalize.watchlist(call.send("POST", path, body=body)))

    def delete_watchlist(self, mode: ModeArg, watchlist_id: str) -> ModeResult[EmptyResult]:
        with self._call(Operation.DELETE_WATCHLIST, mode, {"watchlist_id": watchlist_id}) as call:
            path = f"/v2/watchlists/{path_segment(_identifier(watchlist_id, 'watchlist_id'))}"
            call.send("DELETE", path)
            return call.result(EMPTY)

    def watchlist(self, mode: ModeArg, action: WatchlistAction) -> ModeResult[Any]:
        """Dispatch one watchlist action variant."""
        match action:
            case ListWatchlists():
                return self.list_watchlists(mode)
            case CreateWatchlist(name=name, symbols=symbols):
                return self.create_watchlist(mode, name, symbols)
            case ViewWatchlist(watchlist_id=watchlist_id):
                return self.get_watchlist(mode, watchlist_id)
            case AddWatchlistSymbol(watchlist_id=watchlist_id, symbol=symbol):
                return self.add_to_watchlist(mode, watchlist_id, symbol)
            case DeleteWatchlist(watchlist_id=watchlist_id):
                return self.delete_watchlist(mode, watchlist_id)
            case _:
                assert_never(action)


def _identifier(value: str, field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required.", fields=(field_name,))
    return text


def _bounded_int(value: int, lower: int, upper: int | None, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer.", fields=(field_name,))
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer.", fields=(field_name,)) from None
    if number < lower or (upper is not None and number > upper):
        bound = f"between {lower} and {upper}" if upper is not None else f"at least {lower}"
        raise ValidationError(f"{field_name} must be {bound}.", fields=(field_name,))
    return number


def _percentage(value: Number) -> str:
    text = decimal_text(value, "percentage")
    try:
        within = Decimal(text) <= 100
    except InvalidOperation:
        within = False
    if not within:
        raise ValidationError("percentage must be in (0, 100].", fields=("percentage",))
    return text


def _date_text(value: str | date | None, field_name: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(
            f"{field_name} must be an ISO date (YYYY-MM-DD), got '{value}'.",
            fields=(field_name,),
        ) from None
    return text
