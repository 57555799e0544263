"""Core brokerage domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Generic, TypeVar

from tradegate.errors import ConfigurationError

T = TypeVar("T")


class Mode(StrEnum):
    """Credential context a request is executed against."""

    PAPER = "paper"
    LIVE = "live"

    @property
    def label(self) -> str:
        return self.value.upper()

    @classmethod
    def parse(cls, value: str | Mode) -> Mode:
        """Parse a user-supplied mode, rejecting anything but paper/live."""
        if isinstance(value, Mode):
            return value
        candidate = str(value).strip().lower()
        try:
            return cls(candidate)
        except ValueError:
            raise ConfigurationError(
                f"Unknown trading mode '{value}'. Expected one of: paper, live."
            ) from None


class OrderSide(StrEnum):
    """Supported order directions."""

    BUY = "buy"
    SELL = "sell"


class AssetClass(StrEnum):
    """Asset classes the payload builder understands."""

    EQUITY = "us_equity"
    CRYPTO = "crypto"
    OPTION = "us_option"


@dataclass(frozen=True)
class Credentials:
    """API key pair scoped to exactly one mode."""

    api_key: str
    secret_key: str = field(repr=False)
    mode: Mode = Mode.PAPER


@dataclass(frozen=True)
class ModeResult(Generic[T]):
    """Successful gateway result tagged with the mode it ran against."""

    mode: Mode
    data: T


@dataclass(frozen=True)
class EmptyResult:
    """Successful response without a body (HTTP 204)."""

    def __bool__(self) -> bool:
        return False


EMPTY = EmptyResult()


@dataclass(frozen=True)
class Account:
    """Brokerage account snapshot; numeric fields are upstream decimal strings."""

    id: str
    account_number: str | None
    status: str
    currency: str | None
    equity: str | None
    last_equity: str | None
    cash: str | None
    buying_power: str | None
    portfolio_value: str | None
    long_market_value: str | None
    short_market_value: str | None
    initial_margin: str | None
    maintenance_margin: str | None
    daytrading_buying_power: str | None
    daytrade_count: int | None
    pattern_day_trader: bool
    trading_blocked: bool


@dataclass(frozen=True)
class Position:
    """Open position for one symbol."""

    symbol: str
    qty: str
    side: str
    asset_id: str | None = None
    asset_class: str | None = None
    exchange: str | None = None
    avg_entry_price: str | None = None
    current_price: str | None = None
    market_value: str | None = None
    cost_basis: str | None = None
    unrealized_pl: str | None = None
    unrealized_plpc: str | None = None
    lastday_price: str | None = None
    change_today: str | None = None


TERMINAL_ORDER_STATUSES = frozenset({"filled", "canceled", "expired", "rejected"})


@dataclass(frozen=True)
class Order:
    """Order as reported by the brokerage."""

    id: str
    symbol: str
    side: str
    order_type: str
    time_in_force: str
    status: str
    client_order_id: str | None = None
    asset_class: str | None = None
    order_class: str | None = None
    qty: str | None = None
    notional: str | None = None
    filled_qty: str | None = None
    filled_avg_price: str | None = None
    limit_price: str | None = None
    stop_price: str | None = None
    trail_percent: str | None = None
    trail_price: str | None = None
    extended_hours: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    submitted_at: str | None = None
    filled_at: str | None = None
    canceled_at: str | None = None
    expired_at: str | None = None
    failed_at: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES


@dataclass(frozen=True)
class Clock:
    """Market open/close state."""

    timestamp: str
    is_open: bool
    next_open: str | None
    next_close: str | None


@dataclass(frozen=True)
class CalendarDay:
    """One trading session from the market calendar."""

    date: str
    open: str
    close: str


@dataclass(frozen=True)
class Bar:
    """OHLCV bar with timestamp."""

    timestamp: str
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    trade_count: Decimal | None = None
    vwap: Decimal | None = None


@dataclass(frozen=True)
class Trade:
    timestamp: str
    price: Decimal
    size: Decimal | None = None


@dataclass(frozen=True)
class Quote:
    timestamp: str
    bid_price: Decimal | None
    bid_size: Decimal | None
    ask_price: Decimal | None
    ask_size: Decimal | None


@dataclass(frozen=True)
class Snapshot:
    """Latest market picture for a stock or crypto pair."""

    symbol: str
    latest_trade: Trade | None = None
    latest_quote: Quote | None = None
    minute_bar: Bar | None = None
    daily_bar: Bar | None = None
    prev_daily_bar: Bar | None = None


@dataclass(frozen=True)
class BarSeries:
    """Bars for one symbol, most recent first."""

    symbol: str
    timeframe: str
    bars: tuple[Bar, ...] = ()

    def __len__(self) -> int:
        return len(self.bars)


@dataclass(frozen=True)
class PortfolioHistory:
    """Parallel-array equity time series; all four arrays share one length."""

    timestamps: tuple[int, ...]
    equity: tuple[Decimal | None, ...]
    profit_loss: tuple[Decimal | None, ...]
    profit_loss_pct: tuple[Decimal | None, ...]
    base_value: Decimal | None = None
    timeframe: str | None = None

    def __len__(self) -> int:
        return len(self.timestamps)


@dataclass(frozen=True)
class Watchlist:
    """Named collection of symbols."""

    id: str
    name: str
    account_id: str | None = None
    symbols: tuple[str, ...] = ()


@dataclass(frozen=True)
class OptionContract:
    """Option contract returned by contract search."""

    id: str
    symbol: str
    underlying_symbol: str
    contract_type: str
    expiration_date: str
    strike_price: str
    status: str | None = None
    tradable: bool = False
    style: str | None = None
    open_interest: str | None = None
    close_price: str | None = None


@dataclass(frozen=True)
class OptionSnapshot:
    """Option market snapshot; Greeks are passed through as upstream reports them."""

    symbol: str
    latest_trade: Trade | None = None
    latest_quote: Quote | None = None
    implied_volatility: Decimal | None = None
    greeks: dict[str, Any] = field(default_factory=dict)
