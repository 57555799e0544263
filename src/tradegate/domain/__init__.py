"""Domain models, order specs and watchlist actions."""

from .models import (
    EMPTY,
    Account,
    AssetClass,
    Bar,
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
    OrderSide,
    PortfolioHistory,
    Position,
    Quote,
    Snapshot,
    Trade,
    Watchlist,
)
from .orders import (
    CryptoOrderSpec,
    EquityOrderSpec,
    OptionOrderSpec,
    OrderRequest,
    OrderSpec,
    OrderType,
    TimeInForce,
)
from .watchlists import (
    AddWatchlistSymbol,
    CreateWatchlist,
    DeleteWatchlist,
    ListWatchlists,
    ViewWatchlist,
    WatchlistAction,
)

__all__ = [
    "EMPTY",
    "Account",
    "AddWatchlistSymbol",
    "AssetClass",
    "Bar",
    "BarSeries",
    "CalendarDay",
    "Clock",
    "CreateWatchlist",
    "Credentials",
    "CryptoOrderSpec",
    "DeleteWatchlist",
    "EmptyResult",
    "EquityOrderSpec",
    "ListWatchlists",
    "Mode",
    "ModeResult",
    "OptionContract",
    "OptionOrderSpec",
    "OptionSnapshot",
    "Order",
    "OrderRequest",
    "OrderSide",
    "OrderSpec",
    "OrderType",
    "PortfolioHistory",
    "Position",
    "Quote",
    "Snapshot",
    "TimeInForce",
    "Trade",
    "ViewWatchlist",
    "Watchlist",
    "WatchlistAction",
]
