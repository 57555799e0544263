"""Watchlist actions as a closed set of variants."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ListWatchlists:
    pass


@dataclass(frozen=True)
class CreateWatchlist:
    name: str
    symbols: tuple[str, ...] = ()


@dataclass(frozen=True)
class ViewWatchlist:
    watchlist_id: str


@dataclass(frozen=True)
class AddWatchlistSymbol:
    watchlist_id: str
    symbol: str


@dataclass(frozen=True)
class DeleteWatchlist:
    watchlist_id: str


WatchlistAction = (
    ListWatchlists | CreateWatchlist | ViewWatchlist | AddWatchlistSymbol | DeleteWatchlist
)
