"""Operation to endpoint routing."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from enum import StrEnum
from typing import Any, Self
from urllib.parse import quote

from tradegate.config import DEFAULT_DATA_URL, DEFAULT_LIVE_URL, DEFAULT_PAPER_URL, Settings
from tradegate.domain.models import Mode


class Operation(StrEnum):
    """Every operation the gateway exposes."""

    ACCOUNT = "account"
    LIST_POSITIONS = "list_positions"
    GET_POSITION = "get_position"
    CLOSE_POSITION = "close_position"
    CLOSE_ALL_POSITIONS = "close_all_positions"
    LIST_ORDERS = "list_orders"
    GET_ORDER = "get_order"
    PLACE_ORDER = "place_order"
    CANCEL_ORDER = "cancel_order"
    CANCEL_ALL_ORDERS = "cancel_all_orders"
    CLOCK = "clock"
    CALENDAR = "calendar"
    PORTFOLIO_HISTORY = "portfolio_history"
    LIST_WATCHLISTS = "list_watchlists"
    CREATE_WATCHLIST = "create_watchlist"
    GET_WATCHLIST = "get_watchlist"
    ADD_TO_WATCHLIST = "add_to_watchlist"
    DELETE_WATCHLIST = "delete_watchlist"
    OPTION_CONTRACTS = "option_contracts"
    SNAPSHOT = "snapshot"
    SNAPSHOTS = "snapshots"
    BARS = "bars"
    CRYPTO_SNAPSHOT = "crypto_snapshot"
    OPTION_SNAPSHOTS = "option_snapshots"

    @property
    def is_market_data(self) -> bool:
        return self in MARKET_DATA_OPERATIONS

    @property
    def is_destructive(self) -> bool:
        return self in DESTRUCTIVE_OPERATIONS


MARKET_DATA_OPERATIONS = frozenset(
    {
        Operation.SNAPSHOT,
        Operation.SNAPSHOTS,
        Operation.BARS,
        Operation.CRYPTO_SNAPSHOT,
        Operation.OPTION_SNAPSHOTS,
    }
)

DESTRUCTIVE_OPERATIONS = frozenset({Operation.CLOSE_ALL_POSITIONS, Operation.CANCEL_ALL_ORDERS})


class EndpointRouter:
    """Map operations to the paper, live or shared market-data base URL."""

    def __init__(
        self,
        paper_url: str = DEFAULT_PAPER_URL,
        live_url: str = DEFAULT_LIVE_URL,
        data_url: str = DEFAULT_DATA_URL,
    ) -> None:
        self.paper_url = paper_url.rstrip("/")
        self.live_url = live_url.rstrip("/")
        self.data_url = data_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(settings.paper_url, settings.live_url, settings.data_url)

    def route(self, operation: Operation, mode: Mode) -> str:
        """Return the base URL for ``operation`` under ``mode``.

        Market data is identical across modes and always uses the data URL.
        """
        if operation.is_market_data:
            return self.data_url
        if mode == Mode.LIVE:
            return self.live_url
        return self.paper_url

    def url(self, operation: Operation, mode: Mode, path: str) -> str:
        return f"{self.route(operation, mode)}{path}"


def path_segment(value: str) -> str:
    """Percent-encode one path segment (``BTC/USD`` -> ``BTC%2FUSD``)."""
    return quote(value.strip(), safe="")


def clean_params(params: Mapping[str, Any] | None) -> dict[str, str]:
    """Drop empty query values and stringify the rest."""
    cleaned: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
            continue
        if isinstance(value, (list, tuple)):
            text = ",".join(str(item).strip() for item in value if str(item).strip())
        elif isinstance(value, Decimal):
            text = format(value, "f")
        else:
            text = str(value).strip()
        if text:
            cleaned[key] = text
    return cleaned
