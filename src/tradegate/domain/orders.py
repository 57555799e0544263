"""Order specifications accepted by the payload builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any

from .models import AssetClass, OrderSide

Number = int | float | str | Decimal


class OrderType(StrEnum):
    """Order types supported by the brokerage."""

    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"
    TRAILING_STOP = "trailing_stop"


class TimeInForce(StrEnum):
    """Validity window policies."""

    DAY = "day"
    GTC = "gtc"
    OPG = "opg"
    CLS = "cls"
    IOC = "ioc"
    FOK = "fok"


EQUITY_TIME_IN_FORCE = frozenset(TimeInForce)
CRYPTO_TIME_IN_FORCE = frozenset({TimeInForce.GTC, TimeInForce.IOC})
OPTION_TIME_IN_FORCE = frozenset({TimeInForce.DAY, TimeInForce.GTC})

CRYPTO_ORDER_TYPES = frozenset({OrderType.MARKET, OrderType.LIMIT, OrderType.STOP_LIMIT})
OPTION_ORDER_TYPES = frozenset(
    {OrderType.MARKET, OrderType.LIMIT, OrderType.STOP, OrderType.STOP_LIMIT}
)


@dataclass(frozen=True)
class EquityOrderSpec:
    """Stock or ETF order intent."""

    symbol: str
    side: OrderSide | str
    qty: Number
    order_type: OrderType | str = OrderType.MARKET
    time_in_force: TimeInForce | str = TimeInForce.DAY
    limit_price: Number | None = None
    stop_price: Number | None = None
    trail_percent: Number | None = None
    trail_price: Number | None = None
    extended_hours: bool = False
    client_order_id: str | None = None


@dataclass(frozen=True)
class CryptoOrderSpec:
    """Crypto order intent sized by quantity or by notional dollar amount."""

    symbol: str
    side: OrderSide | str
    qty: Number | None = None
    notional: Number | None = None
    order_type: OrderType | str = OrderType.MARKET
    time_in_force: TimeInForce | str = TimeInForce.GTC
    limit_price: Number | None = None
    stop_price: Number | None = None
    client_order_id: str | None = None


@dataclass(frozen=True)
class OptionOrderSpec:
    """Option order intent against an already-resolved contract symbol."""

    contract_symbol: str
    side: OrderSide | str
    qty: Number
    order_type: OrderType | str = OrderType.MARKET
    time_in_force: TimeInForce | str = TimeInForce.DAY
    limit_price: Number | None = None
    stop_price: Number | None = None
    client_order_id: str | None = None


OrderSpec = EquityOrderSpec | CryptoOrderSpec | OptionOrderSpec


@dataclass(frozen=True)
class OrderRequest:
    """Validated wire payload for ``POST /v2/orders``."""

    asset_class: AssetClass
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def symbol(self) -> str:
        return str(self.body.get("symbol", ""))
