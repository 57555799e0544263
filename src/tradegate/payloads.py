"""Order payload construction and validation.

Numeric fields are converted to decimal strings here, at the wire boundary,
because the brokerage expects strings and floats would lose precision.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, assert_never

from tradegate.domain.models import AssetClass, OrderSide
from tradegate.domain.orders import (
    CRYPTO_ORDER_TYPES,
    CRYPTO_TIME_IN_FORCE,
    EQUITY_TIME_IN_FORCE,
    OPTION_ORDER_TYPES,
    OPTION_TIME_IN_FORCE,
    CryptoOrderSpec,
    EquityOrderSpec,
    Number,
    OptionOrderSpec,
    OrderRequest,
    OrderSpec,
    OrderType,
    TimeInForce,
)
from tradegate.errors import ValidationError

OCC_SYMBOL_PATTERN = re.compile(r"^[A-Z]{1,6}\d{6}[CP]\d{8}$")

LIMIT_PRICE_TYPES = frozenset({OrderType.LIMIT, OrderType.STOP_LIMIT})
STOP_PRICE_TYPES = frozenset({OrderType.STOP, OrderType.STOP_LIMIT})


def build_order(spec: OrderSpec) -> OrderRequest:
    """Validate ``spec`` and return the wire payload for its asset class."""
    match spec:
        case EquityOrderSpec():
            return _build_equity(spec)
        case CryptoOrderSpec():
            return _build_crypto(spec)
        case OptionOrderSpec():
            return _build_option(spec)
        case _:
            assert_never(spec)


def _build_equity(spec: EquityOrderSpec) -> OrderRequest:
    symbol = _symbol(spec.symbol, "symbol")
    order_type = _order_type(spec.order_type, frozenset(OrderType))
    body = _base_body(
        symbol=symbol,
        side=spec.side,
        order_type=order_type,
        time_in_force=_time_in_force(spec.time_in_force, EQUITY_TIME_IN_FORCE, "equity"),
    )
    body["qty"] = decimal_text(spec.qty, "qty")
    body.update(_price_fields(order_type, spec.limit_price, spec.stop_price))

    if spec.trail_percent is not None and spec.trail_price is not None:
        raise ValidationError(
            "trail_percent and trail_price are mutually exclusive.",
            fields=("trail_percent", "trail_price"),
        )
    if order_type == OrderType.TRAILING_STOP:
        if spec.trail_percent is None and spec.trail_price is None:
            raise ValidationError(
                "trailing_stop orders require exactly one of trail_percent or trail_price.",
                fields=("trail_percent", "trail_price"),
            )
    if spec.trail_percent is not None:
        body["trail_percent"] = decimal_text(spec.trail_percent, "trail_percent")
    if spec.trail_price is not None:
        body["trail_price"] = decimal_text(spec.trail_price, "trail_price")

    if spec.extended_hours:
        if order_type == OrderType.MARKET:
            raise ValidationError(
                "extended_hours is not allowed for market orders.",
                fields=("extended_hours",),
            )
        body["extended_hours"] = True
    _client_order_id(body, spec.client_order_id)
    return OrderRequest(asset_class=AssetClass.EQUITY, body=body)


def _build_crypto(spec: CryptoOrderSpec) -> OrderRequest:
    symbol = _symbol(spec.symbol, "symbol")
    order_type = _order_type(spec.order_type, CRYPTO_ORDER_TYPES)
    body = _base_body(
        symbol=symbol,
        side=spec.side,
        order_type=order_type,
        time_in_force=_time_in_force(spec.time_in_force, CRYPTO_TIME_IN_FORCE, "crypto"),
    )
    if (spec.qty is None) == (spec.notional is None):
        raise ValidationError(
            "Crypto orders require exactly one of qty or notional.",
            fields=("qty", "notional"),
        )
    if spec.qty is not None:
        body["qty"] = decimal_text(spec.qty, "qty")
    else:
        body["notional"] = decimal_text(spec.notional, "notional")
    body.update(_price_fields(order_type, spec.limit_price, spec.stop_price))
    _client_order_id(body, spec.client_order_id)
    return OrderRequest(asset_class=AssetClass.CRYPTO, body=body)


def _build_option(spec: OptionOrderSpec) -> OrderRequest:
    contract = _symbol(spec.contract_symbol, "contract_symbol")
    if not OCC_SYMBOL_PATTERN.match(contract):
        raise ValidationError(
            f"'{spec.contract_symbol}' is not a resolved option contract symbol; "
            "look it up with an option contract search first.",
            fields=("contract_symbol",),
        )
    order_type = _order_type(spec.order_type, OPTION_ORDER_TYPES)
    body = _base_body(
        symbol=contract,
        side=spec.side,
        order_type=order_type,
        time_in_force=_time_in_force(spec.time_in_force, OPTION_TIME_IN_FORCE, "option"),
    )
    qty = decimal_text(spec.qty, "qty")
    if Decimal(qty) != Decimal(qty).to_integral_value():
        raise ValidationError("Option qty must be a whole number of contracts.", fields=("qty",))
    body["qty"] = qty
    body.update(_price_fields(order_type, spec.limit_price, spec.stop_price))
    _client_order_id(body, spec.client_order_id)
    return OrderRequest(asset_class=AssetClass.OPTION, body=body)


def decimal_text(value: Number | None, field_name: str) -> str:
    """Render a positive number as a plain decimal string (no exponent)."""
    if value is None:
        raise ValidationError(f"{field_name} is required.", fields=(field_name,))
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number.", fields=(field_name,))
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(
            f"{field_name} must be a number, got '{value}'.", fields=(field_name,)
        ) from None
    if not number.is_finite() or number <= 0:
        raise ValidationError(f"{field_name} must be a positive number.", fields=(field_name,))
    return format(number.normalize(), "f")


def _base_body(
    symbol: str,
    side: OrderSide | str,
    order_type: OrderType,
    time_in_force: TimeInForce,
) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "side": _side(side).value,
        "type": order_type.value,
        "time_in_force": time_in_force.value,
    }


def _price_fields(
    order_type: OrderType,
    limit_price: Number | None,
    stop_price: Number | None,
) -> dict[str, str]:
    fields: dict[str, str] = {}
    if order_type in LIMIT_PRICE_TYPES and limit_price is None:
        raise ValidationError(
            f"limit_price is required for {order_type.value} orders.",
            fields=("limit_price",),
        )
    if order_type in STOP_PRICE_TYPES and stop_price is None:
        raise ValidationError(
            f"stop_price is required for {order_type.value} orders.",
            fields=("stop_price",),
        )
    if limit_price is not None:
        fields["limit_price"] = decimal_text(limit_price, "limit_price")
    if stop_price is not None:
        fields["stop_price"] = decimal_text(stop_price, "stop_price")
    return fields


def _symbol(value: str, field_name: str) -> str:
    symbol = str(value or "").strip().upper()
    if not symbol:
        raise ValidationError(f"{field_name} is required.", fields=(field_name,))
    return symbol


def _side(value: OrderSide | str) -> OrderSide:
    try:
        return OrderSide(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"side must be one of: buy, sell (got '{value}').", fields=("side",)
        ) from None


def _order_type(value: OrderType | str, allowed: frozenset[OrderType]) -> OrderType:
    try:
        order_type = OrderType(str(value).strip().lower())
    except ValueError:
        order_type = None
    if order_type is None or order_type not in allowed:
        supported = ", ".join(sorted(item.value for item in allowed))
        raise ValidationError(
            f"order_type '{value}' is not supported here. Supported: {supported}.",
            fields=("order_type",),
        )
    return order_type


def _time_in_force(
    value: TimeInForce | str,
    allowed: frozenset[TimeInForce],
    asset_label: str,
) -> TimeInForce:
    try:
        time_in_force = TimeInForce(str(value).strip().lower())
    except ValueError:
        time_in_force = None
    if time_in_force is None or time_in_force not in allowed:
        supported = ", ".join(sorted(item.value for item in allowed))
        raise ValidationError(
            f"time_in_force '{value}' is not valid for {asset_label} orders. "
            f"Supported: {supported}.",
            fields=("time_in_force",),
        )
    return time_in_force


def _client_order_id(body: dict[str, Any], client_order_id: str | None) -> None:
    if client_order_id:
        body["client_order_id"] = client_order_id
