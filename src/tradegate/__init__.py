"""Dual-mode (paper/live) Alpaca brokerage gateway."""

from tradegate.config import Settings
from tradegate.domain import EMPTY, Mode, ModeResult
from tradegate.errors import (
    ConfigurationError,
    GatewayError,
    MalformedResponseError,
    RemoteError,
    TransportError,
    ValidationError,
)
from tradegate.gateway import Gateway

__all__ = [
    "EMPTY",
    "ConfigurationError",
    "Gateway",
    "GatewayError",
    "MalformedResponseError",
    "Mode",
    "ModeResult",
    "RemoteError",
    "Settings",
    "TransportError",
    "ValidationError",
]
