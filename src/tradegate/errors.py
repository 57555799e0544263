"""Exception taxonomy shared by every gateway layer."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tradegate.domain.models import Mode


class GatewayError(Exception):
    """Base exception for all gateway errors.

    ``mode`` records which credential context the failed call targeted, or
    ``None`` when the mode itself could not be resolved.
    """

    def __init__(self, message: str, mode: Mode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.mode = mode

    def with_mode(self, mode: Mode) -> GatewayError:
        """Attach the targeted mode if the error was raised without one."""
        if self.mode is None:
            self.mode = mode
        return self

    def __str__(self) -> str:
        if self.mode is None:
            return self.message
        return f"[{self.mode.label}] {self.message}"


class ConfigurationError(GatewayError):
    """Raised when credentials or the requested mode are missing or invalid."""


class ValidationError(GatewayError):
    """Raised when an order spec or argument set is malformed."""

    def __init__(
        self,
        message: str,
        fields: tuple[str, ...] = (),
        mode: Mode | None = None,
    ) -> None:
        super().__init__(message, mode=mode)
        self.fields = fields


class RemoteError(GatewayError):
    """Raised when the brokerage answers with a non-2xx status."""

    def __init__(self, status: int, body: str, mode: Mode | None = None) -> None:
        self.status = status
        self.body = body
        detail = body.strip() or "No response body."
        super().__init__(f"Alpaca API error {status}: {detail}", mode=mode)

    @property
    def upstream_message(self) -> str | None:
        """Return the ``message`` field of a JSON error body, if any."""
        try:
            payload = json.loads(self.body)
        except ValueError:
            return None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return None


class MalformedResponseError(RemoteError):
    """Raised when a 2xx response body does not have the expected shape."""

    def __init__(
        self,
        detail: str,
        status: int = 200,
        body: str = "",
        mode: Mode | None = None,
    ) -> None:
        super().__init__(status, body, mode=mode)
        self.detail = detail
        self.message = f"Malformed Alpaca response: {detail}"


class TransportError(GatewayError):
    """Raised when no response was received (network failure or timeout)."""
