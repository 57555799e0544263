"""Credential and mode resolution."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Self

from tradegate.config import Settings
from tradegate.domain.models import Credentials, Mode
from tradegate.errors import ConfigurationError


class CredentialResolver:
    """Pick the key pair for a requested mode.

    A deployment holding one pair may omit the mode and gets that pair's mode.
    A deployment holding both pairs requires the caller to name the mode on
    every call. A mode without a pair is never served by the other pair.
    """

    def __init__(
        self,
        pairs: Mapping[Mode, Credentials],
        default_mode: Mode | None = None,
    ) -> None:
        self._pairs = dict(pairs)
        if default_mode is None and len(self._pairs) == 1:
            default_mode = next(iter(self._pairs))
        if len(self._pairs) > 1:
            default_mode = None
        self._default_mode = default_mode

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        pairs = settings.credential_pairs()
        default_mode = None
        if len(pairs) <= 1 and settings.trading_mode:
            default_mode = Mode.parse(settings.trading_mode)
        return cls(pairs, default_mode=default_mode)

    @property
    def modes(self) -> tuple[Mode, ...]:
        return tuple(mode for mode in Mode if mode in self._pairs)

    @property
    def requires_explicit_mode(self) -> bool:
        return self._default_mode is None

    def resolve_mode(self, requested: str | Mode | None) -> Mode:
        """Return the mode a call runs against."""
        if requested is not None and str(requested).strip():
            return Mode.parse(requested)
        if self._default_mode is None:
            if not self._pairs:
                raise ConfigurationError(
                    "Alpaca API credentials not configured. Set ALPACA_PAPER_API_KEY "
                    "or ALPACA_LIVE_API_KEY (with matching secret keys)."
                )
            raise ConfigurationError(
                "mode is required: both paper and live credentials are configured, "
                "pass mode='paper' or mode='live' explicitly."
            )
        return self._default_mode

    def resolve(self, mode: Mode) -> Credentials:
        """Return the credential pair for ``mode``."""
        credentials = self._pairs.get(mode)
        if credentials is None:
            raise ConfigurationError(
                f"No Alpaca credentials configured for {mode.value} trading.",
                mode=mode,
            )
        return credentials
