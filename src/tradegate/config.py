"""Environment-driven gateway configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

from tradegate.domain.models import Credentials, Mode
from tradegate.errors import ConfigurationError

DEFAULT_PAPER_URL = "https://paper-api.alpaca.markets"
DEFAULT_LIVE_URL = "https://api.alpaca.markets"
DEFAULT_DATA_URL = "https://data.alpaca.markets"


def first_env(*names: str) -> str:
    """Return the first non-empty environment value among ``names``."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return ""


def parse_positive_int(value: str | None, default: int, *, field_name: str) -> int:
    """Parse a positive integer from an env string."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{field_name} must be an integer, got '{value}'.") from exc
    if parsed <= 0:
        raise ConfigurationError(f"{field_name} must be positive.")
    return parsed


@dataclass(frozen=True)
class Settings:
    """Immutable gateway settings.

    Credentials come either as mode-scoped pairs (``ALPACA_PAPER_*`` and
    ``ALPACA_LIVE_*``) or as one unscoped pair (``ALPACA_API_KEY``) that
    belongs to ``TRADING_MODE``, paper when unset.
    """

    paper_api_key: str = ""
    paper_secret_key: str = field(default="", repr=False)
    live_api_key: str = ""
    live_secret_key: str = field(default="", repr=False)
    api_key: str = ""
    secret_key: str = field(default="", repr=False)
    trading_mode: str = ""
    paper_url: str = DEFAULT_PAPER_URL
    live_url: str = DEFAULT_LIVE_URL
    data_url: str = DEFAULT_DATA_URL
    data_feed: str = "iex"
    timeout_seconds: int = 15
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables (and a ``.env`` file)."""
        load_dotenv()
        raw = cls(
            paper_api_key=first_env("ALPACA_PAPER_API_KEY"),
            paper_secret_key=first_env("ALPACA_PAPER_SECRET_KEY"),
            live_api_key=first_env("ALPACA_LIVE_API_KEY"),
            live_secret_key=first_env("ALPACA_LIVE_SECRET_KEY"),
            api_key=first_env("ALPACA_API_KEY", "APCA_API_KEY_ID"),
            secret_key=first_env("ALPACA_SECRET_KEY", "APCA_API_SECRET_KEY"),
            trading_mode=first_env("TRADING_MODE").lower(),
            paper_url=first_env("ALPACA_PAPER_URL") or DEFAULT_PAPER_URL,
            live_url=first_env("ALPACA_LIVE_URL") or DEFAULT_LIVE_URL,
            data_url=first_env("ALPACA_DATA_URL") or DEFAULT_DATA_URL,
            data_feed=(first_env("ALPACA_DATA_FEED") or "iex").lower(),
            timeout_seconds=parse_positive_int(
                os.getenv("REQUEST_TIMEOUT_SECONDS"),
                15,
                field_name="REQUEST_TIMEOUT_SECONDS",
            ),
            log_level=(first_env("LOG_LEVEL") or "INFO").upper(),
            log_file=first_env("LOG_FILE") or None,
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        return replace(self, **kwargs).validate()

    def unscoped_mode(self) -> Mode:
        """Mode the legacy unscoped key pair belongs to."""
        return Mode.parse(self.trading_mode) if self.trading_mode else Mode.PAPER

    def credential_pairs(self) -> dict[Mode, Credentials]:
        """Return every configured credential pair keyed by its mode."""
        pairs: dict[Mode, Credentials] = {}
        if self.paper_api_key:
            pairs[Mode.PAPER] = Credentials(self.paper_api_key, self.paper_secret_key, Mode.PAPER)
        if self.live_api_key:
            pairs[Mode.LIVE] = Credentials(self.live_api_key, self.live_secret_key, Mode.LIVE)
        if self.api_key:
            mode = self.unscoped_mode()
            pairs[mode] = Credentials(self.api_key, self.secret_key, mode)
        return pairs

    def is_dual_mode(self) -> bool:
        return len(self.credential_pairs()) > 1

    def validate(self) -> Self:
        """Validate settings fields."""
        if self.trading_mode and self.trading_mode not in {"paper", "live"}:
            raise ConfigurationError("TRADING_MODE must be one of: paper, live.")
        for label, key, secret in (
            ("ALPACA_PAPER", self.paper_api_key, self.paper_secret_key),
            ("ALPACA_LIVE", self.live_api_key, self.live_secret_key),
            ("ALPACA", self.api_key, self.secret_key),
        ):
            if bool(key) != bool(secret):
                raise ConfigurationError(
                    f"{label}_API_KEY and {label}_SECRET_KEY must be set together."
                )
        if self.api_key:
            mode = self.unscoped_mode()
            scoped = self.paper_api_key if mode == Mode.PAPER else self.live_api_key
            if scoped:
                raise ConfigurationError(
                    f"ALPACA_API_KEY conflicts with ALPACA_{mode.label}_API_KEY; "
                    "configure each mode only once."
                )
        if self.timeout_seconds <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT_SECONDS must be positive.")
        if self.data_feed not in {"iex", "sip"}:
            raise ConfigurationError("ALPACA_DATA_FEED must be one of: iex, sip.")
        for name, url in (
            ("ALPACA_PAPER_URL", self.paper_url),
            ("ALPACA_LIVE_URL", self.live_url),
            ("ALPACA_DATA_URL", self.data_url),
        ):
            if not url.startswith(("http://", "https://")):
                raise ConfigurationError(f"{name} must be an http(s) URL.")
        return self
