from __future__ import annotations

import pytest

from tradegate.config import Settings
from tradegate.credentials import CredentialResolver
from tradegate.domain import Credentials, Mode
from tradegate.errors import ConfigurationError


def test_single_pair_defaults_to_its_mode() -> None:
    resolver = CredentialResolver.from_settings(
        Settings(live_api_key="PK", live_secret_key="SK")
    )

    assert resolver.modes == (Mode.LIVE,)
    assert not resolver.requires_explicit_mode
    assert resolver.resolve_mode(None) == Mode.LIVE
    assert resolver.resolve(Mode.LIVE) == Credentials("PK", "SK", Mode.LIVE)


def test_legacy_pair_belongs_to_trading_mode() -> None:
    resolver = CredentialResolver.from_settings(
        Settings(api_key="PK", secret_key="SK", trading_mode="live")
    )

    assert resolver.resolve_mode("") == Mode.LIVE
    assert resolver.resolve(Mode.LIVE).api_key == "PK"


def test_legacy_pair_defaults_to_paper() -> None:
    resolver = CredentialResolver.from_settings(Settings(api_key="PK", secret_key="SK"))

    assert resolver.resolve_mode(None) == Mode.PAPER


def test_dual_mode_requires_explicit_mode(dual_settings: Settings) -> None:
    resolver = CredentialResolver.from_settings(dual_settings)

    assert resolver.requires_explicit_mode
    with pytest.raises(ConfigurationError, match="mode is required"):
        resolver.resolve_mode(None)
    assert resolver.resolve_mode("LIVE") == Mode.LIVE
    assert resolver.resolve(Mode.PAPER).api_key == "PK-PAPER"
    assert resolver.resolve(Mode.LIVE).api_key == "PK-LIVE"


def test_dual_mode_ignores_trading_mode_default() -> None:
    resolver = CredentialResolver.from_settings(
        Settings(
            paper_api_key="PK-PAPER",
            paper_secret_key="SK-PAPER",
            live_api_key="PK-LIVE",
            live_secret_key="SK-LIVE",
            trading_mode="paper",
        )
    )

    with pytest.raises(ConfigurationError, match="mode is required"):
        resolver.resolve_mode(None)


def test_missing_pair_never_falls_back_to_other_mode(paper_settings: Settings) -> None:
    resolver = CredentialResolver.from_settings(paper_settings)

    with pytest.raises(ConfigurationError, match="No Alpaca credentials configured for live") as excinfo:
        resolver.resolve(Mode.LIVE)

    assert excinfo.value.mode == Mode.LIVE
    assert str(excinfo.value).startswith("[LIVE]")


def test_no_credentials_at_all() -> None:
    resolver = CredentialResolver.from_settings(Settings())

    with pytest.raises(ConfigurationError, match="credentials not configured"):
        resolver.resolve_mode(None)


def test_unknown_mode_rejected(paper_settings: Settings) -> None:
    resolver = CredentialResolver.from_settings(paper_settings)

    with pytest.raises(ConfigurationError, match="Unknown trading mode 'sandbox'"):
        resolver.resolve_mode("sandbox")


def test_credentials_repr_hides_secret() -> None:
    assert "SK-SECRET" not in repr(Credentials("PK", "SK-SECRET", Mode.PAPER))
