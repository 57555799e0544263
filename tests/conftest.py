from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import pytest

from tradegate.config import Settings
from tradegate.gateway import Gateway

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text


class FakeSession:
    """Stand-in for ``requests.Session`` that replays queued responses."""

    def __init__(self, responses: list[Any]) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self._responses = responses

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        timeout: int | None = None,
    ) -> FakeResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": params,
                "json": json,
                "timeout": timeout,
                "headers": dict(self.headers),
            }
        )
        if not self._responses:
            raise AssertionError(f"unexpected request {method} {url}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class SessionFactory:
    """Counts sessions handed to the gateway and records every request."""

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.sessions: list[FakeSession] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def __call__(self) -> FakeSession:
        session = FakeSession(self.responses)
        self.sessions.append(session)
        return session

    @property
    def calls(self) -> list[dict[str, Any]]:
        return [call for session in self.sessions for call in session.calls]


@pytest.fixture
def sessions() -> SessionFactory:
    return SessionFactory()


@pytest.fixture
def paper_settings() -> Settings:
    return Settings(paper_api_key="PK-PAPER", paper_secret_key="SK-PAPER")


@pytest.fixture
def dual_settings() -> Settings:
    return Settings(
        paper_api_key="PK-PAPER",
        paper_secret_key="SK-PAPER",
        live_api_key="PK-LIVE",
        live_secret_key="SK-LIVE",
    )


@pytest.fixture
def paper_gateway(paper_settings: Settings, sessions: SessionFactory) -> Gateway:
    return Gateway(paper_settings, session_factory=sessions, now=lambda: FIXED_NOW)


@pytest.fixture
def dual_gateway(dual_settings: Settings, sessions: SessionFactory) -> Gateway:
    return Gateway(dual_settings, session_factory=sessions, now=lambda: FIXED_NOW)


ORDER_PAYLOAD = {
    "id": "ord-1",
    "client_order_id": "cid-1",
    "symbol": "AAPL",
    "side": "buy",
    "order_type": "limit",
    "type": "limit",
    "time_in_force": "day",
    "status": "accepted",
    "asset_class": "us_equity",
    "qty": "10",
    "filled_qty": "0",
    "filled_avg_price": None,
    "limit_price": "150.25",
    "stop_price": None,
    "extended_hours": False,
    "created_at": "2024-06-14T14:30:00Z",
    "submitted_at": "2024-06-14T14:30:00Z",
}

ACCOUNT_PAYLOAD = {
    "id": "acct-1",
    "account_number": "PA123",
    "status": "ACTIVE",
    "currency": "USD",
    "equity": "100000.12",
    "last_equity": "99000",
    "cash": "50000.5",
    "buying_power": "200000",
    "portfolio_value": "100000.12",
    "long_market_value": "50000",
    "short_market_value": "0",
    "daytrading_buying_power": "400000",
    "daytrade_count": 1,
    "pattern_day_trader": False,
    "trading_blocked": False,
}


@pytest.fixture
def order_payload() -> dict[str, Any]:
    return dict(ORDER_PAYLOAD)


@pytest.fixture
def account_payload() -> dict[str, Any]:
    return dict(ACCOUNT_PAYLOAD)
