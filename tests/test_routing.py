from __future__ import annotations

from decimal import Decimal

import pytest

from tradegate.domain import Mode
from tradegate.routing import (
    DESTRUCTIVE_OPERATIONS,
    EndpointRouter,
    Operation,
    clean_params,
    path_segment,
)


@pytest.mark.parametrize("operation", [op for op in Operation if op.is_market_data])
def test_market_data_url_is_identical_across_modes(operation: Operation) -> None:
    router = EndpointRouter()

    assert router.route(operation, Mode.PAPER) == router.route(operation, Mode.LIVE)
    assert router.route(operation, Mode.LIVE) == "https://data.alpaca.markets"


@pytest.mark.parametrize("operation", [op for op in Operation if not op.is_market_data])
def test_trading_urls_differ_by_mode(operation: Operation) -> None:
    router = EndpointRouter()

    assert router.route(operation, Mode.PAPER) == "https://paper-api.alpaca.markets"
    assert router.route(operation, Mode.LIVE) == "https://api.alpaca.markets"


def test_router_strips_trailing_slashes() -> None:
    router = EndpointRouter("http://paper.local/", "http://live.local/", "http://data.local/")

    assert router.url(Operation.ACCOUNT, Mode.PAPER, "/v2/account") == "http://paper.local/v2/account"
    assert router.url(Operation.BARS, Mode.LIVE, "/v2/stocks/AAPL/bars") == (
        "http://data.local/v2/stocks/AAPL/bars"
    )


def test_destructive_operations() -> None:
    assert DESTRUCTIVE_OPERATIONS == {Operation.CLOSE_ALL_POSITIONS, Operation.CANCEL_ALL_ORDERS}
    assert Operation.CANCEL_ALL_ORDERS.is_destructive
    assert not Operation.CANCEL_ORDER.is_destructive


def test_path_segment_encodes_slash() -> None:
    assert path_segment("BTC/USD") == "BTC%2FUSD"
    assert path_segment(" AAPL ") == "AAPL"


def test_clean_params() -> None:
    params = clean_params(
        {
            "symbols": ["AAPL", " MSFT ", ""],
            "cancel_orders": False,
            "qty": Decimal("1.50"),
            "end": None,
            "blank": "  ",
            "limit": 10,
        }
    )

    assert params == {
        "symbols": "AAPL,MSFT",
        "cancel_orders": "false",
        "qty": "1.50",
        "limit": "10",
    }
    assert clean_params(None) == {}
