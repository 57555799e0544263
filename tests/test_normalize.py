from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from tradegate import normalize
from tradegate.errors import MalformedResponseError


def test_account_keeps_decimal_strings(account_payload: dict[str, Any]) -> None:
    account = normalize.account(account_payload)

    assert account.equity == "100000.12"
    assert account.cash == "50000.5"
    assert account.daytrade_count == 1
    assert account.initial_margin is None


def test_order_nullable_fill_fields_stay_none(order_payload: dict[str, Any]) -> None:
    order = normalize.order(order_payload)

    assert order.filled_avg_price is None
    assert order.stop_price is None
    assert order.filled_qty == "0"
    assert order.limit_price == "150.25"
    assert not order.is_terminal


def test_order_type_falls_back_to_type_field(order_payload: dict[str, Any]) -> None:
    del order_payload["order_type"]
    order_payload["status"] = "filled"

    order = normalize.order(order_payload)

    assert order.order_type == "limit"
    assert order.is_terminal


def test_order_missing_id_is_malformed(order_payload: dict[str, Any]) -> None:
    del order_payload["id"]

    with pytest.raises(MalformedResponseError, match="order is missing 'id'"):
        normalize.order(order_payload)


def test_orders_requires_list() -> None:
    with pytest.raises(MalformedResponseError, match="expected a list for orders"):
        normalize.orders({"orders": []})


def test_bar_series_sorted_most_recent_first() -> None:
    payload = {
        "bars": [
            {"t": "2024-06-13T04:00:00Z", "o": 10, "h": 12, "l": 9, "c": 11, "v": 100},
            {"t": "2024-06-14T04:00:00Z", "o": 11, "h": 13, "l": 10, "c": 12.5, "v": 200},
        ],
        "symbol": "AAPL",
    }

    series = normalize.bar_series("AAPL", "1Day", payload)

    assert len(series) == 2
    assert series.bars[0].timestamp.startswith("2024-06-14")
    assert series.bars[0].close == Decimal("12.5")


def test_bar_series_handles_null_bars() -> None:
    assert len(normalize.bar_series("AAPL", "1Day", {"bars": None})) == 0


def test_snapshot_fields() -> None:
    payload = {
        "latestTrade": {"t": "2024-06-14T19:59:59Z", "p": 187.5, "s": 100},
        "latestQuote": {"t": "2024-06-14T19:59:59Z", "bp": 187.4, "bs": 2, "ap": 187.6, "as": 3},
        "dailyBar": {"t": "2024-06-14T04:00:00Z", "o": 185, "h": 188, "l": 184, "c": 187.5, "v": 1000},
        "prevDailyBar": {"t": "2024-06-13T04:00:00Z", "o": 183, "h": 186, "l": 182, "c": 185, "v": 900},
        "minuteBar": {},
    }

    snap = normalize.snapshot("AAPL", payload)

    assert snap.latest_trade is not None and snap.latest_trade.price == Decimal("187.5")
    assert snap.latest_quote is not None and snap.latest_quote.ask_size == Decimal("3")
    assert snap.prev_daily_bar is not None and snap.prev_daily_bar.close == Decimal("185")
    assert snap.minute_bar is None


def test_snapshots_map_missing_symbols_to_none() -> None:
    payload = {"AAPL": {"latestTrade": {"t": "x", "p": "1.5"}}}

    result = normalize.snapshots(["AAPL", "MSFT"], payload)

    assert result["MSFT"] is None
    assert result["AAPL"] is not None


def test_crypto_snapshot_keyed_payload() -> None:
    payload = {"snapshots": {"BTC/USD": {"latestTrade": {"t": "x", "p": "65000.12"}}}}

    snap = normalize.crypto_snapshot("BTC/USD", payload)

    assert snap.symbol == "BTC/USD"
    assert snap.latest_trade is not None and snap.latest_trade.price == Decimal("65000.12")

    with pytest.raises(MalformedResponseError, match="no crypto snapshot returned for ETH/USD"):
        normalize.crypto_snapshot("ETH/USD", payload)


def test_portfolio_history_parallel_arrays() -> None:
    payload = {
        "timestamp": [1718323200, 1718409600],
        "equity": [100000, None],
        "profit_loss": [0, 12.5],
        "profit_loss_pct": [0, 0.000125],
        "base_value": 100000,
        "timeframe": "1D",
    }

    history = normalize.portfolio_history(payload)

    assert len(history) == 2
    assert history.equity == (Decimal("100000"), None)
    assert history.profit_loss[1] == Decimal("12.5")
    assert history.base_value == Decimal("100000")


def test_portfolio_history_length_mismatch_is_malformed() -> None:
    payload = {
        "timestamp": [1, 2, 3],
        "equity": [1, 2],
        "profit_loss": [0, 0, 0],
        "profit_loss_pct": [0, 0, 0],
    }

    with pytest.raises(MalformedResponseError, match="timestamp=3, equity=2"):
        normalize.portfolio_history(payload)


def test_watchlist_symbols_from_assets() -> None:
    payload = {
        "id": "wl-1",
        "name": "Tech",
        "account_id": "acct-1",
        "assets": [{"symbol": "aapl"}, {"symbol": "MSFT"}, {"id": "no-symbol"}],
    }

    watchlist = normalize.watchlist(payload)

    assert watchlist.symbols == ("AAPL", "MSFT")


def test_watchlist_without_assets() -> None:
    watchlist = normalize.watchlist({"id": "wl-1", "name": "Empty"})

    assert watchlist.symbols == ()


def test_bulk_results() -> None:
    assert normalize.bulk_results([]) == ()
    assert normalize.bulk_results([{"id": "o1", "status": 200}]) == ({"id": "o1", "status": 200},)


def test_option_contracts_and_snapshots() -> None:
    contracts = normalize.option_contracts(
        {
            "option_contracts": [
                {
                    "id": "c1",
                    "symbol": "AAPL240621C00190000",
                    "underlying_symbol": "AAPL",
                    "type": "call",
                    "expiration_date": "2024-06-21",
                    "strike_price": "190",
                    "tradable": True,
                }
            ],
            "next_page_token": None,
        }
    )
    assert contracts[0].contract_type == "call"
    assert contracts[0].tradable

    snapshots = normalize.option_snapshots(
        {
            "snapshots": {
                "AAPL240621C00190000": {
                    "latestQuote": {"t": "x", "bp": 3.0, "ap": 3.2},
                    "impliedVolatility": 0.25,
                    "greeks": {"delta": 0.5, "gamma": 0.02},
                }
            }
        }
    )
    snap = snapshots["AAPL240621C00190000"]
    assert snap.implied_volatility == Decimal("0.25")
    assert snap.greeks == {"delta": 0.5, "gamma": 0.02}
    assert snap.latest_trade is None
