from __future__ import annotations

from typing import Any

import pytest
from conftest import FakeResponse, SessionFactory

from tradegate.domain import CreateWatchlist, ListWatchlists, Mode
from tradegate.errors import ValidationError
from tradegate.gateway import Gateway, is_destructive
from tradegate.tools import Toolbox, build_tools, watchlist_action

EXPECTED_TOOLS = {
    "alpaca_account",
    "alpaca_positions",
    "alpaca_position",
    "alpaca_portfolio_history",
    "alpaca_quote",
    "alpaca_quotes",
    "alpaca_bars",
    "alpaca_crypto_quote",
    "alpaca_option_contracts",
    "alpaca_option_quotes",
    "alpaca_place_order",
    "alpaca_place_crypto_order",
    "alpaca_place_option_order",
    "alpaca_orders",
    "alpaca_order",
    "alpaca_cancel_order",
    "alpaca_cancel_all_orders",
    "alpaca_close_position",
    "alpaca_close_all_positions",
    "alpaca_market_clock",
    "alpaca_calendar",
    "alpaca_watchlists",
}


def test_tool_names() -> None:
    assert {tool.name for tool in build_tools()} == EXPECTED_TOOLS


def test_destructive_flags_match_gateway() -> None:
    destructive = {tool.name for tool in build_tools() if tool.destructive}

    assert destructive == {"alpaca_cancel_all_orders", "alpaca_close_all_positions"}
    assert is_destructive(Gateway.cancel_all_orders)
    assert is_destructive(Gateway.close_all_positions)


def test_mode_required_only_in_dual_mode(paper_gateway: Gateway, dual_gateway: Gateway) -> None:
    single = {schema["name"]: schema for schema in Toolbox(paper_gateway).schemas()}
    dual = {schema["name"]: schema for schema in Toolbox(dual_gateway).schemas()}

    assert "mode" not in single["alpaca_account"]["input_schema"]["required"]
    assert all(schema["input_schema"]["required"][0] == "mode" for schema in dual.values())
    assert dual["alpaca_account"]["input_schema"]["properties"]["mode"]["enum"] == ["paper", "live"]
    assert "confirm" in dual["alpaca_cancel_all_orders"]["input_schema"]["required"]


def test_destructive_tool_requires_confirm(dual_gateway: Gateway, sessions: SessionFactory) -> None:
    toolbox = Toolbox(dual_gateway)

    result = toolbox.invoke("alpaca_close_all_positions", {"mode": "live"})

    assert result.is_error
    assert "confirm=true" in result.text
    assert sessions.sessions == []


def test_destructive_tool_with_confirm(dual_gateway: Gateway, sessions: SessionFactory) -> None:
    sessions.queue(FakeResponse(207, [{"id": "o1", "status": 200}]))

    result = Toolbox(dual_gateway).invoke(
        "alpaca_cancel_all_orders", {"mode": "live", "confirm": True}
    )

    assert not result.is_error
    assert result.mode == Mode.LIVE
    assert result.text.startswith("Cancelled all open orders [LIVE]")


def test_errors_become_labelled_results(dual_gateway: Gateway, sessions: SessionFactory) -> None:
    sessions.queue(FakeResponse(403, text='{"message": "forbidden"}'))

    result = Toolbox(dual_gateway).invoke("alpaca_account", {"mode": "live"})

    assert result.is_error
    assert result.mode == Mode.LIVE
    assert result.text == '[LIVE] Alpaca API error 403: {"message": "forbidden"}'


def test_missing_mode_in_dual_mode(dual_gateway: Gateway, sessions: SessionFactory) -> None:
    result = Toolbox(dual_gateway).invoke("alpaca_account", {})

    assert result.is_error
    assert result.mode is None
    assert "mode is required" in result.text
    assert sessions.sessions == []


def test_place_order_tool(
    paper_gateway: Gateway, sessions: SessionFactory, order_payload: dict[str, Any]
) -> None:
    sessions.queue(FakeResponse(200, order_payload))

    result = Toolbox(paper_gateway).invoke(
        "alpaca_place_order",
        {"symbol": "AAPL", "side": "buy", "qty": 10, "type": "limit", "limit_price": 150.25},
    )

    assert not result.is_error
    assert result.text.startswith("Order Placed [PAPER]")
    assert sessions.calls[0]["json"]["limit_price"] == "150.25"


def test_place_order_tool_requires_fields(paper_gateway: Gateway) -> None:
    result = Toolbox(paper_gateway).invoke("alpaca_place_order", {"symbol": "AAPL", "side": "buy"})

    assert result.is_error
    assert result.mode == Mode.PAPER
    assert result.text == "[PAPER] qty is required."


def test_orders_tool_caps_limit(paper_gateway: Gateway, sessions: SessionFactory) -> None:
    sessions.queue(FakeResponse(200, []), FakeResponse(200, []))
    toolbox = Toolbox(paper_gateway)

    result = toolbox.invoke("alpaca_orders", {})
    toolbox.invoke("alpaca_orders", {"status": "closed", "limit": 1000})

    assert result.text == "No open orders [PAPER]"
    assert sessions.calls[0]["params"]["limit"] == "20"
    assert sessions.calls[1]["params"]["limit"] == "100"


def test_watchlists_tool_create(paper_gateway: Gateway, sessions: SessionFactory) -> None:
    sessions.queue(
        FakeResponse(200, {"id": "wl-9", "name": "Chips", "assets": [{"symbol": "NVDA"}]})
    )

    result = Toolbox(paper_gateway).invoke(
        "alpaca_watchlists", {"action": "create", "name": "Chips", "symbols": "nvda"}
    )

    assert result.text.startswith('Watchlist "Chips" created with 1 symbols [PAPER]')
    assert sessions.calls[0]["json"] == {"name": "Chips", "symbols": ["NVDA"]}


def test_watchlist_action_parsing() -> None:
    assert watchlist_action({}) == ListWatchlists()
    assert watchlist_action({"action": "create", "name": "X", "symbols": ["A", "B"]}) == (
        CreateWatchlist(name="X", symbols=("A", "B"))
    )
    with pytest.raises(ValidationError, match="Unknown watchlist action 'rename'"):
        watchlist_action({"action": "rename"})
    with pytest.raises(ValidationError, match="watchlist_id is required"):
        watchlist_action({"action": "view"})


def test_unknown_tool(paper_gateway: Gateway) -> None:
    result = Toolbox(paper_gateway).invoke("alpaca_teleport", {})

    assert result.is_error
    assert result.text == "Unknown tool 'alpaca_teleport'."


def test_refused_destructive_tool_keeps_mode(
    dual_gateway: Gateway, sessions: SessionFactory
) -> None:
    result = Toolbox(dual_gateway).invoke("alpaca_close_all_positions", {"mode": "live"})

    assert result.is_error
    assert result.mode == Mode.LIVE
    assert result.text == (
        "[LIVE] alpaca_close_all_positions is destructive; pass confirm=true to proceed."
    )
    assert sessions.sessions == []


def test_argument_errors_keep_mode(dual_gateway: Gateway, sessions: SessionFactory) -> None:
    toolbox = Toolbox(dual_gateway)

    missing = toolbox.invoke("alpaca_place_order", {"mode": "live", "side": "buy", "qty": 1})
    bad_action = toolbox.invoke("alpaca_watchlists", {"mode": "paper", "action": "rename"})

    assert missing.mode == Mode.LIVE
    assert missing.text == "[LIVE] symbol is required."
    assert bad_action.mode == Mode.PAPER
    assert bad_action.text.startswith("[PAPER] Unknown watchlist action 'rename'")
    assert sessions.sessions == []


def test_argument_errors_without_resolvable_mode(dual_gateway: Gateway) -> None:
    toolbox = Toolbox(dual_gateway)

    unknown = toolbox.invoke("alpaca_place_order", {"mode": "demo", "side": "buy"})
    missing = toolbox.invoke("alpaca_close_all_positions", {})

    assert unknown.mode is None
    assert unknown.text == "symbol is required."
    assert missing.mode is None
    assert "confirm=true" in missing.text


def test_watchlists_action_is_optional(paper_gateway: Gateway) -> None:
    schemas = {schema["name"]: schema for schema in Toolbox(paper_gateway).schemas()}

    assert "action" not in schemas["alpaca_watchlists"]["input_schema"]["required"]
