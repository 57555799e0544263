"""Command-line interface for invoking gateway tools."""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal
from typing import Any

from tradegate.config import Settings
from tradegate.errors import ConfigurationError, GatewayError
from tradegate.gateway import Gateway
from tradegate.logging import setup_logger
from tradegate.reports import write_bars_report, write_portfolio_report
from tradegate.tools import Toolbox, int_arg

REPORT_TOOLS = ("alpaca_portfolio_history", "alpaca_bars")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description="Paper/live Alpaca brokerage gateway")
    parser.add_argument("tool", nargs="?", help="Tool name, e.g. alpaca_account")
    parser.add_argument("--mode", choices=["paper", "live"], help="Account to act on")
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Tool argument; repeatable. Values are parsed as JSON when possible",
    )
    parser.add_argument("--args", dest="json_args", help="Tool arguments as a JSON object")
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Confirm a destructive tool (cancel all orders, close all positions)",
    )
    parser.add_argument("--list-tools", action="store_true", help="List tools and exit")
    parser.add_argument(
        "--report",
        metavar="PATH",
        help="Write an HTML chart for alpaca_portfolio_history or alpaca_bars",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    return parser


def parse_tool_args(args: argparse.Namespace) -> dict[str, Any]:
    """Merge ``--args``, ``--param``, ``--mode`` and ``--confirm`` into one mapping."""
    merged: dict[str, Any] = {}
    if args.json_args:
        try:
            loaded = json.loads(args.json_args, parse_float=Decimal)
        except ValueError as exc:
            raise ValueError(f"--args is not valid JSON: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ValueError("--args must be a JSON object")
        merged.update(loaded)
    for item in args.param:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"--param expects KEY=VALUE, got '{item}'")
        merged[key.strip()] = _param_value(raw)
    if args.mode:
        merged["mode"] = args.mode
    if args.confirm:
        merged["confirm"] = True
    return merged


def _param_value(raw: str) -> Any:
    try:
        return json.loads(raw, parse_float=Decimal)
    except ValueError:
        return raw


def _write_report(gateway: Gateway, tool: str, tool_args: dict[str, Any], path: str) -> str:
    mode = tool_args.get("mode")
    if tool == "alpaca_portfolio_history":
        result = gateway.get_portfolio_history(
            mode,
            tool_args.get("period") or "1M",
            tool_args.get("timeframe") or "1D",
        )
        output = write_portfolio_report(result, path)
    else:
        result = gateway.get_bars(
            mode,
            str(tool_args.get("symbol") or ""),
            timeframe=tool_args.get("timeframe") or "1Day",
            days=int_arg(tool_args, "days", 30),
            limit=int_arg(tool_args, "limit", 50),
        )
        output = write_bars_report(result, path)
    return f"Report written to {output} [{result.mode.label}]"


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = Settings.from_env()
        if args.log_level:
            settings = settings.with_overrides(log_level=args.log_level.upper())
        tool_args = parse_tool_args(args)
    except (ConfigurationError, ValueError) as exc:
        print(f"Configuration error: {exc}")
        return 2

    setup_logger(settings.log_level, settings.log_file)
    toolbox = Toolbox(Gateway(settings))

    if args.list_tools:
        for schema in toolbox.schemas():
            flag = " (destructive)" if schema["destructive"] else ""
            print(f"{schema['name']}{flag}: {schema['description']}")
        return 0
    if not args.tool:
        parser.print_usage()
        return 2

    if args.report:
        if args.tool not in REPORT_TOOLS:
            print(f"Configuration error: --report supports only {', '.join(REPORT_TOOLS)}")
            return 2
        try:
            print(_write_report(toolbox.gateway, args.tool, tool_args, args.report))
        except GatewayError as exc:
            print(str(exc))
            return 1
        return 0

    result = toolbox.invoke(args.tool, tool_args)
    print(result.text)
    return 1 if result.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
