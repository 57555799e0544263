"""DataFrame conversion and Plotly HTML reports for market and portfolio data."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pandas as pd
import plotly.express as px

from tradegate.domain.models import BarSeries, ModeResult, PortfolioHistory

BAR_COLUMNS = ["open", "high", "low", "close", "volume"]
HISTORY_COLUMNS = ["equity", "profit_loss", "profit_loss_pct"]


def bars_to_frame(series: BarSeries) -> pd.DataFrame:
    """Return OHLCV floats indexed by UTC time, oldest first."""
    rows = [
        {
            "time": bar.timestamp,
            "open": float(bar.open),
            "high": float(bar.high),
            "low": float(bar.low),
            "close": float(bar.close),
            "volume": float(bar.volume),
        }
        for bar in series.bars
    ]
    if not rows:
        return pd.DataFrame(columns=BAR_COLUMNS, dtype=float)
    frame = pd.DataFrame(rows)
    frame.index = pd.to_datetime(frame["time"], utc=True)
    frame = frame.sort_index()
    frame = frame[BAR_COLUMNS]
    return frame.apply(pd.to_numeric, errors="coerce")


def history_to_frame(history: PortfolioHistory) -> pd.DataFrame:
    """Portfolio history as a frame indexed by UTC time; gaps stay NaN."""
    frame = pd.DataFrame(
        {
            "equity": _floats(history.equity),
            "profit_loss": _floats(history.profit_loss),
            "profit_loss_pct": _floats(history.profit_loss_pct),
        },
        index=pd.to_datetime(list(history.timestamps), unit="s", utc=True),
        columns=HISTORY_COLUMNS,
    )
    frame.index.name = "time"
    return frame


def _floats(values: tuple[Decimal | None, ...]) -> list[float]:
    return [float(value) if value is not None else float("nan") for value in values]


def write_portfolio_report(result: ModeResult[PortfolioHistory], output_html_path: str) -> Path:
    """Render equity and daily P&L charts for one account to an HTML file."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    label = result.mode.label
    frame = history_to_frame(result.data).reset_index()
    if frame.empty:
        empty_df = pd.DataFrame({"time": ["no-data"], "equity": [0]})
        figure = px.bar(empty_df, x="time", y="equity", title=f"Portfolio History [{label}]")
        figure.write_html(str(output), include_plotlyjs="cdn")
        return output

    equity = px.line(frame, x="time", y="equity", title=f"Equity [{label}]")
    pnl = px.bar(frame, x="time", y="profit_loss", title=f"Profit / Loss [{label}]")
    html_parts = [
        f"<html><head><meta charset='utf-8'><title>tradegate portfolio [{label}]</title>"
        "</head><body>",
        equity.to_html(full_html=False, include_plotlyjs="cdn"),
        pnl.to_html(full_html=False, include_plotlyjs=False),
        "</body></html>",
    ]
    output.write_text("".join(html_parts), encoding="utf-8")
    return output


def write_bars_report(result: ModeResult[BarSeries], output_html_path: str) -> Path:
    """Render a close-price line and volume bars for one symbol."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    series = result.data
    title = f"{series.symbol} {series.timeframe} [{result.mode.label}]"
    frame = bars_to_frame(series).reset_index(names="time")
    if frame.empty:
        empty_df = pd.DataFrame({"time": ["no-data"], "close": [0]})
        figure = px.bar(empty_df, x="time", y="close", title=title)
        figure.write_html(str(output), include_plotlyjs="cdn")
        return output

    close = px.line(frame, x="time", y="close", title=f"{title} close")
    volume = px.bar(frame, x="time", y="volume", title=f"{title} volume")
    html_parts = [
        f"<html><head><meta charset='utf-8'><title>{title}</title></head><body>",
        close.to_html(full_html=False, include_plotlyjs="cdn"),
        volume.to_html(full_html=False, include_plotlyjs=False),
        "</body></html>",
    ]
    output.write_text("".join(html_parts), encoding="utf-8")
    return output
