"""
Writing and rendering dashboard reports.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from perpjournal.config import Config
from perpjournal.types import DashboardReport

__all__ = ["generate_all_reports", "render_dashboard"]

log = logging.getLogger(__name__)

_KEY_METRICS = [
    ("Total PnL", "total_pnl"),
    ("Total PnL [%]", "total_pnl_percent"),
    ("Win Rate [%]", "win_rate"),
    ("Total Trades", "total_trades"),
    ("Total Volume", "total_volume"),
    ("Total Fees", "total_fees"),
    ("Profit Factor", "profit_factor"),
    ("Max Drawdown", "max_drawdown"),
    ("Sharpe Ratio", "sharpe_ratio"),
    ("Avg Win", "avg_win"),
    ("Avg Loss", "avg_loss"),
    ("Largest Gain", "largest_gain"),
    ("Largest Loss", "largest_loss"),
    ("Avg Duration [min]", "avg_duration"),
    ("Long / Short [%]", None),
    ("Max Consecutive Wins", "consecutive_wins"),
    ("Max Consecutive Losses", "consecutive_losses"),
]


def _records(models: List[BaseModel]) -> List[Dict[str, Any]]:
    return [m.model_dump(by_alias=True) for m in models]


def _format(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:,.2f}"
    return f"{value:,}" if isinstance(value, int) else str(value)


# impure
def _generate_summary_json(report: DashboardReport, config: Config, output_dir: Path) -> None:
    """Writes every view of the report, keyed the way the dashboard reads them."""
    summary = {
        "run_name": config.run.name,
        "filters": {"symbol": config.filters.symbol, "date_range": config.filters.date_range},
        "report": report.model_dump(by_alias=True),
    }
    with (output_dir / "summary.json").open("w") as f:
        json.dump(summary, f, indent=2)


# impure
def _generate_summary_markdown(report: DashboardReport, config: Config, output_dir: Path) -> None:
    """Generates a Markdown file with a human-readable summary."""
    stats = report.stats
    md = f"# Trading Journal Summary: {config.run.name}\n\n"
    md += "## Key Metrics\n\n"

    for label, attr in _KEY_METRICS:
        if attr is None:
            md += f"- **{label}**: {stats.long_ratio:.2f} / {stats.short_ratio:.2f}\n"
        else:
            md += f"- **{label}**: {_format(getattr(stats, attr))}\n"

    if report.symbols:
        md += "\n## Symbols\n\n| Symbol | Trades | Win Rate [%] | Total PnL |\n|---|---|---|---|\n"
        for s in report.symbols:
            md += f"| {s.symbol} | {s.trades} | {s.win_rate:.2f} | {s.total_pnl:.2f} |\n"

    (output_dir / "summary.md").write_text(md)


# impure
def _generate_csv_tables(report: DashboardReport, output_dir: Path) -> None:
    """Writes the daily series and the symbol table as CSV."""
    pd.DataFrame(_records(report.daily_pnl), columns=["date", "pnl", "cumPnl", "drawdown", "trades", "volume"]).to_csv(
        output_dir / "daily_pnl.csv", index=False
    )
    pd.DataFrame(
        _records(report.symbols), columns=["symbol", "trades", "winRate", "totalPnl", "avgPnl", "volume"]
    ).to_csv(output_dir / "symbol_performance.csv", index=False)


def render_dashboard(report: DashboardReport, console: Console) -> None:
    """Prints the report as rich tables."""
    stats_table = Table(title="Portfolio")
    stats_table.add_column("Metric")
    stats_table.add_column("Value", justify="right")
    for label, attr in _KEY_METRICS:
        if attr is None:
            value = f"{report.stats.long_ratio:.2f} / {report.stats.short_ratio:.2f}"
        else:
            value = _format(getattr(report.stats, attr))
        stats_table.add_row(label, value)
    console.print(stats_table)

    sessions = Table(title="Sessions")
    for column in ("Session", "Trades", "Win Rate [%]", "PnL"):
        sessions.add_column(column)
    for s in report.sessions:
        sessions.add_row(s.session, str(s.trades), f"{s.win_rate:.2f}", f"{s.pnl:,.2f}")
    console.print(sessions)

    order_types = Table(title="Order Types")
    for column in ("Type", "Trades", "Win Rate [%]", "PnL", "Avg PnL"):
        order_types.add_column(column)
    for o in report.order_types:
        order_types.add_row(o.type, str(o.trades), f"{o.win_rate:.2f}", f"{o.pnl:,.2f}", f"{o.avg_pnl:,.2f}")
    console.print(order_types)

    symbols = Table(title="Symbols")
    for column in ("Symbol", "Trades", "Win Rate [%]", "Total PnL", "Avg PnL", "Volume"):
        symbols.add_column(column)
    for s in report.symbols:
        symbols.add_row(
            s.symbol, str(s.trades), f"{s.win_rate:.2f}", f"{s.total_pnl:,.2f}", f"{s.avg_pnl:,.2f}", f"{s.volume:,}"
        )
    console.print(symbols)

    fees = Table(title="Fees")
    for column in ("Type", "Amount", "Share [%]"):
        fees.add_column(column)
    for fee in report.fees:
        fees.add_row(fee.type, f"{fee.amount:,.2f}", str(fee.percentage))
    console.print(fees)


# impure
def generate_all_reports(
    config: Config,
    report: DashboardReport,
    run_dir: Path,
    console: Console,
) -> None:
    """
    Orchestrates the generation of all output reports.
    #impure: Writes to the filesystem.
    """
    formats = config.reporting.output_formats

    if "json" in formats:
        console.print("Generating summary JSON...")
        _generate_summary_json(report, config, run_dir)

    if "markdown" in formats:
        console.print("Generating summary Markdown...")
        _generate_summary_markdown(report, config, run_dir)

    if "csv" in formats:
        console.print("Generating CSV tables...")
        _generate_csv_tables(report, run_dir)

    log.info("Reports for %s written to %s", config.run.name, run_dir)
    console.print("All reports generated.")
