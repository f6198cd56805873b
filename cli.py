"""
CLI entry point for the trading journal.
"""
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from perpjournal.analytics import build_dashboard, compute_stats
from perpjournal.config import Config, SampleConfig, load_config
from perpjournal.filters import ALL_SYMBOLS, filter_trades
from perpjournal.records import TradeLoadError, load_trades, save_trades
from perpjournal.reporting import generate_all_reports, render_dashboard
from perpjournal.sample import generate_trades

# Console is created once and passed down.
# Log to stderr to separate from data output on stdout.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Trade journal analytics for perpetual-futures traders.")
console = Console(stderr=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    """Trade journal analytics for perpetual-futures traders."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config_or_exit(config_path: Path) -> Config:
    """Helper to load config and exit on failure."""
    try:
        return load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def report(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Build the dashboard report for the trades named in the configuration."""
    config = _load_config_or_exit(config_path)

    try:
        console.rule("[bold]1. Loading Trades[/bold]")
        trades = load_trades(config.data.trades_path)
        console.print(f"Loaded {len(trades)} trades from [cyan]{config.data.trades_path}[/cyan]")

        trades = filter_trades(trades, symbol=config.filters.symbol, date_range=config.filters.date_range)
        if not trades:
            console.print("[yellow]Warning: No trades match the configured filters.[/yellow]")

        console.rule("[bold]2. Computing Analytics[/bold]")
        dashboard = build_dashboard(trades)
        if config.reporting.show_tables:
            render_dashboard(dashboard, console)

        console.rule("[bold]3. Generating Reports[/bold]")
        run_dir = Path(config.run.output_dir)
        run_dir.mkdir(parents=True, exist_ok=True)
        console.print(f"Run artifacts will be saved to: [cyan]{run_dir}[/cyan]")
        generate_all_reports(config, dashboard, run_dir, console)

    except (TradeLoadError, FileNotFoundError) as e:
        console.print(f"[bold red]Trade Data Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[bold red]An unexpected error occurred during the run:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print("[bold green]Report command finished.[/bold green]")


@app.command()
def stats(
    trades_path: Path = typer.Argument(..., help="Trade file (.csv, .json or .parquet).", exists=True),
    symbol: str = typer.Option(ALL_SYMBOLS, "--symbol", "-s", help="Only include this symbol."),
    date_range: str = typer.Option("All", "--range", "-r", help="One of 7d, 14d, 30d, 90d, All."),
):
    """Print portfolio statistics as JSON."""
    try:
        trades = filter_trades(load_trades(trades_path), symbol=symbol, date_range=date_range)
    except (TradeLoadError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    typer.echo(compute_stats(trades).model_dump_json(by_alias=True, indent=2))


@app.command()
def sample(
    out: Path = typer.Option(..., "--out", "-o", help="Where to write the trades (.csv, .json or .parquet)."),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Number of trades to generate."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a reproducible dataset."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML configuration whose 'sample' section supplies the defaults.", exists=True
    ),
):
    """Write a demo trade file."""
    # Explicit options win over the configuration.
    sample_config = _load_config_or_exit(config_path).sample if config_path else SampleConfig()
    count = count if count is not None else sample_config.count
    seed = seed if seed is not None else sample_config.seed

    trades = generate_trades(count=count, seed=seed)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        save_trades(trades, out)
    except TradeLoadError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Wrote {len(trades)} trades to {out}.[/bold green]")


if __name__ == "__main__":
    app()
