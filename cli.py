"""
CLI entry point for the signal-stats application.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Iterable

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from signalstats.config import Config, load_config
from signalstats.data import load_providers, load_trade_history
from signalstats.history import record_stat
from signalstats.reporting import generate_all_reports
from signalstats.stats import ProviderStats

# The console is created once and passed down.
# Log to stderr to separate from potential data output to stdout.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Performance statistics for MQL5 signal providers.")
console = Console(stderr=True)

_SORT_COLUMNS = ["provider", "trades", "total_profit", "win_rate", "profit_factor", "max_drawdown", "mpdd", "risk_score"]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")) -> None:
    """Performance statistics for MQL5 signal providers."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
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


def _apply_stats_config(providers: Iterable[ProviderStats], config: Config) -> None:
    for stats in providers:
        stats.no_loss_sentinel = config.stats.no_loss_sentinel


def _summary_table(rows, mpdd_months: int) -> Table:
    table = Table(title="Signal Providers")
    for header in ["Provider", "Trades", "Profit", "Win %", "PF", "Max DD %", "Max Open", "Max Lots", f"{mpdd_months}MPDD", "Risk"]:
        table.add_column(header, justify="left" if header == "Provider" else "right")
    for row in rows:
        table.add_row(
            row["provider"],
            str(row["trades"]),
            f"{row['total_profit']:.2f}",
            f"{row['win_rate']:.2f}",
            f"{row['profit_factor']:.2f}",
            f"{row['max_drawdown']:.2f}",
            str(row["max_concurrent_trades"]),
            f"{row['max_concurrent_lots']:.2f}",
            f"{row[f'mpdd_{mpdd_months}m']:.4f}",
            f"{row['risk_score']} ({row['risk_category']})",
        )
    return table


@app.command()
def summary(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    sort: str = typer.Option("total_profit", "--sort", "-s", help=f"Sort column: {', '.join(_SORT_COLUMNS)}."),
):
    """Show key statistics for every provider in the history directory."""
    config = _load_config_or_exit(config_path)
    if sort not in _SORT_COLUMNS:
        console.print(f"[bold red]Error:[/bold red] unknown sort column '{sort}'.")
        raise typer.Exit(code=1)

    providers = load_providers(config.data, console)
    if not providers:
        console.print("[bold red]Error: No providers with trades found. Exiting.[/bold red]")
        raise typer.Exit(1)

    _apply_stats_config(providers.values(), config)
    months = config.stats.mpdd_months
    window = config.stats.drawdown_window_months
    rows = [stats.summary(mpdd_months=months, drawdown_window_months=window) for stats in providers.values()]
    key = f"mpdd_{months}m" if sort == "mpdd" else sort
    rows.sort(key=lambda r: r[key], reverse=sort != "provider")
    console.print(_summary_table(rows, months))


def _print_detail(stats: ProviderStats, config: Config) -> None:
    months = config.stats.mpdd_months
    window = config.stats.drawdown_window_months
    console.print(_summary_table([stats.summary(mpdd_months=months, drawdown_window_months=window)], months))
    console.print(f"Max drawdown over the last {window} months: {stats.recent_max_drawdown(window):.2f}%")

    weekly = stats.weekly()
    if not weekly.empty:
        table = Table(title="Weekly Efficiency (profit / lots)")
        for header in ["Week", "Profit", "Lots", "Trades", "Efficiency"]:
            table.add_column(header, justify="right")
        for _, row in weekly.iterrows():
            color = "red" if row["category"] == "negative" else "green"
            table.add_row(
                row["label"],
                f"{row['profit']:.2f}",
                f"{row['lots']:.2f}",
                str(int(row["trades"])),
                f"[{color}]{row['efficiency']:.2f}[/{color}]",
            )
        console.print(table)

    monthly = stats.monthly()
    if not monthly.empty:
        pct = stats.monthly_profit_percentages()
        table = Table(title="Monthly Performance")
        for header in ["Month", "Profit", "Profit %", "Lots", "Trades"]:
            table.add_column(header, justify="right")
        for month, row in monthly.iterrows():
            table.add_row(
                str(month),
                f"{row['profit']:.2f}",
                f"{pct[month]:.2f}",
                f"{row['lots']:.2f}",
                str(int(row["trades"])),
            )
        console.print(table)

    console.print(stats.mpdd_trace(months=months).explain())


@app.command()
def detail(
    history_file: Path = typer.Argument(..., help="Trade history export of one provider.", exists=True),
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Show detailed statistics for a single provider export."""
    config = _load_config_or_exit(config_path)
    try:
        stats = load_trade_history(history_file, config.data, console)
    except (ValueError, OSError) as e:
        console.print(f"[bold red]Error reading {history_file}:[/bold red] {e}")
        raise typer.Exit(code=1)

    if stats.trade_count == 0:
        console.print(f"[yellow]Warning: {history_file.name} contains no trades.[/yellow]")
        raise typer.Exit(code=1)
    _apply_stats_config([stats], config)
    _print_detail(stats, config)


@app.command()
def report(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Write report files for all providers and record stat history."""
    config = _load_config_or_exit(config_path)

    try:
        console.rule("[bold]1. Loading Trade Histories[/bold]")
        providers = load_providers(config.data, console)
        if not providers:
            console.print("[bold red]Error: No providers with trades found. Exiting.[/bold red]")
            raise typer.Exit(1)
        _apply_stats_config(providers.values(), config)

        console.rule("[bold]2. Generating Reports[/bold]")
        run_dir = Path(config.run.output_dir)
        console.print(f"Run artifacts will be saved to: [cyan]{run_dir}[/cyan]")
        generate_all_reports(config, providers, run_dir, console)

        history_file = config.stats.history_file
        if history_file is not None:
            console.rule("[bold]3. Recording History[/bold]")
            today = date.today()
            months = config.stats.mpdd_months
            for name, stats in providers.items():
                record_stat(history_file, name, f"mpdd_{months}m", stats.mpdd(months=months), on=today)
                record_stat(history_file, name, "max_drawdown", stats.max_drawdown, on=today)
            console.print(f"History updated in [cyan]{history_file}[/cyan]")

    except (ValueError, OSError) as e:
        console.print(f"[bold red]An error occurred while generating reports:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print("[bold green]Report command finished.[/bold green]")


if __name__ == "__main__":
    app()
