"""
Generating output reports from provider statistics.
"""
import json
from datetime import date, datetime
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd
from rich.console import Console

from signalstats.config import Config
from signalstats.stats import ProviderStats

__all__ = ["generate_provider_reports", "generate_all_reports"]


def _to_json_serializable(data):
    """Recursively converts non-serializable types in a dictionary."""
    if isinstance(data, dict):
        return {str(k): _to_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_json_serializable(i) for i in data]
    if isinstance(data, (Path, pd.Timestamp, pd.Timedelta, pd.Period)):
        return str(data)
    if isinstance(data, (datetime, date)):
        return data.isoformat()
    if data is None or (isinstance(data, float) and np.isnan(data)):
        return None
    # Convert numpy types to native Python types
    if isinstance(data, np.integer):
        return int(data)
    if isinstance(data, np.floating):
        return float(data)
    if isinstance(data, np.bool_):
        return bool(data)
    return data


# impure
def _generate_summary_json(stats: ProviderStats, config: Config, output_dir: Path) -> None:
    """Generates a JSON file with summary metrics and the MPDD breakdown."""
    months = config.stats.mpdd_months
    window = config.stats.drawdown_window_months
    trace = stats.mpdd_trace(months=months)
    summary = {
        "run_name": config.run.name,
        "metrics": stats.summary(mpdd_months=months, drawdown_window_months=window),
        "mpdd": {
            "months": trace.months,
            "current_month": trace.current_month,
            "months_used": [[month, profit] for month, profit in trace.months_used],
            "average_profit": trace.average_profit,
            "drawdown_pct": trace.drawdown_pct,
            "value": trace.value,
        },
    }
    with (output_dir / f"{stats.name}_summary.json").open("w", encoding="utf-8") as f:
        json.dump(_to_json_serializable(summary), f, indent=2)


# impure
def _generate_summary_markdown(stats: ProviderStats, config: Config, output_dir: Path) -> None:
    """Generates a Markdown file with a human-readable summary."""
    months = config.stats.mpdd_months
    window = config.stats.drawdown_window_months
    summary = stats.summary(mpdd_months=months, drawdown_window_months=window)
    md = f"# Provider Summary: {stats.name}\n\n"
    md += "## Key Metrics\n\n"

    key_metrics = [
        ("Trades", "trades"),
        ("Total Profit", "total_profit"),
        ("Win Rate [%]", "win_rate"),
        ("Profit Factor", "profit_factor"),
        ("Max Drawdown [%]", "max_drawdown"),
        (f"Max Drawdown last {window}m [%]", f"max_drawdown_{window}m"),
        ("Max Concurrent Trades", "max_concurrent_trades"),
        ("Max Concurrent Lots", "max_concurrent_lots"),
        (f"{months}MPDD", f"mpdd_{months}m"),
        ("Risk Score", "risk_score"),
    ]
    for label, key in key_metrics:
        value = summary[key]
        if isinstance(value, float):
            md += f"- **{label}**: {value:.2f}\n"
        else:
            md += f"- **{label}**: {value}\n"
    md += f"- **Risk Category**: {summary['risk_category']}\n"

    md += "\n## MPDD Calculation\n\n```\n"
    md += stats.mpdd_trace(months=months).explain()
    md += "\n```\n"

    monthly = stats.monthly()
    if not monthly.empty:
        md += "\n## Monthly Performance\n\n| Month | Profit | Lots | Trades |\n|---|---|---|---|\n"
        for month, row in monthly.iterrows():
            md += f"| {month} | {row['profit']:.2f} | {row['lots']:.2f} | {int(row['trades'])} |\n"

    (output_dir / f"{stats.name}_summary.md").write_text(md, encoding="utf-8")


# impure
def _generate_series_csv(stats: ProviderStats, output_dir: Path) -> None:
    """Writes the chartable series: equity curve, weekly, monthly and open trades."""
    stats.equity_curve().to_csv(output_dir / f"{stats.name}_equity.csv", index=False)
    stats.weekly().to_csv(output_dir / f"{stats.name}_weekly.csv")
    stats.monthly().to_csv(output_dir / f"{stats.name}_monthly.csv")
    stats.open_trades_series().to_csv(output_dir / f"{stats.name}_open_trades.csv", index=False)


# impure
def generate_provider_reports(
    config: Config,
    stats: ProviderStats,
    run_dir: Path,
    console: Console,
) -> None:
    """
    Generates the configured report files for one provider.
    #impure: Writes to the filesystem.
    """
    formats = config.reporting.output_formats

    if "csv" in formats:
        console.print(f"Generating CSV series for {stats.name}...")
        _generate_series_csv(stats, run_dir)

    if "json" in formats:
        console.print(f"Generating summary JSON for {stats.name}...")
        _generate_summary_json(stats, config, run_dir)

    if "markdown" in formats:
        console.print(f"Generating summary Markdown for {stats.name}...")
        _generate_summary_markdown(stats, config, run_dir)


# impure
def generate_all_reports(
    config: Config,
    providers: Dict[str, ProviderStats],
    run_dir: Path,
    console: Console,
) -> None:
    """
    Generates reports for every provider plus a providers.csv overview.
    #impure: Writes to the filesystem.
    """
    if not providers:
        console.print("[bold red]Error: No providers loaded. Cannot generate reports.[/bold red]")
        return

    run_dir.mkdir(parents=True, exist_ok=True)
    rows = []
    for name in sorted(providers):
        stats = providers[name]
        generate_provider_reports(config, stats, run_dir, console)
        rows.append(
            stats.summary(
                mpdd_months=config.stats.mpdd_months,
                drawdown_window_months=config.stats.drawdown_window_months,
            )
        )

    pd.DataFrame(rows).to_csv(run_dir / "providers.csv", index=False)
    console.print("All reports generated.")
