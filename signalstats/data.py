"""
Loading of signal-provider trade history exports.

An export is a delimited text file with a header line. Columns are located
by header name, so layouts with and without S/L and T/P columns are read
the same way. Duplicate header names (the two "Time" and "Price" columns)
are told apart by position: the first is the open value, the second the
close value.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from pydantic import ValidationError
from rich.console import Console

from signalstats.config import DataConfig
from signalstats.stats import ProviderStats
from signalstats.types import Trade

__all__ = ["discover_history_files", "load_trade_history", "load_providers", "parse_number"]

log = logging.getLogger(__name__)

_BALANCE_TYPES = {"balance", "initial balance"}
_TRADE_TYPES = {"buy", "sell"}


def parse_number(value: str, decimal: str = ".") -> float:
    """
    Parses a locale-formatted number such as "1 234,56" or "1,234.56".

    `decimal` is the decimal mark; the other of "." and "," is treated as a
    thousands separator and removed, as are spaces.
    """
    thousands = "," if decimal == "." else "."
    cleaned = value.strip().replace(" ", "").replace("\u00a0", "").replace(thousands, "")
    if decimal == ",":
        cleaned = cleaned.replace(",", ".")
    return float(cleaned)


def _resolve_columns(header: List[str]) -> Dict[str, Optional[int]]:
    """Maps field names to column positions using the header line."""
    normalized = [h.strip().lower() for h in header]

    def positions(*names: str) -> List[int]:
        return [i for i, h in enumerate(normalized) if h in names]

    times = positions("time")
    prices = positions("price")
    volume = positions("volume", "lots")
    columns: Dict[str, Optional[int]] = {
        "open_time": times[0] if times else None,
        "close_time": times[1] if len(times) > 1 else None,
        "type": next(iter(positions("type")), None),
        "lots": volume[0] if volume else None,
        "symbol": next(iter(positions("symbol")), None),
        "open_price": prices[0] if prices else None,
        "close_price": prices[1] if len(prices) > 1 else None,
        "stop_loss": next(iter(positions("s/l", "sl", "stop loss")), None),
        "take_profit": next(iter(positions("t/p", "tp", "take profit")), None),
        "commission": next(iter(positions("commission")), None),
        "swap": next(iter(positions("swap")), None),
        "profit": next(iter(positions("profit")), None),
    }
    required = ["open_time", "close_time", "type", "lots", "symbol", "open_price", "close_price", "profit"]
    missing = [name for name in required if columns[name] is None]
    if missing:
        raise ValueError(f"Export header is missing required columns: {', '.join(missing)}")
    return columns


def _parse_trade(row: List[str], columns: Dict[str, Optional[int]], cfg: DataConfig) -> Trade:
    def text(name: str) -> str:
        index = columns[name]
        return row[index].strip() if index is not None and index < len(row) else ""

    def number(name: str, required: bool = False) -> float:
        raw = text(name)
        if not raw:
            if required:
                raise ValueError(f"empty field {name}")
            return 0.0
        return parse_number(raw, cfg.decimal)

    def timestamp(name: str) -> datetime:
        raw = text(name)
        if not raw:
            raise ValueError(f"empty field {name}")
        return datetime.strptime(raw, cfg.datetime_format)

    symbol = text("symbol")
    if not symbol:
        raise ValueError("empty field symbol")
    return Trade(
        open_time=timestamp("open_time"),
        close_time=timestamp("close_time"),
        type=text("type").lower(),
        symbol=symbol,
        lots=number("lots", required=True),
        open_price=number("open_price", required=True),
        close_price=number("close_price", required=True),
        stop_loss=number("stop_loss"),
        take_profit=number("take_profit"),
        commission=number("commission"),
        swap=number("swap"),
        profit=number("profit", required=True),
    )


def discover_history_files(history_dir: Path) -> List[Path]:
    """Finds all CSV exports in a directory, sorted by name."""
    if not history_dir.is_dir():
        return []
    return sorted(p for p in history_dir.iterdir() if p.is_file() and p.suffix.lower() == ".csv")


# impure
def load_trade_history(path: Path, cfg: DataConfig, console: Optional[Console] = None) -> ProviderStats:
    """
    Reads one export file into a ProviderStats named after the file stem.

    Malformed rows are skipped and counted; they never abort the load.
    #impure: Reads from the filesystem.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Trade history file not found: {path}")

    skipped: List[str] = []

    def _on_bad_line(fields: List[str]) -> None:
        skipped.append(cfg.delimiter.join(fields))
        return None

    stats = ProviderStats(name=path.stem)
    try:
        df = pd.read_csv(
            path,
            sep=cfg.delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_on_bad_line,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return stats
    if df.empty:
        return stats

    # Short rows are padded with NaN by pandas.
    rows = df.fillna("").values.tolist()
    columns = _resolve_columns(rows[0])
    type_index = columns["type"]
    profit_index = columns["profit"]

    for row_no, row in enumerate(rows[1:], start=2):
        row_type = row[type_index].strip().lower()
        if row_type in _BALANCE_TYPES:
            try:
                amount = parse_number(row[profit_index], cfg.decimal)
            except ValueError:
                log.warning("%s row %d: unreadable balance %r", path.name, row_no, row[profit_index])
                continue
            if amount >= 0 and stats.apply_balance_record(amount):
                log.debug("%s: initial balance %.2f", path.name, amount)
            continue
        if row_type not in _TRADE_TYPES:
            # Credit, commission and other account operations.
            continue
        try:
            stats.add_trade(_parse_trade(row, columns, cfg))
        except (ValueError, ValidationError) as e:
            log.warning("%s row %d: skipping row: %s", path.name, row_no, e)
            skipped.append(cfg.delimiter.join(row))

    if skipped:
        log.info("%s: skipped %d lines", path.name, len(skipped))
        if console is not None:
            console.print(f"[yellow]Warning:[/yellow] skipped {len(skipped)} malformed lines in {path.name}")
    return stats


# impure
def load_providers(cfg: DataConfig, console: Console) -> Dict[str, ProviderStats]:
    """
    Loads every export in the history directory.

    Providers without any trade are left out. Files that cannot be read at
    all are reported and skipped.
    #impure: Reads from the filesystem.
    """
    files = discover_history_files(cfg.history_dir)
    console.print(f"Found {len(files)} history files in [cyan]{cfg.history_dir}[/cyan]")

    providers: Dict[str, ProviderStats] = {}
    for path in files:
        try:
            stats = load_trade_history(path, cfg, console)
        except (OSError, ValueError, UnicodeDecodeError) as e:
            console.print(f"[bold red]Error reading {path.name}:[/bold red] {e}")
            continue
        if stats.trade_count == 0:
            log.info("%s: no trades, skipped", path.name)
            continue
        providers[stats.name] = stats

    console.print(f"Loaded {len(providers)} providers.")
    return providers
