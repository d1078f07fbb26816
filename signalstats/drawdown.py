"""
Equity curve and drawdown calculations.

Drawdown is measured in percent from the running high-water mark of the
account balance. Trades are processed in close-time order, starting from
the initial balance.

Two sources are supported:
- trades, via `equity_curve` and `calculate_drawdown`;
- an externally supplied drawdown series ("YYYY-MM-DD: 12,34%" lines), via
  `parse_drawdown_series` and `max_drawdown_from_series`.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import pandas as pd
from dateutil.relativedelta import relativedelta

from signalstats.types import Trade

__all__ = [
    "NO_LOSS_SENTINEL",
    "DrawdownSummary",
    "equity_curve",
    "calculate_drawdown",
    "parse_drawdown_series",
    "max_drawdown_from_series",
    "max_drawdown_3m",
]

log = logging.getLogger(__name__)

NO_LOSS_SENTINEL = 99.99

_CURVE_COLUMNS = ["close_time", "profit", "balance", "high_water_mark", "drawdown_pct"]


@dataclass(frozen=True)
class DrawdownSummary:
    """
    Result of a drawdown calculation.

    `no_losses` tells apart "no losing trade ever" from a measured drawdown.
    `reported_pct` folds it back into the legacy numeric convention, where
    an account without losses reports the sentinel value.
    """

    max_drawdown_pct: float
    max_drawdown_abs: float
    no_losses: bool
    sentinel: float = NO_LOSS_SENTINEL

    @property
    def reported_pct(self) -> float:
        return self.sentinel if self.no_losses else self.max_drawdown_pct


def _drawdown_pct(high_water_mark: float, balance: float) -> float:
    if high_water_mark <= 0:
        return 0.0
    return (high_water_mark - balance) / high_water_mark * 100


def equity_curve(trades: Sequence[Trade], initial_balance: float) -> pd.DataFrame:
    """
    Calculates the running balance after each trade close.

    Args:
        trades: Trades in any order; they are sorted by close time on a copy.
        initial_balance: Balance before the first trade.

    Returns:
        A DataFrame with one row per trade and columns close_time, profit,
        balance, high_water_mark and drawdown_pct. The high-water mark is
        non-decreasing and drawdown_pct is never negative.
    """
    if not trades:
        return pd.DataFrame(columns=_CURVE_COLUMNS)

    ordered = sorted(trades, key=lambda t: t.close_time)
    balance = initial_balance
    high_water_mark = initial_balance
    rows = []
    for trade in ordered:
        balance += trade.total_profit
        if balance > high_water_mark:
            high_water_mark = balance
            drawdown = 0.0
        else:
            drawdown = _drawdown_pct(high_water_mark, balance)
        rows.append(
            {
                "close_time": trade.close_time,
                "profit": trade.total_profit,
                "balance": balance,
                "high_water_mark": high_water_mark,
                "drawdown_pct": drawdown,
            }
        )
    return pd.DataFrame(rows, columns=_CURVE_COLUMNS)


def calculate_drawdown(
    trades: Sequence[Trade],
    initial_balance: float,
    no_loss_sentinel: float = NO_LOSS_SENTINEL,
) -> DrawdownSummary:
    """
    Calculates the maximum drawdown of an account.

    Returns:
        A DrawdownSummary. For an empty trade list everything is 0 and
        `no_losses` is False.
    """
    if not trades:
        return DrawdownSummary(0.0, 0.0, no_losses=False, sentinel=no_loss_sentinel)

    curve = equity_curve(trades, initial_balance)
    max_pct = float(curve["drawdown_pct"].max())
    max_abs = float((curve["high_water_mark"] - curve["balance"]).max())
    no_losses = not any(t.total_profit < 0 for t in trades)
    return DrawdownSummary(
        max_drawdown_pct=max(max_pct, 0.0),
        max_drawdown_abs=max(max_abs, 0.0),
        no_losses=no_losses,
        sentinel=no_loss_sentinel,
    )


def parse_drawdown_series(text: str) -> pd.Series:
    """
    Parses "YYYY-MM-DD: value%" lines into a Series of drawdown percentages.

    Values may use a decimal comma. Negative values are clipped to 0 and,
    when a date appears several times, its largest value is kept. Lines that
    cannot be parsed are skipped with a warning.
    """
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(":")
        if len(parts) != 2:
            log.warning("Skipping malformed drawdown line: %r", line)
            continue
        try:
            day = date.fromisoformat(parts[0].strip())
            value = float(parts[1].strip().replace("%", "").replace(",", ".").replace(" ", ""))
        except ValueError:
            log.warning("Skipping malformed drawdown line: %r", line)
            continue
        values[day] = max(values.get(day, 0.0), max(value, 0.0))

    if not values:
        return pd.Series(dtype=float, name="drawdown_pct")
    series = pd.Series(values, name="drawdown_pct", dtype=float)
    return series.sort_index()


def max_drawdown_from_series(series: pd.Series, since: Optional[date] = None) -> float:
    """Returns the largest drawdown in the series, optionally from `since` on."""
    if since is not None:
        series = series[[d >= since for d in series.index]]
    if series.empty:
        return 0.0
    return max(float(series.max()), 0.0)


def max_drawdown_3m(series: pd.Series, as_of: date, months: int = 3) -> float:
    """Maximum drawdown over the `months` months up to and including `as_of`."""
    window_start = as_of - relativedelta(months=months)
    in_window = series[[window_start <= d <= as_of for d in series.index]]
    result = max_drawdown_from_series(in_window)
    log.debug("Max drawdown %s..%s: %.2f%%", window_start, as_of, result)
    return result
