"""
Weekly and monthly aggregation of trades.

Trades are bucketed by their close time. Only weeks or months with at
least one closing trade appear in the output; empty buckets are never
synthesized.
"""
from datetime import date, datetime, timedelta
from typing import Sequence

import numpy as np
import pandas as pd

from signalstats.types import Trade

__all__ = [
    "week_start",
    "week_label",
    "efficiency_score",
    "efficiency_category",
    "weekly_aggregates",
    "monthly_aggregates",
    "monthly_profit_percentages",
    "symbol_distribution",
]

_WEEKLY_COLUMNS = ["profit", "lots", "trades", "efficiency", "category", "magnitude", "label"]
_MONTHLY_COLUMNS = ["profit", "lots", "trades"]


def week_start(ts: datetime) -> date:
    """Monday of the ISO week containing ``ts``."""
    day = ts.date() if isinstance(ts, datetime) else ts
    return day - timedelta(days=day.weekday())


def week_label(monday: date) -> str:
    """Display label such as ``W03-01/24``."""
    return f"W{monday.isocalendar()[1]:02d}-{monday:%m/%y}"


def efficiency_score(profit_sum: float, lot_sum: float) -> float:
    """Profit per lot, 0.0 when no lots were traded."""
    if lot_sum > 0:
        return profit_sum / lot_sum
    return 0.0


def efficiency_category(score: float) -> str:
    return "negative" if score < 0 else "positive"


def _trades_frame(trades: Sequence[Trade]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "close_time": [t.close_time for t in trades],
            "profit": [t.total_profit for t in trades],
            "lots": [t.lots for t in trades],
            "symbol": [t.symbol for t in trades],
        }
    )


def weekly_aggregates(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    Sums profit and lots per ISO week and derives the efficiency score.

    Returns:
        A DataFrame indexed by the Monday of each week (chronological) with
        the columns profit, lots, trades, efficiency, category ("positive" or
        "negative"), magnitude (absolute efficiency) and label.
    """
    if not trades:
        empty = pd.DataFrame(columns=_WEEKLY_COLUMNS)
        empty.index.name = "week_start"
        return empty

    df = _trades_frame(trades)
    df["week_start"] = [week_start(ts) for ts in df["close_time"]]
    weekly = df.groupby("week_start").agg(
        profit=("profit", "sum"), lots=("lots", "sum"), trades=("profit", "size")
    )
    weekly = weekly.sort_index()
    weekly["efficiency"] = [efficiency_score(p, l) for p, l in zip(weekly["profit"], weekly["lots"])]
    weekly["category"] = weekly["efficiency"].map(efficiency_category)
    weekly["magnitude"] = weekly["efficiency"].abs()
    weekly["label"] = [week_label(monday) for monday in weekly.index]
    return weekly[_WEEKLY_COLUMNS]


def monthly_aggregates(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    Sums profit and lots per calendar month.

    Returns:
        A DataFrame indexed by monthly ``pd.Period`` with the columns profit,
        lots and trades.
    """
    if not trades:
        empty = pd.DataFrame(columns=_MONTHLY_COLUMNS)
        empty.index = pd.PeriodIndex([], freq="M", name="month")
        return empty

    df = _trades_frame(trades)
    df["month"] = pd.to_datetime(df["close_time"]).dt.to_period("M")
    monthly = df.groupby("month").agg(
        profit=("profit", "sum"), lots=("lots", "sum"), trades=("profit", "size")
    )
    return monthly.sort_index()[_MONTHLY_COLUMNS]


def monthly_profit_percentages(trades: Sequence[Trade], initial_balance: float) -> pd.Series:
    """
    Monthly profit as a percentage of the balance at the start of that month.

    A month starting with a non-positive balance reports 0.0.
    """
    monthly = monthly_aggregates(trades)
    if monthly.empty:
        return pd.Series(dtype=float, index=pd.PeriodIndex([], freq="M", name="month"), name="profit_pct")

    profits = monthly["profit"].astype(float)
    start_balances = initial_balance + profits.cumsum().shift(1, fill_value=0.0)
    pct = np.where(start_balances > 0, profits / start_balances.where(start_balances > 0, 1.0) * 100, 0.0)
    return pd.Series(pct, index=monthly.index, name="profit_pct")


def symbol_distribution(trades: Sequence[Trade]) -> pd.DataFrame:
    """Trade count, lots and profit per symbol, most traded first."""
    if not trades:
        return pd.DataFrame(columns=["trades", "lots", "profit"])
    df = _trades_frame(trades)
    dist = df.groupby("symbol").agg(
        trades=("profit", "size"), lots=("lots", "sum"), profit=("profit", "sum")
    )
    return dist.sort_values(by=["trades", "profit"], ascending=[False, False])
