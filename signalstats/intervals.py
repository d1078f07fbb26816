"""
Concurrency analysis over trade intervals.

A trade counts as open at time T when ``open_time <= T < close_time``.
The sweep functions walk trades in open-time order and keep the currently
open ones in a min-heap keyed by close time, so eviction of closed trades
is O(log n) per trade.
"""
import heapq
from datetime import datetime
from typing import Iterator, List, NamedTuple, Sequence, Tuple

import pandas as pd

from signalstats.types import Trade

__all__ = [
    "OpenTradeStats",
    "active_trades_at",
    "open_trade_stats_at",
    "max_concurrent_trades",
    "max_concurrent_lots",
    "open_trades_series",
]


class OpenTradeStats(NamedTuple):
    """Number of open trades and their summed lot size at one instant."""

    count: int
    lots: float


def active_trades_at(trades: Sequence[Trade], t: datetime) -> List[Trade]:
    """Returns the trades open at ``t``, in input order."""
    return [trade for trade in trades if trade.open_time <= t < trade.close_time]


def open_trade_stats_at(trades: Sequence[Trade], t: datetime) -> OpenTradeStats:
    active = active_trades_at(trades, t)
    return OpenTradeStats(len(active), sum(trade.lots for trade in active))


def _sweep(trades: Sequence[Trade]) -> Iterator[Tuple[Trade, int, float]]:
    """
    Yields ``(trade, open_count, open_lots)`` right after each trade is added
    to the working set.

    Before a trade is added, every trade whose ``close_time`` is at or before
    its ``open_time`` is evicted. A trade that opens and closes at the same
    instant is therefore still counted at its own insertion.
    """
    # sorted() returns a new list and is stable, the caller's list is untouched.
    ordered = sorted(trades, key=lambda trade: trade.open_time)
    heap: List[Tuple[datetime, int, float]] = []
    open_lots = 0.0

    for seq, trade in enumerate(ordered):
        while heap and heap[0][0] <= trade.open_time:
            _, _, lots = heapq.heappop(heap)
            open_lots -= lots
        heapq.heappush(heap, (trade.close_time, seq, trade.lots))
        open_lots += trade.lots
        yield trade, len(heap), open_lots


def max_concurrent_trades(trades: Sequence[Trade]) -> int:
    """Returns the largest number of simultaneously open trades, 0 for no trades."""
    return max((count for _, count, _ in _sweep(trades)), default=0)


def max_concurrent_lots(trades: Sequence[Trade]) -> float:
    """Returns the largest summed lot size of simultaneously open trades."""
    return max((lots for _, _, lots in _sweep(trades)), default=0.0)


def open_trades_series(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    Builds the open-trades time series used for the concurrency chart.

    Returns:
        A DataFrame with one row per trade in open-time order and the columns
        open_time, symbol, open_trades and open_lots. open_trades/open_lots
        are measured right after the trade was opened.
    """
    columns = ["open_time", "symbol", "open_trades", "open_lots"]
    rows = [
        {"open_time": trade.open_time, "symbol": trade.symbol, "open_trades": count, "open_lots": lots}
        for trade, count, lots in _sweep(trades)
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)
