"""
Per-provider statistics.

ProviderStats owns the trade list of one signal provider. Every statistic
is recomputed from the trades on access; nothing is cached, so the object
stays consistent when trades are added.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from signalstats.drawdown import (
    NO_LOSS_SENTINEL,
    DrawdownSummary,
    calculate_drawdown,
    equity_curve,
    max_drawdown_3m,
)
from signalstats.intervals import (
    OpenTradeStats,
    max_concurrent_lots,
    max_concurrent_trades,
    open_trade_stats_at,
    open_trades_series,
)
from signalstats.mpdd import MPDDTrace, mpdd_trace
from signalstats.periods import (
    monthly_aggregates,
    monthly_profit_percentages,
    symbol_distribution,
    weekly_aggregates,
)
from signalstats.risk import risk_category, risk_score
from signalstats.types import Trade

__all__ = ["ProviderStats"]


@dataclass
class ProviderStats:
    """All trades of one provider plus the statistics derived from them."""

    name: str
    trades: List[Trade] = field(default_factory=list)
    initial_balance: float = 0.0
    no_loss_sentinel: float = NO_LOSS_SENTINEL
    _balance_applied: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        # Own copy, add_trade appends to it.
        self.trades = list(self.trades)

    def apply_balance_record(self, amount: float) -> bool:
        """Sets the initial balance from the first balance record only."""
        if self._balance_applied:
            return False
        self.initial_balance = amount
        self._balance_applied = True
        return True

    def add_trade(self, trade: Trade) -> None:
        self.trades.append(trade)

    # §1. Counts and profit
    # ----------------------------------------------------------------------------------

    @property
    def trade_count(self) -> int:
        return len(self.trades)

    @property
    def has_stop_loss(self) -> bool:
        return any(t.has_stop_loss for t in self.trades)

    @property
    def has_take_profit(self) -> bool:
        return any(t.has_take_profit for t in self.trades)

    @property
    def total_profit(self) -> float:
        return sum(t.total_profit for t in self.trades)

    @property
    def current_balance(self) -> float:
        return self.initial_balance + self.total_profit

    @property
    def winning_trades(self) -> int:
        return sum(1 for t in self.trades if t.total_profit > 0)

    @property
    def losing_trades(self) -> int:
        return sum(1 for t in self.trades if t.total_profit < 0)

    @property
    def gross_profit(self) -> float:
        return sum(t.total_profit for t in self.trades if t.total_profit > 0)

    @property
    def gross_loss(self) -> float:
        return sum(t.total_profit for t in self.trades if t.total_profit < 0)

    @property
    def win_rate(self) -> float:
        """Share of winning trades in percent."""
        if not self.trades:
            return 0.0
        return self.winning_trades * 100.0 / self.trade_count

    @property
    def profit_factor(self) -> float:
        """Gross profit over gross loss, 0.0 without losing trades."""
        gross_loss = self.gross_loss
        if gross_loss == 0:
            return 0.0
        return abs(self.gross_profit / gross_loss)

    @property
    def average_profit(self) -> float:
        if not self.trades:
            return 0.0
        return self.total_profit / self.trade_count

    @property
    def max_profit(self) -> float:
        return max((t.total_profit for t in self.trades if t.total_profit > 0), default=0.0)

    @property
    def max_loss(self) -> float:
        return min((t.total_profit for t in self.trades if t.total_profit < 0), default=0.0)

    # §2. Date range
    # ----------------------------------------------------------------------------------

    @property
    def start_date(self) -> Optional[date]:
        return min((t.close_time.date() for t in self.trades), default=None)

    @property
    def end_date(self) -> Optional[date]:
        return max((t.close_time.date() for t in self.trades), default=None)

    @property
    def days_between(self) -> int:
        if self.start_date is None or self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days

    # §3. Drawdown and concurrency
    # ----------------------------------------------------------------------------------

    @property
    def drawdown(self) -> DrawdownSummary:
        return calculate_drawdown(self.trades, self.initial_balance, self.no_loss_sentinel)

    @property
    def max_drawdown(self) -> float:
        """Maximum drawdown in percent, the sentinel when no trade ever lost."""
        return self.drawdown.reported_pct

    def equity_curve(self) -> pd.DataFrame:
        return equity_curve(self.trades, self.initial_balance)

    def drawdown_series(self) -> pd.Series:
        """Largest drawdown percentage per close date."""
        curve = self.equity_curve()
        if curve.empty:
            return pd.Series(dtype=float, name="drawdown_pct")
        days = [ts.date() for ts in curve["close_time"]]
        return curve["drawdown_pct"].groupby(days).max().rename("drawdown_pct")

    def recent_max_drawdown(self, months: int = 3, as_of: Optional[date] = None) -> float:
        """Maximum drawdown within the last `months` months up to `as_of` (default: last close)."""
        as_of = as_of or self.end_date
        if as_of is None:
            return 0.0
        return max_drawdown_3m(self.drawdown_series(), as_of, months)

    @property
    def max_concurrent_trades(self) -> int:
        return max_concurrent_trades(self.trades)

    @property
    def max_concurrent_lots(self) -> float:
        return max_concurrent_lots(self.trades)

    def open_trades_at(self, t: datetime) -> OpenTradeStats:
        return open_trade_stats_at(self.trades, t)

    def open_trades_series(self) -> pd.DataFrame:
        return open_trades_series(self.trades)

    # §4. Period aggregates and ratios
    # ----------------------------------------------------------------------------------

    def weekly(self) -> pd.DataFrame:
        return weekly_aggregates(self.trades)

    def monthly(self) -> pd.DataFrame:
        return monthly_aggregates(self.trades)

    def monthly_profit_percentages(self) -> pd.Series:
        return monthly_profit_percentages(self.trades, self.initial_balance)

    def symbols(self) -> pd.DataFrame:
        return symbol_distribution(self.trades)

    def mpdd_trace(
        self,
        months: int = 3,
        current_month: Any = None,
        equity_drawdown: Optional[float] = None,
    ) -> MPDDTrace:
        """
        MPDD of this provider. Without an explicit `equity_drawdown` the
        measured drawdown is used; an account without losses has none and
        yields 0.0.
        """
        if equity_drawdown is None:
            equity_drawdown = self.drawdown.max_drawdown_pct
        return mpdd_trace(self.monthly_profit_percentages(), equity_drawdown, current_month, months)

    def mpdd(self, months: int = 3, current_month: Any = None, equity_drawdown: Optional[float] = None) -> float:
        return self.mpdd_trace(months, current_month, equity_drawdown).value

    @property
    def risk_score(self) -> int:
        return risk_score(self.trades, self.drawdown.max_drawdown_pct, self.max_concurrent_trades, self.profit_factor)

    @property
    def risk_category(self) -> str:
        return risk_category(self.risk_score)

    def summary(self, mpdd_months: int = 3, drawdown_window_months: int = 3) -> Dict[str, Any]:
        """Flat dictionary of the scalar statistics, used by reports and the CLI."""
        drawdown = self.drawdown
        return {
            "provider": self.name,
            "trades": self.trade_count,
            "initial_balance": self.initial_balance,
            "current_balance": self.current_balance,
            "total_profit": self.total_profit,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "average_profit": self.average_profit,
            "max_profit": self.max_profit,
            "max_loss": self.max_loss,
            "max_drawdown": drawdown.reported_pct,
            "max_drawdown_abs": drawdown.max_drawdown_abs,
            f"max_drawdown_{drawdown_window_months}m": self.recent_max_drawdown(drawdown_window_months),
            "no_losses": drawdown.no_losses,
            "max_concurrent_trades": self.max_concurrent_trades,
            "max_concurrent_lots": self.max_concurrent_lots,
            f"mpdd_{mpdd_months}m": self.mpdd(months=mpdd_months),
            "risk_score": self.risk_score,
            "risk_category": self.risk_category,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "days": self.days_between,
            "has_stop_loss": self.has_stop_loss,
            "has_take_profit": self.has_take_profit,
        }
