"""
Month-Profit-per-Drawdown (MPDD) ratios.

The n-month MPDD is the average monthly profit percentage of the n most
recent months with data before the current month, divided by the
account's equity drawdown percentage. 3MPDD is the n=3 case.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple, Union

import pandas as pd

__all__ = ["MPDDTrace", "calculate_mpdd", "mpdd_trace", "has_enough_history"]

log = logging.getLogger(__name__)

MonthlyProfits = Union[pd.Series, Mapping[Any, float]]


@dataclass(frozen=True)
class MPDDTrace:
    """The inputs and result of one MPDD calculation, for display."""

    months: int
    current_month: Optional[pd.Period]
    months_used: List[Tuple[pd.Period, float]] = field(default_factory=list)
    average_profit: float = 0.0
    drawdown_pct: float = 0.0
    value: float = 0.0

    def explain(self) -> str:
        """Human-readable breakdown of the calculation."""
        lines = [f"{self.months}-month MPDD"]
        if self.current_month is None:
            lines.append("No monthly profit data available.")
            return "\n".join(lines)
        if len(self.months_used) < self.months:
            lines.append(
                f"Not enough history before {self.current_month}: "
                f"{len(self.months_used)}/{self.months} months."
            )
            return "\n".join(lines)
        lines.append(f"Months used (before {self.current_month}):")
        for month, profit in self.months_used:
            lines.append(f"- {month}: {profit:.2f}%")
        lines.append(f"Average over {len(self.months_used)} months: {self.average_profit:.2f}%")
        lines.append(f"Equity drawdown: {self.drawdown_pct:.2f}%")
        lines.append(f"MPDD: {self.value:.4f}")
        return "\n".join(lines)


def _to_monthly_series(monthly_pct: MonthlyProfits) -> pd.Series:
    """Normalizes a month -> percent mapping into a Series with a sorted PeriodIndex."""
    series = monthly_pct if isinstance(monthly_pct, pd.Series) else pd.Series(dict(monthly_pct), dtype=float)
    if series.empty:
        return pd.Series(dtype=float, index=pd.PeriodIndex([], freq="M"))
    index = pd.PeriodIndex([pd.Period(m, freq="M") for m in series.index], freq="M")
    normalized = pd.Series(series.to_numpy(dtype=float), index=index)
    # Several entries for one month collapse into their sum.
    return normalized.groupby(level=0).sum().sort_index()


def mpdd_trace(
    monthly_pct: MonthlyProfits,
    drawdown_pct: float,
    current_month: Any = None,
    months: int = 3,
) -> MPDDTrace:
    """
    Calculates an MPDD ratio and returns the full calculation trace.

    Args:
        monthly_pct: Monthly profit percentages keyed by month (pd.Period,
            "YYYY-MM" string or anything pd.Period accepts).
        drawdown_pct: The account's equity drawdown in percent.
        current_month: The month whose predecessors are averaged. Defaults
            to the latest month in `monthly_pct`.
        months: How many prior months are required and averaged.

    Returns:
        An MPDDTrace. Its value is 0.0 when `months` is not positive, when
        fewer than `months` prior months have data, or when `drawdown_pct`
        is not positive.
    """
    series = _to_monthly_series(monthly_pct)
    if months <= 0:
        log.warning("Invalid MPDD month count: %d", months)
        return MPDDTrace(months=months, current_month=None)
    if series.empty:
        return MPDDTrace(months=months, current_month=None)

    current = pd.Period(current_month, freq="M") if current_month is not None else series.index[-1]
    prior = series[series.index < current]
    # Newest month first.
    used = list(prior.iloc[-months:].items())[::-1]
    if len(prior) < months:
        log.debug("Not enough months before %s for %d-month MPDD: %d", current, months, len(prior))
        return MPDDTrace(months=months, current_month=current, months_used=used, drawdown_pct=drawdown_pct)

    average = sum(profit for _, profit in used) / months
    value = average / drawdown_pct if drawdown_pct > 0 else 0.0
    log.debug("MPDD%d for %s: %.4f (profit %.2f%%, drawdown %.2f%%)", months, current, value, average, drawdown_pct)
    return MPDDTrace(
        months=months,
        current_month=current,
        months_used=used,
        average_profit=average,
        drawdown_pct=drawdown_pct,
        value=value,
    )


def calculate_mpdd(
    monthly_pct: MonthlyProfits,
    drawdown_pct: float,
    current_month: Any = None,
    months: int = 3,
) -> float:
    """Returns the MPDD ratio; see `mpdd_trace` for the rules."""
    return mpdd_trace(monthly_pct, drawdown_pct, current_month, months).value


def has_enough_history(monthly_pct: MonthlyProfits, current_month: Any = None, months: int = 3) -> bool:
    """True when at least `months` months with data precede the current month."""
    series = _to_monthly_series(monthly_pct)
    if months <= 0 or series.empty:
        return False
    current = pd.Period(current_month, freq="M") if current_month is not None else series.index[-1]
    return int((series.index < current).sum()) >= months
