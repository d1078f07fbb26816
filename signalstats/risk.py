"""
Heuristic risk scoring of a provider's trading behaviour.

The score is a weighted blend of five components, each in [0, 100]:

    martingale pattern   35%
    drawdown             20%
    concurrent trades    15%
    lot size volatility  15%
    profit factor        15%
"""
from typing import Sequence

import numpy as np

from signalstats.types import Trade

__all__ = ["martingale_score", "lot_volatility_score", "risk_score", "risk_category"]


def martingale_score(trades: Sequence[Trade]) -> float:
    """
    Detects lot increases after losing trades.

    For every trade that follows a loss (open-time order), the lot ratio to
    the losing trade is taken. Ratios above 1.5 count as martingale steps.
    """
    if not trades:
        return 0.0
    ordered = sorted(trades, key=lambda t: t.open_time)
    max_increase = 0.0
    steps = 0
    for prev, current in zip(ordered, ordered[1:]):
        if prev.total_profit < 0:
            ratio = current.lots / prev.lots
            max_increase = max(max_increase, ratio)
            if ratio > 1.5:
                steps += 1
    return min(100.0, max_increase * 20 + steps * 5)


def lot_volatility_score(trades: Sequence[Trade]) -> float:
    """Largest deviation from the mean lot size, as a percentage of the mean."""
    if not trades:
        return 0.0
    lots = np.array([t.lots for t in trades], dtype=float)
    mean = lots.mean()
    return float(min(100.0, np.abs(lots - mean).max() / mean * 100))


def risk_score(
    trades: Sequence[Trade],
    max_drawdown: float,
    max_concurrent_trades: int,
    profit_factor: float,
) -> int:
    """Returns the combined risk score, an integer in [1, 100]."""
    score = martingale_score(trades) * 0.35
    score += min(100.0, max_drawdown * 100) * 0.20
    score += min(100.0, max_concurrent_trades / 2.5 * 10) * 0.15
    score += lot_volatility_score(trades) * 0.15
    score += max(0.0, min(100.0, (1 - profit_factor) * 100)) * 0.15
    return max(1, min(100, int(round(score))))


def risk_category(score: int) -> str:
    if score <= 20:
        return "conservative"
    if score <= 40:
        return "moderate"
    if score <= 60:
        return "medium"
    if score <= 80:
        return "high"
    return "extreme"
