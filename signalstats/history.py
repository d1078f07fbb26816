"""
Flat-file history of derived provider statistics.

Each row of the CSV store is keyed by (provider, stat, date) and holds one
value, so a statistic such as the 3MPDD can be charted over time.
"""
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

__all__ = ["record_stat", "load_stat_history"]

_COLUMNS = ["provider", "stat", "date", "value"]


def _read_store(path: Path) -> pd.DataFrame:
    if not path.is_file():
        return pd.DataFrame(columns=_COLUMNS)
    df = pd.read_csv(path, dtype={"provider": str, "stat": str})
    df["date"] = pd.to_datetime(df["date"]).dt.date
    return df


# impure
def record_stat(path: Path, provider: str, stat: str, value: float, on: Optional[date] = None) -> None:
    """
    Stores a value, replacing any earlier value with the same key.
    #impure: Reads and writes the filesystem.
    """
    on = on or date.today()
    df = _read_store(path)
    same_key = (df["provider"] == provider) & (df["stat"] == stat) & (df["date"] == on)
    df = df[~same_key]
    row = pd.DataFrame([{"provider": provider, "stat": stat, "date": on, "value": float(value)}])
    df = row if df.empty else pd.concat([df, row], ignore_index=True)
    df = df.sort_values(by=["provider", "stat", "date"])
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, columns=_COLUMNS)


# impure
def load_stat_history(path: Path, provider: str, stat: str) -> pd.Series:
    """
    Returns the recorded values of one statistic, indexed by date.
    #impure: Reads from the filesystem.
    """
    df = _read_store(path)
    selected = df[(df["provider"] == provider) & (df["stat"] == stat)]
    series = pd.Series(selected["value"].astype(float).to_numpy(), index=list(selected["date"]), name=stat)
    return series.sort_index()
