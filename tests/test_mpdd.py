"""
Tests for the Month-Profit-per-Drawdown ratio.
"""
import pandas as pd
import pytest

from signalstats.mpdd import calculate_mpdd, has_enough_history, mpdd_trace

MONTHLY = {"2024-01": 2.0, "2024-02": -1.0, "2024-03": 3.0, "2024-04": 1.5}


def test_three_month_mpdd():
    assert calculate_mpdd(MONTHLY, 10.0, current_month="2024-04") == pytest.approx(0.1333, abs=1e-4)


def test_current_month_defaults_to_latest():
    assert calculate_mpdd(MONTHLY, 10.0) == pytest.approx(4.0 / 3 / 10)


def test_accepts_period_indexed_series():
    series = pd.Series(list(MONTHLY.values()), index=pd.PeriodIndex(list(MONTHLY), freq="M"))
    assert calculate_mpdd(series, 10.0) == pytest.approx(calculate_mpdd(MONTHLY, 10.0))


def test_zero_drawdown_gives_zero():
    assert calculate_mpdd(MONTHLY, 0.0) == 0.0


def test_not_enough_prior_months_gives_zero():
    assert calculate_mpdd(MONTHLY, 10.0, current_month="2024-03") == 0.0
    assert not has_enough_history(MONTHLY, current_month="2024-03")
    assert has_enough_history(MONTHLY, current_month="2024-04")


def test_empty_and_invalid_inputs():
    assert calculate_mpdd({}, 10.0) == 0.0
    assert calculate_mpdd(MONTHLY, 10.0, months=0) == 0.0
    assert not has_enough_history({})


def test_months_without_data_are_skipped():
    monthly = {"2023-10": 6.0, "2023-12": 3.0, "2024-02": 0.0, "2024-04": 9.0}
    trace = mpdd_trace(monthly, 3.0)
    assert [str(m) for m, _ in trace.months_used] == ["2024-02", "2023-12", "2023-10"]
    assert trace.value == pytest.approx(1.0)


def test_only_latest_months_are_averaged():
    monthly = {"2023-12": 100.0, **MONTHLY}
    assert calculate_mpdd(monthly, 10.0, current_month="2024-04") == pytest.approx(0.1333, abs=1e-4)


def test_six_month_variant():
    monthly = {f"2024-{m:02d}": float(m) for m in range(1, 8)}
    assert calculate_mpdd(monthly, 7.0, months=6) == pytest.approx(3.5 / 7.0)


def test_trace_explain():
    trace = mpdd_trace(MONTHLY, 10.0)
    assert trace.current_month == pd.Period("2024-04", freq="M")
    assert trace.average_profit == pytest.approx(4.0 / 3)
    text = trace.explain()
    assert "2024-03: 3.00%" in text
    assert "Equity drawdown: 10.00%" in text
    assert "MPDD: 0.1333" in text


def test_trace_explain_without_history():
    assert "Not enough history" in mpdd_trace({"2024-04": 1.0}, 10.0).explain()
    assert "No monthly profit data" in mpdd_trace({}, 10.0).explain()
