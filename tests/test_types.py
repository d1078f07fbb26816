"""
Tests for the Trade model.
"""
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from signalstats.types import Trade


def _trade(**overrides) -> Trade:
    fields = {
        "open_time": datetime(2024, 1, 2, 9, 0),
        "close_time": datetime(2024, 1, 2, 11, 30),
        "type": "buy",
        "symbol": "EURUSD",
        "lots": 0.5,
        "open_price": 1.1000,
        "close_price": 1.1050,
        "profit": 25.0,
    }
    fields.update(overrides)
    return Trade(**fields)


def test_total_profit_includes_commission_and_swap():
    trade = _trade(profit=25.0, commission=-3.5, swap=-1.5)
    assert trade.total_profit == pytest.approx(20.0)


def test_stop_loss_and_take_profit_flags():
    assert not _trade().has_stop_loss
    assert not _trade().has_take_profit
    trade = _trade(stop_loss=1.09, take_profit=1.12)
    assert trade.has_stop_loss
    assert trade.has_take_profit


def test_duration():
    assert _trade().duration == timedelta(hours=2, minutes=30)


def test_zero_duration_trade_is_valid():
    t = datetime(2024, 1, 2, 9, 0)
    assert _trade(open_time=t, close_time=t).duration == timedelta(0)


def test_close_before_open_is_rejected():
    with pytest.raises(ValidationError, match="close_time"):
        _trade(close_time=datetime(2024, 1, 2, 8, 0))


@pytest.mark.parametrize("field, value", [("lots", 0.0), ("lots", -1.0), ("open_price", 0.0), ("close_price", -2.0)])
def test_non_positive_sizes_and_prices_are_rejected(field, value):
    with pytest.raises(ValidationError):
        _trade(**{field: value})


def test_unknown_trade_type_is_rejected():
    with pytest.raises(ValidationError):
        _trade(type="balance")


def test_trade_is_immutable():
    trade = _trade()
    with pytest.raises(ValidationError):
        trade.lots = 2.0
