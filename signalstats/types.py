"""
Shared data structures for the application.
"""
from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = ["Trade", "TradeType"]

TradeType = Literal["buy", "sell"]


class Trade(BaseModel):
    """
    Represents a single closed position from a signal provider's history.
    """

    model_config = ConfigDict(frozen=True)  # Make trades immutable

    open_time: datetime = Field(..., description="When the position was opened.")
    close_time: datetime = Field(..., description="When the position was closed.")
    type: TradeType = Field(..., description="Direction of the position.")
    symbol: str = Field(..., description="The instrument code, e.g. EURUSD.")
    lots: float = Field(..., gt=0, description="Position size in lots.")
    open_price: float = Field(..., gt=0, description="The price at which the position was opened.")
    close_price: float = Field(..., gt=0, description="The price at which the position was closed.")
    stop_loss: float = Field(0.0, description="Stop loss level, 0.0 when not set.")
    take_profit: float = Field(0.0, description="Take profit level, 0.0 when not set.")
    commission: float = Field(0.0, description="Commission charged, usually negative.")
    swap: float = Field(0.0, description="Swap charged or credited.")
    profit: float = Field(0.0, description="Gross profit of the position.")

    @model_validator(mode="after")
    def _check_times(self) -> "Trade":
        if self.close_time < self.open_time:
            raise ValueError("close_time must not be before open_time")
        return self

    @property
    def total_profit(self) -> float:
        """Profit including commission and swap."""
        return self.profit + self.commission + self.swap

    @property
    def has_stop_loss(self) -> bool:
        return self.stop_loss != 0.0

    @property
    def has_take_profit(self) -> bool:
        return self.take_profit != 0.0

    @property
    def duration(self) -> timedelta:
        return self.close_time - self.open_time
