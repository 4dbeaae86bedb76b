"""Market models -- price points, per-instrument series and the market snapshot.

Snapshots are treated as immutable: the simulator builds a new Market on
every tick instead of editing the previous one in place.
"""

from __future__ import annotations

import time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.money import Money


def now_millis() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class PricePoint(BaseModel):
    """One observed price at a point in time."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    price: Money = Field(gt=0)


class PriceSeries(BaseModel):
    """Price history for one instrument, oldest point first."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: Money = Field(gt=0)
    history: tuple[PricePoint, ...] = ()

    @model_validator(mode="after")
    def _current_matches_last(self) -> PriceSeries:
        if self.history and self.history[-1].price != self.current_price:
            raise ValueError(
                f"{self.symbol}: current_price {self.current_price} "
                f"!= last history price {self.history[-1].price}"
            )
        return self

    def append(self, point: PricePoint, max_length: int) -> PriceSeries:
        """Return a new series with `point` appended, keeping at most `max_length` points."""
        history = (*self.history, point)
        if len(history) > max_length:
            history = history[-max_length:]
        return PriceSeries(symbol=self.symbol, current_price=point.price, history=history)

    @property
    def previous_price(self) -> Decimal | None:
        if len(self.history) < 2:
            return None
        return self.history[-2].price


class Market(BaseModel):
    """All instruments at a point in time."""

    model_config = ConfigDict(frozen=True)

    as_of: int = Field(default_factory=now_millis)
    instruments: dict[str, PriceSeries] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_symbols(self) -> Market:
        for key, series in self.instruments.items():
            if key != series.symbol:
                raise ValueError(f"Instrument key {key!r} does not match symbol {series.symbol!r}")
        return self

    @property
    def symbols(self) -> list[str]:
        return list(self.instruments)

    def price_of(self, symbol: str) -> Decimal:
        """Current price of `symbol`. Raises KeyError if unknown."""
        return self.instruments[symbol].current_price

    def prices(self) -> dict[str, Decimal]:
        return {symbol: series.current_price for symbol, series in self.instruments.items()}
