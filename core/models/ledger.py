"""Ledger models -- cash/holdings/xp state, trade intents and trade results."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from core.money import Money


class LedgerState(BaseModel):
    """A user's paper-trading balance sheet.

    Holdings map symbol -> share count. A symbol with zero shares is absent,
    never stored as 0.
    """

    model_config = ConfigDict(frozen=True)

    cash: Money = Field(ge=0)
    holdings: dict[str, PositiveInt] = Field(default_factory=dict)
    xp: int = Field(default=0, ge=0)

    def quantity(self, symbol: str) -> int:
        return self.holdings.get(symbol, 0)


class TradeIntent(BaseModel):
    """A user's request to buy or sell. Never persisted."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(min_length=1)
    side: Literal["buy", "sell"]
    quantity: PositiveInt

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RejectionReason(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"


class TradeResult(BaseModel):
    """Outcome of Ledger.execute_trade.

    `state` is the new LedgerState when accepted, the untouched input
    state when rejected.
    """

    accepted: bool
    reason: RejectionReason | None = None
    state: LedgerState
    intent: TradeIntent
    price: Money
    cost: Money = Decimal("0.00")
    xp_awarded: int = 0

    @property
    def message(self) -> str:
        if self.accepted:
            verb = "Bought" if self.intent.side == "buy" else "Sold"
            return f"{verb} {self.intent.quantity} {self.intent.symbol} @ {self.price}"
        if self.reason is RejectionReason.INSUFFICIENT_FUNDS:
            return "Not enough cash"
        return "Not enough shares to sell"
