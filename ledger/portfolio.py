"""Portfolio valuation -- read-only views over LedgerState and a Market snapshot."""

from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import BaseModel, Field

from core.models.ledger import LedgerState
from core.models.market import Market
from core.money import Money, add_money, multiply_money

logger = logging.getLogger(__name__)


class HoldingValue(BaseModel):
    symbol: str
    quantity: int
    price: Money
    value: Money


class PortfolioSummary(BaseModel):
    """Marked-to-market view of a user's paper portfolio."""

    cash: Money
    holdings: list[HoldingValue] = Field(default_factory=list)
    holdings_value: Money = Decimal("0.00")
    total_value: Money = Decimal("0.00")
    xp: int = 0


class LeaderboardEntry(BaseModel):
    rank: int = 0
    user_id: str
    name: str
    balance: Money


def summarize(state: LedgerState, market: Market) -> PortfolioSummary:
    """Value every holding at the market's current price.

    Holdings in a symbol the market doesn't list are valued at zero.
    """
    holdings: list[HoldingValue] = []
    for symbol, quantity in sorted(state.holdings.items()):
        series = market.instruments.get(symbol)
        if series is None:
            logger.warning("No price for held symbol %s, valuing at 0", symbol)
            price = Decimal("0.00")
        else:
            price = series.current_price
        holdings.append(HoldingValue(
            symbol=symbol,
            quantity=quantity,
            price=price,
            value=multiply_money(price, quantity),
        ))

    holdings_value = Decimal("0.00")
    for holding in holdings:
        holdings_value = add_money(holdings_value, holding.value)
    return PortfolioSummary(
        cash=state.cash,
        holdings=holdings,
        holdings_value=holdings_value,
        total_value=add_money(state.cash, holdings_value),
        xp=state.xp,
    )


def leaderboard(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Rank entries by balance, highest first. Ties keep their input order."""
    ranked = sorted(entries, key=lambda e: e.balance, reverse=True)
    return [entry.model_copy(update={"rank": i}) for i, entry in enumerate(ranked, start=1)]
