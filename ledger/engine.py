"""Ledger -- the only writer of LedgerState.

Every transition is atomic: either a complete new state comes back, or the
input state comes back untouched together with a rejection reason.
Completely deterministic. Money is Decimal, rounded half-up to cents.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from core.config import LedgerConfig
from core.models.ledger import LedgerState, RejectionReason, TradeIntent, TradeResult
from core.money import add_money, multiply_money, round2

logger = logging.getLogger(__name__)


class Ledger:
    """Enforces solvency and holding sufficiency on every trade.

    Usage:
        ledger = Ledger(LedgerConfig())
        state = ledger.reset()
        result = ledger.execute_trade(state, TradeIntent(symbol="ACME", side="buy", quantity=10), price)
        if result.accepted:
            state = result.state
    """

    def __init__(self, config: LedgerConfig | None = None) -> None:
        self._config = config or LedgerConfig()

    @property
    def config(self) -> LedgerConfig:
        return self._config

    def reward_for(self, side: str) -> int:
        """XP earned for an accepted trade on the given side."""
        if side == "buy":
            return self._config.xp_reward_buy
        return self._config.xp_reward_sell

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def execute_trade(
        self,
        state: LedgerState,
        intent: TradeIntent,
        current_price: Decimal,
        xp_reward: int | None = None,
    ) -> TradeResult:
        """Apply a buy or sell at `current_price`.

        `xp_reward` overrides the configured per-side reward.
        """
        price = round2(current_price)
        if price <= 0:
            raise ValueError(f"Trade price must be positive, got {current_price}")
        if xp_reward is None:
            xp_reward = self.reward_for(intent.side)
        if xp_reward < 0:
            raise ValueError(f"xp_reward must be non-negative, got {xp_reward}")

        cost = multiply_money(price, intent.quantity)

        if intent.side == "buy":
            if cost > state.cash:
                return self._reject(state, intent, price, cost, RejectionReason.INSUFFICIENT_FUNDS)
            cash = add_money(state.cash, cost.copy_negate())
            holdings = dict(state.holdings)
            holdings[intent.symbol] = holdings.get(intent.symbol, 0) + intent.quantity
        else:
            held = state.quantity(intent.symbol)
            if intent.quantity > held:
                return self._reject(state, intent, price, cost, RejectionReason.INSUFFICIENT_HOLDINGS)
            cash = add_money(state.cash, cost)
            holdings = dict(state.holdings)
            remaining = held - intent.quantity
            if remaining:
                holdings[intent.symbol] = remaining
            else:
                del holdings[intent.symbol]

        new_state = LedgerState(cash=cash, holdings=holdings, xp=state.xp + xp_reward)
        logger.info(
            "Trade accepted: %s %d %s @ %s (cost %s, cash %s -> %s)",
            intent.side.upper(), intent.quantity, intent.symbol, price, cost, state.cash, cash,
        )
        return TradeResult(
            accepted=True,
            state=new_state,
            intent=intent,
            price=price,
            cost=cost,
            xp_awarded=xp_reward,
        )

    def award_xp(self, state: LedgerState, amount: int) -> LedgerState:
        """Add `amount` XP. XP never decreases."""
        if amount < 0:
            raise ValueError(f"XP award must be non-negative, got {amount}")
        return state.model_copy(update={"xp": state.xp + amount})

    def reset(self) -> LedgerState:
        """Fresh state: starting cash, no holdings, zero XP."""
        return LedgerState(cash=self._config.starting_cash)

    def _reject(
        self,
        state: LedgerState,
        intent: TradeIntent,
        price: Decimal,
        cost: Decimal,
        reason: RejectionReason,
    ) -> TradeResult:
        logger.info(
            "Trade rejected: %s %d %s @ %s (%s)",
            intent.side.upper(), intent.quantity, intent.symbol, price, reason.value,
        )
        return TradeResult(
            accepted=False,
            reason=reason,
            state=state,
            intent=intent,
            price=price,
            cost=cost,
        )
