"""Trading session -- the single owner of the canonical Market and ProgressionState.

The clock calls `tick()`; the HTTP layer calls the command methods. Market
and progression each have their own lock because they share no invariant:
a trade reads a price snapshot and never waits on the simulator.
"""

from __future__ import annotations

import asyncio
import logging
import random

from core.bus import AsyncIOBus
from core.errors import UnknownInstrumentError, UnknownLessonError
from core.models.events import Event, EventTypes
from core.models.ledger import TradeIntent, TradeResult
from core.models.lessons import LESSONS, Lesson, get_lesson
from core.models.market import Market
from core.models.progression import ProgressionState
from core.money import round2
from ledger.engine import Ledger
from ledger.portfolio import LeaderboardEntry, PortfolioSummary, leaderboard, summarize
from progression import achievements
from progression.achievements import AchievementRule
from progression.store import ProgressionStore
from simulator.engine import MarketSimulator

logger = logging.getLogger(__name__)

SAMPLE_PLAYERS = ("Riley", "Jamal")


class TradingSession:
    """Holds current state and threads it through the pure transition functions.

    Usage:
        session = TradingSession(simulator, ledger, progress, bus)
        await session.tick()
        result = await session.trade(TradeIntent(symbol="ACME", side="buy", quantity=1))
    """

    def __init__(
        self,
        simulator: MarketSimulator,
        ledger: Ledger,
        progress: ProgressionStore,
        bus: AsyncIOBus | None = None,
        lessons: tuple[Lesson, ...] = LESSONS,
        rules: list[AchievementRule] | None = None,
        market: Market | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._simulator = simulator
        self._ledger = ledger
        self._progress = progress
        self._bus = bus or AsyncIOBus()
        self._lessons = lessons
        self._rules = rules if rules is not None else achievements.default_rules(lessons)
        self._market = market if market is not None else simulator.seed()
        self._market_lock = asyncio.Lock()
        self._progress_lock = asyncio.Lock()

        rng = rng or random.Random()
        self._sample_players = [
            LeaderboardEntry(
                user_id=name.lower(),
                name=name,
                balance=round2(5000 + rng.random() * 20000),
            )
            for name in SAMPLE_PLAYERS
        ]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def lessons(self) -> tuple[Lesson, ...]:
        return self._lessons

    def market_snapshot(self) -> Market:
        return self._market

    def progression(self) -> ProgressionState:
        return self._progress.state

    def portfolio(self) -> PortfolioSummary:
        return summarize(self._progress.state.ledger, self._market)

    def leaderboard(self) -> list[LeaderboardEntry]:
        state = self._progress.state
        you = LeaderboardEntry(
            user_id=state.user_id,
            name=state.name,
            balance=self.portfolio().total_value,
        )
        return leaderboard([you, *self._sample_players])

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    async def tick(self) -> Market:
        """Advance the market one step and publish the new prices."""
        async with self._market_lock:
            self._market = self._simulator.tick(self._market)
            market = self._market

        logger.debug("Market tick at %d: %s", market.as_of, market.prices())
        await self._publish(EventTypes.MARKET_TICKED, "simulator", {
            "as_of": market.as_of,
            "prices": {s: float(p) for s, p in market.prices().items()},
        })
        return market

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def trade(self, intent: TradeIntent) -> TradeResult:
        """Execute a paper trade at the current price snapshot."""
        series = self._market.instruments.get(intent.symbol)
        if series is None:
            raise UnknownInstrumentError(intent.symbol)
        price = series.current_price

        async with self._progress_lock:
            state = self._progress.state
            result = self._ledger.execute_trade(state.ledger, intent, price)
            unlocked: list[str] = []
            if result.accepted:
                updated = state.model_copy(update={
                    "ledger": result.state,
                    "trades_executed": state.trades_executed + 1,
                })
                updated, unlocked = achievements.evaluate(updated, self._rules)
                self._progress.save(updated)

        payload = {
            "symbol": intent.symbol,
            "side": intent.side,
            "quantity": intent.quantity,
            "price": float(result.price),
            "cost": float(result.cost),
        }
        if result.accepted:
            payload["xp_awarded"] = result.xp_awarded
            await self._publish(EventTypes.TRADE_EXECUTED, "ledger", payload)
        else:
            payload["reason"] = result.reason.value
            await self._publish(EventTypes.TRADE_REJECTED, "ledger", payload)
        await self._announce(unlocked)
        return result

    async def award_xp(self, amount: int, reason: str = "") -> ProgressionState:
        async with self._progress_lock:
            state = self._progress.state
            updated = state.model_copy(update={
                "ledger": self._ledger.award_xp(state.ledger, amount),
            })
            updated, unlocked = achievements.evaluate(updated, self._rules)
            self._progress.save(updated)

        await self._publish(EventTypes.XP_AWARDED, "progression", {
            "amount": amount,
            "reason": reason,
            "xp": updated.ledger.xp,
        })
        await self._announce(unlocked)
        return updated

    async def complete_lesson(self, lesson_id: int) -> tuple[ProgressionState, int]:
        """Mark a lesson done. XP is granted the first time only.

        Returns (new state, xp awarded).
        """
        lesson = get_lesson(lesson_id, self._lessons)
        if lesson is None:
            raise UnknownLessonError(lesson_id)

        async with self._progress_lock:
            state = self._progress.state
            first_time = lesson.id not in state.completed_lessons
            awarded = lesson.xp_reward if first_time else 0
            updated = state.model_copy(update={
                "ledger": self._ledger.award_xp(state.ledger, awarded),
                "completed_lessons": sorted({*state.completed_lessons, lesson.id}),
            })
            updated, unlocked = achievements.evaluate(updated, self._rules)
            self._progress.save(updated)

        if first_time:
            logger.info("Lesson %d '%s' completed (+%d XP)", lesson.id, lesson.title, awarded)
        await self._publish(EventTypes.LESSON_COMPLETED, "progression", {
            "lesson_id": lesson.id,
            "xp_awarded": awarded,
            "xp": updated.ledger.xp,
        })
        await self._announce(unlocked)
        return updated, awarded

    async def subscribe(self) -> ProgressionState:
        """Cosmetic subscription: set the premium flag."""
        async with self._progress_lock:
            state = self._progress.set_premium(True)
            state, unlocked = achievements.evaluate(state, self._rules)
            if unlocked:
                self._progress.save(state)

        await self._publish(EventTypes.PREMIUM_ACTIVATED, "progression", {})
        await self._announce(unlocked)
        return state

    async def reset(self) -> ProgressionState:
        async with self._progress_lock:
            state = self._progress.reset()
        await self._publish(EventTypes.PROGRESS_RESET, "progression", {})
        return state

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _announce(self, unlocked: list[str]) -> None:
        for achievement in unlocked:
            logger.info("Achievement unlocked: %s", achievement)
            await self._publish(EventTypes.ACHIEVEMENT_UNLOCKED, "progression", {
                "achievement": achievement,
            })

    async def _publish(self, event_type: str, source: str, payload: dict) -> None:
        await self._bus.publish(Event(type=event_type, source=source, payload=payload))
