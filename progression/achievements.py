"""Achievement rules -- deterministic badges unlocked by progression state.

Each rule exposes a `name` (the achievement id) and `is_met(state)`.
Unlocked achievements are never revoked; only an explicit reset clears them.
"""

from __future__ import annotations

from typing import Protocol

from core.models.lessons import LESSONS, Lesson
from core.models.progression import ProgressionState


class AchievementRule(Protocol):
    @property
    def name(self) -> str: ...

    def is_met(self, state: ProgressionState) -> bool: ...


class FirstTradeRule:
    """Unlocked by the first accepted trade."""

    @property
    def name(self) -> str:
        return "first_trade"

    def is_met(self, state: ProgressionState) -> bool:
        return state.trades_executed >= 1


class DiversifiedRule:
    """Holding several different instruments at once."""

    def __init__(self, min_symbols: int = 3) -> None:
        self.min_symbols = min_symbols

    @property
    def name(self) -> str:
        return "diversified"

    def is_met(self, state: ProgressionState) -> bool:
        return len(state.ledger.holdings) >= self.min_symbols


class ScholarRule:
    """Every lesson in the catalog completed."""

    def __init__(self, lessons: tuple[Lesson, ...] = LESSONS) -> None:
        self._lesson_ids = {lesson.id for lesson in lessons}

    @property
    def name(self) -> str:
        return "scholar"

    def is_met(self, state: ProgressionState) -> bool:
        return bool(self._lesson_ids) and self._lesson_ids.issubset(state.completed_lessons)


class XpMilestoneRule:
    def __init__(self, threshold: int) -> None:
        self.threshold = threshold

    @property
    def name(self) -> str:
        return f"xp_{self.threshold}"

    def is_met(self, state: ProgressionState) -> bool:
        return state.ledger.xp >= self.threshold


class PremiumRule:
    @property
    def name(self) -> str:
        return "premium_member"

    def is_met(self, state: ProgressionState) -> bool:
        return state.premium


def default_rules(lessons: tuple[Lesson, ...] = LESSONS) -> list[AchievementRule]:
    return [
        FirstTradeRule(),
        DiversifiedRule(),
        ScholarRule(lessons),
        XpMilestoneRule(100),
        XpMilestoneRule(500),
        PremiumRule(),
    ]


def evaluate(
    state: ProgressionState,
    rules: list[AchievementRule],
) -> tuple[ProgressionState, list[str]]:
    """Return (state with new achievements added, ids newly unlocked)."""
    unlocked = [
        rule.name for rule in rules
        if rule.name not in state.achievements and rule.is_met(state)
    ]
    if not unlocked:
        return state, []
    updated = state.model_copy(update={"achievements": sorted({*state.achievements, *unlocked})})
    return updated, unlocked
