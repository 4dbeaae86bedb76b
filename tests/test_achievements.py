"""Tests for achievement rules."""

from decimal import Decimal

from core.models.ledger import LedgerState
from core.models.lessons import LESSONS
from core.models.progression import ProgressionState
from progression.achievements import (
    DiversifiedRule,
    FirstTradeRule,
    PremiumRule,
    ScholarRule,
    XpMilestoneRule,
    default_rules,
    evaluate,
)


def make_state(**overrides):
    ledger = overrides.pop("ledger", LedgerState(cash=Decimal("10000")))
    return ProgressionState(ledger=ledger, **overrides)


def test_fresh_state_unlocks_nothing():
    state, unlocked = evaluate(make_state(), default_rules())
    assert unlocked == []
    assert state.achievements == []


def test_first_trade():
    assert not FirstTradeRule().is_met(make_state())
    assert FirstTradeRule().is_met(make_state(trades_executed=1))


def test_diversified_needs_three_symbols():
    two = make_state(ledger=LedgerState(cash=Decimal("0"), holdings={"A": 1, "B": 1}))
    three = make_state(ledger=LedgerState(cash=Decimal("0"), holdings={"A": 1, "B": 1, "C": 1}))
    assert not DiversifiedRule().is_met(two)
    assert DiversifiedRule().is_met(three)


def test_scholar_needs_every_lesson():
    rule = ScholarRule(LESSONS)
    assert not rule.is_met(make_state(completed_lessons=[1, 2]))
    assert rule.is_met(make_state(completed_lessons=[1, 2, 3]))


def test_xp_milestone_name_and_threshold():
    rule = XpMilestoneRule(100)
    assert rule.name == "xp_100"
    assert not rule.is_met(make_state(ledger=LedgerState(cash=Decimal("0"), xp=99)))
    assert rule.is_met(make_state(ledger=LedgerState(cash=Decimal("0"), xp=100)))


def test_premium_rule():
    assert PremiumRule().is_met(make_state(premium=True))


def test_evaluate_adds_new_and_keeps_existing():
    state = make_state(
        achievements=["first_trade"],
        trades_executed=3,
        ledger=LedgerState(cash=Decimal("0"), xp=150),
    )
    updated, unlocked = evaluate(state, default_rules())
    assert unlocked == ["xp_100"]
    assert updated.achievements == ["first_trade", "xp_100"]


def test_achievements_are_never_revoked():
    # achievement already present, condition no longer true
    state = make_state(achievements=["diversified"])
    updated, unlocked = evaluate(state, default_rules())
    assert unlocked == []
    assert "diversified" in updated.achievements
