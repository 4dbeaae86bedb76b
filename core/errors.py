"""Exceptions shared across components.

Trade rejections are NOT exceptions -- they come back as TradeResult values.
These cover infrastructure failures and caller mistakes.
"""

from __future__ import annotations


class InvestLearnError(Exception):
    """Base application error."""


class PersistenceError(InvestLearnError):
    """Reading or writing persisted state failed at the I/O level."""


class CorruptStateError(InvestLearnError):
    """Persisted state exists but cannot be parsed or validated."""


class UnknownInstrumentError(InvestLearnError, KeyError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Unknown instrument: {symbol}")

    def __str__(self) -> str:
        return self.args[0]


class UnknownLessonError(InvestLearnError, KeyError):
    def __init__(self, lesson_id: int) -> None:
        self.lesson_id = lesson_id
        super().__init__(f"Unknown lesson: {lesson_id}")

    def __str__(self) -> str:
        return self.args[0]
