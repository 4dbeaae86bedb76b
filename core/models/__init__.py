"""Pydantic data models shared across all components."""

from core.models.events import Event, EventTypes
from core.models.ledger import LedgerState, RejectionReason, TradeIntent, TradeResult
from core.models.lessons import LESSONS, Lesson
from core.models.market import Market, PricePoint, PriceSeries
from core.models.progression import ProgressionState

__all__ = [
    "Event",
    "EventTypes",
    "LedgerState",
    "RejectionReason",
    "TradeIntent",
    "TradeResult",
    "LESSONS",
    "Lesson",
    "Market",
    "PricePoint",
    "PriceSeries",
    "ProgressionState",
]
