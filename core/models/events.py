"""Event model -- notifications published when market or user state changes."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field


class Event(BaseModel):
    """A typed notification flowing through the bus.

    Payloads are JSON-ready dicts so events can be appended to the audit log
    as-is.
    """

    id: str = Field(default_factory=lambda: f"evt_{uuid4().hex[:12]}")
    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str
    payload: dict = Field(default_factory=dict)


# -- Event type constants --

class EventTypes:
    """Well-known event type strings."""

    # Market
    MARKET_TICKED = "market.ticked"

    # Trading
    TRADE_EXECUTED = "trade.executed"
    TRADE_REJECTED = "trade.rejected"

    # Progression
    XP_AWARDED = "xp.awarded"
    LESSON_COMPLETED = "lesson.completed"
    ACHIEVEMENT_UNLOCKED = "achievement.unlocked"
    PREMIUM_ACTIVATED = "premium.activated"
    PROGRESS_RESET = "progress.reset"
