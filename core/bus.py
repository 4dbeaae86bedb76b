"""AsyncIOBus -- in-process async pub/sub for market and progression events.

Subscriber failures are logged and never reach the publisher. When an
events directory is given, every event is also appended to a daily JSONL
audit file.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Coroutine

from core.models.events import Event

logger = logging.getLogger(__name__)

Callback = Callable[[Event], Coroutine[Any, Any, None]]


class AsyncIOBus:
    """In-process async pub/sub event bus with optional JSONL audit logging.

    Usage:
        bus = AsyncIOBus(events_dir=Path("~/.investlearn/events"))
        bus.subscribe("trade.executed", my_handler)
        await bus.publish(event)
    """

    def __init__(self, events_dir: Path | None = None) -> None:
        self._subscribers: dict[str, list[Callback]] = {}
        self._wildcard_subscribers: list[Callback] = []
        self._events_dir = events_dir
        if self._events_dir is not None:
            self._events_dir.mkdir(parents=True, exist_ok=True)

    async def publish(self, event: Event) -> None:
        """Persist to the audit log (if enabled), then dispatch to subscribers."""
        if self._events_dir is not None:
            self._persist(event)

        callbacks = self._subscribers.get(event.type, []) + self._wildcard_subscribers
        if not callbacks:
            logger.debug("No subscribers for event type: %s", event.type)
            return

        logger.debug("Publishing %s to %d subscriber(s)", event.type, len(callbacks))
        await asyncio.gather(
            *(self._safe_invoke(cb, event) for cb in callbacks),
            return_exceptions=True,
        )

    def subscribe(self, event_type: str, callback: Callback) -> None:
        """Register a callback for events of the given type ("*" for all)."""
        if event_type == "*":
            self._wildcard_subscribers.append(callback)
        else:
            self._subscribers.setdefault(event_type, []).append(callback)
        logger.debug("Subscribed to '%s': %s", event_type, callback)

    def unsubscribe(self, event_type: str, callback: Callback) -> None:
        """Remove a previously registered callback."""
        if event_type == "*":
            callbacks = self._wildcard_subscribers
        else:
            callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    async def _safe_invoke(self, callback: Callback, event: Event) -> None:
        try:
            await callback(event)
        except Exception:
            logger.exception("Error in event handler for %s (%s)", event.type, event.id)

    def _persist(self, event: Event) -> None:
        """Append event to today's JSONL audit file."""
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        filepath = self._events_dir / f"{today}.jsonl"
        try:
            with open(filepath, "a") as f:
                f.write(event.model_dump_json() + "\n")
        except OSError:
            logger.exception("Failed to persist event to %s", filepath)

    def subscriber_count(self, event_type: str | None = None) -> int:
        """Return the number of subscribers, optionally filtered by event type."""
        if event_type is None:
            total = sum(len(cbs) for cbs in self._subscribers.values())
            return total + len(self._wildcard_subscribers)
        if event_type == "*":
            return len(self._wildcard_subscribers)
        return len(self._subscribers.get(event_type, []))
