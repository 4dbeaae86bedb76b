"""Progression store -- durable home of the user's ProgressionState.

Persistence is best-effort. A missing, unreadable or corrupt blob loads as
the default state; a failed save is logged and the in-memory state stays
authoritative for the rest of the session. Nothing here raises to callers.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from core.data.store import Store
from core.errors import CorruptStateError, PersistenceError
from core.models.progression import ProgressionState
from ledger.engine import Ledger

logger = logging.getLogger(__name__)


class ProgressionStore:
    """Wraps LedgerState + achievements + premium flag and persists them.

    Usage:
        progress = ProgressionStore(store, ledger)
        state = progress.load()
        progress.save(new_state)
    """

    def __init__(self, store: Store, ledger: Ledger, storage_key: str = "user") -> None:
        self._store = store
        self._ledger = ledger
        self._key = storage_key
        self._state = self.default_state()

    @property
    def state(self) -> ProgressionState:
        """Current in-memory state (authoritative)."""
        return self._state

    @property
    def storage_key(self) -> str:
        return self._key

    def default_state(self) -> ProgressionState:
        return ProgressionState(ledger=self._ledger.reset())

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> ProgressionState:
        """Restore persisted state, falling back to defaults."""
        self._state = self._read()
        return self._state

    def _read(self) -> ProgressionState:
        try:
            blob = self._store.read_blob(self._key)
        except PersistenceError:
            logger.exception("Could not read saved progress '%s', starting fresh", self._key)
            return self.default_state()
        except CorruptStateError as exc:
            logger.warning("Saved progress '%s' is corrupt (%s), starting fresh", self._key, exc)
            return self.default_state()

        if blob is None:
            logger.info("No saved progress under '%s', starting fresh", self._key)
            return self.default_state()

        try:
            state = ProgressionState.from_blob(blob, defaults=self.default_state())
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Saved progress '%s' failed validation (%s), starting fresh", self._key, exc)
            return self.default_state()

        logger.info(
            "Loaded progress '%s': cash=%s xp=%d holdings=%d",
            self._key, state.ledger.cash, state.ledger.xp, len(state.ledger.holdings),
        )
        return state

    def save(self, state: ProgressionState | None = None) -> bool:
        """Adopt `state` as current and try to persist it. Returns False on failure."""
        if state is not None:
            self._state = state
        try:
            self._store.write_blob(self._key, self._state.to_blob())
        except PersistenceError:
            logger.exception("Failed to save progress '%s'; keeping in-memory state", self._key)
            return False
        return True

    # ------------------------------------------------------------------
    # Flag flips
    # ------------------------------------------------------------------

    def set_premium(self, premium: bool = True) -> ProgressionState:
        """The whole subscription flow: flip a flag and save."""
        self.save(self._state.model_copy(update={"premium": premium}))
        logger.info("Premium set to %s", premium)
        return self._state

    def reset(self) -> ProgressionState:
        """Explicit user reset: back to defaults, persisted immediately."""
        self.save(self.default_state())
        logger.info("Progress '%s' reset", self._key)
        return self._state
