"""Progression model -- the aggregate that is persisted per user."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from core.models.ledger import LedgerState
from core.money import to_json_string

SCHEMA_VERSION = 1


class ProgressionState(BaseModel):
    """LedgerState plus achievements, lesson progress and the premium flag."""

    user_id: str = "you"
    name: str = "You"
    ledger: LedgerState
    achievements: list[str] = Field(default_factory=list)
    premium: bool = False
    completed_lessons: list[int] = Field(default_factory=list)
    trades_executed: int = Field(default=0, ge=0)

    @field_validator("achievements")
    @classmethod
    def _unique_achievements(cls, value: list[str]) -> list[str]:
        return sorted(set(value))

    @field_validator("completed_lessons")
    @classmethod
    def _unique_lessons(cls, value: list[int]) -> list[int]:
        return sorted(set(value))

    @property
    def cash(self) -> Decimal:
        return self.ledger.cash

    @property
    def xp(self) -> int:
        return self.ledger.xp

    def to_blob(self) -> dict:
        """Flatten into the persisted JSON layout. Cash is an exact decimal string."""
        ledger = self.ledger.model_dump(mode="json")
        return {
            "schema_version": SCHEMA_VERSION,
            "user_id": self.user_id,
            "name": self.name,
            "cash": to_json_string(self.ledger.cash),
            "holdings": ledger["holdings"],
            "xp": ledger["xp"],
            "achievements": list(self.achievements),
            "premium": self.premium,
            "completed_lessons": list(self.completed_lessons),
            "trades_executed": self.trades_executed,
        }

    @classmethod
    def from_blob(cls, blob: dict, defaults: ProgressionState) -> ProgressionState:
        """Rebuild from a persisted blob, filling gaps from `defaults`.

        Blobs without `schema_version` come from the original prototype:
        holdings lived under `portfolio`, user id under `id`, and sold-out
        positions could be left behind as zero.
        """
        if not isinstance(blob, dict):
            raise ValueError(f"Expected a JSON object, got {type(blob).__name__}")

        version = blob.get("schema_version", 0)
        if version == 0:
            blob = _migrate_v0(blob)
        elif version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema_version: {version!r}")

        ledger = LedgerState(
            cash=blob.get("cash", defaults.ledger.cash),
            holdings=blob.get("holdings", {}),
            xp=blob.get("xp", 0),
        )
        return cls(
            user_id=blob.get("user_id", defaults.user_id),
            name=blob.get("name", defaults.name),
            ledger=ledger,
            achievements=blob.get("achievements", []),
            premium=blob.get("premium", False),
            completed_lessons=blob.get("completed_lessons", []),
            trades_executed=blob.get("trades_executed", 0),
        )


def _migrate_v0(blob: dict) -> dict:
    migrated = dict(blob)
    if "holdings" not in migrated and "portfolio" in migrated:
        migrated["holdings"] = migrated.pop("portfolio")
    if "user_id" not in migrated and "id" in migrated:
        migrated["user_id"] = migrated.pop("id")
    holdings = migrated.get("holdings")
    if isinstance(holdings, dict):
        migrated["holdings"] = {k: v for k, v in holdings.items() if v != 0}
    return migrated
