"""Core type definitions for reminder scheduling.

This module defines:
- Reminder classes and the fixed offset table
- ScheduledReminder, the derived (never persisted) timer description
- Timer-name parsing results
- Per-item results collected into a batch outcome
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ============== Reminder Table ==============

class ReminderClass(str, Enum):
    """What a reminder counts down to."""
    DEADLINE = "deadline"       # Anchored to the submission deadline
    CONFERENCE = "conference"   # Anchored to the conference start date


# Days before the anchor date at which each class fires
REMINDER_OFFSETS: tuple[int, ...] = (30, 14, 7, 3, 1)

REMINDER_TABLE: dict[ReminderClass, tuple[int, ...]] = {
    ReminderClass.DEADLINE: REMINDER_OFFSETS,
    ReminderClass.CONFERENCE: REMINDER_OFFSETS,
}

# Every timer the engine owns starts with this prefix
TIMER_PREFIX = "conference-"


# ============== Reminders ==============

@dataclass(frozen=True)
class ScheduledReminder:
    """One future reminder derived from a subscription."""
    subscription_id: str
    reminder_class: ReminderClass
    offset_days: int
    fires_at: datetime

    @property
    def name(self) -> str:
        """Deterministic host timer name; re-scheduling replaces, never duplicates."""
        return f"{TIMER_PREFIX}{self.subscription_id}-{self.reminder_class.value}-{self.offset_days}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "subscription_id": self.subscription_id,
            "class": self.reminder_class.value,
            "offset_days": self.offset_days,
            "fires_at": self.fires_at.isoformat(),
        }


@dataclass(frozen=True)
class TimerName:
    """The parts encoded in a fired timer's name."""
    subscription_id: str
    reminder_class: ReminderClass
    offset_days: int


# ============== Result Types ==============

@dataclass
class ReminderResult:
    """Outcome of registering or clearing a single timer."""
    name: str
    ok: bool
    reminder: ScheduledReminder | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "ok": self.ok,
            "reminder": self.reminder.to_dict() if self.reminder else None,
            "error": self.error,
        }


@dataclass
class BatchOutcome:
    """All per-timer results of one schedule/cancel call.

    A failed item never aborts the batch; callers inspect ``failures``.
    """
    subscription_id: str
    results: list[ReminderResult] = field(default_factory=list)

    @property
    def reminders(self) -> list[ScheduledReminder]:
        return [r.reminder for r in self.results if r.ok and r.reminder is not None]

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.results if r.ok]

    @property
    def failures(self) -> list[ReminderResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "subscription_id": self.subscription_id,
            "ok": self.ok,
            "results": [r.to_dict() for r in self.results],
        }
