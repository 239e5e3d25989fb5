"""Reminder scheduling: subscription model, date math, host timers."""
from .events import EngineState, Installed, Startup, TimerFired, react
from .models import Subscription
from .reminders import ReminderScheduler
from .schedule import days_until, parse_date, parse_timer_name, plan_reminders
from .timer import APSchedulerTimer
from .types import (
    REMINDER_OFFSETS,
    TIMER_PREFIX,
    BatchOutcome,
    ReminderClass,
    ReminderResult,
    ScheduledReminder,
)

__all__ = [
    "APSchedulerTimer",
    "BatchOutcome",
    "EngineState",
    "Installed",
    "REMINDER_OFFSETS",
    "ReminderClass",
    "ReminderResult",
    "ReminderScheduler",
    "ScheduledReminder",
    "Startup",
    "Subscription",
    "TIMER_PREFIX",
    "TimerFired",
    "days_until",
    "parse_date",
    "parse_timer_name",
    "plan_reminders",
    "react",
]
