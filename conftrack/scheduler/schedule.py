"""Reminder time calculation utilities.

Computes fire times for a subscription's reminders, parses the dates found
in conference data (via python-dateutil), and encodes/decodes the host
timer names. Everything here is pure: no I/O, ``now`` is always passed in.
"""
from datetime import datetime, timedelta

from dateutil import parser as dateparser

from .models import Subscription
from .types import (
    REMINDER_TABLE,
    TIMER_PREFIX,
    ReminderClass,
    ScheduledReminder,
    TimerName,
)

_DAY_SECONDS = 24 * 60 * 60

# Missing fields fall back to these instead of today's date
_DATE_DEFAULT = datetime(1970, 1, 1)


def to_ms(dt: datetime) -> int:
    """Timestamp of ``dt`` in milliseconds."""
    return int(dt.timestamp() * 1000)


def parse_date(value: str) -> datetime:
    """Parse a conference date string into a naive local datetime.

    Date-only values resolve to local midnight. Missing day or month fields
    become the 1st (``"May 2025"`` is 2025-05-01). Aware values are
    converted to local time first.

    Raises:
        ValueError: If the value is empty or not a date (e.g. ``"TBD"``)
    """
    text = (value or "").replace('"', "").replace("'", "").strip()
    if not text:
        raise ValueError("empty date")
    try:
        parsed = dateparser.parse(text, default=_DATE_DEFAULT)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"unparseable date {value!r}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def days_until(target: datetime, now: datetime) -> int:
    """Whole calendar days from ``now`` to ``target``.

    Time-of-day is zeroed on both sides and the difference is rounded to the
    nearest day, so a DST shift in between cannot cause an off-by-one.
    Today is 0; past dates are negative.
    """
    diff = (_midnight(target) - _midnight(now)).total_seconds()
    return int(round(diff / _DAY_SECONDS))


def anchor_for(subscription: Subscription, reminder_class: ReminderClass) -> datetime:
    """The date a reminder class counts down to."""
    if reminder_class == ReminderClass.DEADLINE:
        return parse_date(subscription.deadline)
    return parse_date(subscription.date)


def reminders_for_class(
    subscription_id: str,
    reminder_class: ReminderClass,
    anchor: datetime,
    now: datetime,
) -> list[ScheduledReminder]:
    """Future reminders of one class; past-dated offsets are skipped."""
    reminders: list[ScheduledReminder] = []
    for offset in REMINDER_TABLE[reminder_class]:
        fires_at = anchor - timedelta(days=offset)
        if fires_at > now:
            reminders.append(ScheduledReminder(
                subscription_id=subscription_id,
                reminder_class=reminder_class,
                offset_days=offset,
                fires_at=fires_at,
            ))
    return reminders


def plan_reminders(subscription: Subscription, now: datetime) -> list[ScheduledReminder]:
    """All future reminders for a subscription.

    A class whose anchor date cannot be parsed contributes nothing.
    """
    planned: list[ScheduledReminder] = []
    for reminder_class in REMINDER_TABLE:
        try:
            anchor = anchor_for(subscription, reminder_class)
        except ValueError:
            continue
        planned.extend(reminders_for_class(subscription.id, reminder_class, anchor, now))
    return planned


# ============== Timer Names ==============

def parse_timer_name(name: str) -> TimerName | None:
    """Decode ``conference-{subscriptionId}-{class}-{offsetDays}``.

    Splits on ``-`` from the right, so subscription ids containing ``-``
    survive. Returns None for names the engine does not own.
    """
    if not name.startswith(TIMER_PREFIX):
        return None
    parts = name[len(TIMER_PREFIX):].rsplit("-", 2)
    if len(parts) != 3 or not parts[0]:
        return None
    subscription_id, class_value, days = parts
    try:
        reminder_class = ReminderClass(class_value)
        offset_days = int(days)
    except ValueError:
        return None
    return TimerName(
        subscription_id=subscription_id,
        reminder_class=reminder_class,
        offset_days=offset_days,
    )


def timer_belongs_to(name: str, subscription_id: str) -> bool:
    """True if ``name`` is one of the subscription's timers.

    Also matches the legacy two-segment ``conference-{id}`` name.
    """
    if name == f"{TIMER_PREFIX}{subscription_id}":
        return True
    parsed = parse_timer_name(name)
    return parsed is not None and parsed.subscription_id == subscription_id
