"""Host events and the engine's pure reaction to them.

The host delivers three kinds of event: a timer fired, the process started,
or the tracker was installed for the first time. ``react`` maps
``(event, state)`` to ``(new state, effects)`` without touching any
I/O; ``ConferenceTracker`` interprets the effects.
"""
from dataclasses import dataclass, field

from .models import Subscription
from .schedule import parse_timer_name
from .types import ReminderClass, TimerName


# ============== Events ==============

@dataclass(frozen=True)
class TimerFired:
    """A host timer expired."""
    name: str


@dataclass(frozen=True)
class Startup:
    """The process (re)started."""


@dataclass(frozen=True)
class Installed:
    """First run on this host."""


Event = TimerFired | Startup | Installed


# ============== Effects ==============

@dataclass(frozen=True)
class ShowNotification:
    title: str
    message: str


@dataclass(frozen=True)
class Reschedule:
    """Re-derive and register every reminder of a subscription."""
    subscription: Subscription


@dataclass(frozen=True)
class PreloadConferences:
    """Warm the conference cache."""


Effect = ShowNotification | Reschedule | PreloadConferences


@dataclass(frozen=True)
class EngineState:
    """What the reaction needs to know about the world."""
    subscriptions: tuple[Subscription, ...] = field(default_factory=tuple)

    def find(self, subscription_id: str) -> Subscription | None:
        for sub in self.subscriptions:
            if sub.id == subscription_id:
                return sub
        return None


# ============== Messages ==============

WELCOME_MESSAGE = (
    "ConfTrack successfully installed! Begin subscribing to your preferred conferences now."
)


def reminder_title(reminder_class: ReminderClass) -> str:
    if reminder_class == ReminderClass.DEADLINE:
        return "Submission deadline reminder"
    return "Conference reminder"


def reminder_message(timer: TimerName, subscription: Subscription) -> str:
    """Human-readable text for a fired reminder."""
    days = timer.offset_days
    if timer.reminder_class == ReminderClass.DEADLINE:
        return (
            f"Only {days} days left until the {subscription.title} {subscription.year} deadline! "
            "Submit your paper now."
        )
    return (
        f"{subscription.title} {subscription.year} will commence in {days} days. "
        "Please prepare for your participation!"
    )


# ============== Reaction ==============

def react(event: Event, state: EngineState) -> tuple[EngineState, list[Effect]]:
    """Decide what to do for a host event.

    - TimerFired: one notification if the timer is ours and its
      subscription still exists; nothing otherwise (unrelated timer, or a
      race with unsubscribe).
    - Startup: preload conference data and re-derive every subscription's
      reminders.
    - Installed: preload conference data and greet the user.

    None of the host events mutate subscriptions, so the state is returned
    unchanged.
    """
    if isinstance(event, TimerFired):
        timer = parse_timer_name(event.name)
        if timer is None:
            return state, []
        subscription = state.find(timer.subscription_id)
        if subscription is None:
            return state, []
        return state, [ShowNotification(
            title=reminder_title(timer.reminder_class),
            message=reminder_message(timer, subscription),
        )]

    if isinstance(event, Startup):
        effects: list[Effect] = [PreloadConferences()]
        effects.extend(Reschedule(sub) for sub in state.subscriptions)
        return state, effects

    if isinstance(event, Installed):
        return state, [
            PreloadConferences(),
            ShowNotification(title="Welcome", message=WELCOME_MESSAGE),
        ]

    return state, []
