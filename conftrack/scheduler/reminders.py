"""Reminder scheduler.

Registers one named host timer per future reminder of a subscription,
clears them on unsubscribe, and turns a fired timer back into a
notification. Every timer operation is isolated: a failure is recorded in
the batch outcome and logged, and the remaining offsets still run.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from ..host import Clock, Timer
from .events import EngineState, ShowNotification, TimerFired, react
from .models import Subscription
from .schedule import anchor_for, reminders_for_class, timer_belongs_to
from .types import (
    REMINDER_TABLE,
    TIMER_PREFIX,
    BatchOutcome,
    ReminderResult,
)

if TYPE_CHECKING:
    from ..services.notification import NotificationDispatcher
    from ..services.subscriptions import SubscriptionStore

logger = logger.bind(module="conftrack.scheduler")


class ReminderScheduler:
    """Computes, registers and cancels a subscription's reminders."""

    def __init__(
        self,
        timer: Timer,
        clock: Clock,
        store: "SubscriptionStore",
        dispatcher: "NotificationDispatcher",
    ):
        """Initialize scheduler.

        Args:
            timer: Host timer facility
            clock: Source of "now" when the caller does not pass one
            store: Subscription lookup for fired timers
            dispatcher: Where fired reminders are shown
        """
        self.timer = timer
        self.clock = clock
        self.store = store
        self.dispatcher = dispatcher

    async def schedule_for(
        self,
        subscription: Subscription,
        now: datetime | None = None,
    ) -> BatchOutcome:
        """Register every future reminder of a subscription.

        Offsets whose fire time is not strictly after ``now`` are skipped
        silently. An anchor date that cannot be parsed, or a timer that fails
        to register, is recorded as a failed item.
        """
        now = now or self.clock.now()
        outcome = BatchOutcome(subscription_id=subscription.id)

        for reminder_class, offsets in REMINDER_TABLE.items():
            try:
                anchor = anchor_for(subscription, reminder_class)
            except ValueError as e:
                logger.warning(
                    f"No {reminder_class.value} reminders for {subscription.id}: {e}"
                )
                for offset in offsets:
                    name = f"{TIMER_PREFIX}{subscription.id}-{reminder_class.value}-{offset}"
                    outcome.results.append(ReminderResult(name=name, ok=False, error=str(e)))
                continue

            for reminder in reminders_for_class(subscription.id, reminder_class, anchor, now):
                try:
                    await self.timer.create(reminder.name, reminder.fires_at)
                except Exception as e:
                    logger.error(f"Failed to register {reminder.name}: {e}")
                    outcome.results.append(
                        ReminderResult(name=reminder.name, ok=False, reminder=reminder, error=str(e))
                    )
                    continue
                outcome.results.append(ReminderResult(name=reminder.name, ok=True, reminder=reminder))

        logger.info(
            f"Scheduled {len(outcome.reminders)} reminders for {subscription.id}"
            + (f" ({len(outcome.failures)} failed)" if outcome.failures else "")
        )
        return outcome

    async def cancel_for(self, subscription_id: str) -> BatchOutcome:
        """Clear every host timer belonging to a subscription (best effort)."""
        outcome = BatchOutcome(subscription_id=subscription_id)
        try:
            names = await self.timer.list_names()
        except Exception as e:
            logger.error(f"Failed to enumerate timers for {subscription_id}: {e}")
            outcome.results.append(ReminderResult(
                name=f"{TIMER_PREFIX}{subscription_id}", ok=False, error=str(e),
            ))
            return outcome

        for name in names:
            if not timer_belongs_to(name, subscription_id):
                continue
            try:
                await self.timer.clear(name)
            except Exception as e:
                logger.error(f"Failed to clear {name}: {e}")
                outcome.results.append(ReminderResult(name=name, ok=False, error=str(e)))
                continue
            outcome.results.append(ReminderResult(name=name, ok=True))

        logger.info(f"Cancelled {len(outcome.names)} reminders for {subscription_id}")
        return outcome

    async def pending_for(self, subscription_id: str) -> list[str]:
        """Names of the host timers currently registered for a subscription."""
        try:
            names = await self.timer.list_names()
        except Exception as e:
            logger.error(f"Failed to enumerate timers: {e}")
            return []
        return sorted(n for n in names if timer_belongs_to(n, subscription_id))

    async def handle_fired(self, name: str) -> bool:
        """Timer callback: show the reminder if its subscription still exists.

        Returns:
            True if a notification was delivered
        """
        try:
            state = EngineState(subscriptions=tuple(await self.store.list_subscriptions()))
            _, effects = react(TimerFired(name), state)
        except Exception as e:
            logger.error(f"Error processing reminder {name}: {e}")
            return False

        if not effects:
            logger.debug(f"Ignoring timer {name}")
            return False

        delivered = False
        for effect in effects:
            if isinstance(effect, ShowNotification):
                delivered = await self.dispatcher.show(effect.title, effect.message) or delivered
        return delivered
