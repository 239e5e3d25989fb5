"""Tests for the reminder scheduler."""
from datetime import datetime

import pytest

from conftrack.scheduler.models import Subscription
from conftrack.scheduler.reminders import ReminderScheduler
from conftrack.services.notification import NotificationDispatcher
from conftrack.services.subscriptions import SubscriptionStore


@pytest.fixture
def store(kv, clock):
    return SubscriptionStore(kv, clock)


@pytest.fixture
def scheduler(timer, clock, store, notifier):
    return ReminderScheduler(timer, clock, store, NotificationDispatcher(notifier))


@pytest.fixture
def workshop():
    """An id that starts with another subscription's id."""
    return Subscription(id="iclr-2025-ws", title="ICLR Workshop", year=2025,
                        deadline="2024-10-20", date="2025-05-02")


class TestScheduleFor:
    """Tests for registering reminders."""

    @pytest.mark.asyncio
    async def test_registers_future_reminders(self, scheduler, timer, iclr):
        outcome = await scheduler.schedule_for(iclr)

        assert outcome.ok
        assert len(outcome.names) == 9
        assert set(timer.timers) == set(outcome.names)
        assert "conference-iclr-2025-deadline-30" not in timer.timers
        assert timer.timers["conference-iclr-2025-deadline-14"] == datetime(2024, 9, 13)
        assert timer.timers["conference-iclr-2025-conference-30"] == datetime(2025, 4, 1)

    @pytest.mark.asyncio
    async def test_explicit_now(self, scheduler, iclr):
        outcome = await scheduler.schedule_for(iclr, now=datetime(2024, 9, 25))
        deadline = [r.offset_days for r in outcome.reminders if r.reminder_class.value == "deadline"]
        assert deadline == [1]

    @pytest.mark.asyncio
    async def test_rescheduling_does_not_duplicate(self, scheduler, timer, iclr):
        await scheduler.schedule_for(iclr)
        await scheduler.schedule_for(iclr)
        assert len(timer.timers) == 9

    @pytest.mark.asyncio
    async def test_partial_failure_continues(self, scheduler, timer, iclr):
        timer.fail_create = {"conference-iclr-2025-deadline-7"}

        outcome = await scheduler.schedule_for(iclr)

        assert not outcome.ok
        assert len(outcome.names) == 8
        [failure] = outcome.failures
        assert failure.name == "conference-iclr-2025-deadline-7"
        assert failure.reminder is not None
        assert failure.error
        assert "conference-iclr-2025-deadline-3" in timer.timers

    @pytest.mark.asyncio
    async def test_unparseable_deadline(self, scheduler, timer):
        sub = Subscription(id="tbd-2025", title="TBD", year=2025, deadline="TBD", date="2025-05-01")

        outcome = await scheduler.schedule_for(sub)

        assert [f.name for f in outcome.failures] == [
            f"conference-tbd-2025-deadline-{d}" for d in (30, 14, 7, 3, 1)
        ]
        assert len(outcome.names) == 5
        assert all(name.startswith("conference-tbd-2025-conference-") for name in timer.timers)

    @pytest.mark.asyncio
    async def test_past_conference_schedules_nothing(self, scheduler, timer):
        sub = Subscription(id="old", title="Old", year=2020, deadline="2019-11-01", date="2020-06-01")
        outcome = await scheduler.schedule_for(sub)
        assert outcome.ok
        assert outcome.results == []
        assert timer.timers == {}


class TestCancelFor:
    """Tests for clearing reminders."""

    @pytest.mark.asyncio
    async def test_clears_only_that_subscription(self, scheduler, timer, iclr, workshop):
        await scheduler.schedule_for(iclr)
        await scheduler.schedule_for(workshop)
        timer.timers["daily-backup"] = datetime(2030, 1, 1)

        outcome = await scheduler.cancel_for("iclr-2025")

        assert outcome.ok
        assert len(outcome.names) == 9
        assert await scheduler.pending_for("iclr-2025") == []
        assert len(await scheduler.pending_for("iclr-2025-ws")) == 10
        assert "daily-backup" in timer.timers

    @pytest.mark.asyncio
    async def test_clears_legacy_name(self, scheduler, timer):
        timer.timers["conference-iclr-2025"] = datetime(2030, 1, 1)
        outcome = await scheduler.cancel_for("iclr-2025")
        assert outcome.names == ["conference-iclr-2025"]
        assert timer.timers == {}

    @pytest.mark.asyncio
    async def test_clear_failure_continues(self, scheduler, timer, iclr):
        await scheduler.schedule_for(iclr)
        timer.fail_clear = {"conference-iclr-2025-conference-7"}

        outcome = await scheduler.cancel_for("iclr-2025")

        assert [f.name for f in outcome.failures] == ["conference-iclr-2025-conference-7"]
        assert list(timer.timers) == ["conference-iclr-2025-conference-7"]

    @pytest.mark.asyncio
    async def test_list_failure(self, scheduler, timer):
        timer.fail_list = True
        outcome = await scheduler.cancel_for("iclr-2025")
        assert [f.name for f in outcome.failures] == ["conference-iclr-2025"]


class TestHandleFired:
    """Tests for turning fired timers into notifications."""

    @pytest.mark.asyncio
    async def test_deadline_reminder(self, scheduler, store, notifier, iclr):
        await store.add(iclr)

        assert await scheduler.handle_fired("conference-iclr-2025-deadline-7") is True
        assert notifier.sent == [(
            "Submission deadline reminder",
            "Only 7 days left until the ICLR 2025 deadline! Submit your paper now.",
        )]

    @pytest.mark.asyncio
    async def test_conference_reminder(self, scheduler, store, notifier, iclr):
        await store.add(iclr)

        await scheduler.handle_fired("conference-iclr-2025-conference-1")
        assert notifier.messages == [
            "ICLR 2025 will commence in 1 days. Please prepare for your participation!"
        ]

    @pytest.mark.asyncio
    async def test_missing_subscription_is_dropped(self, scheduler, notifier):
        assert await scheduler.handle_fired("conference-iclr-2025-deadline-7") is False
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_foreign_timer_is_ignored(self, scheduler, store, notifier, iclr):
        await store.add(iclr)
        assert await scheduler.handle_fired("daily-backup") is False
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_permission_denied(self, scheduler, store, notifier, iclr):
        await store.add(iclr)
        notifier.granted = False
        notifier.grant_on_request = False

        assert await scheduler.handle_fired("conference-iclr-2025-deadline-7") is False
        assert notifier.sent == []
