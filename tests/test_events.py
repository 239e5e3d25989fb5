"""Tests for the pure event reaction."""
from conftrack.scheduler.events import (
    WELCOME_MESSAGE,
    EngineState,
    Installed,
    PreloadConferences,
    Reschedule,
    ShowNotification,
    Startup,
    TimerFired,
    react,
)
from conftrack.scheduler.models import Subscription


class TestReact:
    """Tests for react(event, state)."""

    def test_deadline_timer(self, iclr):
        state = EngineState(subscriptions=(iclr,))
        new_state, effects = react(TimerFired("conference-iclr-2025-deadline-3"), state)

        assert new_state == state
        assert effects == [ShowNotification(
            title="Submission deadline reminder",
            message="Only 3 days left until the ICLR 2025 deadline! Submit your paper now.",
        )]

    def test_conference_timer(self, iclr):
        _, effects = react(TimerFired("conference-iclr-2025-conference-14"), EngineState((iclr,)))
        assert effects == [ShowNotification(
            title="Conference reminder",
            message="ICLR 2025 will commence in 14 days. Please prepare for your participation!",
        )]

    def test_unsubscribed_timer_is_dropped(self, iclr):
        _, effects = react(TimerFired("conference-neurips-2025-deadline-3"), EngineState((iclr,)))
        assert effects == []

    def test_foreign_timer_is_ignored(self, iclr):
        _, effects = react(TimerFired("daily-backup"), EngineState((iclr,)))
        assert effects == []

    def test_startup_reschedules_everything(self, iclr):
        other = Subscription(id="DAC-2025", title="DAC", year=2025, deadline="2024-11-19", date="2025-06-22")
        _, effects = react(Startup(), EngineState((iclr, other)))
        assert effects == [PreloadConferences(), Reschedule(iclr), Reschedule(other)]

    def test_startup_without_subscriptions(self):
        _, effects = react(Startup(), EngineState())
        assert effects == [PreloadConferences()]

    def test_installed_greets(self):
        _, effects = react(Installed(), EngineState())
        assert effects == [PreloadConferences(), ShowNotification("Welcome", WELCOME_MESSAGE)]
