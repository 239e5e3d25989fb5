"""Shared fixtures: a tracker wired entirely with in-memory fakes."""
import pytest

from conftrack.host import HostServices
from conftrack.scheduler.models import Subscription
from conftrack.services.tracker import ConferenceTracker

from .fakes import (
    FixedClock,
    FakeTimer,
    FlakyKeyValueStore,
    RecordingNotifier,
    StaticFetcher,
    make_record,
)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture()
def kv() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def fetcher() -> StaticFetcher:
    return StaticFetcher([make_record(), make_record(title="DAC", instance_id=None,
                                                     deadline="2024-11-19", date="2025-06-22")])


@pytest.fixture()
def host(clock, timer, kv, notifier) -> HostServices:
    return HostServices(clock=clock, timer=timer, kv=kv, notifier=notifier)


@pytest.fixture()
def tracker(host, fetcher) -> ConferenceTracker:
    return ConferenceTracker(host, fetcher)


@pytest.fixture()
def iclr() -> Subscription:
    return Subscription(
        id="iclr-2025",
        title="ICLR",
        year=2025,
        deadline="2024-09-27",
        date="2025-05-01",
    )
