"""Deterministic host fakes for unit tests."""
from datetime import datetime, timedelta

from conftrack.conferences.models import ConferenceInstance, ConferenceRecord
from conftrack.errors import SchedulingError, StorageError
from conftrack.host import TimerHandler
from conftrack.storage.kv import MemoryKeyValueStore


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.current = now or datetime(2024, 9, 1, 9, 0, 0)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeTimer:
    """In-memory host timer facility.

    - Records registered timers by name
    - Can be told to fail for specific names
    - ``fire`` simulates the host delivering an expired timer
    """

    def __init__(self):
        self.timers: dict[str, datetime] = {}
        self.handler: TimerHandler | None = None
        self.started = False
        self.fail_create: set[str] = set()
        self.fail_clear: set[str] = set()
        self.fail_list = False

    def set_handler(self, handler: TimerHandler) -> None:
        self.handler = handler

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    async def create(self, name: str, when: datetime) -> None:
        if name in self.fail_create:
            raise SchedulingError(f"cannot create {name}")
        self.timers[name] = when

    async def list_names(self) -> list[str]:
        if self.fail_list:
            raise SchedulingError("cannot list timers")
        return list(self.timers)

    async def clear(self, name: str) -> bool:
        if name in self.fail_clear:
            raise SchedulingError(f"cannot clear {name}")
        return self.timers.pop(name, None) is not None

    async def fire(self, name: str) -> None:
        self.timers.pop(name, None)
        assert self.handler is not None
        await self.handler(name)


class RecordingNotifier:
    """Notifier that records what it was asked to show."""

    def __init__(self, granted: bool = True, grant_on_request: bool = True):
        self.granted = granted
        self.grant_on_request = grant_on_request
        self.permission_requests = 0
        self.fail = False
        self.closed = False
        self.sent: list[tuple[str, str]] = []

    async def has_permission(self) -> bool:
        return self.granted

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        self.granted = self.grant_on_request
        return self.granted

    async def notify(self, title: str, message: str) -> None:
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append((title, message))

    async def close(self) -> None:
        self.closed = True

    @property
    def messages(self) -> list[str]:
        return [m for _, m in self.sent]


class StaticFetcher:
    """DataFetcher returning fixed records, or raising a fixed error."""

    def __init__(self, records: list[ConferenceRecord] | None = None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls = 0

    async def fetch(self) -> list[ConferenceRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


class FlakyKeyValueStore(MemoryKeyValueStore):
    """Memory store whose reads/writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.closed = False

    async def get(self, key):
        if self.fail_get:
            raise StorageError(f"read failed for {key}")
        return await super().get(key)

    async def set(self, key, value):
        if self.fail_set:
            raise StorageError(f"write failed for {key}")
        await super().set(key, value)

    async def close(self):
        self.closed = True


def make_record(
    title: str = "ICLR",
    year: int = 2025,
    instance_id: str | None = "iclr-2025",
    deadline: str = "2024-09-27",
    date: str = "2025-05-01",
    category: str = "Machine Learning",
) -> ConferenceRecord:
    return ConferenceRecord(
        id=title.lower(),
        title=title,
        description=f"{title} conference",
        category=category,
        rank={"ccf": "A"},
        instances=[
            ConferenceInstance(
                year=year,
                instance_id=instance_id,
                date=date,
                place="Singapore",
                deadline=deadline,
            ),
        ],
    )
