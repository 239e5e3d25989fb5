"""Host capability set injected into every engine component.

The engine never talks to a concrete runtime directly. Alarms, durable
storage, notifications and the wall clock are reached through these four
protocols, bundled as ``HostServices`` and swapped per host (APScheduler +
SQLite in production, in-memory fakes in tests).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Protocol


# ============== Protocol Definitions ==============

TimerHandler = Callable[[str], Awaitable[None]]


class Clock(Protocol):
    """Source of the current local wall-clock time."""

    def now(self) -> datetime:
        ...


class Timer(Protocol):
    """Named one-shot timers owned by the host.

    Creating a timer with an existing name replaces it. When a timer
    expires the host awaits the registered handler with the timer name.
    """

    def set_handler(self, handler: TimerHandler) -> None:
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def create(self, name: str, when: datetime) -> None:
        ...

    async def list_names(self) -> list[str]:
        ...

    async def clear(self, name: str) -> bool:
        ...


class KeyValueStore(Protocol):
    """Durable key -> JSON-compatible value storage."""

    async def get(self, key: str) -> Any:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


class Notifier(Protocol):
    """User-visible notification surface."""

    async def has_permission(self) -> bool:
        ...

    async def request_permission(self) -> bool:
        ...

    async def notify(self, title: str, message: str) -> None:
        ...

    async def close(self) -> None:
        ...


# ============== Implementations ==============

class SystemClock:
    """Clock backed by the local system time."""

    def now(self) -> datetime:
        return datetime.now()


@dataclass
class HostServices:
    """Everything the engine needs from its host."""
    clock: Clock
    timer: Timer
    kv: KeyValueStore
    notifier: Notifier

    async def close(self) -> None:
        """Stop timers and release storage and notification resources."""
        await self.timer.stop()
        await self.notifier.close()
        await self.kv.close()
