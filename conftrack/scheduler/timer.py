"""Host timer facility backed by APScheduler.

Each reminder becomes a one-shot ``date`` job on an ``AsyncIOScheduler``
whose job id is the timer name, so registering the same name again replaces
the job instead of adding a second one.
"""
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from ..errors import SchedulingError
from ..host import TimerHandler

logger = logger.bind(module="conftrack.timer")

# A reminder that fires late (e.g. the process was asleep) is still worth showing
DEFAULT_MISFIRE_GRACE_SECONDS = 6 * 60 * 60


class APSchedulerTimer:
    """``Timer`` implementation on top of APScheduler's asyncio scheduler."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        misfire_grace_seconds: int = DEFAULT_MISFIRE_GRACE_SECONDS,
    ):
        self.scheduler = scheduler or AsyncIOScheduler()
        self.misfire_grace_seconds = misfire_grace_seconds
        self._handler: TimerHandler | None = None

    def set_handler(self, handler: TimerHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Timer scheduler started")

    async def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Timer scheduler stopped")

    async def create(self, name: str, when: datetime) -> None:
        try:
            # Pending jobs of a stopped scheduler are not de-duplicated by id
            if self.scheduler.get_job(name) is not None:
                self.scheduler.remove_job(name)
            self.scheduler.add_job(
                self._fire,
                trigger=DateTrigger(run_date=when),
                args=[name],
                id=name,
                name=name,
                replace_existing=True,
                misfire_grace_time=self.misfire_grace_seconds,
            )
        except Exception as e:
            raise SchedulingError(f"Failed to register timer {name}: {e}") from e
        logger.debug(f"Timer {name} set for {when.isoformat()}")

    async def list_names(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs()]

    async def clear(self, name: str) -> bool:
        try:
            self.scheduler.remove_job(name)
        except JobLookupError:
            return False
        except Exception as e:
            raise SchedulingError(f"Failed to clear timer {name}: {e}") from e
        logger.debug(f"Timer {name} cleared")
        return True

    async def _fire(self, name: str) -> None:
        if self._handler is None:
            logger.warning(f"Timer {name} fired with no handler registered")
            return
        try:
            await self._handler(name)
        except Exception as e:
            logger.error(f"Timer handler failed for {name}: {e}")
