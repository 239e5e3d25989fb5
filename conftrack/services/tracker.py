"""会议追踪服务 - 缓存、订阅、提醒的统一入口

Subscribe and unsubscribe are each a short sequence of independent store and
scheduler calls, treated as one transition by callers:

- subscribe:   store.add -> scheduler.schedule_for -> confirmation notice
- unsubscribe: scheduler.cancel_for -> store.remove -> cancellation notice

Host events (timer fired, startup, first install) go through the pure
``react`` function; this class only interprets the resulting effects.
"""
from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from ..channels import ConsoleChannel, TelegramChannel
from ..conferences.cache import DEFAULT_TTL_SECONDS, ConferenceCache
from ..conferences.fetcher import DataFetcher, GitHubConferenceFetcher
from ..conferences.models import ConferenceRecord
from ..config import Settings, settings as default_settings
from ..errors import StorageError
from ..host import HostServices, SystemClock
from ..scheduler.events import (
    EngineState,
    Event,
    Installed,
    PreloadConferences,
    Reschedule,
    ShowNotification,
    Startup,
    TimerFired,
    react,
)
from ..scheduler.models import Subscription
from ..scheduler.reminders import ReminderScheduler
from ..scheduler.timer import APSchedulerTimer
from ..scheduler.types import BatchOutcome
from ..storage.kv import SQLiteKeyValueStore
from .notification import ChannelNotifier, NotificationDispatcher
from .subscriptions import Preferences, SubscriptionStore

logger = logger.bind(module="conftrack.tracker")

INSTALLED_AT_KEY = "installedAt"


class ConferenceNotFound(LookupError):
    """No cached conference edition matches the request."""


@dataclass
class SubscribeResult:
    """订阅结果"""
    subscription: Subscription
    outcome: BatchOutcome
    replaced: bool = False
    notified: bool = False


@dataclass
class UnsubscribeResult:
    """取消订阅结果"""
    subscription_id: str
    outcome: BatchOutcome
    removed: bool = False
    notified: bool = False


class ConferenceTracker:
    """会议追踪服务

    持有 HostServices，并把缓存、订阅存储、提醒调度和通知分发串起来
    """

    def __init__(
        self,
        host: HostServices,
        fetcher: DataFetcher,
        cache_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self.host = host
        self.cache = ConferenceCache(host.kv, fetcher, host.clock, ttl_seconds=cache_ttl_seconds)
        self.subscriptions = SubscriptionStore(host.kv, host.clock)
        self.preferences = Preferences(host.kv)
        self.dispatcher = NotificationDispatcher(host.notifier)
        self.reminders = ReminderScheduler(host.timer, host.clock, self.subscriptions, self.dispatcher)
        self._started = False

    # ============== Lifecycle ==============

    async def start(self, first_run: bool | None = None) -> None:
        """Register the timer callback, start the host timer, replay startup.

        Args:
            first_run: Force Installed (True) or Startup (False); by default
                detected from the absence of the ``installedAt`` key
        """
        if self._started:
            return
        self.host.timer.set_handler(self.on_timer)
        await self.host.timer.start()
        await self.preferences.load_storage_path()

        if first_run is None:
            first_run = await self._detect_first_run()

        await self.handle_event(Installed() if first_run else Startup())
        self._started = True
        logger.info("Conference tracker started")

    async def stop(self) -> None:
        """Stop timers and release the host's storage and channel."""
        await self.host.close()
        self._started = False
        logger.info("Conference tracker stopped")

    async def _detect_first_run(self) -> bool:
        try:
            if await self.host.kv.get(INSTALLED_AT_KEY):
                return False
            await self.host.kv.set(INSTALLED_AT_KEY, self.host.clock.now().isoformat())
        except StorageError as e:
            logger.error(f"Failed to check install marker: {e}")
            return False
        return True

    # ============== Events ==============

    async def on_timer(self, name: str) -> None:
        """Host timer callback."""
        await self.handle_event(TimerFired(name))

    async def handle_event(self, event: Event) -> None:
        """Apply the engine's reaction to a host event."""
        if isinstance(event, TimerFired):
            await self.reminders.handle_fired(event.name)
            return

        state = EngineState(subscriptions=tuple(await self.subscriptions.list_subscriptions()))
        _, effects = react(event, state)
        for effect in effects:
            if isinstance(effect, PreloadConferences):
                await self.cache.preload()
            elif isinstance(effect, Reschedule):
                await self.reminders.schedule_for(effect.subscription)
            elif isinstance(effect, ShowNotification):
                await self.dispatcher.show(effect.title, effect.message)

    # ============== Conferences ==============

    async def preload(self) -> list[ConferenceRecord]:
        return await self.cache.preload()

    async def conferences(self, refresh: bool = False) -> list[ConferenceRecord]:
        return await self.cache.refresh() if refresh else await self.cache.get()

    # ============== Subscriptions ==============

    async def list_subscriptions(self) -> list[Subscription]:
        return await self.subscriptions.list_subscriptions()

    async def is_subscribed(self, subscription_id: str) -> bool:
        return await self.subscriptions.has(subscription_id)

    async def subscribe(self, subscription: Subscription, now: datetime | None = None) -> SubscribeResult:
        """Save a subscription and schedule its reminders.

        Raises:
            StorageError: The subscription could not be saved; nothing was scheduled
        """
        replaced = await self.subscriptions.has(subscription.id)
        await self.subscriptions.add(subscription)

        if replaced:
            # Offsets of the old dates may no longer apply
            await self.reminders.cancel_for(subscription.id)
        outcome = await self.reminders.schedule_for(subscription, now=now)

        notified = await self.dispatcher.show(
            "Subscription confirmed",
            f"You'll receive reminders for {subscription.title} {subscription.year} "
            "deadlines and events",
        )
        return SubscribeResult(subscription=subscription, outcome=outcome, replaced=replaced, notified=notified)

    async def subscribe_instance(
        self,
        conference_id: str,
        year: int,
        now: datetime | None = None,
    ) -> SubscribeResult:
        """Subscribe to a cached conference edition.

        Raises:
            ConferenceNotFound: No such conference or edition in the cache
            StorageError: The subscription could not be saved
        """
        record = await self.cache.find(conference_id)
        if record is None:
            raise ConferenceNotFound(f"Unknown conference: {conference_id}")
        instance = record.find_instance(year)
        if instance is None:
            raise ConferenceNotFound(f"{record.title} has no {year} edition")
        return await self.subscribe(Subscription.from_instance(record, instance), now=now)

    async def unsubscribe(self, subscription_id: str) -> UnsubscribeResult:
        """Cancel a subscription's reminders, then delete it.

        Raises:
            StorageError: The removal could not be saved (timers are already cleared)
        """
        existing = await self.subscriptions.get(subscription_id)
        outcome = await self.reminders.cancel_for(subscription_id)
        removed = await self.subscriptions.remove(subscription_id)

        label = f"{existing.title} {existing.year}" if existing else subscription_id
        notified = False
        if removed:
            notified = await self.dispatcher.show("Unsubscribed", f"Cancelled {label}'s reminders")
        return UnsubscribeResult(
            subscription_id=subscription_id,
            outcome=outcome,
            removed=removed,
            notified=notified,
        )


# ============== Wiring ==============

def build_notifier(config: Settings) -> ChannelNotifier:
    """按配置选择通知渠道"""
    if config.notify_channel == "telegram":
        channel = TelegramChannel(bot_token=config.telegram_bot_token)
        return ChannelNotifier(channel, chat_id=config.telegram_chat_id, app_name=config.app_name)
    if config.notify_channel != "console":
        logger.warning(f"Unknown notify channel {config.notify_channel!r}, using console")
    return ChannelNotifier(ConsoleChannel(), app_name=config.app_name)


def build_tracker(config: Settings | None = None) -> ConferenceTracker:
    """Production wiring: APScheduler timers, SQLite storage, configured channel."""
    config = config or default_settings
    host = HostServices(
        clock=SystemClock(),
        timer=APSchedulerTimer(),
        kv=SQLiteKeyValueStore(config.db_path),
        notifier=build_notifier(config),
    )
    fetcher = GitHubConferenceFetcher(
        owner=config.repo_owner,
        repo=config.repo_name,
        branch=config.repo_branch,
        path=config.repo_path,
        categories=config.categories,
        token=config.github_token,
        timeout_seconds=config.fetch_timeout_seconds,
    )
    return ConferenceTracker(host, fetcher, cache_ttl_seconds=config.cache_ttl_seconds)
