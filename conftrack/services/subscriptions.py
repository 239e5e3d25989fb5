"""Subscription persistence.

The full subscription list is stored as one blob under ``subscriptions``
and rewritten on every mutation, together with a ``lastUpdated`` ISO
timestamp. Mutations run their read-modify-write cycle under a lock so two
overlapping add/remove calls in this process cannot lose an update.
"""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..errors import StorageError
from ..host import Clock, KeyValueStore, SystemClock
from ..scheduler.models import Subscription

logger = logger.bind(module="conftrack.subscriptions")

SUBSCRIPTIONS_KEY = "subscriptions"
LAST_UPDATED_KEY = "lastUpdated"
STORAGE_PATH_KEY = "storagePath"


def _decode(raw: Any) -> list[Subscription]:
    """Decode the stored blob, dropping anything malformed."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Ignoring malformed subscription list")
        return []

    subs: list[Subscription] = []
    for item in raw:
        try:
            subs.append(Subscription.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Dropping malformed subscription {item!r}: {e}")
    return subs


class SubscriptionStore:
    """CRUD over subscribed conference editions, unique by id."""

    def __init__(self, kv: KeyValueStore, clock: Clock | None = None):
        self.kv = kv
        self.clock = clock or SystemClock()
        self._lock = asyncio.Lock()

    # ============== Internal I/O ==============

    async def _load(self) -> list[Subscription]:
        return _decode(await self.kv.get(SUBSCRIPTIONS_KEY))

    async def _save(self, subs: list[Subscription]) -> None:
        await self.kv.set(SUBSCRIPTIONS_KEY, [s.to_dict() for s in subs])
        try:
            await self.kv.set(LAST_UPDATED_KEY, self.clock.now().isoformat())
        except StorageError as e:
            logger.warning(f"Saved subscriptions but not {LAST_UPDATED_KEY}: {e}")

    # ============== Queries ==============

    async def list_subscriptions(self) -> list[Subscription]:
        """All subscriptions in insertion order; ``[]`` if storage is unreadable."""
        try:
            return await self._load()
        except StorageError as e:
            logger.error(f"Failed to load subscriptions: {e}")
            return []

    async def get(self, subscription_id: str) -> Subscription | None:
        for sub in await self.list_subscriptions():
            if sub.id == subscription_id:
                return sub
        return None

    async def has(self, subscription_id: str) -> bool:
        return await self.get(subscription_id) is not None

    async def last_updated(self) -> str | None:
        """ISO timestamp of the last save, if any."""
        try:
            value = await self.kv.get(LAST_UPDATED_KEY)
        except StorageError as e:
            logger.error(f"Failed to read {LAST_UPDATED_KEY}: {e}")
            return None
        return value if isinstance(value, str) else None

    # ============== Mutations ==============

    async def add(self, subscription: Subscription) -> None:
        """Insert, or replace the entry with the same id in place.

        Raises:
            StorageError: The subscription was not durably saved
        """
        async with self._lock:
            subs = await self._load()
            for i, existing in enumerate(subs):
                if existing.id == subscription.id:
                    subs[i] = subscription
                    break
            else:
                subs.append(subscription)
            await self._save(subs)
        logger.debug(f"Saved subscription {subscription.id}")

    async def remove(self, subscription_id: str) -> bool:
        """Delete by id; a missing id is a no-op.

        Returns:
            True if an entry was removed

        Raises:
            StorageError: The removal was not durably saved
        """
        async with self._lock:
            subs = await self._load()
            remaining = [s for s in subs if s.id != subscription_id]
            if len(remaining) == len(subs):
                return False
            await self._save(remaining)
        logger.debug(f"Removed subscription {subscription_id}")
        return True

    # ============== Export ==============

    async def export_yaml(self, path: str | Path) -> Path:
        """Write the subscription list to a YAML file (atomic).

        Args:
            path: Target file, or a directory to write ``subscriptions.yaml`` into

        Returns:
            The file written
        """
        target = Path(path).expanduser()
        if target.is_dir() or not target.suffix:
            target = target / "subscriptions.yaml"
        target.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "last_updated": await self.last_updated(),
            "subscriptions": [s.to_dict() for s in await self.list_subscriptions()],
        }

        temp_path = target.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write("# ConfTrack subscriptions\n\n")
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        temp_path.replace(target)
        logger.info(f"Exported {len(data['subscriptions'])} subscriptions to {target}")
        return target


class Preferences:
    """User preferences persisted alongside subscriptions.

    Owns the ``storagePath`` value (where exports go); it is loaded once and
    kept on the instance rather than in module state.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self.storage_path: str = ""

    async def load_storage_path(self) -> str:
        try:
            value = await self.kv.get(STORAGE_PATH_KEY)
        except StorageError as e:
            logger.error(f"Failed to read {STORAGE_PATH_KEY}: {e}")
            value = None
        self.storage_path = value if isinstance(value, str) else ""
        return self.storage_path

    async def save_storage_path(self, path: str) -> None:
        """Persist the storage path; raises StorageError if not saved."""
        await self.kv.set(STORAGE_PATH_KEY, path)
        self.storage_path = path
