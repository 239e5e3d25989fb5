"""Fetch-through cache for remote conference data.

One cache slot (``conference_data_cache``) holds ``{conferences, timestamp}``.
Reads are served from the slot while it is younger than the TTL; an expired
or missing slot triggers a fetch. When the fetch fails the last good
snapshot is served as-is (stale), or an empty list on a first run. Expiry is
checked lazily on read.
"""
from typing import Any

from loguru import logger

from ..errors import StorageError
from ..host import Clock, KeyValueStore
from .fetcher import DataFetcher
from .models import CacheEntry, ConferenceRecord

logger = logger.bind(module="conftrack.cache")

CACHE_KEY = "conference_data_cache"
DEFAULT_TTL_SECONDS = 60 * 60


def _entry_from_raw(raw: Any) -> CacheEntry | None:
    """Decode a stored slot, tolerating malformed content."""
    if not isinstance(raw, dict):
        return None
    timestamp = raw.get("timestamp")
    conferences = raw.get("conferences")
    if not isinstance(timestamp, (int, float)) or not isinstance(conferences, list):
        return None

    records: list[ConferenceRecord] = []
    for item in conferences:
        try:
            records.append(ConferenceRecord.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Dropping malformed cached conference: {e}")
    return CacheEntry(records=records, fetched_at_ms=int(timestamp))


class ConferenceCache:
    """TTL cache in front of a ``DataFetcher``. ``get()`` never raises."""

    def __init__(
        self,
        kv: KeyValueStore,
        fetcher: DataFetcher,
        clock: Clock,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self.kv = kv
        self.fetcher = fetcher
        self.clock = clock
        self.ttl_ms = int(ttl_seconds * 1000)

    def _now_ms(self) -> int:
        return int(self.clock.now().timestamp() * 1000)

    async def _read_entry(self) -> CacheEntry | None:
        try:
            raw = await self.kv.get(CACHE_KEY)
        except StorageError as e:
            logger.error(f"Failed to read conference cache: {e}")
            return None
        entry = _entry_from_raw(raw)
        if raw is not None and entry is None:
            logger.warning("Ignoring malformed conference cache entry")
        return entry

    async def get(self, force_refresh: bool = False) -> list[ConferenceRecord]:
        """Return fresh-or-stale conference records.

        Args:
            force_refresh: Skip the freshness check and fetch immediately

        Returns:
            Cached records while fresh, newly fetched records after expiry,
            the stale snapshot if the fetch fails, or ``[]`` with no snapshot
        """
        entry = await self._read_entry()
        if entry and not force_refresh and entry.is_fresh(self._now_ms(), self.ttl_ms):
            logger.debug(f"Conference cache hit ({len(entry.records)} records)")
            return entry.records

        try:
            records = await self.fetcher.fetch()
        except Exception as e:
            if entry is not None:
                logger.warning(f"Conference fetch failed, serving stale cache: {e}")
                return entry.records
            logger.warning(f"Conference fetch failed and no cache exists: {e}")
            return []

        fresh = CacheEntry(records=list(records), fetched_at_ms=self._now_ms())
        try:
            await self.kv.set(CACHE_KEY, fresh.to_dict())
        except StorageError as e:
            logger.error(f"Failed to save conference cache: {e}")
        return fresh.records

    async def preload(self) -> list[ConferenceRecord]:
        """Warm the cache; same contract as ``get()``."""
        return await self.get()

    async def refresh(self) -> list[ConferenceRecord]:
        """Fetch now regardless of freshness."""
        return await self.get(force_refresh=True)

    async def peek(self) -> CacheEntry | None:
        """Current snapshot without triggering a fetch."""
        return await self._read_entry()

    async def find(self, conference_id: str) -> ConferenceRecord | None:
        """Look a record up by id (case-insensitive) or exact title."""
        wanted = conference_id.strip().lower()
        for record in await self.get():
            if record.id.lower() == wanted or record.title.lower() == wanted:
                return record
        return None
