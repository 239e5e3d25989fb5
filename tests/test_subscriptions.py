"""Tests for subscription persistence and preferences."""
from dataclasses import replace

import pytest
import yaml

from conftrack.errors import StorageError
from conftrack.scheduler.models import Subscription
from conftrack.services.subscriptions import (
    LAST_UPDATED_KEY,
    SUBSCRIPTIONS_KEY,
    Preferences,
    SubscriptionStore,
)

from .fakes import FlakyKeyValueStore


@pytest.fixture
def store(kv, clock):
    return SubscriptionStore(kv, clock)


@pytest.fixture
def dac():
    return Subscription(id="DAC-2025", title="DAC", year=2025, deadline="2024-11-19", date="2025-06-22")


class TestSubscriptionStore:
    """Tests for SubscriptionStore."""

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, store, iclr):
        await store.add(iclr)
        await store.add(iclr)

        assert await store.list_subscriptions() == [iclr]
        assert await store.has("iclr-2025")

    @pytest.mark.asyncio
    async def test_add_replaces_in_place(self, store, iclr, dac):
        await store.add(iclr)
        await store.add(dac)
        moved = replace(iclr, deadline="2024-10-01")
        await store.add(moved)

        assert await store.list_subscriptions() == [moved, dac]

    @pytest.mark.asyncio
    async def test_remove(self, store, iclr, dac):
        await store.add(iclr)
        await store.add(dac)

        assert await store.remove("iclr-2025") is True
        assert await store.list_subscriptions() == [dac]
        assert not await store.has("iclr-2025")

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, store, kv):
        assert await store.remove("nope") is False
        assert kv.snapshot() == {}

    @pytest.mark.asyncio
    async def test_round_trip_through_storage(self, kv, clock, iclr):
        await SubscriptionStore(kv, clock).add(iclr)
        assert await SubscriptionStore(kv, clock).get("iclr-2025") == iclr

    @pytest.mark.asyncio
    async def test_last_updated(self, store, clock, iclr):
        assert await store.last_updated() is None
        await store.add(iclr)
        assert await store.last_updated() == clock.now().isoformat()

    @pytest.mark.asyncio
    async def test_add_propagates_storage_failure(self, store, kv, iclr):
        kv.fail_set = True
        with pytest.raises(StorageError):
            await store.add(iclr)
        kv.fail_set = False
        assert await store.list_subscriptions() == []

    @pytest.mark.asyncio
    async def test_list_on_read_failure(self, store, kv, iclr):
        await store.add(iclr)
        kv.fail_get = True
        assert await store.list_subscriptions() == []

    @pytest.mark.asyncio
    async def test_malformed_entries_dropped(self, clock, iclr):
        kv = FlakyKeyValueStore({
            SUBSCRIPTIONS_KEY: [{"title": "No year"}, "junk", iclr.to_dict()],
        })
        assert await SubscriptionStore(kv, clock).list_subscriptions() == [iclr]

    @pytest.mark.asyncio
    async def test_missing_id_defaults(self, clock):
        kv = FlakyKeyValueStore({
            SUBSCRIPTIONS_KEY: [{"title": "DAC", "year": 2025, "deadline": "2024-11-19", "date": "2025-06-22"}],
        })
        subs = await SubscriptionStore(kv, clock).list_subscriptions()
        assert subs[0].id == "DAC-2025"

    @pytest.mark.asyncio
    async def test_stored_shape(self, store, kv, iclr):
        await store.add(iclr)
        data = kv.snapshot()
        assert data[SUBSCRIPTIONS_KEY] == [{
            "id": "iclr-2025",
            "title": "ICLR",
            "year": 2025,
            "deadline": "2024-09-27",
            "date": "2025-05-01",
        }]
        assert LAST_UPDATED_KEY in data

    @pytest.mark.asyncio
    async def test_export_yaml(self, store, iclr, dac, tmp_path):
        await store.add(iclr)
        await store.add(dac)

        written = await store.export_yaml(tmp_path)

        assert written == tmp_path / "subscriptions.yaml"
        with open(written, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert [s["id"] for s in data["subscriptions"]] == ["iclr-2025", "DAC-2025"]
        assert data["last_updated"] is not None

    @pytest.mark.asyncio
    async def test_export_to_file_path(self, store, iclr, tmp_path):
        await store.add(iclr)
        target = tmp_path / "out" / "mine.yaml"
        assert await store.export_yaml(target) == target
        assert target.exists()


class TestPreferences:
    """Tests for the storage path preference."""

    @pytest.mark.asyncio
    async def test_default_empty(self, kv):
        prefs = Preferences(kv)
        assert await prefs.load_storage_path() == ""

    @pytest.mark.asyncio
    async def test_save_and_load(self, kv):
        await Preferences(kv).save_storage_path("/tmp/conf")

        prefs = Preferences(kv)
        assert await prefs.load_storage_path() == "/tmp/conf"
        assert prefs.storage_path == "/tmp/conf"

    @pytest.mark.asyncio
    async def test_save_failure(self, kv):
        kv.fail_set = True
        prefs = Preferences(kv)
        with pytest.raises(StorageError):
            await prefs.save_storage_path("/tmp/conf")
        assert prefs.storage_path == ""
