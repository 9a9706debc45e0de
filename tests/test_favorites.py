"""Unit tests for FavoritesStore."""

import json

import pytest

from conftest import FlakyStore
from lolboard.db.store import MemoryStore
from lolboard.services.favorites import FAVORITES_KEY, FavoritesStore


@pytest.fixture
def favorites(store, clock):
    return FavoritesStore(store, clock=clock)


def _names(favorites):
    return [f"{f.game_name}#{f.tag_line}" for f in favorites.list()]


@pytest.mark.asyncio
class TestFavoritesStore:

    async def test_load_empty(self, favorites):
        await favorites.load()
        assert favorites.list() == []

    async def test_add_persists_whole_list(self, favorites, store, clock):
        await favorites.add("Ada", "EUW", 12)

        saved = json.loads(store.data[FAVORITES_KEY])
        assert saved == [{
            "id": "ada-euw",
            "gameName": "Ada",
            "tagLine": "EUW",
            "profileIconId": 12,
            "lastSearchedAt": clock.now,
        }]

    async def test_add_is_case_insensitive_noop(self, favorites, clock):
        await favorites.add("Ada", "EUW")
        clock.advance(10)
        await favorites.add("ADA", "#euw")

        assert _names(favorites) == ["Ada#EUW"]

    async def test_is_favorite(self, favorites):
        await favorites.add("Ada", "EUW")
        assert favorites.is_favorite("ada", "euw")
        assert not favorites.is_favorite("Bob", "EUW")

    async def test_list_most_recent_first(self, favorites, clock):
        for name in ("A", "B", "C"):
            await favorites.add(name, "EUW")
            clock.advance(100)
        assert _names(favorites) == ["C#EUW", "B#EUW", "A#EUW"]

    async def test_cap_evicts_least_recently_searched(self, store, clock):
        favorites = FavoritesStore(store, max_entries=3, clock=clock)
        for name in ("A", "B", "C"):
            await favorites.add(name, "EUW")
            clock.advance(100)
        await favorites.touch("A", "EUW")
        clock.advance(100)

        await favorites.add("D", "EUW")

        assert _names(favorites) == ["D#EUW", "A#EUW", "C#EUW"]

    async def test_remove(self, favorites):
        await favorites.add("Ada", "EUW")
        await favorites.remove("ADA", "euw")
        await favorites.remove("Ghost", "EUW")
        assert favorites.list() == []

    async def test_touch_updates_existing_only(self, favorites, clock):
        await favorites.add("Ada", "EUW", 1)
        clock.advance(500)

        await favorites.touch("ada", "EUW", 99)
        await favorites.touch("Bob", "EUW", 5)

        [fav] = favorites.list()
        assert fav.last_searched_at == clock.now
        assert fav.profile_icon_id == 99

    async def test_touch_keeps_icon_when_none_given(self, favorites):
        await favorites.add("Ada", "EUW", 7)
        await favorites.touch("Ada", "EUW")
        assert favorites.list()[0].profile_icon_id == 7

    async def test_reload_from_store(self, store, clock):
        first = FavoritesStore(store, clock=clock)
        await first.add("Ada", "EUW")

        second = FavoritesStore(store, clock=clock)
        await second.load()

        assert _names(second) == ["Ada#EUW"]

    async def test_corrupt_list_is_reset(self, clock):
        store = MemoryStore({FAVORITES_KEY: "{broken"})
        favorites = FavoritesStore(store, clock=clock)

        await favorites.load()

        assert favorites.list() == []
        assert FAVORITES_KEY not in store.data

    async def test_wrong_shape_list_is_reset(self, clock):
        store = MemoryStore({FAVORITES_KEY: json.dumps([{"gameName": "Ada"}])})
        favorites = FavoritesStore(store, clock=clock)

        await favorites.load()

        assert favorites.list() == []

    async def test_duplicate_add_keeps_one_entry(self, favorites):
        await favorites.add("Faker", "KR1")
        await favorites.add("Faker", "KR1")

        assert len(favorites.list()) == 1
        assert favorites.is_favorite("faker", "kr1")


@pytest.mark.asyncio
class TestFavoritesStoreFailures:

    async def test_unreachable_store_loads_empty(self, clock):
        favorites = FavoritesStore(FlakyStore(fail_get=True), clock=clock)

        await favorites.load()

        assert favorites.list() == []

    async def test_failed_add_leaves_list_unchanged(self, clock):
        store = FlakyStore(fail_set=True)
        favorites = FavoritesStore(store, clock=clock)

        assert await favorites.add("Ada", "EUW") is False
        assert favorites.list() == []
        assert store.data == {}

    async def test_failed_touch_keeps_memory_in_sync_with_store(self, clock):
        store = FlakyStore()
        favorites = FavoritesStore(store, clock=clock)
        await favorites.add("Ada", "EUW", 1)
        saved = store.data[FAVORITES_KEY]
        store.fail_set = True
        clock.advance(500)

        assert await favorites.touch("Ada", "EUW", 99) is False

        [fav] = favorites.list()
        assert fav.profile_icon_id == 1
        assert store.data[FAVORITES_KEY] == saved

    async def test_failed_remove_keeps_entry(self, clock):
        store = FlakyStore()
        favorites = FavoritesStore(store, clock=clock)
        await favorites.add("Ada", "EUW")
        store.fail_set = True

        assert await favorites.remove("Ada", "EUW") is False
        assert favorites.is_favorite("Ada", "EUW")
