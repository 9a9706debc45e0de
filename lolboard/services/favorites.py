# lolboard/services/favorites.py
# Joueurs favoris : une seule liste JSON réécrite en entier à chaque mutation.
# La liste en mémoire ne change qu'une fois l'écriture acceptée par le store.

from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional

from pydantic import TypeAdapter

from lolboard.db.cache import now_ms
from lolboard.db.store import KeyValueStore
from lolboard.models.player import FavoritePlayer, PlayerIdentity

log = logging.getLogger(__name__)

FAVORITES_KEY = "lol-favorites"
MAX_FAVORITES = 20

_FAVORITES = TypeAdapter(List[FavoritePlayer])


class FavoritesStore:
    """
    Registry of previously searched players, unique per case-insensitive
    (gameName, tagLine). Build once, ``await load()``, then inject it.

    Storage failures are logged and never raised: favorites are bookkeeping
    and must not decide whether a lookup succeeds.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = FAVORITES_KEY,
        max_entries: int = MAX_FAVORITES,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.key = key
        self.max_entries = max_entries
        self._clock = clock
        self._favorites: List[FavoritePlayer] = []

    async def load(self) -> None:
        try:
            raw = await self.store.get(self.key)
        except Exception as e:
            log.error(f"Favorites unavailable, starting empty: {e}")
            self._favorites = []
            return
        if not raw:
            self._favorites = []
            return
        try:
            self._favorites = _FAVORITES.validate_python(json.loads(raw))
        except (TypeError, ValueError) as e:
            log.error(f"Corrupt favorites list, resetting it: {e}")
            self._favorites = []
            try:
                await self.store.delete(self.key)
            except Exception as e:
                log.error(f"Could not drop corrupt favorites: {e}")

    async def _commit(self, favorites: List[FavoritePlayer]) -> bool:
        """Persist ``favorites`` then adopt it; on failure the previous list stays."""
        try:
            raw = json.dumps([f.model_dump(by_alias=True) for f in favorites])
            await self.store.set(self.key, raw)
        except Exception as e:
            log.error(f"Favorites write error, change dropped: {e}")
            return False
        self._favorites = favorites
        return True

    def _find(self, game_name: str, tag_line: str) -> Optional[FavoritePlayer]:
        wanted = PlayerIdentity.of(game_name, tag_line)
        return next((f for f in self._favorites if f.identity.same_as(wanted)), None)

    # ------------------------------------------------------------------ #
    def list(self) -> List[FavoritePlayer]:
        return sorted(self._favorites, key=lambda f: f.last_searched_at, reverse=True)

    def is_favorite(self, game_name: str, tag_line: str) -> bool:
        return self._find(game_name, tag_line) is not None

    async def add(self, game_name: str, tag_line: str, profile_icon_id: Optional[int] = None) -> bool:
        """Returns False when nothing was stored (already present or write failed)."""
        if self.is_favorite(game_name, tag_line):
            return False
        identity = PlayerIdentity.of(game_name, tag_line)
        updated = self._favorites + [FavoritePlayer(
            id=identity.key,
            game_name=identity.game_name,
            tag_line=identity.tag_line,
            profile_icon_id=profile_icon_id,
            last_searched_at=self._clock(),
        )]
        # plafond souple : on sort le moins récemment cherché
        while len(updated) > self.max_entries:
            oldest = min(updated, key=lambda f: f.last_searched_at)
            updated.remove(oldest)
            log.info(f"Favorites full, dropping {oldest.identity}")
        return await self._commit(updated)

    async def remove(self, game_name: str, tag_line: str) -> bool:
        fav = self._find(game_name, tag_line)
        if fav is None:
            return False
        return await self._commit([f for f in self._favorites if f is not fav])

    async def touch(self, game_name: str, tag_line: str, profile_icon_id: Optional[int] = None) -> bool:
        """Refresh timestamp (and icon) of an existing favorite; never creates one."""
        fav = self._find(game_name, tag_line)
        if fav is None:
            return False
        touched = fav.model_copy(update={
            "last_searched_at": self._clock(),
            "profile_icon_id": profile_icon_id if profile_icon_id is not None else fav.profile_icon_id,
        })
        return await self._commit([touched if f is fav else f for f in self._favorites])
