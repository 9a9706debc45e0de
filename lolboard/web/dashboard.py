# lolboard/web/dashboard.py
# Dashboard joueur : API JSON consommée par le front
# Lancement :
#   python -m uvicorn lolboard.web.dashboard:app --host 0.0.0.0 --port 8000

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from lolboard.config import settings
from lolboard.constants import POSITIONS
from lolboard.db.cache import KeyValueCache
from lolboard.db.store import build_store
from lolboard.formatters import error_message
from lolboard.logging_config import setup_logging
from lolboard.riot.client import NotFoundError, RateLimitError, RiotAPIError, RiotClient
from lolboard.services import stats
from lolboard.services.aggregation import PlayerService, SearchSuperseded
from lolboard.services.favorites import FavoritesStore
from lolboard.services.filters import MatchFilter, by_game_type

APP_TITLE = "LoL Dashboard"
ROLE_PATTERN = "^(" + "|".join(POSITIONS) + ")$"

log = logging.getLogger(__name__)


class FavoriteIn(BaseModel):
    game_name: str = Field(..., alias="gameName", min_length=1)
    tag_line: str = Field(..., alias="tagLine", min_length=1)
    profile_icon_id: Optional[int] = Field(None, alias="profileIconId")

    model_config = ConfigDict(populate_by_name=True)


def _status_for(exc: RiotAPIError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RateLimitError):
        return 429
    return 502


def _missing() -> JSONResponse:
    return JSONResponse({"error": "Missing gameName or tagLine"}, status_code=400)


def create_app(
    player_service: Optional[PlayerService] = None,
    favorites: Optional[FavoritesStore] = None,
) -> FastAPI:
    """Build the app. Components not injected are built from ``settings`` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        client = store = None
        if player_service is None or favorites is None:
            store = build_store(settings)
        if player_service is None:
            client = RiotClient(
                settings.RIOT_API_KEY,
                settings.PLATFORM,
                timeout=settings.PROVIDER_TIMEOUT_S,
                quota_max=settings.QUOTA_MAX,
                quota_window=settings.QUOTA_WINDOW_S,
            )
            cache = KeyValueCache(store, settings.CACHE_PREFIX, default_ttl_ms=settings.DEFAULT_TTL_MS)
            app.state.players = PlayerService.from_settings(client, cache, settings)
        if favorites is None:
            app.state.favorites = FavoritesStore(store, settings.FAVORITES_KEY, settings.FAVORITES_MAX)
        await app.state.favorites.load()
        log.info(f"{APP_TITLE} ready (platform {settings.PLATFORM})")
        try:
            yield
        finally:
            if client is not None:
                await client.close()
            if store is not None:
                await store.close()

    app = FastAPI(title=APP_TITLE, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    if player_service is not None:
        app.state.players = player_service
    if favorites is not None:
        app.state.favorites = favorites

    @app.exception_handler(RiotAPIError)
    async def riot_error(request: Request, exc: RiotAPIError):
        if not isinstance(exc, NotFoundError):
            log.error(f"{request.url.path} failed: {exc}")
        return JSONResponse({"error": error_message(exc)}, status_code=_status_for(exc))

    @app.exception_handler(SearchSuperseded)
    async def superseded(request: Request, exc: SearchSuperseded):
        log.debug(f"{request.url.path}: {exc}")
        return JSONResponse({"error": "Search replaced by a newer one."}, status_code=409)

    @app.get("/healthz")
    async def healthz():
        try:
            pong = await app.state.favorites.store.ping()
            return {"ok": True, "store": pong}
        except Exception as e:
            return {"ok": False, "error": str(e)}

    # ------------------------- Joueur ---------------------------
    @app.get("/api/summoner")
    async def api_summoner(
        game_name: Optional[str] = Query(None, alias="gameName"),
        tag_line: Optional[str] = Query(None, alias="tagLine"),
        client_id: Optional[str] = Header(None, alias="X-Client-Id"),
    ):
        if not game_name or not tag_line:
            return _missing()
        players: PlayerService = app.state.players
        if client_id:
            player = await players.search(client_id, game_name, tag_line)
        else:
            player = await players.get_player(game_name, tag_line)
        await app.state.favorites.touch(player.name, player.tag, player.profile_icon_id)
        return player.model_dump(by_alias=True)

    @app.post("/api/summoner/refresh")
    async def api_refresh(
        game_name: Optional[str] = Query(None, alias="gameName"),
        tag_line: Optional[str] = Query(None, alias="tagLine"),
    ):
        if not game_name or not tag_line:
            return _missing()
        player = await app.state.players.refresh(game_name, tag_line)
        return player.model_dump(by_alias=True)

    @app.get("/api/summoner/stats")
    async def api_stats(
        game_name: Optional[str] = Query(None, alias="gameName"),
        tag_line: Optional[str] = Query(None, alias="tagLine"),
        game_type: str = Query("all", pattern="^(all|ranked|normal)$"),
        result: str = Query("all", pattern="^(all|win|loss)$"),
        time_range: str = Query("all", alias="timeRange", pattern="^(all|recent|older)$"),
        role: Optional[str] = Query(None, pattern=ROLE_PATTERN),
        champion: Optional[List[str]] = Query(None),
        queue: Optional[List[int]] = Query(None),
    ):
        if not game_name or not tag_line:
            return _missing()
        player = await app.state.players.get_player(game_name, tag_line)
        flt = MatchFilter(
            queue_ids=frozenset(queue or ()),
            champions=frozenset(champion or ()),
            result=result,
            time_range=time_range,
            role=role,
        )
        selected = flt.apply(by_game_type(player.matches, game_type), player.puuid)
        # copie : le view model en cache n'est jamais modifié
        return stats.summarize(player.model_copy(update={"matches": selected}))

    # ------------------------- Favoris --------------------------
    @app.get("/api/favorites")
    async def api_favorites():
        return [f.model_dump(by_alias=True) for f in app.state.favorites.list()]

    @app.post("/api/favorites", status_code=201)
    async def api_add_favorite(body: FavoriteIn):
        favs: FavoritesStore = app.state.favorites
        await favs.add(body.game_name, body.tag_line, body.profile_icon_id)
        return [f.model_dump(by_alias=True) for f in favs.list()]

    @app.delete("/api/favorites")
    async def api_remove_favorite(
        game_name: Optional[str] = Query(None, alias="gameName"),
        tag_line: Optional[str] = Query(None, alias="tagLine"),
    ):
        if not game_name or not tag_line:
            return _missing()
        favs: FavoritesStore = app.state.favorites
        await favs.remove(game_name, tag_line)
        return [f.model_dump(by_alias=True) for f in favs.list()]

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
