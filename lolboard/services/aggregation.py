# lolboard/services/aggregation.py
# ============================================================================
# Recherche d'un joueur : compte → invocateur → rang → ids → matchs
# Cache-first à chaque étape, fan-out parallèle sur les matchs,
# single-flight sur les recherches identiques.
# ============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from pydantic import TypeAdapter
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from lolboard.config import Settings
from lolboard.db.cache import KeyValueCache, cache_key
from lolboard.models.player import (
    Account,
    LeagueEntry,
    Match,
    PlayerIdentity,
    PlayerViewModel,
    RankInfo,
    SummonerRecord,
)
from lolboard.riot.client import RateLimitError, RiotAPIError, RiotClient, TransportError

log = logging.getLogger(__name__)

T = TypeVar("T")
MINUTE_MS = 60 * 1000

_ENTRIES = TypeAdapter(List[LeagueEntry])
_MATCH_IDS = TypeAdapter(List[str])


@dataclass(frozen=True)
class CacheTTLs:
    account: int = 15 * MINUTE_MS
    rank: int = 15 * MINUTE_MS
    match_ids: int = 10 * MINUTE_MS
    match: int = 60 * MINUTE_MS
    player: int = 15 * MINUTE_MS

    @classmethod
    def from_settings(cls, cfg: Settings) -> "CacheTTLs":
        return cls(
            account=cfg.ACCOUNT_TTL_MS,
            rank=cfg.RANK_TTL_MS,
            match_ids=cfg.MATCH_IDS_TTL_MS,
            match=cfg.MATCH_TTL_MS,
            player=cfg.PLAYER_TTL_MS,
        )


def is_transient(exc: BaseException) -> bool:
    """429 et 5xx seulement ; 404/403/transport ne sont jamais rejoués."""
    if isinstance(exc, RateLimitError):
        return True
    return (
        isinstance(exc, RiotAPIError)
        and not isinstance(exc, TransportError)
        and exc.status is not None
        and exc.status >= 500
    )


def pick_rank(entries: List[LeagueEntry], queue_type: str) -> Optional[RankInfo]:
    """Entrée de la file demandée, sinon la première, sinon None."""
    if not entries:
        return None
    entry = next((e for e in entries if e.queue_type == queue_type), entries[0])
    return RankInfo.from_entry(entry)


def _parse(parser: Callable[[Any], T], payload: Any, what: str) -> T:
    try:
        return parser(payload)
    except (TypeError, ValueError) as e:
        raise TransportError(f"Malformed {what} payload: {e}") from e


class SearchSuperseded(Exception):
    """A newer search from the same owner cancelled this one."""


class _Flight:
    __slots__ = ("task", "waiters")

    def __init__(self, task: asyncio.Task):
        self.task = task
        self.waiters = 0


class PlayerService:
    """Builds (and caches) the PlayerViewModel for a Riot ID."""

    def __init__(
        self,
        client: RiotClient,
        cache: KeyValueCache,
        *,
        match_count: int = 18,
        ttls: Optional[CacheTTLs] = None,
        ranked_queue: str = "RANKED_SOLO_5x5",
        retry_attempts: int = 3,
        retry_wait: Optional[wait_base] = None,
    ):
        self.client = client
        self.cache = cache
        self.match_count = match_count
        self.ttls = ttls or CacheTTLs()
        self.ranked_queue = ranked_queue
        self.retry_attempts = max(1, retry_attempts)
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

        self._inflight: Dict[str, _Flight] = {}
        self._searches: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_settings(cls, client: RiotClient, cache: KeyValueCache, cfg: Settings) -> "PlayerService":
        return cls(
            client,
            cache,
            match_count=cfg.MATCH_COUNT,
            ttls=CacheTTLs.from_settings(cfg),
            ranked_queue=cfg.RANKED_QUEUE,
            retry_attempts=cfg.PROVIDER_RETRY_ATTEMPTS,
        )

    # ------------------------------------------------------------------ #
    # API publique
    # ------------------------------------------------------------------ #
    @staticmethod
    def player_key(identity: PlayerIdentity) -> str:
        return cache_key("summoner", identity.game_name, identity.tag_line)

    async def get_player(self, game_name: str, tag_line: str) -> PlayerViewModel:
        """
        Return the view model for ``game_name#tag_line``.

        Raises:
            NotFoundError: the Riot ID or its summoner does not exist
            RiotAPIError: any other failure resolving the account, the
                summoner or the match-id list
        """
        identity = PlayerIdentity.of(game_name, tag_line)
        key = self.player_key(identity)

        cached = await self._cached(key, PlayerViewModel.model_validate)
        if cached is not None:
            log.debug(f"Player cache hit for {identity}")
            return cached

        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(asyncio.ensure_future(self._build(identity, key)))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda t: self._land(key, t))

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            # dernier intéressé parti → on abandonne la recherche
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    async def invalidate(self, game_name: str, tag_line: str) -> None:
        """Drop only the whole-player entry; finer caches stay untouched."""
        await self.cache.remove(self.player_key(PlayerIdentity.of(game_name, tag_line)))

    async def refresh(self, game_name: str, tag_line: str) -> PlayerViewModel:
        await self.invalidate(game_name, tag_line)
        return await self.get_player(game_name, tag_line)

    async def search(self, owner: str, game_name: str, tag_line: str) -> PlayerViewModel:
        """
        Like get_player, but a new search from the same ``owner`` (a browser
        session, a websocket…) cancels the previous one if still running.

        Raises:
            SearchSuperseded: a newer search from ``owner`` replaced this one
        """
        previous = self._searches.get(owner)
        if previous is not None and not previous.done():
            log.debug(f"Search superseded for {owner}")
            previous.cancel()

        task = asyncio.ensure_future(self.get_player(game_name, tag_line))
        self._searches[owner] = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._searches.get(owner) is not task:
                raise SearchSuperseded(f"Search for {game_name}#{tag_line} superseded") from None
            raise
        finally:
            if self._searches.get(owner) is task:
                del self._searches[owner]

    # ------------------------------------------------------------------ #
    # Étapes
    # ------------------------------------------------------------------ #
    def _land(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is not None and self._inflight[key].task is task:
            del self._inflight[key]
        if not task.cancelled():
            task.exception()  # marque l'exception comme lue

    async def _build(self, identity: PlayerIdentity, key: str) -> PlayerViewModel:
        log.info(f"Looking up {identity}")

        account = await self._account(identity)
        summoner = _parse(
            SummonerRecord.model_validate,
            await self._call(self.client.get_summoner_by_puuid, account.puuid),
            "summoner",
        )
        rank = await self._rank(summoner)
        match_ids = await self._match_ids(account.puuid)
        matches = await self._matches(match_ids)

        player = PlayerViewModel(
            puuid=account.puuid,
            name=account.game_name,
            tag=account.tag_line,
            profile_icon_id=summoner.profile_icon_id,
            summoner_level=summoner.summoner_level,
            rank=rank,
            matches=matches,
        )
        await self.cache.set(key, player.model_dump(by_alias=True), self.ttls.player)
        log.info(f"{identity}: {len(matches)}/{len(match_ids)} matches loaded")
        return player

    async def _account(self, identity: PlayerIdentity) -> Account:
        key = cache_key("account", identity.game_name, identity.tag_line)
        account = await self._cached(key, Account.model_validate)
        if account is None:
            payload = await self._call(
                self.client.get_account_by_riot_id, identity.game_name, identity.tag_line
            )
            account = _parse(Account.model_validate, payload, "account")
            await self.cache.set(key, account.model_dump(by_alias=True), self.ttls.account)
        return account

    async def _rank(self, summoner: SummonerRecord) -> Optional[RankInfo]:
        key = cache_key("rank", summoner.id or summoner.puuid)
        entries = await self._cached(key, _ENTRIES.validate_python)
        if entries is None:
            try:
                if summoner.id:
                    payload = await self._call(self.client.get_league_entries_by_summoner, summoner.id)
                else:
                    payload = await self._call(self.client.get_league_entries_by_puuid, summoner.puuid)
                entries = _parse(_ENTRIES.validate_python, payload, "league entries")
            except RiotAPIError as e:
                log.warning(f"Rank unavailable for {summoner.puuid}: {e}")
                return None
            await self.cache.set(
                key, [e.model_dump(by_alias=True) for e in entries], self.ttls.rank
            )
        return pick_rank(entries, self.ranked_queue)

    async def _match_ids(self, puuid: str) -> List[str]:
        key = cache_key("matchIds", puuid)
        ids = await self._cached(key, _MATCH_IDS.validate_python)
        if ids is None:
            payload = await self._call(self.client.get_match_ids, puuid, 0, self.match_count)
            ids = _parse(_MATCH_IDS.validate_python, payload, "match ids")
            await self.cache.set(key, ids, self.ttls.match_ids)
        return ids

    async def _matches(self, match_ids: List[str]) -> List[Match]:
        # gather conserve l'ordre des ids (anté-chronologique)
        results = await asyncio.gather(*(self._match(mid) for mid in match_ids))
        return [m for m in results if m is not None]

    async def _match(self, match_id: str) -> Optional[Match]:
        key = cache_key("match", match_id)
        match = await self._cached(key, Match.model_validate)
        if match is not None:
            return match
        try:
            payload = await self._call(self.client.get_match_by_id, match_id)
            match = _parse(Match.model_validate, payload, "match")
        except RiotAPIError as e:
            log.warning(f"Dropping match {match_id}: {e}")
            return None
        await self.cache.set(key, match.model_dump(by_alias=True), self.ttls.match)
        return match

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    async def _cached(self, key: str, parser: Callable[[Any], T]) -> Optional[T]:
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return parser(raw)
        except (TypeError, ValueError) as e:
            log.warning(f"Unreadable cache entry {key}, refetching: {e}")
            await self.cache.remove(key)
            return None

    async def _call(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception(is_transient),
            before_sleep=before_sleep_log(log, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await fn(*args)
        raise RiotAPIError(f"Failed after {self.retry_attempts} attempts")
