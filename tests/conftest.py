"""Shared fixtures: provider-shaped payloads, a fake Riot client, a fake clock."""

import asyncio
from collections import Counter
from typing import Dict, Iterable, List, Optional

import pytest

from lolboard.db.cache import KeyValueCache
from lolboard.db.store import MemoryStore
from lolboard.riot.client import NotFoundError

ME = "p-ada"
BASE_TS = 1_700_000_000_000


def make_participant(
    puuid: str,
    champion: str = "Ahri",
    team_id: int = 100,
    win: bool = True,
    kills: int = 5,
    deaths: int = 2,
    assists: int = 7,
    damage: int = 20000,
    minions: int = 180,
    neutral: int = 20,
    vision: int = 25,
    position: str = "MIDDLE",
    name: Optional[str] = None,
) -> dict:
    return {
        "puuid": puuid,
        "championId": 103,
        "championName": champion,
        "teamId": team_id,
        "teamPosition": position,
        "individualPosition": position,
        "riotIdGameName": name or puuid,
        "kills": kills,
        "deaths": deaths,
        "assists": assists,
        "totalDamageDealtToChampions": damage,
        "totalMinionsKilled": minions,
        "neutralMinionsKilled": neutral,
        "visionScore": vision,
        "goldEarned": 12000,
        "win": win,
        "perks": {"styles": []},   # champ inconnu du modèle : ignoré
    }


def make_match(
    match_id: str,
    me: Optional[dict] = None,
    queue_id: int = 420,
    duration: int = 1800,
    creation: int = BASE_TS,
    teammates: Iterable[str] = ("ally1", "ally2"),
) -> dict:
    me = me if me is not None else make_participant(ME)
    win = me["win"]
    participants = [me]
    participants += [make_participant(p, champion="Garen", team_id=me["teamId"], win=win,
                                      damage=10000) for p in teammates]
    enemy_team = 200 if me["teamId"] == 100 else 100
    participants += [make_participant(f"enemy{i}", champion="Zed", team_id=enemy_team,
                                      win=not win) for i in range(2)]
    return {
        "metadata": {"matchId": match_id, "participants": [p["puuid"] for p in participants]},
        "info": {
            "gameCreation": creation,
            "gameDuration": duration,
            "queueId": queue_id,
            "gameMode": "CLASSIC",
            "participants": participants,
            "teams": [
                {"teamId": 100, "win": win if me["teamId"] == 100 else not win,
                 "bans": [{"championId": 1, "pickTurn": 1}],
                 "objectives": {"tower": {"first": True, "kills": 7},
                                "dragon": {"first": False, "kills": 2}}},
                {"teamId": 200, "win": not win if me["teamId"] == 100 else win,
                 "bans": [], "objectives": {}},
            ],
        },
    }


class FakeClock:
    def __init__(self, now: int = BASE_TS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeRiotClient:
    """In-memory stand-in for RiotClient, counting every call."""

    def __init__(
        self,
        match_ids: Optional[List[str]] = None,
        entries: Optional[List[dict]] = None,
        failing_matches: Iterable[str] = (),
        account_errors: Iterable[Exception] = (),
        summoner_error: Optional[Exception] = None,
        rank_error: Optional[Exception] = None,
        summoner_id: Optional[str] = "summ-1",
        gate: Optional[asyncio.Event] = None,
    ):
        self.match_ids = ["EUW1_1", "EUW1_2", "EUW1_3"] if match_ids is None else match_ids
        self.entries = [] if entries is None else entries
        self.failing_matches = set(failing_matches)
        self.account_errors = list(account_errors)
        self.summoner_error = summoner_error
        self.rank_error = rank_error
        self.summoner_id = summoner_id
        self.gate = gate
        self.calls: Counter = Counter()
        self.last_account_args = None

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def get_account_by_riot_id(self, game_name: str, tag_line: str) -> dict:
        self.calls["account"] += 1
        self.last_account_args = (game_name, tag_line)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.account_errors:
            raise self.account_errors.pop(0)
        return {"puuid": f"p-{game_name.lower()}", "gameName": game_name, "tagLine": tag_line}

    async def get_summoner_by_puuid(self, puuid: str) -> dict:
        self.calls["summoner"] += 1
        if self.summoner_error:
            raise self.summoner_error
        out = {"puuid": puuid, "profileIconId": 4567, "summonerLevel": 321}
        if self.summoner_id:
            out["id"] = self.summoner_id
        return out

    async def get_league_entries_by_summoner(self, summoner_id: str) -> List[dict]:
        self.calls["rank"] += 1
        if self.rank_error:
            raise self.rank_error
        return self.entries

    async def get_league_entries_by_puuid(self, puuid: str) -> List[dict]:
        self.calls["rank_by_puuid"] += 1
        if self.rank_error:
            raise self.rank_error
        return self.entries

    async def get_match_ids(self, puuid: str, start: int = 0, count: int = 18) -> List[str]:
        self.calls["match_ids"] += 1
        return self.match_ids[start:start + count]

    async def get_match_by_id(self, match_id: str) -> dict:
        self.calls["match"] += 1
        await asyncio.sleep(0)
        if match_id in self.failing_matches:
            raise NotFoundError(f"API error 404: {match_id}", status=404)
        return make_match(match_id)


class FlakyStore(MemoryStore):
    """MemoryStore whose reads and/or writes fail like an unreachable Redis."""

    def __init__(self, data=None, fail_get=False, fail_set=False):
        super().__init__(data)
        self.fail_get = fail_get
        self.fail_set = fail_set

    async def get(self, key):
        if self.fail_get:
            raise ConnectionError("redis down")
        return await super().get(key)

    async def set(self, key, raw):
        if self.fail_set:
            raise ConnectionError("redis down")
        await super().set(key, raw)


def league_entry(queue: str = "RANKED_SOLO_5x5", tier: str = "GOLD", rank: str = "II",
                 lp: int = 42, wins: int = 30, losses: int = 25) -> Dict:
    return {"queueType": queue, "tier": tier, "rank": rank,
            "leaguePoints": lp, "wins": wins, "losses": losses}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(store, clock) -> KeyValueCache:
    return KeyValueCache(store, clock=clock)


