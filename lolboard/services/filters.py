# lolboard/services/filters.py – filtres de l'historique (ordre d'entrée conservé)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Literal, Optional, Sequence

from lolboard.constants import NORMAL_QUEUES, RANKED_QUEUES, RECENT_WINDOW_MS
from lolboard.db.cache import now_ms
from lolboard.models.player import Match

GameType = Literal["all", "ranked", "normal"]


@dataclass(frozen=True)
class MatchFilter:
    queue_ids: FrozenSet[int] = field(default_factory=frozenset)
    champions: FrozenSet[str] = field(default_factory=frozenset)
    result: Literal["all", "win", "loss"] = "all"
    time_range: Literal["all", "recent", "older"] = "all"
    role: Optional[str] = None

    @property
    def active(self) -> bool:
        return bool(
            self.queue_ids or self.champions or self.role
            or self.result != "all" or self.time_range != "all"
        )

    def matches(self, match: Match, puuid: str, now: int) -> bool:
        me = match.participant(puuid)
        if me is None:
            return False
        if self.queue_ids and match.queue_id not in self.queue_ids:
            return False
        if self.champions and me.champion_name not in self.champions:
            return False
        if self.result == "win" and not me.win:
            return False
        if self.result == "loss" and me.win:
            return False
        cutoff = now - RECENT_WINDOW_MS
        if self.time_range == "recent" and match.game_creation < cutoff:
            return False
        if self.time_range == "older" and match.game_creation >= cutoff:
            return False
        if self.role and me.team_position != self.role:
            return False
        return True

    def apply(self, matches: Sequence[Match], puuid: str, now: Optional[int] = None) -> List[Match]:
        ts = now_ms() if now is None else now
        return [m for m in matches if self.matches(m, puuid, ts)]


def by_game_type(matches: Sequence[Match], game_type: GameType = "all") -> List[Match]:
    if game_type == "ranked":
        return [m for m in matches if m.queue_id in RANKED_QUEUES]
    if game_type == "normal":
        return [m for m in matches if m.queue_id in NORMAL_QUEUES]
    return list(matches)
