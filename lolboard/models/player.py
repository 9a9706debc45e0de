# lolboard/models/player.py
# ============================================================================
# Modèles pydantic : réponses Riot + view model joueur
# Les alias camelCase sont ceux de l'API ; model_dump(by_alias=True) est la
# forme stockée dans le cache.
# ============================================================================

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _RiotModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def canonical_tag(tag_line: str) -> str:
    """Tag sans '#' initial ni espaces autour."""
    tag = tag_line.strip()
    return tag[1:] if tag.startswith("#") else tag


class PlayerIdentity(_RiotModel):
    """Riot ID searched by the user (gameName#tagLine)."""

    game_name: str = Field(..., alias="gameName")
    tag_line: str = Field(..., alias="tagLine")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def of(cls, game_name: str, tag_line: str) -> "PlayerIdentity":
        return cls(game_name=game_name.strip(), tag_line=canonical_tag(tag_line))

    @property
    def key(self) -> str:
        return f"{self.game_name.lower()}-{self.tag_line.lower()}"

    def same_as(self, other: "PlayerIdentity") -> bool:
        return (
            self.game_name.lower() == other.game_name.lower()
            and self.tag_line.lower() == other.tag_line.lower()
        )

    def __str__(self) -> str:
        return f"{self.game_name}#{self.tag_line}"


class Account(_RiotModel):
    puuid: str
    game_name: str = Field(..., alias="gameName")
    tag_line: str = Field(..., alias="tagLine")


class SummonerRecord(_RiotModel):
    # summoner-v4 ne renvoie plus toujours l'id
    id: Optional[str] = None
    puuid: str
    profile_icon_id: int = Field(0, alias="profileIconId")
    summoner_level: int = Field(0, alias="summonerLevel")


class LeagueEntry(_RiotModel):
    queue_type: str = Field(..., alias="queueType")
    tier: str
    rank: str
    league_points: int = Field(0, alias="leaguePoints")
    wins: int = 0
    losses: int = 0


class RankInfo(_RiotModel):
    tier: str
    division: str = Field(..., alias="rank")
    league_points: int = Field(0, alias="lp")
    wins: int = 0
    losses: int = 0

    @classmethod
    def from_entry(cls, entry: LeagueEntry) -> "RankInfo":
        return cls(
            tier=entry.tier,
            division=entry.rank,
            league_points=entry.league_points,
            wins=entry.wins,
            losses=entry.losses,
        )

    @property
    def win_rate(self) -> float:
        total = self.wins + self.losses
        return round(self.wins * 100 / total, 1) if total else 0.0


# ---------------------------------------------------------------------------
# Match-v5
# ---------------------------------------------------------------------------
class Objective(_RiotModel):
    first: bool = False
    kills: int = 0


class Objectives(_RiotModel):
    baron: Objective = Field(default_factory=Objective)
    champion: Objective = Field(default_factory=Objective)
    dragon: Objective = Field(default_factory=Objective)
    inhibitor: Objective = Field(default_factory=Objective)
    rift_herald: Objective = Field(default_factory=Objective, alias="riftHerald")
    tower: Objective = Field(default_factory=Objective)


class Ban(_RiotModel):
    champion_id: int = Field(..., alias="championId")
    pick_turn: int = Field(..., alias="pickTurn")


class Team(_RiotModel):
    team_id: int = Field(..., alias="teamId")   # 100 bleu, 200 rouge
    win: bool = False
    bans: List[Ban] = Field(default_factory=list)
    objectives: Objectives = Field(default_factory=Objectives)


class Participant(_RiotModel):
    puuid: str
    champion_id: int = Field(0, alias="championId")
    champion_name: str = Field("", alias="championName")
    team_id: int = Field(..., alias="teamId")
    team_position: str = Field("", alias="teamPosition")
    individual_position: str = Field("", alias="individualPosition")
    riot_id_game_name: Optional[str] = Field(None, alias="riotIdGameName")
    riot_id_tagline: Optional[str] = Field(None, alias="riotIdTagline")
    summoner_name: Optional[str] = Field(None, alias="summonerName")

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    total_damage_dealt_to_champions: int = Field(0, alias="totalDamageDealtToChampions")
    total_minions_killed: int = Field(0, alias="totalMinionsKilled")
    neutral_minions_killed: int = Field(0, alias="neutralMinionsKilled")
    vision_score: int = Field(0, alias="visionScore")
    gold_earned: int = Field(0, alias="goldEarned")
    wards_placed: int = Field(0, alias="wardsPlaced")
    wards_killed: int = Field(0, alias="wardsKilled")
    champ_level: int = Field(0, alias="champLevel")

    item0: int = 0
    item1: int = 0
    item2: int = 0
    item3: int = 0
    item4: int = 0
    item5: int = 0
    item6: int = 0

    win: bool = False

    @property
    def cs(self) -> int:
        return self.total_minions_killed + self.neutral_minions_killed

    @property
    def items(self) -> List[int]:
        return [self.item0, self.item1, self.item2, self.item3,
                self.item4, self.item5, self.item6]

    @property
    def display_name(self) -> str:
        if self.riot_id_game_name:
            return self.riot_id_game_name
        return self.summoner_name or self.puuid[:8]


class MatchMetadata(_RiotModel):
    match_id: str = Field(..., alias="matchId")
    participants: List[str] = Field(default_factory=list)


class MatchInfo(_RiotModel):
    game_creation: int = Field(0, alias="gameCreation")
    game_duration: int = Field(0, alias="gameDuration")
    queue_id: int = Field(0, alias="queueId")
    game_mode: str = Field("", alias="gameMode")
    participants: List[Participant] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)


class Match(_RiotModel):
    """Match-v5 detail. Immutable once the game is over."""

    metadata: MatchMetadata
    info: MatchInfo

    @property
    def match_id(self) -> str:
        return self.metadata.match_id

    @property
    def participants(self) -> List[Participant]:
        return self.info.participants

    @property
    def teams(self) -> List[Team]:
        return self.info.teams

    @property
    def queue_id(self) -> int:
        return self.info.queue_id

    @property
    def game_duration(self) -> int:
        return self.info.game_duration

    @property
    def game_creation(self) -> int:
        return self.info.game_creation

    def participant(self, puuid: str) -> Optional[Participant]:
        return next((p for p in self.info.participants if p.puuid == puuid), None)

    def team(self, team_id: int) -> Optional[Team]:
        return next((t for t in self.info.teams if t.team_id == team_id), None)


# ---------------------------------------------------------------------------
# View model
# ---------------------------------------------------------------------------
class PlayerViewModel(_RiotModel):
    """Everything the dashboard shows for one Riot ID. Rebuilt, never patched."""

    puuid: str
    name: str
    tag: str
    profile_icon_id: int = Field(0, alias="profileIconId")
    summoner_level: int = Field(0, alias="summonerLevel")
    rank: Optional[RankInfo] = None
    matches: List[Match] = Field(default_factory=list)


class FavoritePlayer(_RiotModel):
    id: str
    game_name: str = Field(..., alias="gameName")
    tag_line: str = Field(..., alias="tagLine")
    profile_icon_id: Optional[int] = Field(None, alias="profileIconId")
    last_searched_at: int = Field(..., alias="lastSearchedAt")

    @property
    def identity(self) -> PlayerIdentity:
        return PlayerIdentity.of(self.game_name, self.tag_line)
