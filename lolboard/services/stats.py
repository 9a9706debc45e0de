# lolboard/services/stats.py
# ============================================================================
# Statistiques dérivées d'une liste de matchs (fonctions pures)
# Un match sans ligne pour le puuid demandé est ignoré, jamais une erreur.
# ============================================================================

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from lolboard.constants import (
    CS_PER_MIN_THRESHOLDS,
    KDA_LEVELS,
    RANKED_QUEUES,
    SOLO_QUEUE,
    VISION_SCORE_LEVELS,
)
from lolboard.models.player import Match, Participant, PlayerViewModel

Trend = Literal["up", "down", "stable"]
Level = Literal["poor", "average", "good", "excellent"]


def kda(kills: int, deaths: int, assists: int) -> float:
    """(K + A) / max(1, D) : une partie sans mort vaut K + A."""
    return round((kills + assists) / max(1, deaths), 2)


def cs_per_minute(total_cs: int, duration_seconds: int) -> float:
    if duration_seconds <= 0:
        return 0.0
    return round(total_cs / (duration_seconds / 60), 1)


def self_participant(match: Match, puuid: str) -> Optional[Participant]:
    return match.participant(puuid)


def damage_share(participant: Participant, match: Match) -> float:
    """Part des dégâts aux champions de l'équipe, en %."""
    team_total = sum(
        p.total_damage_dealt_to_champions
        for p in match.participants
        if p.team_id == participant.team_id
    )
    if not team_total:
        return 0.0
    return round(participant.total_damage_dealt_to_champions * 100 / team_total, 1)


def _self_rows(matches: Iterable[Match], puuid: str) -> Iterable[Tuple[Match, Participant]]:
    for match in matches:
        me = match.participant(puuid)
        if me is not None:
            yield match, me


# ---------------------------------------------------------------------------
# Champions
# ---------------------------------------------------------------------------
@dataclass
class ChampionStats:
    champion_name: str
    games: int = 0
    wins: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    total_damage: int = 0
    gold_earned: int = 0
    cs: int = 0
    vision_score: int = 0

    @property
    def losses(self) -> int:
        return self.games - self.wins

    @property
    def win_rate(self) -> float:
        return round(self.wins * 100 / self.games, 1) if self.games else 0.0

    @property
    def kda(self) -> float:
        return kda(self.kills, self.deaths, self.assists)

    def per_game(self) -> Dict[str, float]:
        g = self.games or 1
        return {
            "kills": round(self.kills / g, 1),
            "deaths": round(self.deaths / g, 1),
            "assists": round(self.assists / g, 1),
            "cs": round(self.cs / g),
            "vision_score": round(self.vision_score / g),
        }

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = asdict(self)
        out.update(win_rate=self.win_rate, kda=self.kda, per_game=self.per_game())
        return out


def per_champion_rollup(matches: Sequence[Match], puuid: str) -> Dict[str, ChampionStats]:
    """championName → cumuls, trié par nombre de parties (desc, stable)."""
    stats: Dict[str, ChampionStats] = {}
    for _, me in _self_rows(matches, puuid):
        c = stats.setdefault(me.champion_name, ChampionStats(me.champion_name))
        c.games += 1
        c.wins += int(me.win)
        c.kills += me.kills
        c.deaths += me.deaths
        c.assists += me.assists
        c.total_damage += me.total_damage_dealt_to_champions
        c.gold_earned += me.gold_earned
        c.cs += me.cs
        c.vision_score += me.vision_score
    ranked = sorted(stats.values(), key=lambda c: c.games, reverse=True)
    return {c.champion_name: c for c in ranked}


def most_played(rollup: Dict[str, ChampionStats], limit: int = 5) -> List[ChampionStats]:
    return sorted(rollup.values(), key=lambda c: c.games, reverse=True)[:limit]


def champion_win_rates(rollup: Dict[str, ChampionStats], min_games: int = 2) -> List[ChampionStats]:
    eligible = [c for c in rollup.values() if c.games >= min_games]
    return sorted(eligible, key=lambda c: c.win_rate, reverse=True)


# ---------------------------------------------------------------------------
# Résultats
# ---------------------------------------------------------------------------
def win_rate(matches: Sequence[Match], puuid: str) -> float:
    results = [me.win for _, me in _self_rows(matches, puuid)]
    if not results:
        return 0.0
    return round(sum(results) * 100 / len(results), 1)


def win_streak(matches: Sequence[Match], puuid: str, queue_id: int = SOLO_QUEUE, cap: int = 10) -> int:
    """
    Série en cours sur une file (matchs du plus récent au plus ancien).
    > 0 : victoires d'affilée, < 0 : défaites, plafonné à ``cap``.
    """
    streak = 0
    for match, me in _self_rows(matches, puuid):
        if match.queue_id != queue_id:
            continue
        if streak == 0:
            streak = 1 if me.win else -1
        elif (streak > 0) == me.win:
            streak += 1 if me.win else -1
        else:
            break
        if abs(streak) == cap:
            break
    return streak


def frequent_teammates(matches: Sequence[Match], puuid: str, limit: int = 3) -> List[Tuple[str, int]]:
    mates: Counter = Counter()
    for match, me in _self_rows(matches, puuid):
        for p in match.participants:
            if p.team_id == me.team_id and p.puuid != puuid:
                mates[p.display_name] += 1
    return [(name, n) for name, n in mates.most_common(limit) if n >= 2]


# ---------------------------------------------------------------------------
# Courbes de performance
# ---------------------------------------------------------------------------
@dataclass
class PerformancePoint:
    game_number: int
    match_id: str
    champion_name: str
    kda: float
    cs_per_minute: float
    vision_score: int
    damage_share: float
    win: bool
    queue_id: int
    kills: int
    deaths: int
    assists: int
    timestamp: int


def performance_points(
    matches: Sequence[Match],
    puuid: str,
    queues: Optional[Iterable[int]] = RANKED_QUEUES,
) -> List[PerformancePoint]:
    """Un point par partie, du plus ancien au plus récent. ``queues=None`` : toutes."""
    wanted = None if queues is None else set(queues)
    selected = [m for m in matches if wanted is None or m.queue_id in wanted]
    selected = sorted(selected, key=lambda m: m.game_creation)

    points: List[PerformancePoint] = []
    for match, me in _self_rows(selected, puuid):
        points.append(PerformancePoint(
            game_number=len(points) + 1,
            match_id=match.match_id,
            champion_name=me.champion_name,
            kda=kda(me.kills, me.deaths, me.assists),
            cs_per_minute=cs_per_minute(me.cs, match.game_duration),
            vision_score=me.vision_score,
            damage_share=damage_share(me, match),
            win=me.win,
            queue_id=match.queue_id,
            kills=me.kills,
            deaths=me.deaths,
            assists=me.assists,
            timestamp=match.game_creation,
        ))
    return points


def moving_averages(points: Sequence[PerformancePoint], window: int = 5) -> List[Optional[Dict[str, float]]]:
    """Moyennes glissantes ; None tant que la fenêtre n'est pas pleine."""
    out: List[Optional[Dict[str, float]]] = []
    for i in range(len(points)):
        if i < window - 1:
            out.append(None)
            continue
        chunk = points[i - window + 1:i + 1]
        out.append({
            "kda": round(sum(p.kda for p in chunk) / window, 2),
            "cs_per_minute": round(sum(p.cs_per_minute for p in chunk) / window, 1),
            "vision_score": round(sum(p.vision_score for p in chunk) / window, 1),
        })
    return out


def averages(points: Sequence[PerformancePoint]) -> Dict[str, float]:
    if not points:
        return {"kda": 0.0, "cs_per_minute": 0.0, "vision_score": 0, "win_rate": 0.0}
    n = len(points)
    return {
        "kda": round(sum(p.kda for p in points) / n, 2),
        "cs_per_minute": round(sum(p.cs_per_minute for p in points) / n, 1),
        "vision_score": round(sum(p.vision_score for p in points) / n),
        "win_rate": round(sum(p.win for p in points) * 100 / n, 1),
    }


def trend(series: Sequence[float], window_size: int = 5, relaxed: bool = False) -> Trend:
    """
    Compare la moyenne des ``window_size`` dernières valeurs à celle des
    ``window_size`` précédentes : > +10 % "up", < -10 % "down", sinon "stable".

    Strict : il faut 2 * window_size points. ``relaxed`` : au moins 3 points
    dans chacune des deux fenêtres suffisent.
    """
    values = list(series)
    if relaxed:
        if len(values) < window_size:
            return "stable"
        recent = values[-window_size:]
        older = values[-2 * window_size:-window_size]
        if len(recent) < 3 or len(older) < 3:
            return "stable"
    else:
        if len(values) < 2 * window_size:
            return "stable"
        recent = values[-window_size:]
        older = values[-2 * window_size:-window_size]

    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    if older_avg == 0:
        return "stable"

    change = (recent_avg - older_avg) / older_avg * 100
    if change > 10:
        return "up"
    if change < -10:
        return "down"
    return "stable"


def stat_level(value: float, thresholds: Tuple[float, float, float]) -> Level:
    if value < thresholds[0]:
        return "poor"
    if value < thresholds[1]:
        return "average"
    if value < thresholds[2]:
        return "good"
    return "excellent"


def summarize(player: PlayerViewModel, top: int = 5) -> Dict[str, object]:
    """Agrégats prêts à afficher pour le dashboard."""
    matches, puuid = player.matches, player.puuid
    rollup = per_champion_rollup(matches, puuid)
    points = performance_points(matches, puuid)
    avg = averages(points)
    return {
        "games": sum(1 for _ in _self_rows(matches, puuid)),
        "win_rate": win_rate(matches, puuid),
        "streak": win_streak(matches, puuid),
        "champions": [c.to_dict() for c in most_played(rollup, top)],
        "champion_win_rates": [c.to_dict() for c in champion_win_rates(rollup)],
        "performance": [asdict(p) for p in points],
        "moving_averages": moving_averages(points),
        "averages": avg,
        "levels": {
            "kda": stat_level(avg["kda"], KDA_LEVELS),
            "cs_per_minute": stat_level(avg["cs_per_minute"], CS_PER_MIN_THRESHOLDS),
            "vision_score": stat_level(avg["vision_score"], VISION_SCORE_LEVELS),
        },
        "trends": {
            "kda": trend([p.kda for p in points], relaxed=True),
            "cs_per_minute": trend([p.cs_per_minute for p in points], relaxed=True),
            "vision_score": trend([p.vision_score for p in points], relaxed=True),
        },
        "teammates": [{"name": n, "games": g} for n, g in frequent_teammates(matches, puuid)],
    }
