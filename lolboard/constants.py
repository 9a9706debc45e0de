# constants.py – files de jeu, seuils de perf, URLs Data Dragon

from typing import Dict, FrozenSet, Tuple

# queueId → nom lisible
QUEUE_TYPES: Dict[int, str] = {
    # Classées
    420: "Ranked Solo/Duo",
    440: "Ranked Flex",
    # Normales
    400: "Normal Draft",
    430: "Normal Blind",
    490: "Quickplay",
    # Modes spéciaux
    450: "ARAM",
    900: "URF",
    1010: "URF",
    1020: "One for All",
    700: "Clash",
    1400: "Ultimate Spellbook",
    1200: "Nexus Blitz",
    1300: "Nexus Blitz",
    1700: "Arena",
    # Co-op vs IA
    830: "Co-op vs AI (Intro)",
    840: "Co-op vs AI (Beginner)",
    850: "Co-op vs AI (Intermediate)",
}

SOLO_QUEUE = 420
RANKED_QUEUES: FrozenSet[int] = frozenset({420, 440})
NORMAL_QUEUES: FrozenSet[int] = frozenset({400, 430, 490})

POSITIONS = ("TOP", "JUNGLE", "MIDDLE", "BOTTOM", "UTILITY")

# Seuils (poor < s0 <= average < s1 <= good < s2 <= excellent)
KDA_LEVELS: Tuple[float, float, float] = (1.5, 2.5, 3.5)
CS_PER_MIN_THRESHOLDS: Tuple[float, float, float] = (5, 7, 8.5)
VISION_SCORE_LEVELS: Tuple[float, float, float] = (15, 25, 35)

RECENT_WINDOW_MS = 14 * 24 * 3600 * 1000   # "récent" = 2 semaines

DDRAGON = "https://ddragon.leagueoflegends.com/cdn"
DDRAGON_VERSION = "15.4.1"


def champion_icon_url(champion: str, version: str = DDRAGON_VERSION) -> str:
    return f"{DDRAGON}/{version}/img/champion/{champion}.png"


def profile_icon_url(icon_id: int, version: str = DDRAGON_VERSION) -> str:
    return f"{DDRAGON}/{version}/img/profileicon/{icon_id}.png"


def item_icon_url(item_id: int, version: str = DDRAGON_VERSION) -> str:
    return f"{DDRAGON}/{version}/img/item/{item_id}.png"
