# config.py – Chargement des paramètres via pydantic-settings

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

MINUTE_MS = 60 * 1000


class Settings(BaseSettings):
    # --- API Riot ---
    RIOT_API_KEY: str = ""
    PLATFORM: str = "euw1"          # euw1, kr, na1 … (routing plateforme)
    PROVIDER_TIMEOUT_S: float = 10
    PROVIDER_RETRY_ATTEMPTS: int = 3

    # Quota dev Riot : 100 reqs / 120 s
    QUOTA_MAX: int = 100
    QUOTA_WINDOW_S: int = 120

    # --- Cache ---
    CACHE_BACKEND: Literal["redis", "memory"] = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_PREFIX: str = "lol-app-cache-"
    DEFAULT_TTL_MS: int = 5 * MINUTE_MS
    ACCOUNT_TTL_MS: int = 15 * MINUTE_MS
    RANK_TTL_MS: int = 15 * MINUTE_MS
    PLAYER_TTL_MS: int = 15 * MINUTE_MS
    MATCH_IDS_TTL_MS: int = 10 * MINUTE_MS   # nouvelles parties fréquentes
    MATCH_TTL_MS: int = 60 * MINUTE_MS       # un match terminé ne change plus

    # --- Recherche ---
    MATCH_COUNT: int = 18
    RANKED_QUEUE: str = "RANKED_SOLO_5x5"

    # --- Favoris ---
    FAVORITES_KEY: str = "lol-favorites"
    FAVORITES_MAX: int = 20

    # --- Web ---
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
