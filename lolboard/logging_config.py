# logging_config.py – sortie stdout unique pour l'API, réglée par Settings.LOG_LEVEL

import logging
import sys

from lolboard.config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"

# toujours au moins WARNING, même en LOG_LEVEL=DEBUG
NOISY_LOGGERS = ("aiohttp", "redis", "uvicorn.access", "httpx")


def resolve_level(name: str) -> int:
    """Nom de niveau → int ("debug" → DEBUG) ; un nom inconnu retombe sur INFO."""
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(cfg: Settings) -> int:
    """Configure the root handler and the ``lolboard`` tree; returns the level used."""
    level = resolve_level(cfg.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("lolboard").setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging at {logging.getLevelName(level)} (cache backend: {cfg.CACHE_BACKEND})"
    )
    return level
