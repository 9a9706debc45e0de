# formatters.py – petits helpers d'affichage

from __future__ import annotations

import datetime as dt

from lolboard.constants import QUEUE_TYPES
from lolboard.riot.client import AuthError, NotFoundError, RateLimitError, RiotAPIError


def format_game_duration(seconds: int) -> str:
    """1845 → "30:45"."""
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}:{rest:02d}"


def format_game_date(timestamp_ms: int, tz: dt.tzinfo = dt.timezone.utc) -> str:
    return dt.datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).strftime("%d/%m/%Y %H:%M")


def queue_name(queue_id: int) -> str:
    return QUEUE_TYPES.get(queue_id, f"Queue {queue_id}")


def error_message(exc: BaseException) -> str:
    """User-facing message for a failed lookup."""
    if isinstance(exc, NotFoundError):
        return "Player not found. Check the name and the tag."
    if isinstance(exc, RateLimitError):
        return "Too many requests. Please try again in a few minutes."
    if isinstance(exc, AuthError):
        return "API key invalid or expired."
    if isinstance(exc, RiotAPIError) and exc.status is not None:
        return f"Server error ({exc.status})."
    return "Something went wrong while contacting the Riot API."
