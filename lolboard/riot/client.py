# riot/client.py

import asyncio
import logging
import time
from collections import deque
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import aiohttp

# Mapping plateforme → région globale pour /match-v5 et /account-v1
REGION_GROUPS = {
    "euw1": "europe", "eun1": "europe", "ru": "europe", "tr1": "europe",
    "kr": "asia",   "jp1": "asia",
    "na1": "americas", "br1": "americas", "la1": "americas", "la2": "americas",
    "oc1": "sea",
}

log = logging.getLogger(__name__)


class RiotAPIError(Exception):
    """Base exception for Riot API errors. Carries the HTTP status when there is one."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(RiotAPIError):
    """404: the account, summoner or match does not exist."""


class RateLimitError(RiotAPIError):
    """429: too many requests."""


class AuthError(RiotAPIError):
    """401/403: API key missing, invalid or expired."""


class TransportError(RiotAPIError):
    """No usable response: network failure, timeout or malformed body."""


_STATUS_ERRORS = {
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    429: RateLimitError,
}


def error_for_status(status: int, url: str) -> RiotAPIError:
    exc_type = _STATUS_ERRORS.get(status, RiotAPIError)
    return exc_type(f"API error {status}: {url}", status=status)


def region_group(platform: str) -> str:
    return REGION_GROUPS.get(platform.lower(), "americas")


class RiotClient:
    """Async Riot API client. Maps HTTP failures to typed errors, never retries."""

    def __init__(
        self,
        api_key: str,
        platform: str = "euw1",
        *,
        timeout: float = 10,
        quota_max: int = 100,
        quota_window: int = 120,
    ):
        self.api_key = api_key
        self.platform = platform.lower()
        self.group = region_group(self.platform)
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        # Pour throttling : timestamps des dernières requêtes
        self._req_times: deque = deque()
        self._quota_window = quota_window   # secondes
        self._quota_max = quota_max         # nombre max de requêtes par window
        self._lock = asyncio.Lock()

    @property
    def platform_url(self) -> str:
        return f"https://{self.platform}.api.riotgames.com"

    @property
    def regional_url(self) -> str:
        return f"https://{self.group}.api.riotgames.com"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _throttle(self):
        """Async rate limiting - prevents exceeding Riot API quota."""
        async with self._lock:
            now = time.time()

            # Purge des requêtes trop vieilles
            while self._req_times and self._req_times[0] <= now - self._quota_window:
                self._req_times.popleft()

            if len(self._req_times) >= self._quota_max:
                # On attend que la plus vieille req sorte de la fenêtre
                wait = self._quota_window - (now - self._req_times[0])
                log.warning(f"Rate limit reached, waiting {wait:.1f}s")
                await asyncio.sleep(wait)

            self._req_times.append(time.time())

    async def _request(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Make an async GET request against a Riot endpoint.

        Args:
            url: The full URL to request
            params: Extra query parameters; the API key is appended to them

        Returns:
            JSON response from the API

        Raises:
            NotFoundError, RateLimitError, AuthError: for the matching statuses
            RiotAPIError: for any other non-2xx status
            TransportError: when no usable response was received
        """
        query = {k: str(v) for k, v in (params or {}).items()}
        query["api_key"] = self.api_key

        await self._throttle()
        session = await self._get_session()

        try:
            async with session.get(url, params=query) as resp:
                if resp.status >= 300:
                    if resp.status == 404:
                        log.debug(f"404 Not Found: {url}")
                    else:
                        log.warning(f"HTTP {resp.status} from {url}")
                    raise error_for_status(resp.status, url)
                return await resp.json()
        except RiotAPIError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning(f"Network error on {url}: {e!r}")
            raise TransportError(f"Transport error on {url}: {e}") from e

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #
    async def get_account_by_riot_id(self, game_name: str, tag_line: str) -> Dict[str, Any]:
        """
        Get account by Riot ID (game name + tag).
        Account-V1: GET /riot/account/v1/accounts/by-riot-id/{gameName}/{tagLine}
        Routed via region group (americas/europe/asia).
        """
        url = (
            f"{self.regional_url}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        return await self._request(url)

    async def get_summoner_by_puuid(self, puuid: str) -> Dict[str, Any]:
        """Get summoner information by PUUID."""
        url = f"{self.platform_url}/lol/summoner/v4/summoners/by-puuid/{quote(puuid, safe='')}"
        return await self._request(url)

    async def get_league_entries_by_summoner(self, summoner_id: str) -> List[Dict[str, Any]]:
        """Get ranked entries for a summoner."""
        url = f"{self.platform_url}/lol/league/v4/entries/by-summoner/{quote(summoner_id, safe='')}"
        return await self._request(url)

    async def get_league_entries_by_puuid(self, puuid: str) -> List[Dict[str, Any]]:
        """Get ranked league entries by PUUID."""
        url = f"{self.platform_url}/lol/league/v4/entries/by-puuid/{quote(puuid, safe='')}"
        return await self._request(url)

    async def get_match_ids(self, puuid: str, start: int = 0, count: int = 18) -> List[str]:
        """Get list of match IDs for a player, most recent first."""
        url = f"{self.regional_url}/lol/match/v5/matches/by-puuid/{quote(puuid, safe='')}/ids"
        return await self._request(url, {"start": start, "count": count})

    async def get_match_by_id(self, match_id: str) -> Dict[str, Any]:
        """Get detailed match information by match ID."""
        url = f"{self.regional_url}/lol/match/v5/matches/{quote(match_id, safe='')}"
        return await self._request(url)
