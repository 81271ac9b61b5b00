"""
Statistics API client using httpx.

One request per call; retries and rate limiting are left to the caller
(the scheduler decides when a request may start).
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from squadstats.core.errors import StatsApiError
from squadstats.core.logging import get_logger

from .models import ApiResponse, PlayerStats

logger = get_logger("stats.client")

DEFAULT_BASE_URL = "https://fortnite-api.com/v2"
DEFAULT_TIMEOUT_SECONDS = 10.0
PLAYER_STATS_PATH = "/stats/br/v2"


class StatsApiClient:
    """Async client for the battle royale stats endpoint.

    Usage:
        async with StatsApiClient(api_key=key) as client:
            stats = await client.fetch_player("RootByte")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. https://fortnite-api.com/v2
            api_key: Static credential for the Authorization header
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def fetch_player(self, name: str) -> PlayerStats | None:
        """Fetch lifetime stats for one player.

        Args:
            name: Epic display name

        Returns:
            PlayerStats, or None if the API reports no data for the name

        Raises:
            StatsApiError: On transport failure, non-2xx status or a body
                that is not a valid API envelope
        """
        client = self._ensure_client()
        url = f"{self.base_url}{PLAYER_STATS_PATH}"

        try:
            response = await client.get(PLAYER_STATS_PATH, params={"name": name})
        except httpx.HTTPError as e:
            raise StatsApiError(
                f"Request for {name!r} failed: {e}",
                url=url,
                cause=e,
            ) from e

        if not response.is_success:
            raise StatsApiError(
                f"HTTP error! status: {response.status_code}",
                url=str(response.url),
                status_code=response.status_code,
            )

        try:
            payload: Any = response.json()
            envelope = ApiResponse.model_validate(payload)
        except (ValueError, ValidationError) as e:
            raise StatsApiError(
                f"Malformed response for {name!r}",
                url=str(response.url),
                status_code=response.status_code,
                cause=e,
            ) from e

        if envelope.status == 200 and envelope.data is not None:
            return envelope.data

        logger.info("No stats for %s (api status %s)", name, envelope.status, extra={"player": name})
        return None

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "StatsApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
