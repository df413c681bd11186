"""
Async Microsoft Graph client with throttling retry and safety enforcement.
Used read-only to check hybrid directory synchronisation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from ..config import (
    GRAPH_BASE_URL,
    GRAPH_API_VERSION,
    MAX_RETRIES,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    BACKOFF_MULTIPLIER,
)
from ..safety.guardian import SafetyGuardian

logger = logging.getLogger("ad_health_engine.graph")


class GraphAPIError(Exception):
    """Raised when Graph API returns a non-recoverable error."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Graph API Error {status_code} for {url}: {message}")


class GraphClient:
    """
    Async Microsoft Graph API client.
    Features:
      - Safety-validated requests (read-only enforcement)
      - Exponential backoff on 429/503/504 honouring Retry-After
    """

    def __init__(
        self,
        access_token: str,
        guardian: SafetyGuardian,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
    ):
        self.access_token = access_token
        self.guardian = guardian
        self.initial_backoff = initial_backoff
        self._transport = transport
        self._request_count = 0
        self._throttle_count = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=15.0),
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Accept": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()

    def _build_url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return f"{GRAPH_BASE_URL}/{GRAPH_API_VERSION}/{endpoint.lstrip('/')}"

    async def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Execute a single GET request with retry/throttle handling."""
        if not self._client:
            raise RuntimeError("GraphClient not initialized. Use 'async with' context.")
        url = self._build_url(endpoint)
        self.guardian.validate_request("GET", url)
        backoff = self.initial_backoff

        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await self._client.get(url, params=params)
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                logger.warning(f"{type(e).__name__} on {url}, attempt {attempt + 1}/{MAX_RETRIES + 1}")
                if attempt == MAX_RETRIES:
                    raise
                await asyncio.sleep(backoff)
                backoff = min(backoff * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
                continue

            self._request_count += 1

            if response.status_code == 200:
                if not response.content:
                    return {}
                try:
                    body = response.json()
                except ValueError:
                    raise GraphAPIError(response.status_code, "invalid JSON body", url)
                if not isinstance(body, dict):
                    raise GraphAPIError(response.status_code, "unexpected JSON body", url)
                return body

            if response.status_code in (429, 503, 504) and attempt < MAX_RETRIES:
                self._throttle_count += 1
                try:
                    retry_after = float(response.headers.get("Retry-After", backoff))
                except ValueError:
                    retry_after = backoff
                wait_time = min(max(retry_after, backoff), MAX_BACKOFF_SECONDS)
                logger.warning(
                    f"Throttled ({response.status_code}) on {url}. "
                    f"Retry {attempt + 1}/{MAX_RETRIES} in {wait_time:.1f}s"
                )
                await asyncio.sleep(wait_time)
                backoff = min(backoff * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
                continue

            try:
                error_body = response.json() if response.content else {}
            except ValueError:
                error_body = {}
            error_msg = error_body.get("error", {}).get("message", response.text[:200])
            raise GraphAPIError(response.status_code, error_msg, url)

        raise GraphAPIError(429, "Max retries exceeded", url)

    def get_stats(self) -> dict:
        return {
            "total_requests": self._request_count,
            "throttle_events": self._throttle_count,
        }
