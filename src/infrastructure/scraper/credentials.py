"""
Access token management for the structured endpoint.

The listing site embeds a public API key in its entry page. The key is
fetched on demand, reused until its TTL runs out, and refreshed by at most
one request at a time no matter how many tasks need it.

Example:
    >>> manager = CredentialManager(http, base_url="https://www.airbnb.com")
    >>> token = await manager.get_token()
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.infrastructure.http.http_client import HttpClient
from src.infrastructure.scraper.rate_limiter import RateLimiter
from src.utils.exceptions import AuthError, TransportError
from src.utils.logger import get_logger

logger = get_logger(__name__)


# "api_config":{"key":"<token>"
API_KEY_PATTERN = re.compile(r'"api_config"\s*:\s*\{\s*"key"\s*:\s*"([^"]*)"')


@dataclass
class Credential:
    """
    Cached access token.

    Attributes:
        token: Token value sent as X-Airbnb-Api-Key.
        fetched_at: Clock reading when fetched.
        ttl: Lifetime in seconds.
    """
    token: str
    fetched_at: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now < self.fetched_at + self.ttl


def extract_api_key(html: str) -> Optional[str]:
    """Return the embedded API key, or None if absent or empty."""
    match = API_KEY_PATTERN.search(html)
    if match is None or not match.group(1):
        return None
    return match.group(1)


def _consume_refresh_result(task: "asyncio.Future[str]") -> None:
    # Every waiter may have been cancelled; the failure is still observed here
    if not task.cancelled():
        task.exception()


class CredentialManager:
    """
    Fetches and caches the structured endpoint's access token.

    Concurrent callers that find no valid token share a single in-flight
    refresh task. A failed refresh leaves the cache empty, so the next call
    tries again; it is never retried automatically.

    Attributes:
        base_url: Entry page URL.
        ttl: Token lifetime in seconds.
    """

    def __init__(
        self,
        http: HttpClient,
        base_url: str,
        ttl: float = 86400,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the credential manager.

        Args:
            http: Transport used for the entry page fetch.
            base_url: Site root whose HTML embeds the key.
            ttl: Seconds a fetched token is reused.
            rate_limiter: Limiter to pace the entry page fetch, if any.
            clock: Monotonic time source in seconds.
        """
        self.http = http
        self.base_url = base_url
        self.ttl = ttl
        self.rate_limiter = rate_limiter
        self._clock = clock or time.monotonic
        self._credential: Optional[Credential] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self.refresh_count = 0

    def _cached_token(self) -> Optional[str]:
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential.token
        return None

    async def get_token(self) -> str:
        """
        Return a valid token, refreshing it if needed.

        Raises:
            AuthError: If the entry page could not be fetched or has no key.
        """
        token = self._cached_token()
        if token is not None:
            return token

        # No await between the check and the assignment: one task per refresh
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.ensure_future(self._refresh())
            self._refresh_task.add_done_callback(_consume_refresh_result)

        # A cancelled waiter must not cancel the shared refresh
        return await asyncio.shield(self._refresh_task)

    def invalidate(self) -> None:
        """Drop the cached token, e.g. after the endpoint rejected it."""
        self._credential = None

    async def _refresh(self) -> str:
        self.refresh_count += 1
        logger.info(f"Refreshing API key from {self.base_url}")

        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        try:
            response = await self.http.get(
                self.base_url,
                headers={"Accept": "text/html,application/xhtml+xml"},
                operation="credential",
            )
        except TransportError as e:
            raise AuthError(f"could not fetch entry page: {e.reason}", operation="credential") from e

        if not response.ok:
            raise AuthError(
                f"entry page returned HTTP {response.status}",
                operation="credential",
                context={"status": response.status},
            )

        token = extract_api_key(response.text)
        if token is None:
            raise AuthError(
                "could not extract API key from entry page",
                operation="credential",
                context={"document_size": len(response.text)},
            )

        self._credential = Credential(token=token, fetched_at=self._clock(), ttl=self.ttl)
        logger.info(f"API key refreshed, valid for {self.ttl}s")
        return token
