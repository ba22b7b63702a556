"""
Async HTTP transport built on aiohttp.

Wraps one ``aiohttp.ClientSession`` per client and converts network
failures and timeouts into ``TransportError``. Status codes are returned
untouched; each listing client decides what a status means for its
operation.

Example:
    >>> async with HttpClient(user_agent=ua, timeout=30) as http:
    ...     response = await http.get("https://www.airbnb.com/rooms/123")
    ...     print(response.status, len(response.text))
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy

from src.utils.exceptions import TransportError
from src.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass
class HttpResponse:
    """
    Fully-read HTTP response.

    Attributes:
        status: HTTP status code.
        text: Decoded body.
        url: Final URL after redirects.
        headers: Response headers.
    """
    status: int
    text: str
    url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Header names are case-insensitive on the wire
        if not isinstance(self.headers, CIMultiDictProxy):
            self.headers = CIMultiDictProxy(CIMultiDict(self.headers))

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def retry_after(self) -> Optional[float]:
        """Seconds from a numeric Retry-After header, if any."""
        value = self.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None


class HttpClient:
    """
    Thin aiohttp wrapper with a per-request timeout.

    The session is created lazily on first use so the client can be built
    outside a running event loop.

    Attributes:
        user_agent: User-Agent sent with every request.
        timeout: Total timeout of a single request in seconds.
    """

    def __init__(
        self,
        user_agent: str,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent, **DEFAULT_HEADERS},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def get(
        self,
        url: str,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        operation: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> HttpResponse:
        """
        Issue a GET request.

        Raises:
            TransportError: On connection failure or timeout.
        """
        return await self._request(
            "GET", url, params=params, headers=headers,
            operation=operation, identifier=identifier,
        )

    async def post_json(
        self,
        url: str,
        body: Any,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        operation: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> HttpResponse:
        """
        Issue a POST request with a JSON body.

        Raises:
            TransportError: On connection failure or timeout.
        """
        return await self._request(
            "POST", url, params=params, headers=headers, json=body,
            operation=operation, identifier=identifier,
        )

    async def _request(
        self,
        method: str,
        url: str,
        operation: Optional[str] = None,
        identifier: Optional[str] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                **kwargs,
            ) as response:
                text = await response.text()
                logger.debug(f"{method} {url} -> HTTP {response.status} ({len(text)} chars)")
                return HttpResponse(
                    status=response.status,
                    text=text,
                    url=str(response.url),
                    headers=response.headers,
                )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"timeout after {self.timeout}s on {method} {url}",
                operation=operation,
                identifier=identifier,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                f"{method} {url} failed: {e}",
                operation=operation,
                identifier=identifier,
            ) from e

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
