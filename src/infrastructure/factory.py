"""
Construction of the listing client stack from configuration.

Example:
    >>> client = create_client()
    >>> try:
    ...     result = await client.search_listings(SearchParams.create(location="Porto"))
    ... finally:
    ...     await client.close()
"""

from typing import Iterable, Optional

from src.domain.entities import OperationKind
from src.infrastructure.cache.memory_cache import MemoryCache
from src.infrastructure.composite_client import CompositeClient
from src.infrastructure.graphql.client import StructuredClient
from src.infrastructure.http.http_client import HttpClient
from src.infrastructure.scraper.credentials import CredentialManager
from src.infrastructure.scraper.document_client import DocumentClient
from src.infrastructure.scraper.rate_limiter import create_rate_limiter_from_config
from src.utils.config import AppConfig, get_config
from src.utils.logger import get_logger

logger = get_logger(__name__)


def create_client(
    config: Optional[AppConfig] = None,
    http: Optional[HttpClient] = None,
    document_operations: Optional[Iterable[OperationKind]] = None,
) -> CompositeClient:
    """
    Wire the composite client and its collaborators.

    Both sources share one HTTP session and one response cache (their keys
    are namespaced); each source owns its rate limiter. The credential
    manager is only built when the structured source is enabled.

    Args:
        config: Application config, defaults to ``get_config()``.
        http: Transport to use instead of a fresh aiohttp-backed one.
        document_operations: Operations the document source serves,
            all of them by default.

    Returns:
        CompositeClient ready for use; call ``close()`` when done.
    """
    config = config or get_config()
    http = http or HttpClient(
        user_agent=config.scraper.user_agent,
        timeout=config.scraper.request_timeout,
    )
    cache = MemoryCache(max_entries=config.cache.max_entries)

    document = DocumentClient(
        http,
        config=config.scraper,
        cache=cache,
        cache_config=config.cache,
        rate_limiter=create_rate_limiter_from_config(
            config.scraper.requests_per_second, DocumentClient.name
        ),
        operations=document_operations,
    )

    structured = None
    if config.structured.enabled:
        structured_limiter = create_rate_limiter_from_config(
            config.structured_requests_per_second, StructuredClient.name
        )
        credentials = CredentialManager(
            http,
            base_url=config.scraper.base_url,
            ttl=config.structured.credential_ttl,
            rate_limiter=structured_limiter,
        )
        structured = StructuredClient(
            http,
            credentials,
            config=config.structured,
            base_url=config.scraper.base_url,
            cache=cache,
            cache_config=config.cache,
            rate_limiter=structured_limiter,
        )

    logger.info(
        f"Listing client ready: structured source "
        f"{'enabled' if structured is not None else 'disabled'}, "
        f"document pacing {config.scraper.requests_per_second} req/s, "
        f"cache capacity {cache.max_entries}"
    )
    return CompositeClient(structured, document)
