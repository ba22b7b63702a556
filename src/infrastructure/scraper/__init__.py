# Scraper Package
"""
Document-source acquisition.

This module provides:
- DocumentClient: page-fetching listing client with retries
- RateLimiter: minimum-interval pacing per client
- CredentialManager: access token for the structured endpoint
- Parsers: tiered extraction of records from page documents
"""

from src.infrastructure.scraper.rate_limiter import (
    RateLimiter,
    RateLimiterConfig,
    create_rate_limiter_from_config,
)
from src.infrastructure.scraper.credentials import (
    Credential,
    CredentialManager,
    extract_api_key,
)
from src.infrastructure.scraper.document_client import DocumentClient
from src.infrastructure.scraper.parsers import (
    ExtractionContext,
    ExtractionOutcome,
    ExtractionTier,
    TieredExtractor,
)

__all__ = [
    # Client
    "DocumentClient",
    # Rate limiting
    "RateLimiter",
    "RateLimiterConfig",
    "create_rate_limiter_from_config",
    # Credentials
    "Credential",
    "CredentialManager",
    "extract_api_key",
    # Extraction
    "ExtractionContext",
    "ExtractionOutcome",
    "ExtractionTier",
    "TieredExtractor",
]
