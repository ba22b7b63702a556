# Parsers Package
"""
Tiered extraction of listing records from page documents.

Each record kind has a spec describing its JSON paths, its shape
predicate for the deep search and its markup hooks; the
TieredExtractor runs the tiers over a document using those specs.
"""

from src.infrastructure.scraper.parsers.extractor import (
    ExtractionContext,
    ExtractionOutcome,
    ExtractionTier,
    RecordSpec,
    TieredExtractor,
    extract_from_json,
    extract_from_payload,
)
from src.infrastructure.scraper.parsers.calendar_parser import CALENDAR_SPEC, CalendarSpec
from src.infrastructure.scraper.parsers.detail_parser import DETAIL_SPEC, DetailSpec
from src.infrastructure.scraper.parsers.host_parser import HOST_SPEC, HostSpec
from src.infrastructure.scraper.parsers.review_parser import REVIEWS_SPEC, ReviewsSpec
from src.infrastructure.scraper.parsers.search_parser import SEARCH_SPEC, SearchSpec

__all__ = [
    # Extraction
    "ExtractionContext",
    "ExtractionOutcome",
    "ExtractionTier",
    "RecordSpec",
    "TieredExtractor",
    "extract_from_json",
    "extract_from_payload",
    # Record specs
    "CALENDAR_SPEC",
    "CalendarSpec",
    "DETAIL_SPEC",
    "DetailSpec",
    "HOST_SPEC",
    "HostSpec",
    "REVIEWS_SPEC",
    "ReviewsSpec",
    "SEARCH_SPEC",
    "SearchSpec",
]
