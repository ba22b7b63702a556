"""
Tiered extraction of typed records from listing pages.

Strategies are tried in a fixed order and the first one producing a
record wins:

1. ``EMBEDDED_PATH``: the ``__NEXT_DATA__`` payload, looked up at the
   record kind's known JSON paths.
2. ``DEEP_SEARCH``: a bounded depth-first search of the same payload for a
   node with the record's shape.
3. ``DEFERRED_STATE``: the ``data-deferred-state`` payloads, searched the
   same way (plus the page-sections layout they carry).
4. ``MARKUP``: stable markup hooks (``itemprop``, ``data-testid``).

If none succeeds a ``ParseError`` naming the operation and the document
size is raised.

Example:
    >>> extractor = TieredExtractor()
    >>> ctx = ExtractionContext(OperationKind.DETAIL, "https://www.airbnb.com", "123")
    >>> detail = extractor.extract(html, DETAIL_SPEC, ctx)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from bs4 import BeautifulSoup
from pydantic import BaseModel

from src.domain.entities.fetch_request import OperationKind
from src.infrastructure.scraper.parsers.json_utils import (
    DEFAULT_MAX_DEPTH,
    iter_matches,
    navigate,
)
from src.utils.exceptions import ParseError
from src.utils.logger import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


# ============================================
# Selectors
# ============================================

NEXT_DATA_SELECTOR = "script#__NEXT_DATA__"
DEFERRED_STATE_SELECTOR = "script[data-deferred-state], script[id^='data-deferred-state']"


class ExtractionTier(Enum):
    """Extraction strategies, cheapest and most reliable first."""

    EMBEDDED_PATH = "embedded_path"
    DEEP_SEARCH = "deep_search"
    DEFERRED_STATE = "deferred_state"
    MARKUP = "markup"


@dataclass(frozen=True)
class ExtractionContext:
    """
    What is being extracted and for which listing.

    Attributes:
        operation: Operation the document was fetched for.
        base_url: Site root used to build listing URLs.
        listing_id: Listing the document belongs to, None for searches.
    """
    operation: OperationKind
    base_url: str
    listing_id: Optional[str] = None

    @property
    def identifier(self) -> Optional[str]:
        return self.listing_id

    def listing_url(self, listing_id: Optional[str] = None) -> str:
        return f"{self.base_url}/rooms/{listing_id or self.listing_id}"


@dataclass(frozen=True)
class ExtractionOutcome(Generic[RecordT]):
    """Record plus the tier that produced it, or the reason nothing did."""

    record: Optional[RecordT] = None
    tier: Optional[ExtractionTier] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: RecordT, tier: ExtractionTier) -> "ExtractionOutcome[RecordT]":
        return cls(record=record, tier=tier)

    @classmethod
    def failure(cls, reason: str) -> "ExtractionOutcome[RecordT]":
        return cls(reason=reason)


class RecordSpec(Generic[RecordT]):
    """
    Per-kind knowledge used by the extractor.

    Subclasses set ``operation`` and ``paths`` and implement ``matches``
    and ``build``. The section and markup hooks are optional.
    """

    operation: OperationKind
    paths: tuple[tuple[str, ...], ...] = ()
    max_depth: int = DEFAULT_MAX_DEPTH

    def matches(self, node: Any) -> bool:
        """Shape predicate used by the deep search."""
        raise NotImplementedError

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[RecordT]:
        """Build a record from a located node, or None if it holds no data."""
        raise NotImplementedError

    def build_from_sections(self, data: Any, ctx: ExtractionContext) -> Optional[RecordT]:
        """Build a record from the page-sections layout."""
        return None

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[RecordT]:
        """Build a minimal record from markup hooks."""
        return None


def _script_json(script: Any) -> Any:
    text = script.string if script.string is not None else script.get_text()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _safe_build(build, *args) -> Any:
    # A node that fails record validation counts as holding no data
    try:
        return build(*args)
    except (ValueError, TypeError) as e:
        logger.debug(f"Discarded candidate node: {e}")
        return None


def extract_from_json(
    data: Any,
    spec: RecordSpec[RecordT],
    ctx: ExtractionContext,
) -> ExtractionOutcome[RecordT]:
    """
    Run the path lookup, then the deep search, over a parsed payload.

    Shared by the page extractor and the structured client.
    """
    for path in spec.paths:
        node = navigate(data, path)
        if node is None:
            continue
        record = _safe_build(spec.build, node, data, ctx)
        if record is not None:
            return ExtractionOutcome.success(record, ExtractionTier.EMBEDDED_PATH)

    for node in iter_matches(data, spec.matches, spec.max_depth):
        record = _safe_build(spec.build, node, data, ctx)
        if record is not None:
            return ExtractionOutcome.success(record, ExtractionTier.DEEP_SEARCH)

    return ExtractionOutcome.failure(f"no {spec.operation.value} data in payload")


def extract_from_payload(
    data: Any,
    spec: RecordSpec[RecordT],
    ctx: ExtractionContext,
) -> ExtractionOutcome[RecordT]:
    """Try the page-sections layout first, then ``extract_from_json``."""
    record = _safe_build(spec.build_from_sections, data, ctx)
    if record is not None:
        return ExtractionOutcome.success(record, ExtractionTier.EMBEDDED_PATH)
    return extract_from_json(data, spec, ctx)


class TieredExtractor:
    """
    Produces typed records from raw documents.

    Stateless; one instance can be shared by every request.
    """

    def try_extract(
        self,
        document: str,
        spec: RecordSpec[RecordT],
        ctx: ExtractionContext,
    ) -> ExtractionOutcome[RecordT]:
        """
        Run every tier and report which one succeeded.

        Args:
            document: HTML page, or a bare JSON body
            spec: Record kind to extract
            ctx: Operation and listing context

        Returns:
            Successful outcome tagged with its tier, or a failure with a reason
        """
        raw = self._raw_json(document)
        if raw is not None:
            outcome = extract_from_json(raw, spec, ctx)
            if outcome.succeeded:
                return outcome

        soup = BeautifulSoup(document, 'lxml')

        next_data = soup.select_one(NEXT_DATA_SELECTOR)
        if next_data is not None:
            payload = _script_json(next_data)
            if payload is not None:
                outcome = extract_from_json(payload, spec, ctx)
                if outcome.succeeded:
                    return outcome
            else:
                logger.warning(f"{ctx.operation.value}: __NEXT_DATA__ is not valid JSON")

        record = self._from_deferred_state(soup, spec, ctx)
        if record is not None:
            return ExtractionOutcome.success(record, ExtractionTier.DEFERRED_STATE)

        record = _safe_build(spec.build_from_markup, soup, ctx)
        if record is not None:
            logger.warning(
                f"{ctx.operation.value}: markup fallback used, record may be incomplete"
            )
            return ExtractionOutcome.success(record, ExtractionTier.MARKUP)

        return ExtractionOutcome.failure(
            f"no extraction tier produced {ctx.operation.value} data"
        )

    def extract(
        self,
        document: str,
        spec: RecordSpec[RecordT],
        ctx: ExtractionContext,
    ) -> RecordT:
        """
        Extract a record or raise.

        Raises:
            ParseError: If no tier produced a record
        """
        outcome = self.try_extract(document, spec, ctx)
        if not outcome.succeeded:
            raise ParseError(
                outcome.reason or "extraction failed",
                operation=ctx.operation.value,
                identifier=ctx.identifier,
                document_size=len(document.encode('utf-8')),
            )
        logger.debug(f"{ctx.operation.value}: extracted via {outcome.tier.value}")
        return outcome.record

    @staticmethod
    def _raw_json(document: str) -> Any:
        stripped = document.lstrip()
        if not stripped.startswith(('{', '[')):
            return None
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _from_deferred_state(
        soup: BeautifulSoup,
        spec: RecordSpec[RecordT],
        ctx: ExtractionContext,
    ) -> Optional[RecordT]:
        for script in soup.select(DEFERRED_STATE_SELECTOR):
            payload = _script_json(script)
            if payload is None:
                continue

            entries = payload.get("niobeClientData") if isinstance(payload, dict) else None
            for entry in entries if isinstance(entries, list) else []:
                if isinstance(entry, list) and len(entry) > 1:
                    outcome = extract_from_payload(entry[1], spec, ctx)
                    if outcome.succeeded:
                        return outcome.record

            outcome = extract_from_payload(payload, spec, ctx)
            if outcome.succeeded:
                return outcome.record
        return None
