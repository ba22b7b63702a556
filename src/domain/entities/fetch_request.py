"""
FetchRequest value object: one operation plus its parameters and cache key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.domain.entities.search_params import SearchParams
from src.utils.exceptions import ValidationError


MAX_CALENDAR_MONTHS = 12


class OperationKind(Enum):
    """Operations offered by every listing client."""

    SEARCH = "search"
    DETAIL = "detail"
    REVIEWS = "reviews"
    CALENDAR = "calendar"
    HOST = "host"
    NEIGHBORHOOD = "neighborhood_stats"
    OCCUPANCY = "occupancy"


class CacheNamespace(Enum):
    """Cache key prefix per source, payload shapes differ between them."""

    STRUCTURED = "structured"
    DOCUMENT = "document"


def validate_listing_id(listing_id: str, operation: OperationKind) -> str:
    """Return the stripped id or raise ``ValidationError``."""
    if listing_id is None or not str(listing_id).strip():
        raise ValidationError("listing id is required", operation=operation.value, field="listing_id")
    listing_id = str(listing_id).strip()
    if "/" in listing_id or any(ch.isspace() for ch in listing_id):
        raise ValidationError(
            "listing id must not contain slashes or whitespace",
            operation=operation.value,
            identifier=listing_id,
            field="listing_id",
        )
    return listing_id


def validate_months(months: int, listing_id: str, operation: OperationKind) -> int:
    if not 1 <= months <= MAX_CALENDAR_MONTHS:
        raise ValidationError(
            f"months must be between 1 and {MAX_CALENDAR_MONTHS}, got {months}",
            operation=operation.value,
            identifier=listing_id,
            field="months",
        )
    return months


@dataclass(frozen=True)
class FetchRequest:
    """
    Immutable description of a single fetch.

    The cache key is a deterministic function of namespace, operation and
    parameters, so identical requests collide on purpose.
    """

    kind: OperationKind
    params: tuple[tuple[str, str], ...]
    namespace: CacheNamespace
    identifier: Optional[str] = None

    @property
    def operation(self) -> str:
        return self.kind.value

    @property
    def cache_key(self) -> str:
        parts = [self.namespace.value, self.kind.value]
        parts.extend(f"{name}={value}" for name, value in self.params)
        return ":".join(parts)

    def param(self, name: str) -> Optional[str]:
        for key, value in self.params:
            if key == name:
                return value
        return None

    @classmethod
    def search(cls, params: SearchParams, namespace: CacheNamespace) -> "FetchRequest":
        pairs = [("location", params.location.lower())]
        pairs.extend(params.to_query_pairs())
        return cls(OperationKind.SEARCH, tuple(pairs), namespace, identifier=params.location)

    @classmethod
    def detail(cls, listing_id: str, namespace: CacheNamespace) -> "FetchRequest":
        listing_id = validate_listing_id(listing_id, OperationKind.DETAIL)
        return cls(OperationKind.DETAIL, (("id", listing_id),), namespace, identifier=listing_id)

    @classmethod
    def reviews(
        cls,
        listing_id: str,
        cursor: Optional[str],
        namespace: CacheNamespace,
    ) -> "FetchRequest":
        listing_id = validate_listing_id(listing_id, OperationKind.REVIEWS)
        return cls(
            OperationKind.REVIEWS,
            (("id", listing_id), ("cursor", cursor or "first")),
            namespace,
            identifier=listing_id,
        )

    @classmethod
    def calendar(cls, listing_id: str, months: int, namespace: CacheNamespace) -> "FetchRequest":
        listing_id = validate_listing_id(listing_id, OperationKind.CALENDAR)
        months = validate_months(months, listing_id, OperationKind.CALENDAR)
        return cls(
            OperationKind.CALENDAR,
            (("id", listing_id), ("m", str(months))),
            namespace,
            identifier=listing_id,
        )

    @classmethod
    def host(cls, listing_id: str, namespace: CacheNamespace) -> "FetchRequest":
        listing_id = validate_listing_id(listing_id, OperationKind.HOST)
        return cls(OperationKind.HOST, (("id", listing_id),), namespace, identifier=listing_id)
