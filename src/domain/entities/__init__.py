# Domain Entities Package
"""
Typed records returned by listing clients, and request value objects.
"""

from .analytics import (
    HostProfile,
    MonthlyOccupancy,
    NeighborhoodStats,
    OccupancyEstimate,
    PropertyTypeCount,
)
from .calendar import CalendarDay, PriceCalendar, UnavailabilityReason
from .fetch_request import CacheNamespace, FetchRequest, OperationKind
from .listing import Listing, ListingDetail, SearchResult
from .review import Review, ReviewsPage, ReviewsSummary
from .search_params import SearchParams

__all__ = [
    "CacheNamespace",
    "CalendarDay",
    "FetchRequest",
    "HostProfile",
    "Listing",
    "ListingDetail",
    "MonthlyOccupancy",
    "NeighborhoodStats",
    "OccupancyEstimate",
    "OperationKind",
    "PriceCalendar",
    "PropertyTypeCount",
    "Review",
    "ReviewsPage",
    "ReviewsSummary",
    "SearchParams",
    "SearchResult",
    "UnavailabilityReason",
]
