"""
Abstract interface for listing clients.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities.analytics import HostProfile, NeighborhoodStats, OccupancyEstimate
from src.domain.entities.calendar import PriceCalendar
from src.domain.entities.fetch_request import OperationKind
from src.domain.entities.listing import ListingDetail, SearchResult
from src.domain.entities.review import ReviewsPage
from src.domain.entities.search_params import SearchParams


class ListingClientInterface(ABC):
    """
    Abstract base class for listing data sources.

    Implemented uniformly by the structured source, the document source
    and the composite client that combines them.
    """

    name: str = "client"
    operations: frozenset = frozenset(OperationKind)

    def supports(self, operation: OperationKind) -> bool:
        """Whether this client serves ``operation``."""
        return operation in self.operations

    @abstractmethod
    async def search_listings(self, params: SearchParams) -> SearchResult:
        """
        Search listings for a location.

        Args:
            params: Validated search parameters.

        Returns:
            One page of results.
        """
        pass

    @abstractmethod
    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        """
        Fetch full listing details.

        Args:
            listing_id: Listing identifier.

        Returns:
            ListingDetail for the listing.
        """
        pass

    @abstractmethod
    async def get_reviews(self, listing_id: str, cursor: Optional[str] = None) -> ReviewsPage:
        """
        Fetch one page of reviews.

        Args:
            listing_id: Listing identifier.
            cursor: Cursor returned by the previous page, None for the first.

        Returns:
            ReviewsPage with summary when available.
        """
        pass

    @abstractmethod
    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        """
        Fetch the day-by-day price calendar.

        Args:
            listing_id: Listing identifier.
            months: Number of months starting with the current one.

        Returns:
            PriceCalendar with statistics.
        """
        pass

    @abstractmethod
    async def get_host_profile(self, listing_id: str) -> HostProfile:
        """Fetch the profile of the host of ``listing_id``."""
        pass

    @abstractmethod
    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        """Search ``params.location`` and aggregate the listings found."""
        pass

    @abstractmethod
    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        """Fetch the calendar and estimate occupancy from it."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
