"""
Review records returned by the reviews operation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Review(BaseModel):
    """A single guest review."""

    model_config = ConfigDict(frozen=True)

    author: str = Field(default="Anonymous", description="Reviewer first name")
    date: str = Field(default="", description="Review date as provided upstream")
    rating: Optional[float] = Field(default=None, description="Star rating")
    comment: str = Field(..., description="Review text")
    response: Optional[str] = Field(default=None, description="Host response")
    reviewer_location: Optional[str] = Field(default=None, description="Reviewer home location")
    language: Optional[str] = Field(default=None, description="Review language code")
    is_translated: Optional[bool] = Field(default=None, description="Text was machine translated")


class ReviewsSummary(BaseModel):
    """Overall and per-category ratings of a listing."""

    model_config = ConfigDict(frozen=True)

    overall_rating: float = Field(..., description="Overall rating")
    total_reviews: int = Field(default=0, ge=0, description="Total number of reviews")
    cleanliness: Optional[float] = None
    accuracy: Optional[float] = None
    communication: Optional[float] = None
    location: Optional[float] = None
    check_in: Optional[float] = None
    value: Optional[float] = None


class ReviewsPage(BaseModel):
    """One page of reviews plus the summary when available."""

    model_config = ConfigDict(frozen=True)

    listing_id: str = Field(..., description="Listing identifier")
    summary: Optional[ReviewsSummary] = Field(default=None, description="Rating summary")
    reviews: list[Review] = Field(default_factory=list, description="Reviews on this page")
    next_cursor: Optional[str] = Field(default=None, description="Cursor for the next page")
