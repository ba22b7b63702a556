"""
Review page extraction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from bs4 import BeautifulSoup

from src.domain.entities import OperationKind, Review, ReviewsPage, ReviewsSummary
from src.infrastructure.scraper.parsers.extractor import ExtractionContext, RecordSpec
from src.infrastructure.scraper.parsers.json_utils import (
    as_bool,
    as_float,
    as_int,
    as_list,
    as_str,
    extract_decimal,
    first_value,
    navigate,
)
from src.infrastructure.scraper.parsers.pdp_sections import PDP_PATH, PageSections

REVIEW_TEXT_KEYS = ("comments", "comment", "text", "body", "content")

# Category label or type -> ReviewsSummary field
CATEGORY_FIELDS = {
    "cleanliness": "cleanliness",
    "accuracy": "accuracy",
    "communication": "communication",
    "location": "location",
    "check-in": "check_in",
    "checkin": "check_in",
    "check_in": "check_in",
    "value": "value",
}


@dataclass
class ReviewSelectors:
    """Markup hooks for review blocks."""

    review: str = "[data-testid='review'], [itemprop='review']"
    author: str = "h3, [itemprop='author']"
    body: str = "[data-testid='review-text'], [itemprop='reviewBody'], span"


def parse_review(node: Any) -> Optional[Review]:
    """Build a review from one review object, or None if it has no text."""
    if not isinstance(node, dict):
        return None
    comment = as_str(first_value(node, *REVIEW_TEXT_KEYS))
    if comment is None:
        return None

    reviewer = node.get("reviewer") if isinstance(node.get("reviewer"), dict) else {}
    response = node.get("response")
    if isinstance(response, dict):
        response = first_value(response, "comments", "text")
    if response is None:
        response = navigate(node, ("hostResponse", "comments"))

    return Review(
        author=(
            as_str(first_value(reviewer, "firstName", "name"))
            or as_str(first_value(node, "author", "authorName", "reviewerName"))
            or "Anonymous"
        ),
        date=as_str(first_value(node, "createdAt", "date", "localizedDate")) or "",
        rating=as_float(node.get("rating")),
        comment=comment,
        response=as_str(response),
        reviewer_location=as_str(reviewer.get("location")),
        language=as_str(node.get("language")),
        is_translated=as_bool(node.get("isTranslated")),
    )


def parse_reviews(nodes: Any) -> list[Review]:
    return [review for review in map(parse_review, as_list(nodes)) if review is not None]


def parse_category_ratings(entries: Any) -> dict[str, float]:
    """
    Map category rating entries onto summary field names.

    Entries carry a ``label``/``name`` or ``categoryType`` and a value as
    ``value``, ``rating``, a ``localizedRating`` string or a ``percentage``
    of five stars.
    """
    ratings: dict[str, float] = {}
    for entry in as_list(entries):
        if not isinstance(entry, dict):
            continue
        label = (as_str(first_value(entry, "label", "name")) or "").strip().lower()
        category = (as_str(entry.get("categoryType")) or "").lower()
        field = CATEGORY_FIELDS.get(label) or CATEGORY_FIELDS.get(category)
        if field is None:
            continue

        score = as_float(first_value(entry, "value", "rating"))
        if score is None:
            score = extract_decimal(as_str(entry.get("localizedRating")))
        if score is None and as_float(entry.get("percentage")) is not None:
            score = entry["percentage"] * 5.0
        if score is not None:
            ratings[field] = score
    return ratings


def summary_from_node(node: Any) -> Optional[ReviewsSummary]:
    """Summary from a node carrying an overall rating, or None."""
    if not isinstance(node, dict):
        return None
    overall = as_float(first_value(node, "overallRating", "avgRating"))
    if overall is None:
        overall = as_float(navigate(node, ("reviewSummary", "overallRating")))
    if overall is None:
        return None

    total = as_int(first_value(node, "reviewsCount", "overallCount", "totalReviews"))
    if total is None:
        total = as_int(navigate(node, ("reviewSummary", "totalReviews")))

    ratings = parse_category_ratings(
        first_value(node, "ratings", "categoryRatings")
        or navigate(node, ("reviewSummary", "categoryRatings"))
    )
    # Flat listing objects carry one key per category
    for key, field in (
        ("cleanlinessRating", "cleanliness"),
        ("accuracyRating", "accuracy"),
        ("communicationRating", "communication"),
        ("locationRating", "location"),
        ("checkinRating", "check_in"),
        ("valueRating", "value"),
    ):
        if field not in ratings and as_float(node.get(key)) is not None:
            ratings[field] = float(node[key])

    return ReviewsSummary(overall_rating=overall, total_reviews=total or 0, **ratings)


def _highlight_reviews(container: dict) -> list[Review]:
    sections = navigate(container, ("sbuiData", "sectionConfiguration", "root", "sections"))
    reviews = []
    for section in as_list(sections):
        data = section.get("sectionData") if isinstance(section, dict) else None
        for highlight in as_list(data.get("reviewHighlights") if isinstance(data, dict) else None):
            text = as_str(highlight.get("reviewText")) if isinstance(highlight, dict) else None
            if text:
                reviews.append(Review(author=as_str(highlight.get("reviewerName")) or "Guest", comment=text))
    return reviews


def reviews_from_sections(page: PageSections, listing_id: str) -> Optional[ReviewsPage]:
    section = page.find("REVIEWS_DEFAULT")
    if section is None:
        return None
    summary = summary_from_node(section)
    if summary is None:
        return None

    reviews = parse_reviews(navigate(section, ("reviewsData", "reviews")))
    if not reviews:
        reviews = _highlight_reviews(page.container)
    return ReviewsPage(listing_id=listing_id, summary=summary, reviews=reviews)


class ReviewsSpec(RecordSpec[ReviewsPage]):
    """Where reviews live in listing page payloads."""

    operation = OperationKind.REVIEWS
    paths = (
        ("props", "pageProps", "reviews"),
        ("props", "pageProps", "listing", "reviews"),
        PDP_PATH + ("reviews", "reviews"),
    )
    summary_paths = (
        ("props", "pageProps", "listing"),
        PDP_PATH + ("reviews",),
        PDP_PATH + ("reviewsSummary",),
    )

    def __init__(self, selectors: Optional[ReviewSelectors] = None):
        self.selectors = selectors or ReviewSelectors()

    def matches(self, node: Any) -> bool:
        return isinstance(node, list) and any(
            isinstance(item, dict)
            and ("comments" in item or "comment" in item or "reviewer" in item)
            for item in node
        )

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[ReviewsPage]:
        reviews = parse_reviews(node)
        if not reviews:
            return None
        summary = None
        for path in self.summary_paths:
            summary = summary_from_node(navigate(root, path))
            if summary is not None:
                break
        return ReviewsPage(listing_id=ctx.listing_id, summary=summary, reviews=reviews)

    def build_from_sections(self, data: Any, ctx: ExtractionContext) -> Optional[ReviewsPage]:
        page = PageSections.locate(data)
        if page is None:
            return None
        return reviews_from_sections(page, ctx.listing_id)

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[ReviewsPage]:
        reviews = []
        for block in soup.select(self.selectors.review):
            author_el = block.select_one(self.selectors.author)
            body_el = block.select_one(self.selectors.body)
            text = (body_el or block).get_text(" ", strip=True)
            if not text:
                continue
            author = author_el.get_text(strip=True) if author_el is not None else ""
            reviews.append(Review(author=author or "Guest", comment=text))
        if not reviews:
            return None
        return ReviewsPage(listing_id=ctx.listing_id, reviews=reviews)


REVIEWS_SPEC = ReviewsSpec()
