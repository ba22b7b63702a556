"""
Accessors for the listing page "sections" layout.

Both the deferred-state payload of a listing page and the structured
endpoint's page-sections response carry the same tree under
``data.presentation.stayProductDetailPage.sections``: a list of typed
sections plus a metadata block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from src.infrastructure.scraper.parsers.json_utils import (
    as_list,
    as_str,
    extract_number,
    navigate,
    str_list,
)

PDP_PATH = ("data", "presentation", "stayProductDetailPage")
SECTIONS_PATH = PDP_PATH + ("sections",)


@dataclass
class PageSections:
    """
    Typed view over a page-sections payload.

    Attributes:
        sections: Raw section wrappers, each with ``sectionComponentType``.
        metadata: ``sharingConfig``, ``loggingContext`` and friends.
        container: The object holding both, for rarer keys.
    """
    sections: list[dict] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)
    container: dict = field(default_factory=dict)

    @classmethod
    def locate(cls, data: Any) -> Optional["PageSections"]:
        """Return the sections view, or None if ``data`` has no such layout."""
        container = navigate(data, SECTIONS_PATH)
        if not isinstance(container, dict):
            return None
        sections = container.get("sections")
        if not isinstance(sections, list):
            return None
        metadata = container.get("metadata")
        return cls(
            sections=[s for s in sections if isinstance(s, dict)],
            metadata=metadata if isinstance(metadata, dict) else {},
            container=container,
        )

    def find(self, *component_types: str) -> Optional[dict]:
        """Body of the first section whose component type is listed."""
        for wrapper in self.sections:
            if wrapper.get("sectionComponentType") in component_types:
                body = wrapper.get("section")
                if isinstance(body, dict):
                    return body
        return None

    def find_by_id(self, *section_ids: str) -> Optional[dict]:
        for wrapper in self.sections:
            if (wrapper.get("sectionId") or wrapper.get("id")) in section_ids:
                body = wrapper.get("section")
                if isinstance(body, dict):
                    return body
        return None

    def bodies(self) -> list[dict]:
        return [w["section"] for w in self.sections if isinstance(w.get("section"), dict)]

    @property
    def sharing(self) -> dict:
        value = self.metadata.get("sharingConfig")
        return value if isinstance(value, dict) else {}

    @property
    def logging(self) -> dict:
        value = navigate(self.metadata, ("loggingContext", "eventDataLogging"))
        return value if isinstance(value, dict) else {}

    @property
    def booking_prefetch(self) -> dict:
        value = self.metadata.get("bookingPrefetchData")
        return value if isinstance(value, dict) else {}


def parse_room_info(title: Optional[str]) -> tuple[Optional[int], Optional[int], Optional[float]]:
    """
    Read bedroom, bed and bathroom counts from a "·"-separated title.

    Example:
        >>> parse_room_info("Rental unit in Paris · Studio · 1 bed · 1 bath")
        (0, 1, 1.0)
    """
    bedrooms: Optional[int] = None
    beds: Optional[int] = None
    bathrooms: Optional[float] = None
    if not title:
        return bedrooms, beds, bathrooms

    for part in (p.strip() for p in title.split("·")):
        lower = part.lower()
        if "bedroom" in lower or "studio" in lower:
            bedrooms = extract_number(part)
            if bedrooms is None and "studio" in lower:
                bedrooms = 0
        elif "bed" in lower:
            beds = extract_number(part)
        elif "bath" in lower:
            number = extract_number(part)
            bathrooms = float(number) if number is not None else None
    return bedrooms, beds, bathrooms


def parse_overview_items(items: Any) -> dict[str, Any]:
    """Room counts from overview ``detailItems`` such as "4 guests"."""
    counts: dict[str, Any] = {}
    for item in as_list(items):
        title = as_str(item.get("title")) if isinstance(item, dict) else None
        if not title:
            continue
        number = extract_number(title)
        if "guest" in title:
            counts["max_guests"] = number
        elif "bedroom" in title:
            counts["bedrooms"] = number
        elif "bed" in title:
            counts["beds"] = number
        elif "bath" in title:
            counts["bathrooms"] = float(number) if number is not None else None
    return counts


def parse_check_times(rule_titles: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Pick the check-in and checkout rules out of the house rules."""
    check_in = check_out = None
    for title in rule_titles:
        lower = title.lower()
        if lower.startswith(("check-in", "checkin")):
            check_in = title
        elif lower.startswith(("checkout", "check out", "check-out")):
            check_out = title
    return check_in, check_out


def parse_languages(highlights: Any) -> list[str]:
    """
    Languages from host highlights.

    Example:
        >>> parse_languages([{"title": "Speaks English, French and Spanish"}])
        ['English', 'French', 'Spanish']
    """
    for highlight in as_list(highlights):
        title = as_str(highlight.get("title")) if isinstance(highlight, dict) else None
        if not title:
            continue
        lower = title.lower()
        if lower.startswith("speaks "):
            text = title[len("speaks "):]
        elif lower.startswith("language"):
            text = title.split(":", 1)[-1]
        else:
            continue
        languages = []
        for chunk in text.replace("&", ",").split(","):
            languages.extend(part.strip() for part in chunk.split(" and "))
        return [lang for lang in languages if lang]
    return []


def rule_titles(section: Optional[dict]) -> list[str]:
    if not section:
        return []
    titles = []
    for rule in as_list(section.get("houseRules")):
        if isinstance(rule, dict) and as_str(rule.get("title")):
            titles.append(rule["title"])
        elif isinstance(rule, str):
            titles.append(rule)
    return titles


def host_details(section: dict) -> tuple[Optional[str], Optional[str]]:
    """Response rate and time from a ``hostDetails`` string list."""
    rate = time = None
    for detail in str_list(section.get("hostDetails")):
        lower = detail.lower()
        if "response rate" in lower:
            rate = detail
        elif "respond" in lower:
            time = detail
    return rate, time
