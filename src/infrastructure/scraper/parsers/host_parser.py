"""
Host profile extraction.

The host card lives in the ``MEET_YOUR_HOST`` section of a listing page;
older payloads carry a ``primaryHost`` object on the listing instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from bs4 import BeautifulSoup

from src.domain.entities import HostProfile, OperationKind
from src.infrastructure.scraper.parsers.extractor import ExtractionContext, RecordSpec
from src.infrastructure.scraper.parsers.json_utils import (
    as_bool,
    as_id,
    as_int,
    as_str,
    first_value,
    navigate,
    str_list,
)
from src.infrastructure.scraper.parsers.pdp_sections import (
    PageSections,
    host_details,
    parse_languages,
)

HOST_SECTION_TYPES = ("MEET_YOUR_HOST", "HOST_PROFILE_DEFAULT", "HOST_OVERVIEW_DEFAULT")


@dataclass
class HostSelectors:
    """Markup hooks for the host block of a listing page."""

    container: str = "[data-testid='host-profile']"
    name: str = "h2, h3, [data-testid='host-name']"
    avatar: str = "img"


def _card_or_section(card: dict, section: dict, *keys: str) -> Any:
    value = first_value(card, *keys)
    return value if value is not None else first_value(section, *keys)


def host_from_section(section: dict) -> HostProfile:
    """Build a profile from a host section body and its ``cardData``."""
    card = section.get("cardData")
    card = card if isinstance(card, dict) else {}

    rate_text, time_text = host_details(section)

    member_since = as_str(first_value(card, "memberSince", "createdAt", "joinedDate"))
    if member_since is None:
        years = as_int(navigate(card, ("timeAsHost", "years")))
        if years is not None:
            member_since = f"{years} years hosting"
        else:
            member_since = as_str(section.get("hostMemberSince"))

    languages = (
        str_list(card.get("languages"))
        or str_list(section.get("hostLanguages"))
        or parse_languages(section.get("hostHighlights"))
    )

    is_superhost = as_bool(_card_or_section(card, section, "isSuperhost"))
    if is_superhost is None and any("uperhost" in b for b in str_list(card.get("badges"))):
        is_superhost = True

    return HostProfile(
        host_id=as_id(_card_or_section(card, section, "userId", "id", "hostId")),
        name=as_str(card.get("name")) or as_str(first_value(section, "hostName", "name")) or "Unknown",
        is_superhost=is_superhost,
        response_rate=(
            as_str(card.get("responseRate"))
            or rate_text
            or as_str(section.get("hostResponseRate"))
        ),
        response_time=(
            as_str(card.get("responseTime"))
            or time_text
            or as_str(first_value(section, "hostRespondTimeCopy", "hostResponseTime"))
        ),
        member_since=member_since,
        languages=languages,
        total_listings=as_int(_card_or_section(card, section, "listingsCount", "hostListingCount")),
        description=as_str(_card_or_section(card, section, "about", "description")),
        profile_picture_url=(
            as_str(first_value(card, "profilePictureUrl", "profilePicture", "avatarUrl", "pictureUrl"))
            or as_str(navigate(section, ("profilePicture", "baseUrl")))
            or as_str(section.get("profilePictureUrl"))
        ),
        identity_verified=as_bool(
            _card_or_section(card, section, "isIdentityVerified", "identityVerified", "isVerified")
        ),
    )


def host_from_profile(profile: dict) -> HostProfile:
    """Build a profile from a flat user object (``primaryHost``, user profile responses)."""
    response_rate = as_str(first_value(profile, "responseRate", "hostResponseRate"))
    if response_rate is None and as_int(profile.get("responseRate")) is not None:
        response_rate = f"{profile['responseRate']}%"

    return HostProfile(
        host_id=as_id(first_value(profile, "id", "hostId", "userId")),
        name=as_str(first_value(profile, "name", "hostName", "firstName", "smartName")) or "Unknown",
        is_superhost=as_bool(profile.get("isSuperhost")),
        response_rate=response_rate,
        response_time=as_str(first_value(profile, "responseTime", "hostResponseTime")),
        member_since=as_str(first_value(profile, "memberSince", "createdAt", "hostMemberSince")),
        languages=str_list(first_value(profile, "languages", "hostLanguages")),
        total_listings=as_int(first_value(profile, "listingsCount", "hostListingCount")),
        description=as_str(first_value(profile, "about", "description")),
        profile_picture_url=(
            as_str(navigate(profile, ("profilePicture", "baseUrl")))
            or as_str(first_value(profile, "profilePictureUrl", "pictureUrl", "pictureUrlLarge"))
        ),
        identity_verified=as_bool(first_value(profile, "isIdentityVerified", "identityVerified")),
    )


class HostSpec(RecordSpec[HostProfile]):
    """Where host profiles live in listing page payloads."""

    operation = OperationKind.HOST
    paths = (
        ("props", "pageProps", "listing", "primaryHost"),
        ("props", "pageProps", "listingData", "listing", "primaryHost"),
        ("data", "presentation", "userProfileContainer", "userProfile"),
        ("data", "user"),
    )

    def __init__(self, selectors: Optional[HostSelectors] = None):
        self.selectors = selectors or HostSelectors()

    def matches(self, node: Any) -> bool:
        if not isinstance(node, dict):
            return False
        return isinstance(node.get("cardData"), dict) and "name" in node["cardData"]

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[HostProfile]:
        if not isinstance(node, dict):
            return None
        if isinstance(node.get("cardData"), dict):
            return host_from_section(node)
        if first_value(node, "name", "firstName", "hostName", "smartName") is None:
            return None
        return host_from_profile(node)

    def build_from_sections(self, data: Any, ctx: ExtractionContext) -> Optional[HostProfile]:
        page = PageSections.locate(data)
        if page is None:
            return None
        section = page.find(*HOST_SECTION_TYPES)
        if section is None:
            return None
        return host_from_section(section)

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[HostProfile]:
        container = soup.select_one(self.selectors.container)
        if container is None:
            return None
        name_el = container.select_one(self.selectors.name)
        name = name_el.get_text(strip=True) if name_el else ""
        name = name.removeprefix("Hosted by ").strip()
        if not name:
            return None
        avatar = container.select_one(self.selectors.avatar)
        return HostProfile(
            name=name,
            profile_picture_url=avatar.get("src") if avatar is not None else None,
        )


HOST_SPEC = HostSpec()
