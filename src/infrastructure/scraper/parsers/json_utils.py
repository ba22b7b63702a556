"""
Helpers for walking loosely-typed JSON payloads embedded in listing pages.

Every accessor tolerates missing keys and unexpected types and returns
None instead of raising, so extraction code can chain fallbacks.

Example:
    >>> navigate({"a": {"b": [1, 2]}}, ("a", "b"))
    [1, 2]
    >>> parse_price_string("$1,250.50")
    1250.5
"""

import base64
import binascii
import re
from typing import Any, Callable, Iterator, Optional, Sequence

from bs4 import BeautifulSoup

DEFAULT_MAX_DEPTH = 20

_NUMBER_PATTERN = re.compile(r'\d+(?:\.\d+)?')


def navigate(data: Any, path: Sequence[str]) -> Any:
    """
    Follow a key path through nested dictionaries.

    Args:
        data: Parsed JSON value
        path: Keys to follow in order

    Returns:
        The value at the end of the path, or None if any key is missing
    """
    current = data
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def iter_matches(
    data: Any,
    predicate: Callable[[Any], bool],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[Any]:
    """
    Depth-first search for nodes accepted by ``predicate``.

    Matching nodes are yielded and not descended into. Recursion stops at
    ``max_depth`` levels below ``data``.
    """
    if max_depth <= 0:
        return
    if predicate(data):
        yield data
        return
    if isinstance(data, dict):
        children = data.values()
    elif isinstance(data, list):
        children = data
    else:
        return
    for child in children:
        yield from iter_matches(child, predicate, max_depth - 1)


def find_first(
    data: Any,
    predicate: Callable[[Any], bool],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Return the first node accepted by ``predicate``, or None."""
    return next(iter_matches(data, predicate, max_depth), None)


def first_value(obj: Any, *keys: str) -> Any:
    """Return the value of the first key present with a non-null value."""
    if not isinstance(obj, dict):
        return None
    for key in keys:
        value = obj.get(key)
        if value is not None:
            return value
    return None


# ============================================
# Type coercion
# ============================================

def as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_id(value: Any) -> Optional[str]:
    """Accept string or integer identifiers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int):
        return str(value)
    return None


def as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return None


def as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def str_list(value: Any) -> list[str]:
    return [item for item in as_list(value) if isinstance(item, str)]


# ============================================
# Text parsing
# ============================================

def parse_price_string(text: Optional[str]) -> Optional[float]:
    """
    Parse a displayed price into a float.

    Keeps only digits and dots, so "$1,250" becomes 1250.0.

    Args:
        text: Price as displayed, e.g. "$120", "€95.50", "120 USD"

    Returns:
        Parsed price, or None if no number is present
    """
    if not text:
        return None
    cleaned = ''.join(ch for ch in text if ch.isdigit() or ch == '.')
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def currency_symbol(price_text: Optional[str]) -> Optional[str]:
    """Return the prefix before the first digit, e.g. "$" for "$120"."""
    if not price_text:
        return None
    prefix = re.split(r'\d', price_text, maxsplit=1)[0].strip()
    return prefix or None


def extract_number(text: Optional[str]) -> Optional[int]:
    """Return the first whitespace-separated integer token in ``text``."""
    if not text:
        return None
    for word in text.split():
        if word.isdigit():
            return int(word)
    return None


def extract_decimal(text: Optional[str]) -> Optional[float]:
    """Return the first number in ``text``, allowing a decimal part."""
    if not text:
        return None
    match = _NUMBER_PATTERN.search(text)
    return float(match.group()) if match else None


def strip_html_tags(html: str) -> str:
    """Convert an HTML fragment to plain text, keeping line breaks."""
    soup = BeautifulSoup(html, 'lxml')
    for br in soup.find_all('br'):
        br.replace_with('\n')
    return soup.get_text().strip()


def decode_global_id(encoded: Optional[str]) -> Optional[str]:
    """
    Decode a base64 global id such as ``DemandStayListing:123`` to ``123``.

    Returns:
        The part after the first colon, or None if not decodable
    """
    if not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    parts = decoded.split(':')
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def encode_global_id(type_name: str, listing_id: str) -> str:
    """Inverse of ``decode_global_id``."""
    return base64.b64encode(f"{type_name}:{listing_id}".encode('utf-8')).decode('ascii')


def extract_id_from_url(url: str) -> Optional[str]:
    """
    Extract the listing id from a ``/rooms/{id}`` link.

    Example:
        >>> extract_id_from_url("/rooms/12345?adults=2")
        '12345'
    """
    parts = url.split('/')
    for index, part in enumerate(parts[:-1]):
        if part == 'rooms':
            listing_id = parts[index + 1].split('?')[0]
            if listing_id:
                return listing_id
    return None
