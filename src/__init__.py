"""StayScout - resilient data acquisition for short-term rental listings.

Fetches listings, reviews, price calendars and host profiles from a site
with no public API, combining a structured query endpoint with HTML page
extraction behind a single client.
"""

__version__ = "0.1.0"
__author__ = "StayScout Team"
