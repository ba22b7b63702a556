# Domain Interfaces Package
"""
Abstract base classes defining contracts for infrastructure implementations.
"""

from .listing_client_interface import ListingClientInterface

__all__ = ["ListingClientInterface"]
