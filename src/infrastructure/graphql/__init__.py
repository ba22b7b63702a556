# GraphQL Package
"""
Structured-source acquisition through persisted GraphQL queries.
"""

from src.infrastructure.graphql.client import StructuredClient

__all__ = ["StructuredClient"]
