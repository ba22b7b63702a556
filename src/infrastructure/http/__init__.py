# HTTP Package
"""
aiohttp transport shared by the listing clients.
"""

from src.infrastructure.http.http_client import HttpClient, HttpResponse

__all__ = ["HttpClient", "HttpResponse"]
