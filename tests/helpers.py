"""Scripted transport and page builders shared by the tests."""

import json
from typing import Any, Optional

from src.infrastructure.http.http_client import HttpResponse

BASE_URL = "https://www.airbnb.com"
API_KEY = "test-api-key"


# ============================================
# Fake transport
# ============================================

class FakeHttpClient:
    """
    Scripted stand-in for HttpClient.

    Each URL has a queue of responses (HttpResponse or exceptions to
    raise). The last queued item repeats once the queue is exhausted.
    """

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.calls: list[dict] = []
        self.closed = False

    def add(self, url: str, *responses: Any) -> "FakeHttpClient":
        self.routes.setdefault(url, []).extend(responses)
        return self

    def count(self, url: str) -> int:
        return sum(1 for call in self.calls if call["url"] == url)

    def calls_to(self, url: str) -> list[dict]:
        return [call for call in self.calls if call["url"] == url]

    def _next(self, url: str) -> HttpResponse:
        queue = self.routes.get(url)
        if not queue:
            raise AssertionError(f"unexpected request to {url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def get(self, url, params=None, headers=None, operation=None, identifier=None):
        self.calls.append({"method": "GET", "url": url, "params": params, "headers": headers})
        return self._next(url)

    async def post_json(self, url, body, params=None, headers=None, operation=None, identifier=None):
        self.calls.append(
            {"method": "POST", "url": url, "params": params, "headers": headers, "body": body}
        )
        return self._next(url)

    async def close(self):
        self.closed = True


def html_response(text: str, status: int = 200, headers: Optional[dict] = None) -> HttpResponse:
    return HttpResponse(status=status, text=text, url="", headers=headers or {})


def json_response(data: Any, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, text=json.dumps(data), url="")


# ============================================
# Page builders
# ============================================

def next_data_page(payload: Any, body: str = "") -> str:
    return (
        "<html><head>"
        f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(payload)}</script>'
        f"</head><body>{body}</body></html>"
    )


def deferred_state_page(payload: Any, body: str = "") -> str:
    return (
        "<html><head>"
        f'<script data-deferred-state="true" type="application/json">{json.dumps(payload)}</script>'
        f"</head><body>{body}</body></html>"
    )


def entry_page(key: str = API_KEY) -> str:
    return f'<html><script>window.config = {{"api_config":{{"key":"{key}"}}}};</script></html>'


def pdp_sections_payload(sections: list, metadata: Optional[dict] = None) -> dict:
    return {
        "data": {
            "presentation": {
                "stayProductDetailPage": {
                    "sections": {"sections": sections, "metadata": metadata or {}}
                }
            }
        }
    }
