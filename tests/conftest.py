import asyncio
import sys
from pathlib import Path

import httpx
import pytest

# Ensure `venue_events` is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from venue_events.search import EventSearch  # noqa: E402


class FakeGraph:
    """Stands in for graph.facebook.com behind an httpx.MockTransport."""

    def __init__(self, place_ids=(), venues=None):
        self.place_ids = list(place_ids)
        self.venues = venues or {}
        self.requests = []
        self.search_error = None
        self.batch_status = 200
        self.batch_body = None

    @property
    def batch_requests(self):
        return [r for r in self.requests if not r.url.path.endswith("/search")]

    def handler(self, request):
        self.requests.append(request)
        if request.url.path.endswith("/search"):
            if self.search_error is not None:
                raise self.search_error
            return httpx.Response(200, json={"data": [{"id": i} for i in self.place_ids]})
        if self.batch_body is not None:
            return httpx.Response(self.batch_status, content=self.batch_body)
        ids = request.url.params["ids"].split(",")
        payload = {i: self.venues.get(i, {"id": i}) for i in ids}
        return httpx.Response(self.batch_status, json=payload)


@pytest.fixture
def fake_graph():
    return FakeGraph()


@pytest.fixture
def run_search():
    def run(fake, config, **kwargs):
        kwargs.setdefault("schema", {})
        kwargs.setdefault("token_provider", lambda: None)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)) as client:
                es = EventSearch(config, client=client, **kwargs)
                return await es.search()

        return asyncio.run(go())

    return run
