"""Shared fixtures: an in-memory search backend with controllable timing."""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from admin_lookup.models.entities import Customer
from admin_lookup.models.search import SearchRequest
from admin_lookup.search import SearchCache, SearchController


def customers(*names: str, start: int = 1) -> List[Customer]:
    return [Customer(id=start + i, customerName=name) for i, name in enumerate(names)]


class FakeBackend:
    """
    Search backend double.

    responses maps a query (or a (query, page) pair) to (entities, has_more)
    or to an exception to raise. gate(query) makes requests for that query
    wait until the returned event is set.
    """

    def __init__(self, responses: Optional[Dict] = None):
        self.responses = responses or {}
        self.requests: List[SearchRequest] = []
        self.cancelled: List[SearchRequest] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def gate(self, query: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[query] = event
        return event

    @property
    def queries(self) -> List[str]:
        return [request.query for request in self.requests]

    def _response_for(self, request: SearchRequest):
        key = (request.query, request.page)
        if key in self.responses:
            return self.responses[key]
        return self.responses.get(request.query, ([], False))

    async def fetch(self, request: SearchRequest) -> Tuple[list, bool]:
        self.requests.append(request)
        try:
            gate = self.gates.get(request.query)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled.append(request)
            raise

        response = self._response_for(request)
        if isinstance(response, Exception):
            raise response
        return response


class StubbornBackend(FakeBackend):
    """Ignores cancellation and answers anyway, like a transport that cannot be interrupted."""

    async def fetch(self, request: SearchRequest) -> Tuple[list, bool]:
        try:
            return await super().fetch(request)
        except asyncio.CancelledError:
            return self._response_for(request)


async def wait_for_requests(backend: FakeBackend, count: int, max_spins: int = 1000) -> None:
    """Let the loop run (up to about a second) until the backend has seen `count` requests."""
    for _ in range(max_spins):
        if len(backend.requests) >= count:
            return
        await asyncio.sleep(0.001)
    raise AssertionError(f"expected {count} requests, saw {backend.queries}")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend({
        "acme": (customers("Acme Co"), True),
        "acme corp": (customers("Acme Corporation", "Acme Corp Ltd", start=10), False),
        "jo": (customers("John", "Joanna"), False),
        "john smith": (customers("John Smith"), False),
    })


@pytest_asyncio.fixture
async def make_controller():
    """Factory for controllers with a short debounce; all are closed after the test."""
    created: List[SearchController] = []

    def factory(backend, **kwargs) -> SearchController:
        kwargs.setdefault("debounce_ms", 20)
        kwargs.setdefault("cache", SearchCache(ttl_seconds=300, max_entries=50))
        controller = SearchController(backend, **kwargs)
        created.append(controller)
        return controller

    yield factory

    for controller in created:
        await controller.aclose()
