import asyncio
from typing import Any, Dict, List, Optional

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ista_explorer.main import app
from ista_explorer.api.deps import get_controller, get_fetcher
from ista_explorer.core.errors import QueryExecutionError
from ista_explorer.core.query.aggregate import AggregateFetcher
from ista_explorer.core.query.controller import QueryController
from ista_explorer.core.query.gateway import QueryGateway


class FakeGateway(QueryGateway):
    """
    In-memory stand-in for the query engine.

    responses: sql -> records to return
    errors:    sql -> error message to raise
    gates:     sql -> asyncio.Event the call waits on before answering
    """

    def __init__(
        self,
        responses: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        self.responses = responses or {}
        self.errors = errors or {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    async def execute(self, sql: str) -> List[Dict[str, Any]]:
        self.calls.append(sql)
        gate = self.gates.get(sql)
        if gate is not None:
            await gate.wait()
        if sql in self.errors:
            raise QueryExecutionError(self.errors[sql], query=sql)
        return self.responses.get(sql, [])


def tourists(count: int) -> List[Dict[str, Any]]:
    return [
        {"tourist_id": i + 1, "name": f"Tourist {i + 1}", "dob": f"198{i % 10}-01-01"}
        for i in range(count)
    ]


TOURIST_QUERY = "select * from ista.tourist limit 10;"


# Gateway
@pytest_asyncio.fixture(scope="function")
async def gateway():
    return FakeGateway(responses={TOURIST_QUERY: tourists(10)})


# Controller (no deadline unless a test sets one)
@pytest_asyncio.fixture(scope="function")
async def controller(gateway: FakeGateway):
    return QueryController(gateway)


# Aggregate fetcher
@pytest_asyncio.fixture(scope="function")
async def fetcher(gateway: FakeGateway):
    return AggregateFetcher(gateway)


# Client wired to the same controller and fetcher the test sees
@pytest_asyncio.fixture(scope="function")
async def client(controller: QueryController, fetcher: AggregateFetcher):
    app.dependency_overrides[get_controller] = lambda: controller
    app.dependency_overrides[get_fetcher] = lambda: fetcher

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
