"""
GATEWAY MODULE - Send one SQL statement to the query engine, get records back

Purpose:
    1. Hide where the SQL actually runs (direct database or RPC endpoint)
    2. Return every result as a list of plain dicts (one dict = one record)
    3. Surface the engine's error message verbatim as QueryExecutionError

Rules:
    - exactly one round trip per call, no retry, no streaming
    - deadlines live in execute_with_deadline(), not in the gateways

Data Flow:
    SQL text → gateway.execute() → [{"col": value, ...}, ...]
"""

import asyncio
import logging
from typing import List, Dict, Any, Optional

import asyncpg
import httpx
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ista_explorer.core.errors import (
    ConfigurationError,
    QueryExecutionError,
    QueryTimeoutError,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class QueryGateway:
    """Contract every query backend implements."""

    async def execute(self, sql: str) -> List[Record]:
        raise NotImplementedError


# ============================================================================
# DIRECT DATABASE
# ============================================================================


class DatabaseGateway(QueryGateway):
    """Run statements through a SQLAlchemy async session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def execute(self, sql: str) -> List[Record]:
        async with self.session_factory() as session:
            try:
                result = await session.execute(text(sql))
                if not result.returns_rows:
                    return []
                # Mappings keep the column order of the SELECT list
                records = [dict(row) for row in result.mappings().all()]
            except DBAPIError as e:
                # e.orig is the driver error, its text is what the engine said
                message = str(e.orig) if e.orig is not None else str(e)
                raise QueryExecutionError(message, query=sql) from e
            except SQLAlchemyError as e:
                raise QueryExecutionError(str(e), query=sql) from e
            except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                # Driver and socket errors that reach us unwrapped, e.g. refused connections
                raise QueryExecutionError(str(e) or type(e).__name__, query=sql) from e
            finally:
                # Never commit: whatever the statement did is thrown away
                await session.rollback()

        logger.debug(f"Database returned {len(records)} records")
        return records


# ============================================================================
# RPC ENDPOINT (PostgREST / Supabase style)
# ============================================================================


class RpcGateway(QueryGateway):
    """
    Call a remote SQL function over HTTP.

    Sends:  POST {base_url}/rest/v1/rpc/{function}  {"sql_text": "..."}
    Gets:   JSON array of objects, or an error body like {"message": "..."}
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        function: str = "execute_sql_json",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.function = function
        self.client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/rest/v1/rpc/{self.function}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def execute(self, sql: str) -> List[Record]:
        payload = {"sql_text": sql}

        try:
            if self.client is not None:
                response = await self.client.post(
                    self.url, json=payload, headers=self._headers()
                )
            else:
                # No client timeout here, execute_with_deadline owns deadlines
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(
                        self.url, json=payload, headers=self._headers()
                    )
        except httpx.HTTPError as e:
            raise QueryExecutionError(str(e) or type(e).__name__, query=sql) from e

        if response.is_error:
            raise QueryExecutionError(
                _error_message(response), query=sql, status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise QueryExecutionError(
                f"Invalid JSON from query service: {e}", query=sql
            ) from e

        # Anything that is not an array counts as "no rows"
        if not isinstance(data, list):
            logger.debug(f"RPC returned {type(data).__name__}, treating as empty")
            return []

        # Every row must be an object, otherwise there is nothing to tabulate
        for index, row in enumerate(data):
            if not isinstance(row, dict):
                raise QueryExecutionError(
                    f"Invalid row from query service at position {index}: "
                    f"expected an object, got {type(row).__name__}",
                    query=sql,
                )

        return data


def _error_message(response: httpx.Response) -> str:
    """Pull the remote error message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or f"HTTP {response.status_code}"


# ============================================================================
# DEADLINE
# ============================================================================


async def execute_with_deadline(
    gateway: QueryGateway, sql: str, timeout: Optional[float]
) -> List[Record]:
    """
    Run one gateway call with a deadline.

    The call is cancelled once `timeout` seconds pass and a QueryTimeoutError
    is raised instead. `timeout=None` (or <= 0) waits forever.
    """
    if timeout is None or timeout <= 0:
        return await gateway.execute(sql)

    try:
        return await asyncio.wait_for(gateway.execute(sql), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"Query cancelled after {timeout}s")
        raise QueryTimeoutError(
            f"Query timed out after {timeout:g} seconds", query=sql, timeout=timeout
        ) from e


def build_gateway(settings, session_factory=None) -> QueryGateway:
    """Pick the gateway the settings ask for."""
    backend = settings.GATEWAY_BACKEND.lower()

    if backend == "rpc":
        if not settings.RPC_URL:
            raise ConfigurationError("RPC_URL is required when GATEWAY_BACKEND=rpc")
        return RpcGateway(
            base_url=settings.RPC_URL,
            api_key=settings.RPC_API_KEY,
            function=settings.RPC_FUNCTION,
        )

    if backend == "database":
        if session_factory is None:
            from ista_explorer.core.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        return DatabaseGateway(session_factory)

    raise ConfigurationError(
        f"Unknown GATEWAY_BACKEND: {settings.GATEWAY_BACKEND}",
        {"allowed": ["database", "rpc"]},
    )
