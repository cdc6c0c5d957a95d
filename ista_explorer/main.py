import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from ista_explorer.core.config import settings
from ista_explorer.core.database import engine
from ista_explorer.core.query.aggregate import AggregateFetcher
from ista_explorer.core.query.controller import QueryController
from ista_explorer.core.query.gateway import build_gateway
from ista_explorer.core.schemas import SchemaInference
from ista_explorer.api.router import api_router

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway = build_gateway(settings)
    timeout = settings.QUERY_TIMEOUT_SECONDS

    app.state.controller = QueryController(
        gateway,
        timeout=timeout,
        inference=SchemaInference(settings.SCHEMA_INFERENCE),
        history=settings.NOTIFICATION_HISTORY,
    )
    app.state.fetcher = AggregateFetcher(gateway, timeout=timeout)

    # Dashboard slots fill in the background, the API is usable right away
    loader = asyncio.create_task(app.state.fetcher.load_all())
    logger.info(f"ISTA Explorer started with {settings.GATEWAY_BACKEND} gateway")

    yield

    if not loader.done():
        loader.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await loader
    # Close the engine once everything is done and close all the sessions
    await engine.dispose()


app = FastAPI(title="ISTA Explorer API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the ISTA Explorer API"}
