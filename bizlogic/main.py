"""
FastAPI application entry point for the Business Logic Helper API.

This module wires the service together and starts the ASGI server. Startup
builds everything once and stores it on app.state:

- Settings (pydantic-settings: env, .env, config.json)
- asyncpg connection pool
- AppContext (settings, pool, schema map, manager leads)
- One loader per reference data type behind a LoadDispatcher
- The IngestionCoordinator used by postReferenceData

Shutdown stops the dispatcher workers before closing the pool.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from bizlogic import __version__
from bizlogic.api import api_router
from bizlogic.core.config import get_settings
from bizlogic.core.context import AppContext
from bizlogic.core.database import close_db_pool, create_db_pool
from bizlogic.models.enums import DataType
from bizlogic.services.account_loader import AccountLoader
from bizlogic.services.chunk_assembler import ChunkAssembler
from bizlogic.services.identity_loader import IdentityLoader
from bizlogic.services.ingestion import IngestionCoordinator
from bizlogic.services.load_dispatcher import LoadDispatcher
from bizlogic.services.opportunity_loader import OpportunityLoader

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_dispatcher(context: AppContext) -> LoadDispatcher:
    return LoadDispatcher({
        DataType.IDENTITY: IdentityLoader(context),
        DataType.OPPORTUNITY: OpportunityLoader(context),
        DataType.ACCOUNT: AccountLoader(context),
    })


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Load settings and apply the configured log level
        - Create the database pool and the application context
        - Start the load dispatcher workers

    On shutdown:
        - Stop the dispatcher (an in-flight load is rolled back)
        - Close the database pool

    A configuration or database failure at startup aborts the process: every
    endpoint except /health needs both.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info("Business Logic Helper API starting")

    pool = await create_db_pool(settings)
    logger.info("Database connection pool initialized")
    try:
        context = AppContext.from_settings(settings, pool)
        dispatcher = build_dispatcher(context)
        dispatcher.start()

        app.state.context = context
        app.state.dispatcher = dispatcher
        app.state.coordinator = IngestionCoordinator(ChunkAssembler(settings.chunk_directory), dispatcher)

        yield

        logger.info("Business Logic Helper API shutting down")
        await dispatcher.stop()
    finally:
        await close_db_pool(pool)
        logger.info("Database connection pool closed")


# Create FastAPI application
app = FastAPI(
    title="Business Logic Helper API",
    version=__version__,
    description=(
        "Backend helpers for the low-code front end: manager hierarchy and dashboard "
        "queries, chunked reference data ingestion and the identity snapshot."
    ),
    lifespan=lifespan,
)

app.include_router(api_router)


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "bizlogic.main:app",
        host=settings.service_host,
        port=settings.service_listen_port,
    )


# Run with uvicorn when executed directly
if __name__ == "__main__":
    run()
