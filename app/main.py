"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app import __version__
from app.api import health, revisions, routes, schedules
from app.config import settings
from app.database import engine
from src.record_store import metadata

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Migrations own the schema outside development
    if settings.app_env == "development":
        metadata.create_all(engine)
    logger.info("Object History Service %s started (%s)", __version__, settings.app_env)
    yield


app = FastAPI(
    title="Object History Service",
    description="Revision history and scheduled mutations for stored objects",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(revisions.router, prefix="/revisions", tags=["revisions"])
app.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
app.include_router(routes.router, prefix="/routes", tags=["routes"])
