"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app import __version__
from app.database import get_store
from src.record_store import RecordStore

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class HealthDetailResponse(HealthResponse):
    """Detailed health check response with database status."""

    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/health/ready", response_model=HealthDetailResponse)
def readiness_check(store: RecordStore = Depends(get_store)) -> HealthDetailResponse:
    """Readiness check including database connectivity."""
    db_status = "connected" if store.ping() else "disconnected"

    return HealthDetailResponse(
        status="ok" if db_status == "connected" else "degraded",
        version=__version__,
        database=db_status,
    )
