"""Database engine and service dependencies."""

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from app.config import settings
from src.object_route import RouteService
from src.object_schedule import MutationProcessor
from src.record_store import RecordStore, SqlRecordStore
from src.revision_store import RevisionStore

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine: Engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    connect_args=connect_args,
)

_store = SqlRecordStore(engine)


def get_store() -> RecordStore:
    """Record store dependency."""
    return _store


def get_revision_store(store: RecordStore = Depends(get_store)) -> RevisionStore:
    return RevisionStore(store)


def get_processor(store: RecordStore = Depends(get_store)) -> MutationProcessor:
    return MutationProcessor(store, load_failure_policy=settings.load_failure_policy)


def get_route_service(store: RecordStore = Depends(get_store)) -> RouteService:
    return RouteService(store, max_slug_attempts=settings.slug_max_attempts)
