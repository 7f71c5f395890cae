"""
Record Store

Generic storage collaborator for the history subsystem: records keyed by
(obj_type, id), filtered/ordered/paginated queries, and an error taxonomy
shared by the services.
"""

from .base import RecordStore
from .errors import NotFoundError, PersistError, RecordStoreError, ValidationError
from .memory import InMemoryRecordStore
from .models import QueryFilter, QueryOrder, Record, RecordId, RecordQuery, SortDirection
from .sql import SqlRecordStore
from .tables import REVISION_TYPE, ROUTE_TYPE, SCHEDULE_TYPE, metadata

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "SqlRecordStore",
    "Record",
    "RecordId",
    "RecordQuery",
    "QueryFilter",
    "QueryOrder",
    "SortDirection",
    "RecordStoreError",
    "ValidationError",
    "NotFoundError",
    "PersistError",
    "REVISION_TYPE",
    "SCHEDULE_TYPE",
    "ROUTE_TYPE",
    "metadata",
]
