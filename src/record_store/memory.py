"""
In-memory record store.

Dict-backed implementation used by tests and by callers that do not need
durable storage. Records are deep-copied in and out so callers never share
state with the store.
"""

import logging
from copy import deepcopy
from datetime import datetime
from typing import Any, Iterable, Optional

from .base import RecordStore
from .fields import as_utc
from .models import Record, RecordId, RecordQuery, SortDirection

logger = logging.getLogger(__name__)


def _sort_key(value: Any) -> tuple:
    # None sorts first; mixed types fall back to their string form
    if value is None:
        return (0, "")
    if isinstance(value, datetime):
        return (1, as_utc(value).timestamp())
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))


class InMemoryRecordStore(RecordStore):
    """Record store keeping each object type in its own dict."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[RecordId, dict[str, Any]]] = {}
        self._sequences: dict[str, int] = {}
        self.writes = 0

    def create_table(self, obj_type: str) -> None:
        self._tables.setdefault(obj_type, {})

    def table_exists(self, obj_type: str) -> bool:
        return obj_type in self._tables

    def load(self, obj_type: str, record_id: RecordId) -> Optional[Record]:
        row = self._tables.get(obj_type, {}).get(record_id)
        if row is None:
            return None
        return Record(obj_type=obj_type, id=record_id, data=deepcopy(row))

    def find(self, obj_type: str, query: RecordQuery) -> list[Record]:
        table = self._tables.get(obj_type)
        if table is None:
            return []

        rows = [
            (record_id, row) for record_id, row in table.items()
            if all(
                _field_value(record_id, row, f.field) == f.value
                for f in query.filters
            )
        ]

        # Stable sorts applied last-to-first give multi-key ordering
        for order in reversed(query.orders):
            rows.sort(
                key=lambda item: _sort_key(_field_value(item[0], item[1], order.field)),
                reverse=order.direction == SortDirection.DESC,
            )

        if query.num_per_page is not None:
            rows = rows[query.offset:query.offset + query.num_per_page]

        return [
            Record(obj_type=obj_type, id=record_id, data=deepcopy(row))
            for record_id, row in rows
        ]

    def save(self, record: Record, fields: Optional[Iterable[str]] = None) -> bool:
        table = self._tables.setdefault(record.obj_type, {})

        if record.id is None:
            self._sequences[record.obj_type] = self._sequences.get(record.obj_type, 0) + 1
            record.id = self._sequences[record.obj_type]
            table[record.id] = deepcopy(record.data)
            self.writes += 1
            return True

        if record.id not in table:
            if fields is not None:
                logger.warning(
                    "Cannot update missing %s record %s", record.obj_type, record.id
                )
                return False
            table[record.id] = deepcopy(record.data)
            self.writes += 1
            return True

        names = list(record.data) if fields is None else list(fields)
        row = table[record.id]
        for name in names:
            row[name] = deepcopy(record.data.get(name))
        self.writes += 1
        return True


def _field_value(record_id: RecordId, row: dict[str, Any], field: str) -> Any:
    if field == "id":
        return record_id
    return row.get(field)
