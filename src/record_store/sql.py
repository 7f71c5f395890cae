"""
SQLAlchemy-backed record store.

Each object type maps to one registered `Table` whose primary key column is
`id`. Record data maps one-to-one onto the remaining columns; keys without
a column are ignored on write. Driver errors are logged and reported as a
failed write, a missing record or an empty result.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import RecordStore
from .errors import ValidationError
from .models import Record, RecordId, RecordQuery, SortDirection
from .tables import DEFAULT_TABLES

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """Record store over a SQLAlchemy engine."""

    def __init__(
        self,
        engine: Engine,
        tables: Optional[Mapping[str, sa.Table]] = None,
    ) -> None:
        self._engine = engine
        self._tables: dict[str, sa.Table] = dict(DEFAULT_TABLES if tables is None else tables)

    @property
    def engine(self) -> Engine:
        return self._engine

    def register(self, obj_type: str, table: sa.Table) -> "SqlRecordStore":
        """Map an object type onto a table (fluent interface)."""
        self._tables[obj_type] = table
        return self

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(sa.text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    def table_exists(self, obj_type: str) -> bool:
        table = self._tables.get(obj_type)
        if table is None:
            return False
        try:
            return sa.inspect(self._engine).has_table(table.name, schema=table.schema)
        except SQLAlchemyError:
            logger.exception("Failed to inspect table %s", table.name)
            return False

    def load(self, obj_type: str, record_id: RecordId) -> Optional[Record]:
        if not self.table_exists(obj_type):
            return None
        table = self._tables[obj_type]
        pk = table.c.id
        stmt = sa.select(table).where(pk == _coerce(pk, record_id))
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError:
            logger.exception("Failed to load %s record %s", obj_type, record_id)
            return None
        if row is None:
            return None
        return _to_record(obj_type, row)

    def find(self, obj_type: str, query: RecordQuery) -> list[Record]:
        if not self.table_exists(obj_type):
            return []
        table = self._tables[obj_type]

        stmt = sa.select(table)
        for f in query.filters:
            column = _column(table, f.field)
            if f.value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == _coerce(column, f.value))
        for order in query.orders:
            column = _column(table, order.field)
            stmt = stmt.order_by(
                column.desc() if order.direction == SortDirection.DESC else column.asc()
            )
        if query.num_per_page is not None:
            stmt = stmt.limit(query.num_per_page).offset(query.offset)

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError:
            logger.exception("Failed to query %s records", obj_type)
            return []
        return [_to_record(obj_type, row) for row in rows]

    def save(self, record: Record, fields: Optional[Iterable[str]] = None) -> bool:
        table = self._tables.get(record.obj_type)
        if table is None:
            logger.error("No table registered for object type %r", record.obj_type)
            return False

        try:
            with self._engine.begin() as conn:
                if record.id is None:
                    result = conn.execute(table.insert().values(**_values(table, record.data)))
                    record.id = result.inserted_primary_key[0]
                    return True

                names = list(record.data) if fields is None else list(fields)
                values = _values(table, {name: record.data.get(name) for name in names})
                pk = table.c.id
                updated = 0
                if values:
                    result = conn.execute(
                        table.update().where(pk == _coerce(pk, record.id)).values(**values)
                    )
                    updated = result.rowcount
                if updated:
                    return True
                if fields is None:
                    conn.execute(table.insert().values(id=record.id, **values))
                    return True
                return False
        except SQLAlchemyError:
            logger.exception(
                "Failed to save %s record %s", record.obj_type, record.id
            )
            return False


def _column(table: sa.Table, field: str) -> sa.Column:
    try:
        return table.c[field]
    except KeyError:
        raise ValidationError(f"Unknown field {field!r} for table {table.name}") from None


def _coerce(column: sa.Column, value: Any) -> Any:
    # String ids may be compared against integer ids supplied by callers
    if value is not None and isinstance(column.type, sa.String) and not isinstance(value, str):
        return str(value)
    return value


def _values(table: sa.Table, data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: _coerce(table.c[key], value)
        for key, value in data.items()
        if key != "id" and key in table.c
    }


def _to_record(obj_type: str, row: Mapping[str, Any]) -> Record:
    data = {key: value for key, value in row.items() if key != "id"}
    return Record(obj_type=obj_type, id=row["id"], data=data)
