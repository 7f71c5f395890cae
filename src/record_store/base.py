"""
Record store interface.

Services receive a store through their constructor; they never look one
up globally. Implementations decide how records are laid out physically.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from .errors import NotFoundError
from .models import Record, RecordId, RecordQuery, SortDirection


class RecordStore(ABC):
    """Generic record store keyed by (obj_type, id)."""

    @abstractmethod
    def table_exists(self, obj_type: str) -> bool:
        """Whether storage for `obj_type` exists yet."""

    @abstractmethod
    def load(self, obj_type: str, record_id: RecordId) -> Optional[Record]:
        """Load a single record, or None when it does not exist."""

    @abstractmethod
    def find(self, obj_type: str, query: RecordQuery) -> list[Record]:
        """Return the records matching a query (empty when no storage)."""

    @abstractmethod
    def save(self, record: Record, fields: Optional[Iterable[str]] = None) -> bool:
        """
        Persist a record.

        Records without an id are inserted and receive their id in place.
        Records with an id are updated; only `fields` are written when given.

        Returns:
            True if the write happened, False otherwise
        """

    def get(self, obj_type: str, record_id: RecordId) -> Record:
        """
        Load a single record that must exist.

        Raises:
            NotFoundError: If there is no such record
        """
        record = self.load(obj_type, record_id)
        if record is None:
            raise NotFoundError(f'"{obj_type}" {record_id} not found')
        return record

    def ping(self) -> bool:
        """Whether the backing storage is reachable."""
        return True

    def find_latest(
        self,
        obj_type: str,
        filters: dict[str, Any],
        order_by: Iterable[tuple[str, SortDirection | str]],
    ) -> Optional[Record]:
        """Return the first record of an ordered, filtered query."""
        query = RecordQuery()
        for field, value in filters.items():
            query.add_filter(field, value)
        for field, direction in order_by:
            query.add_order(field, direction)
        query.set_page(1, 1)

        records = self.find(obj_type, query)
        return records[0] if records else None
