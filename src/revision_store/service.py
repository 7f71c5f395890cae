"""
Revision store service.

Creates the next revision of a target record and retrieves revision
history. Missing storage or missing rows are not errors: lookups return
None and the first revision diffs against an empty snapshot.
"""

import logging
from copy import deepcopy
from datetime import datetime
from typing import Callable, Optional

from src.record_store import (
    REVISION_TYPE,
    PersistError,
    Record,
    RecordId,
    RecordQuery,
    RecordStore,
    SortDirection,
    ValidationError,
)
from src.record_store.fields import utcnow

from .models import Revision

logger = logging.getLogger(__name__)

# Revision number is the authoritative ordering; timestamps only break ties
LATEST_ORDER = (("rev_num", SortDirection.DESC), ("rev_ts", SortDirection.DESC))


class RevisionStore:
    """Produces, persists and retrieves ordered revisions of target records."""

    def __init__(
        self,
        store: RecordStore,
        *,
        revision_type: str = REVISION_TYPE,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._revision_type = revision_type
        self._now_provider = now_provider or utcnow

    def create_revision(
        self,
        target: Record,
        rev_user: Optional[str] = None
    ) -> Revision:
        """
        Create and persist the next revision of a target record.

        1. Load the last revision of the target (if any)
        2. Snapshot the target's current data
        3. Diff the previous snapshot against the current one

        Args:
            target: The record to revision
            rev_user: Actor responsible; defaults to the target's
                `last_modified_by` value

        Returns:
            The persisted revision

        Raises:
            ValidationError: If the target's type or id is missing
            PersistError: If the store fails to save the revision
        """
        if not isinstance(target.obj_type, str) or not target.obj_type:
            raise ValidationError("Cannot create revision: target has no object type.")
        if target.id is None:
            raise ValidationError(
                f'Cannot create revision: target "{target.obj_type}" has no ID.'
            )

        previous = self.latest_revision(target.obj_type, target.id)

        if rev_user is None:
            modified_by = target.get("last_modified_by")
            rev_user = modified_by if isinstance(modified_by, str) else None

        revision = Revision(
            target_type=target.obj_type,
            target_id=target.id,
            rev_num=(previous.rev_num if previous else 0) + 1,
            rev_ts=self._now_provider(),
            rev_user=rev_user,
            data_prev=previous.data_obj if previous else {},
            data_obj=deepcopy(target.data),
        )

        record = revision.to_record()
        record.obj_type = self._revision_type
        if not self._store.save(record):
            logger.error(
                'Failed to save revision %d of "%s" %s',
                revision.rev_num, target.obj_type, target.id
            )
            raise PersistError(
                f'Could not save revision {revision.rev_num} of "{target.obj_type}" {target.id}'
            )

        logger.info(
            'Created revision %d of "%s" %s', revision.rev_num, target.obj_type, target.id
        )
        return revision.model_copy(update={"id": record.id})

    def latest_revision(
        self,
        target_type: str,
        target_id: RecordId
    ) -> Optional[Revision]:
        """Return the highest-numbered revision of a target, or None."""
        if not self._store.table_exists(self._revision_type):
            return None

        record = self._store.find_latest(
            self._revision_type,
            {"target_type": target_type, "target_id": target_id},
            LATEST_ORDER,
        )
        return Revision.from_record(record) if record else None

    def revision_by_number(
        self,
        target_type: str,
        target_id: RecordId,
        rev_num: int
    ) -> Optional[Revision]:
        """Return a specific revision of a target, or None."""
        if not self._store.table_exists(self._revision_type):
            return None

        record = self._store.find_latest(
            self._revision_type,
            {"target_type": target_type, "target_id": target_id, "rev_num": int(rev_num)},
            LATEST_ORDER,
        )
        return Revision.from_record(record) if record else None

    def history(
        self,
        target_type: str,
        target_id: RecordId,
        *,
        page: int = 1,
        num_per_page: Optional[int] = None
    ) -> list[Revision]:
        """Return a target's revisions, oldest first."""
        if not self._store.table_exists(self._revision_type):
            return []

        query = (
            RecordQuery()
            .add_filter("target_type", target_type)
            .add_filter("target_id", target_id)
            .add_order("rev_num", SortDirection.ASC)
            .set_page(page, num_per_page)
        )
        return [Revision.from_record(r) for r in self._store.find(self._revision_type, query)]
