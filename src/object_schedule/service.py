"""
Scheduled mutation processor.

Applies a stored property diff to a live record exactly once, at or after
the mutation's scheduled date. Precondition failures are logged and
reported through the result; they never raise.

No locking happens here: a scheduler running passes in parallel must
claim mutations itself, since checking `processed` and setting it are
separate reads and writes.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from src.record_store import (
    SCHEDULE_TYPE,
    PersistError,
    Record,
    RecordId,
    RecordQuery,
    RecordStore,
    SortDirection,
)
from src.record_store.fields import utcnow

from .models import (
    ApplyResult,
    ApplyStatus,
    FailureReason,
    LoadFailurePolicy,
    ScheduledMutation,
)

logger = logging.getLogger(__name__)

MutationCallback = Callable[[ScheduledMutation], None]


class MutationProcessor:
    """Schedules, applies and sweeps deferred property mutations."""

    def __init__(
        self,
        store: RecordStore,
        *,
        schedule_type: str = SCHEDULE_TYPE,
        load_failure_policy: LoadFailurePolicy = LoadFailurePolicy.ABORT,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._schedule_type = schedule_type
        self._load_failure_policy = LoadFailurePolicy(load_failure_policy)
        self._now_provider = now_provider or utcnow

    def schedule(self, mutation: ScheduledMutation) -> ScheduledMutation:
        """
        Persist a new pending mutation.

        The stored copy always starts unprocessed.

        Raises:
            PersistError: If the store fails to save the mutation
        """
        pending = mutation.model_copy(
            update={"id": None, "processed": False, "processed_date": None}
        )
        record = self._to_record(pending)
        if not self._store.save(record):
            raise PersistError(
                f'Could not schedule mutation of "{mutation.target_type}" {mutation.target_id}'
            )
        logger.info(
            'Scheduled mutation %s of "%s" %s for %s',
            record.id, pending.target_type, pending.target_id,
            pending.scheduled_date.isoformat() if pending.scheduled_date else "now"
        )
        return pending.model_copy(update={"id": record.id})

    def get(self, mutation_id: RecordId) -> Optional[ScheduledMutation]:
        record = self._store.load(self._schedule_type, mutation_id)
        return ScheduledMutation.from_record(record) if record else None

    def pending(self) -> list[ScheduledMutation]:
        """Unprocessed mutations, earliest scheduled first."""
        query = (
            RecordQuery()
            .add_filter("processed", False)
            .add_order("scheduled_date", SortDirection.ASC)
            .add_order("id", SortDirection.ASC)
        )
        return [
            ScheduledMutation.from_record(r)
            for r in self._store.find(self._schedule_type, query)
        ]

    def due(self, now: Optional[datetime] = None) -> list[ScheduledMutation]:
        """Unprocessed mutations eligible at `now`."""
        now = now or self._now_provider()
        return [m for m in self.pending() if m.is_due(now)]

    def process_due(
        self,
        now: Optional[datetime] = None,
        callback: Optional[MutationCallback] = None,
        on_success: Optional[MutationCallback] = None,
        on_failure: Optional[MutationCallback] = None,
    ) -> list[ApplyResult]:
        """Apply every due mutation once (one scheduler pass)."""
        results = [
            self.apply(mutation, callback, on_success, on_failure)
            for mutation in self.due(now)
        ]
        if results:
            logger.info(
                "Processed %d due mutation(s): %d applied, %d failed",
                len(results),
                sum(1 for r in results if r.applied),
                sum(1 for r in results if r.failed),
            )
        return results

    def apply(
        self,
        mutation: ScheduledMutation,
        callback: Optional[MutationCallback] = None,
        on_success: Optional[MutationCallback] = None,
        on_failure: Optional[MutationCallback] = None,
    ) -> ApplyResult:
        """
        Apply a mutation's diff to its target record.

        Args:
            mutation: The mutation to apply
            callback: Called after every attempt that reaches the target
                record, after the success or failure callback
            on_success: Called when the target was saved
            on_failure: Called when the target could not be loaded or saved

        Returns:
            ApplyResult; SKIPPED when the mutation was already processed
        """
        if self._already_processed(mutation):
            # Never apply twice
            logger.debug("Skipping already processed mutation %s", mutation.id)
            return ApplyResult(
                status=ApplyStatus.SKIPPED,
                message="Mutation already processed",
                mutation=mutation,
            )

        missing = mutation.missing_requirements()
        if missing:
            message = self._describe_missing(mutation, missing)
            logger.error(
                'Can not process object schedule %s (target "%s" %s): %s',
                mutation.id, mutation.target_type, mutation.target_id, message
            )
            return ApplyResult(
                status=ApplyStatus.FAILED,
                reason=FailureReason.VALIDATION,
                message=message,
                mutation=mutation,
            )

        target = self._store.load(mutation.target_type, mutation.target_id)
        if target is None:
            logger.error(
                'Can not load "%s" object %s', mutation.target_type, mutation.target_id
            )
            if self._load_failure_policy == LoadFailurePolicy.ABORT:
                return self._finish(
                    ApplyResult(
                        status=ApplyStatus.FAILED,
                        reason=FailureReason.NOT_FOUND,
                        message=f'"{mutation.target_type}" {mutation.target_id} not found',
                        mutation=mutation,
                    ),
                    callback, on_failure,
                )
            target = Record(obj_type=mutation.target_type, id=mutation.target_id)

        target.set_data(mutation.data_diff)
        if not self._store.save(target, list(mutation.data_diff)):
            logger.error(
                'Failed to save scheduled changes to "%s" %s',
                mutation.target_type, mutation.target_id
            )
            return self._finish(
                ApplyResult(
                    status=ApplyStatus.FAILED,
                    reason=FailureReason.PERSIST,
                    message=f'Could not save "{mutation.target_type}" {mutation.target_id}',
                    mutation=mutation,
                ),
                callback, on_failure,
            )

        processed = mutation.mark_processed(self._now_provider())
        record = self._to_record(processed)
        if not self._store.save(record, ["processed", "processed_date"]):
            logger.warning(
                "Applied mutation %s but could not record it as processed", mutation.id
            )
        processed = processed.model_copy(update={"id": record.id})

        logger.info(
            'Applied scheduled mutation %s to "%s" %s (%s)',
            processed.id, mutation.target_type, mutation.target_id,
            ", ".join(sorted(mutation.data_diff))
        )
        return self._finish(
            ApplyResult(status=ApplyStatus.APPLIED, mutation=processed),
            callback, on_success,
        )

    def _finish(
        self,
        result: ApplyResult,
        callback: Optional[MutationCallback],
        outcome_callback: Optional[MutationCallback],
    ) -> ApplyResult:
        if outcome_callback is not None:
            outcome_callback(result.mutation)
        if callback is not None:
            callback(result.mutation)
        return result

    def _already_processed(self, mutation: ScheduledMutation) -> bool:
        if mutation.processed:
            return True
        if mutation.id is None:
            return False
        stored = self.get(mutation.id)
        return stored is not None and stored.processed

    def _to_record(self, mutation: ScheduledMutation) -> Record:
        record = mutation.to_record()
        record.obj_type = self._schedule_type
        return record

    @staticmethod
    def _describe_missing(mutation: ScheduledMutation, missing: list[str]) -> str:
        if "target_type" in missing:
            return "no object type defined."
        if "target_id" in missing:
            return f'no object "{mutation.target_type}" ID defined.'
        return "no changes (diff) defined."
