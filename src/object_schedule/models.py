"""
Pydantic models for scheduled object mutations.

A scheduled mutation holds a property diff to apply to a target record at
or after a given date. It moves from pending to processed exactly once.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.record_store import SCHEDULE_TYPE, Record, RecordId
from src.record_store.fields import as_utc, decode_mapping, decode_record_id, encode_json


class LoadFailurePolicy(str, Enum):
    """What to do when the target record cannot be loaded."""
    ABORT = "abort"
    CONTINUE = "continue"


class ApplyStatus(str, Enum):
    """Outcome of a single apply attempt."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why an apply attempt failed."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSIST = "persist"


class ScheduledMutation(BaseModel):
    """
    A deferred property update against a target record.

    Target type, target id and a non-empty diff are required before the
    mutation can be processed, not at construction.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[RecordId] = Field(
        default=None,
        description="Store identifier of the mutation itself"
    )
    target_type: Optional[str] = Field(
        default=None,
        description="Object type of the record to mutate"
    )
    target_id: Optional[RecordId] = Field(
        default=None,
        description="Identifier of the record to mutate"
    )
    scheduled_date: Optional[datetime] = Field(
        default=None,
        description="When to apply; None or a past date means immediately"
    )
    data_diff: dict[str, Any] = Field(
        default_factory=dict,
        description="Property name -> new value"
    )
    processed: bool = Field(
        default=False,
        description="Whether the diff has been applied"
    )
    processed_date: Optional[datetime] = Field(
        default=None,
        description="When the diff was applied"
    )

    @field_validator("scheduled_date", "processed_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @field_validator("target_id", mode="before")
    @classmethod
    def coerce_target_id(cls, v):
        return decode_record_id(v)

    @field_validator("data_diff", mode="before")
    @classmethod
    def decode_data_diff(cls, v):
        return decode_mapping(v)

    def is_due(self, now: datetime) -> bool:
        """Whether the mutation is eligible for processing at `now`."""
        return self.scheduled_date is None or self.scheduled_date <= as_utc(now)

    def missing_requirements(self) -> list[str]:
        """Names of the fields that prevent processing."""
        missing = []
        if not self.target_type:
            missing.append("target_type")
        if self.target_id is None or self.target_id == "":
            missing.append("target_id")
        if not self.data_diff:
            missing.append("data_diff")
        return missing

    def mark_processed(self, at: datetime) -> "ScheduledMutation":
        """Return the processed copy of this mutation."""
        return self.model_copy(update={"processed": True, "processed_date": as_utc(at)})

    def to_record(self) -> Record:
        return Record(
            obj_type=SCHEDULE_TYPE,
            id=self.id,
            data={
                "target_type": self.target_type,
                "target_id": self.target_id,
                "scheduled_date": self.scheduled_date,
                "data_diff": encode_json(self.data_diff),
                "processed": self.processed,
                "processed_date": self.processed_date,
            },
        )

    @classmethod
    def from_record(cls, record: Record) -> "ScheduledMutation":
        return cls(id=record.id, **record.data)


class ApplyResult(BaseModel):
    """Result of applying a scheduled mutation."""

    status: ApplyStatus = Field(description="Applied, skipped or failed")
    reason: Optional[FailureReason] = Field(
        default=None,
        description="Failure reason (failed results only)"
    )
    message: str = Field(default="", description="Human-readable detail")
    mutation: ScheduledMutation = Field(
        description="The mutation after the attempt"
    )

    @property
    def applied(self) -> bool:
        return self.status == ApplyStatus.APPLIED

    @property
    def skipped(self) -> bool:
        return self.status == ApplyStatus.SKIPPED

    @property
    def failed(self) -> bool:
        return self.status == ApplyStatus.FAILED
