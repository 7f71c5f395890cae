"""
Pydantic models for object revisions.

A revision records one transition of a target record: the snapshot before,
the snapshot after, and their diff. Revisions are immutable once built.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from src.diff_engine import DiffResult, compute_diff
from src.record_store import REVISION_TYPE, Record, RecordId
from src.record_store.fields import as_utc, decode_mapping, decode_record_id, encode_json

logger = logging.getLogger(__name__)


class Revision(BaseModel):
    """
    A single revision of a target record.

    The diff is always derived from the two snapshots, so a revision can
    never carry a diff that disagrees with them.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[RecordId] = Field(
        default=None,
        description="Store identifier of the revision itself"
    )
    target_type: str = Field(
        ...,
        min_length=1,
        description="Object type of the revisioned record"
    )
    target_id: RecordId = Field(
        ...,
        description="Identifier of the revisioned record"
    )
    rev_num: int = Field(
        ...,
        ge=1,
        description="Sequential revision number, per target"
    )
    rev_ts: datetime = Field(
        ...,
        description="When the revision was created"
    )
    rev_user: Optional[str] = Field(
        default=None,
        description="Actor responsible for the change"
    )
    data_prev: dict[str, Any] = Field(
        default_factory=dict,
        description="Snapshot immediately prior to this revision"
    )
    data_obj: dict[str, Any] = Field(
        default_factory=dict,
        description="Snapshot at revision time"
    )

    @field_validator("rev_num", mode="before")
    @classmethod
    def coerce_rev_num(cls, v):
        """Accept numeric strings, as stored by text-only backends."""
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v)
        return v

    @field_validator("target_id", mode="before")
    @classmethod
    def coerce_target_id(cls, v):
        return decode_record_id(v)

    @field_validator("rev_ts")
    @classmethod
    def normalize_rev_ts(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("data_prev", "data_obj", mode="before")
    @classmethod
    def decode_snapshot(cls, v):
        return decode_mapping(v)

    @computed_field
    @property
    def diff(self) -> DiffResult:
        """Diff from `data_prev` to `data_obj`."""
        return compute_diff(self.data_prev, self.data_obj)

    def to_record(self) -> Record:
        """Storage form, with snapshots and diff as JSON text."""
        return Record(
            obj_type=REVISION_TYPE,
            id=self.id,
            data={
                "target_type": self.target_type,
                "target_id": self.target_id,
                "rev_num": self.rev_num,
                "rev_ts": self.rev_ts,
                "rev_user": self.rev_user,
                "data_prev": encode_json(self.data_prev),
                "data_obj": encode_json(self.data_obj),
                "data_diff": encode_json(self.diff.to_pair()),
            },
        )

    @classmethod
    def from_record(cls, record: Record) -> "Revision":
        """
        Build from a stored record.

        The diff is recomputed from the snapshots; a stored `data_diff`
        that disagrees with them is logged and ignored.
        """
        data = {k: v for k, v in record.data.items() if k != "data_diff"}
        revision = cls(id=record.id, **data)

        stored = record.data.get("data_diff")
        if stored is not None and _decode_pair(stored) != revision.diff:
            logger.warning(
                'Stored diff of revision %s ("%s" %s #%d) disagrees with its snapshots',
                revision.id, revision.target_type, revision.target_id, revision.rev_num
            )
        return revision


def _decode_pair(value) -> DiffResult:
    if isinstance(value, (str, bytes, bytearray)):
        try:
            value = json.loads(value)
        except ValueError:
            return DiffResult()
    return DiffResult.from_pair(value)
