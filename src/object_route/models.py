"""Pydantic models for object routes (permalinks)."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.record_store import ROUTE_TYPE, Record, RecordId
from src.record_store.fields import as_utc, decode_mapping, decode_record_id, encode_json


class ObjectRoute(BaseModel):
    """A route (URL slug) to an object, per language."""

    model_config = ConfigDict(frozen=True)

    id: Optional[RecordId] = None
    active: bool = True
    slug: Optional[str] = None
    lang: Optional[str] = None
    creation_date: Optional[datetime] = None
    last_modification_date: Optional[datetime] = None
    route_obj_type: Optional[str] = Field(
        default=None,
        description="Object type the route points to"
    )
    route_obj_id: Optional[RecordId] = Field(
        default=None,
        description="Object ID the route points to"
    )
    route_template: Optional[str] = None
    route_options: dict[str, Any] = Field(default_factory=dict)
    route_options_ident: Optional[str] = None

    @field_validator("creation_date", "last_modification_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @field_validator("route_obj_id", mode="before")
    @classmethod
    def coerce_route_obj_id(cls, v):
        return decode_record_id(v)

    @field_validator("route_options", mode="before")
    @classmethod
    def decode_options(cls, v):
        return decode_mapping(v)

    def __str__(self) -> str:
        return self.slug or ""

    def to_record(self) -> Record:
        data = self.model_dump(exclude={"id"})
        data["route_options"] = encode_json(self.route_options)
        return Record(obj_type=ROUTE_TYPE, id=self.id, data=data)

    @classmethod
    def from_record(cls, record: Record) -> "ObjectRoute":
        return cls(id=record.id, **record.data)
