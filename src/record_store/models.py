"""
Pydantic models for the generic record store.

A record is an arbitrary key/value entity identified by (obj_type, id).
Queries follow the collection-loader shape: equality filters, ordering
and page-based pagination.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

RecordId = Union[int, str]


class Record(BaseModel):
    """
    A stored entity.

    `data` holds the full state of the record, excluding its id.
    The id is None until the record is first persisted.
    """

    obj_type: str = Field(
        ...,
        min_length=1,
        description="Type identifier of the record"
    )
    id: Optional[RecordId] = Field(
        default=None,
        description="Record identifier (assigned on insert)"
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Property name -> value"
    )

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set_data(self, values: dict[str, Any]) -> "Record":
        """Overwrite the given properties (fluent interface)."""
        self.data.update(values)
        return self


class SortDirection(str, Enum):
    """Ordering direction."""
    ASC = "asc"
    DESC = "desc"


class QueryFilter(BaseModel):
    """Equality filter on a single field."""

    field: str = Field(..., min_length=1)
    value: Any = None


class QueryOrder(BaseModel):
    """Ordering on a single field."""

    field: str = Field(..., min_length=1)
    direction: SortDirection = SortDirection.ASC


class RecordQuery(BaseModel):
    """
    A filtered, ordered, paginated query against one object type.

    Examples:
        Latest revision of an object:
            RecordQuery().add_filter("target_type", "article") \\
                .add_filter("target_id", 3) \\
                .add_order("rev_num", "desc") \\
                .set_page(1, 1)
    """

    filters: list[QueryFilter] = Field(default_factory=list)
    orders: list[QueryOrder] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    num_per_page: Optional[int] = Field(
        default=None,
        ge=1,
        description="Page size; None means no limit"
    )

    @field_validator("orders", mode="before")
    @classmethod
    def coerce_orders(cls, v):
        """Accept (field, direction) tuples as shorthand."""
        if isinstance(v, list):
            return [
                {"field": o[0], "direction": o[1]} if isinstance(o, tuple) else o
                for o in v
            ]
        return v

    def add_filter(self, field: str, value: Any) -> "RecordQuery":
        """Add an equality filter (fluent interface)."""
        self.filters.append(QueryFilter(field=field, value=value))
        return self

    def add_order(
        self,
        field: str,
        direction: SortDirection | str = SortDirection.ASC
    ) -> "RecordQuery":
        """Add an ordering clause (fluent interface)."""
        self.orders.append(QueryOrder(field=field, direction=SortDirection(direction)))
        return self

    def set_page(self, page: int, num_per_page: Optional[int]) -> "RecordQuery":
        """Set pagination (fluent interface)."""
        self.page = page
        self.num_per_page = num_per_page
        return self

    @property
    def offset(self) -> int:
        if self.num_per_page is None:
            return 0
        return (self.page - 1) * self.num_per_page
