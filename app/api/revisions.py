"""
Revision endpoints.

Create revisions of stored records and browse their history.
"""

import logging
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from app.database import get_revision_store, get_store
from src.diff_engine import DiffResult, compute_diff
from src.record_store import NotFoundError, PersistError, RecordStore, ValidationError
from src.revision_store import Revision, RevisionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_record_id(value: str) -> Union[int, str]:
    """Path ids are strings; numeric ones address integer-keyed records."""
    return int(value) if value.isdigit() else value


# --- Request/Response Models ---

class DiffRequest(BaseModel):
    """Request body for an ad-hoc snapshot diff."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "before": {"name": "A", "age": 1},
                "after": {"name": "B", "age": 1, "city": "X"}
            }
        }
    )

    before: dict[str, Any] = Field(default_factory=dict, description="Earlier snapshot")
    after: dict[str, Any] = Field(default_factory=dict, description="Later snapshot")


class CreateRevisionRequest(BaseModel):
    """Request body for creating a revision of a stored record."""

    target_type: str = Field(..., min_length=1, description="Object type of the record")
    target_id: Union[int, str] = Field(..., description="Identifier of the record")
    rev_user: Optional[str] = Field(default=None, description="Actor responsible")


class RevisionHistoryResponse(BaseModel):
    """A page of revisions, oldest first."""

    target_type: str
    target_id: Union[int, str]
    page: int
    revisions: list[Revision]


# --- Endpoints ---

@router.post("/diff", response_model=DiffResult)
async def diff_snapshots(request: DiffRequest) -> DiffResult:
    """Compute the structural diff between two snapshots."""
    return compute_diff(request.before, request.after)


@router.post("", response_model=Revision, status_code=status.HTTP_201_CREATED)
def create_revision(
    request: CreateRevisionRequest,
    store: RecordStore = Depends(get_store),
    revisions: RevisionStore = Depends(get_revision_store),
) -> Revision:
    """Snapshot a stored record as its next revision."""
    try:
        target = store.get(request.target_type, request.target_id)
        return revisions.create_revision(target, rev_user=request.rev_user)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": str(e)},
        )
    except ValidationError as e:
        logger.error("Validation error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "validation_error", "message": str(e)},
        )
    except PersistError as e:
        logger.error("Persist error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "persist_error", "message": str(e)},
        )


@router.get("/{target_type}/{target_id}", response_model=RevisionHistoryResponse)
def revision_history(
    target_type: str,
    target_id: str,
    page: int = Query(default=1, ge=1),
    num_per_page: Optional[int] = Query(default=None, ge=1, le=500),
    revisions: RevisionStore = Depends(get_revision_store),
) -> RevisionHistoryResponse:
    """List a record's revisions, oldest first."""
    record_id = parse_record_id(target_id)
    return RevisionHistoryResponse(
        target_type=target_type,
        target_id=record_id,
        page=page,
        revisions=revisions.history(
            target_type, record_id, page=page, num_per_page=num_per_page
        ),
    )


@router.get("/{target_type}/{target_id}/latest", response_model=Revision)
def latest_revision(
    target_type: str,
    target_id: str,
    revisions: RevisionStore = Depends(get_revision_store),
) -> Revision:
    """Get a record's current revision."""
    revision = revisions.latest_revision(target_type, parse_record_id(target_id))
    if revision is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "No revisions"},
        )
    return revision


@router.get("/{target_type}/{target_id}/{rev_num}", response_model=Revision)
def revision_by_number(
    target_type: str,
    target_id: str,
    rev_num: int,
    revisions: RevisionStore = Depends(get_revision_store),
) -> Revision:
    """Get a specific revision of a record."""
    revision = revisions.revision_by_number(target_type, parse_record_id(target_id), rev_num)
    if revision is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"No revision {rev_num}"},
        )
    return revision
