"""
Scheduled mutation endpoints.

Queue property changes for later, apply one on demand, or run a
scheduler pass over everything that is due.
"""

import logging
from datetime import datetime
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from app.database import get_processor
from src.object_schedule import ApplyResult, MutationProcessor, ScheduledMutation
from src.record_store import PersistError

logger = logging.getLogger(__name__)

router = APIRouter()


class ScheduleRequest(BaseModel):
    """Request body for scheduling a mutation."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "target_type": "article",
                "target_id": 12,
                "scheduled_date": "2030-01-01T09:00:00Z",
                "data_diff": {"active": True}
            }
        }
    )

    target_type: str = Field(..., min_length=1, description="Object type to mutate")
    target_id: Union[int, str] = Field(..., description="Identifier of the record")
    scheduled_date: Optional[datetime] = Field(
        default=None,
        description="When to apply (omit to apply at the next pass)"
    )
    data_diff: dict[str, Any] = Field(
        ...,
        min_length=1,
        description="Property name -> new value"
    )


class ProcessDueResponse(BaseModel):
    """Summary of a scheduler pass."""

    processed: int = Field(description="Mutations attempted")
    applied: int = Field(description="Mutations applied")
    failed: int = Field(description="Mutations that failed")
    results: list[ApplyResult] = Field(default_factory=list)


def _get_or_404(processor: MutationProcessor, mutation_id: int) -> ScheduledMutation:
    mutation = processor.get(mutation_id)
    if mutation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"No scheduled mutation {mutation_id}"},
        )
    return mutation


@router.post("", response_model=ScheduledMutation, status_code=status.HTTP_201_CREATED)
def schedule_mutation(
    request: ScheduleRequest,
    processor: MutationProcessor = Depends(get_processor),
) -> ScheduledMutation:
    """Queue a property mutation."""
    try:
        return processor.schedule(ScheduledMutation(**request.model_dump()))
    except PersistError as e:
        logger.error("Persist error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "persist_error", "message": str(e)},
        )


@router.post("/process-due", response_model=ProcessDueResponse)
def process_due(processor: MutationProcessor = Depends(get_processor)) -> ProcessDueResponse:
    """Apply every mutation whose scheduled date has passed."""
    results = processor.process_due()
    return ProcessDueResponse(
        processed=len(results),
        applied=sum(1 for r in results if r.applied),
        failed=sum(1 for r in results if r.failed),
        results=results,
    )


@router.get("/{mutation_id}", response_model=ScheduledMutation)
def get_mutation(
    mutation_id: int,
    processor: MutationProcessor = Depends(get_processor),
) -> ScheduledMutation:
    """Get a scheduled mutation."""
    return _get_or_404(processor, mutation_id)


@router.post("/{mutation_id}/apply", response_model=ApplyResult)
def apply_mutation(
    mutation_id: int,
    processor: MutationProcessor = Depends(get_processor),
) -> ApplyResult:
    """
    Apply a scheduled mutation now, regardless of its scheduled date.

    Already processed mutations are reported as skipped.
    """
    mutation = _get_or_404(processor, mutation_id)
    logger.info(
        "Applying mutation on demand | id=%s target=%s/%s",
        mutation_id, mutation.target_type, mutation.target_id
    )
    return processor.apply(mutation)
