"""Object route (permalink) endpoints."""

import logging
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.database import get_route_service
from src.object_route import ObjectRoute, RouteService
from src.record_store import PersistError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


class RouteRequest(BaseModel):
    """Request body for creating a route."""

    slug: str = Field(..., min_length=1, description="Preferred slug")
    lang: Optional[str] = Field(default=None, description="Route locale")
    route_obj_type: str = Field(..., min_length=1, description="Object type routed to")
    route_obj_id: Union[int, str] = Field(..., description="Object ID routed to")
    route_template: Optional[str] = None
    route_options: dict[str, Any] = Field(default_factory=dict)
    route_options_ident: Optional[str] = None


@router.post("", response_model=ObjectRoute, status_code=status.HTTP_201_CREATED)
def create_route(
    request: RouteRequest,
    routes: RouteService = Depends(get_route_service),
) -> ObjectRoute:
    """Create a route; the slug is suffixed when already taken."""
    try:
        return routes.save_route(ObjectRoute(**request.model_dump()))
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


@router.get("/{route_id}", response_model=ObjectRoute)
def get_route(
    route_id: int,
    routes: RouteService = Depends(get_route_service),
) -> ObjectRoute:
    """Get a route."""
    route = routes.load(route_id)
    if route is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"No route {route_id}"},
        )
    return route
