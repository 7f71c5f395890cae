"""
Object route service.

Keeps route slugs unique per language. Colliding slugs get a numeric
suffix (`about`, `about-1`, `about-2`, ...), up to a bounded number of
attempts.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from src.record_store import (
    ROUTE_TYPE,
    PersistError,
    RecordQuery,
    RecordStore,
    SortDirection,
    ValidationError,
)
from src.record_store.fields import utcnow

from .models import ObjectRoute

logger = logging.getLogger(__name__)


class RouteService:
    """Creates and updates object routes with unique slugs."""

    def __init__(
        self,
        store: RecordStore,
        *,
        route_type: str = ROUTE_TYPE,
        max_slug_attempts: int = 100,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        if max_slug_attempts < 1:
            raise ValueError("max_slug_attempts must be at least 1")
        self._store = store
        self._route_type = route_type
        self._max_slug_attempts = max_slug_attempts
        self._now_provider = now_provider or utcnow

    def find_by_slug(self, slug: str, lang: Optional[str]) -> Optional[ObjectRoute]:
        """Most recent active route for a slug and language."""
        query = (
            RecordQuery()
            .add_filter("active", True)
            .add_filter("slug", slug)
            .add_filter("lang", lang)
            .add_order("creation_date", SortDirection.DESC)
            .set_page(1, 1)
        )
        records = self._store.find(self._route_type, query)
        return ObjectRoute.from_record(records[0]) if records else None

    def _claim(self, route: ObjectRoute) -> tuple[bool, ObjectRoute]:
        """
        Check a route's slug.

        Returns:
            Tuple of (whether the slug is free for this route, the route,
            carrying the existing id when the slug already points to the
            same object and language)
        """
        existing = self.find_by_slug(route.slug, route.lang)
        if existing is None or existing.id is None:
            return True, route
        if route.id is not None and str(existing.id) == str(route.id):
            return True, route
        if (
            str(existing.route_obj_id) == str(route.route_obj_id)
            and existing.route_obj_type == route.route_obj_type
            and existing.lang == route.lang
        ):
            return True, route.model_copy(update={"id": existing.id})
        return False, route

    def is_slug_unique(self, route: ObjectRoute) -> bool:
        unique, _ = self._claim(route)
        return unique

    def generate_unique_slug(self, route: ObjectRoute) -> ObjectRoute:
        """
        Return the route with a slug no other object uses.

        Raises:
            ValidationError: If the route has no slug, or no free slug was
                found within the attempt limit
        """
        if not route.slug:
            raise ValidationError("Cannot generate a unique slug: route has no slug.")

        original = route.slug
        candidate = route
        for increment in range(self._max_slug_attempts):
            if increment:
                candidate = route.model_copy(update={"slug": f"{original}-{increment}"})
            unique, claimed = self._claim(candidate)
            if unique:
                return claimed

        logger.error(
            'No unique slug for "%s" after %d attempts', original, self._max_slug_attempts
        )
        raise ValidationError(
            f'Could not generate a unique slug from "{original}" '
            f"in {self._max_slug_attempts} attempts"
        )

    def save_route(self, route: ObjectRoute) -> ObjectRoute:
        """
        Create or update a route.

        New routes get a unique slug and both dates; existing routes only
        refresh their modification date.

        Raises:
            ValidationError: If no unique slug can be generated
            PersistError: If the store fails to save the route
        """
        now = self._now_provider()
        if route.id is None:
            route = self.generate_unique_slug(route)
        creating = route.id is None

        updates = {"last_modification_date": now}
        if creating:
            updates["creation_date"] = now
        route = route.model_copy(update=updates)

        record = route.to_record()
        record.obj_type = self._route_type
        # Updates never touch the creation date
        fields = None if creating else [k for k in record.data if k != "creation_date"]
        if not self._store.save(record, fields):
            raise PersistError(f'Could not save route "{route.slug}"')

        logger.info('Saved route "%s" (%s)', route.slug, route.lang)
        return route.model_copy(update={"id": record.id})

    def load(self, route_id) -> Optional[ObjectRoute]:
        record = self._store.load(self._route_type, route_id)
        return ObjectRoute.from_record(record) if record else None
