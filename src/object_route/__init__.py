"""
Object Route

Permalink routes to objects, with per-language unique slugs.
"""

from .models import ObjectRoute
from .service import RouteService

__all__ = [
    "ObjectRoute",
    "RouteService",
]
