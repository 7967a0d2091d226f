"""API route modules."""

from .entities import entities_router
from .listing import listing_router

__all__ = ["entities_router", "listing_router"]
