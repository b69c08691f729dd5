"""FastAPI routers acting as controllers in the MVC architecture."""

from . import analytics, contact

__all__ = ["analytics", "contact"]
