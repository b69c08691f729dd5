"""SQLAlchemy models for the portfolio backend."""

from .base import Base
from .view import UNKNOWN, PortfolioView  # noqa: F401

__all__ = [
    "Base",
    "PortfolioView",
    "UNKNOWN",
]
