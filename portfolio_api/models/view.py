"""SQLAlchemy model for recorded portfolio page views."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, String, func

from .base import Base

UNKNOWN = "Unknown"


class PortfolioView(Base):
    """One anonymized page view. Rows are append-only."""

    __tablename__ = "portfolio_views"

    view_id = Column(String(36), primary_key=True)
    subject_id = Column(String(64), nullable=False, index=True)
    os_family = Column(String(64), nullable=False, default=UNKNOWN)
    browser_name = Column(String(64), nullable=False, default=UNKNOWN)
    timezone = Column(String(64), nullable=False, default=UNKNOWN)
    ip_country = Column(String(100), nullable=False, default=UNKNOWN)
    ip_region = Column(String(100), nullable=False, default=UNKNOWN)
    ip_city = Column(String(100), nullable=False, default=UNKNOWN)
    ip_isp = Column(String(255), nullable=False, default=UNKNOWN)
    ip_network_type = Column(String(32), nullable=False, default=UNKNOWN)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )


__all__ = ["PortfolioView", "UNKNOWN"]
