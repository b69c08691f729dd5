"""Page view recording and counting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import uuid4

from fastapi import Request, Response
from sqlalchemy import func, insert, select

from portfolio_api.database import Database
from portfolio_api.models.view import UNKNOWN, PortfolioView
from portfolio_api.services.client_metadata import ClientIpResolver, parse_user_agent
from portfolio_api.services.geo import GeoClassification
from portfolio_api.services.identity import IdentityResolver
from portfolio_api.telemetry import increment_view_recorded

logger = logging.getLogger(__name__)


class ViewStoreError(RuntimeError):
    """Raised when a view cannot be written to or read from the database."""


class GeoLookup(Protocol):
    async def lookup(self, ip: Optional[str]) -> GeoClassification: ...


@dataclass(frozen=True)
class RecordedView:
    view_id: str
    subject_id: str
    is_new_session: bool


def _clip(value: Optional[str], column) -> str:
    """Return ``value`` trimmed to the column width, "Unknown" when blank."""

    text = (value or "").strip()
    if not text:
        return UNKNOWN
    limit = getattr(column.type, "length", None)
    return text[:limit] if limit else text


class ViewRecorder:
    """Resolve identity, enrich the request and persist one view row."""

    def __init__(
        self,
        *,
        database: Database,
        identity: IdentityResolver,
        ip_resolver: ClientIpResolver,
        geo_client: GeoLookup,
    ) -> None:
        self._database = database
        self._identity = identity
        self._ip_resolver = ip_resolver
        self._geo_client = geo_client

    async def record_view(
        self,
        request: Request,
        response: Response,
        timezone: Optional[str] = None,
    ) -> RecordedView:
        """Persist a single view for the requesting visitor."""

        session = self._identity.resolve(request, response)
        request.state.subject_id = session.subject_id

        agent = parse_user_agent(request.headers.get("user-agent"))
        client_ip = self._ip_resolver.resolve(
            request.headers,
            request.client.host if request.client else None,
        )
        geo = await self._geo_client.lookup(client_ip)

        view_id = str(uuid4())
        columns = PortfolioView.__table__.c
        values = {
            "view_id": view_id,
            "subject_id": session.subject_id,
            "os_family": _clip(agent.os_family, columns.os_family),
            "browser_name": _clip(agent.browser_name, columns.browser_name),
            "timezone": _clip(timezone, columns.timezone),
            "ip_country": _clip(geo.country, columns.ip_country),
            "ip_region": _clip(geo.region, columns.ip_region),
            "ip_city": _clip(geo.city, columns.ip_city),
            "ip_isp": _clip(geo.isp, columns.ip_isp),
            "ip_network_type": _clip(geo.network, columns.ip_network_type),
        }

        try:
            async with self._database.session_scope() as db_session:
                await db_session.execute(insert(PortfolioView).values(**values))
                await db_session.commit()
        except Exception as exc:
            logger.exception("View tracking failed (view_id=%s)", view_id)
            raise ViewStoreError("Failed to record view.") from exc

        increment_view_recorded()
        logger.debug(
            "Recorded view %s (mobile=%s, network=%s)",
            view_id,
            agent.is_mobile,
            geo.network,
        )
        return RecordedView(
            view_id=view_id,
            subject_id=session.subject_id,
            is_new_session=session.is_new,
        )

    async def count_views(self) -> int:
        """Return the total number of stored views."""

        try:
            async with self._database.session_scope() as db_session:
                result = await db_session.execute(
                    select(func.count()).select_from(PortfolioView)
                )
                return int(result.scalar_one())
        except Exception as exc:
            logger.exception("View count failed")
            raise ViewStoreError("Failed to count views.") from exc


__all__ = ["RecordedView", "ViewRecorder", "ViewStoreError", "GeoLookup"]
