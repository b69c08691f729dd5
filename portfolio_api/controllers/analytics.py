"""Page view tracking endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_api.controllers.dependencies import ViewRecorderDep
from portfolio_api.controllers.routing import validation_fallback_route
from portfolio_api.services.views import ViewStoreError
from portfolio_api.views import ViewCountResponse, ViewTrackRequest, ViewTrackResponse

def _unreadable_body(exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ViewTrackResponse(success=False).model_dump(),
    )

router = APIRouter(
    prefix="/api/views",
    tags=["views"],
    route_class=validation_fallback_route(_unreadable_body),
)

@router.post("", response_model=ViewTrackResponse)
async def track_view(
    request: Request,
    response: Response,
    recorder: ViewRecorderDep,
    payload: Optional[ViewTrackRequest] = None,
) -> ViewTrackResponse:
    """Record one page view, issuing a session cookie for new visitors."""

    timezone = payload.timezone if payload is not None else None
    try:
        await recorder.record_view(request, response, timezone)
    except ViewStoreError:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return ViewTrackResponse(success=False)

    return ViewTrackResponse(success=True)

@router.get(
    "",
    response_model=ViewCountResponse,
    response_model_exclude_none=True,
)
async def count_views(
    response: Response,
    recorder: ViewRecorderDep,
) -> ViewCountResponse:
    try:
        view_count = await recorder.count_views()
    except ViewStoreError:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return ViewCountResponse(success=False)

    return ViewCountResponse(success=True, view_count=view_count)
