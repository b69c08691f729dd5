"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from portfolio_api.services.contact import ContactRelay
from portfolio_api.services.views import ViewRecorder


def get_view_recorder(request: Request) -> ViewRecorder:
    """Return the view recorder built at application start."""

    return request.app.state.view_recorder


def get_contact_relay(request: Request) -> ContactRelay:
    """Return the contact relay built at application start."""

    return request.app.state.contact_relay


ViewRecorderDep = Annotated[ViewRecorder, Depends(get_view_recorder)]
ContactRelayDep = Annotated[ContactRelay, Depends(get_contact_relay)]


__all__ = [
    "get_view_recorder",
    "get_contact_relay",
    "ViewRecorderDep",
    "ContactRelayDep",
]
