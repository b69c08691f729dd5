"""Contact form endpoint."""

from __future__ import annotations

from typing import Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, BackgroundTasks, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_api.controllers.dependencies import ContactRelayDep
from portfolio_api.controllers.routing import validation_fallback_route
from portfolio_api.services.contact import ContactSubmission
from portfolio_api.services.email import EmailServiceError
from portfolio_api.views import ContactRequest, ContactResponse

MISSING_FIELDS_MESSAGE = "All fields are required"
INVALID_EMAIL_MESSAGE = "Please provide a valid email address"
SUCCESS_MESSAGE = "Your message has been sent successfully. I'll get back to you soon."
FAILURE_MESSAGE = (
    "Sorry, your message could not be sent right now. "
    "Please try again later or reach out via LinkedIn."
)


def _unreadable_form(exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ContactResponse(status="error", message=MISSING_FIELDS_MESSAGE).model_dump(),
    )


router = APIRouter(
    prefix="/api/contact",
    tags=["contact"],
    route_class=validation_fallback_route(_unreadable_form),
)


@router.post("", response_model=ContactResponse)
async def submit_contact(
    response: Response,
    background_tasks: BackgroundTasks,
    relay: ContactRelayDep,
    payload: Optional[ContactRequest] = None,
) -> ContactResponse:
    """Relay a contact form submission to the site owner."""

    payload = payload or ContactRequest()
    if payload.missing_fields():
        response.status_code = status.HTTP_400_BAD_REQUEST
        return ContactResponse(status="error", message=MISSING_FIELDS_MESSAGE)

    try:
        validate_email(payload.email.strip(), check_deliverability=False)
    except EmailNotValidError:
        response.status_code = status.HTTP_400_BAD_REQUEST
        return ContactResponse(status="error", message=INVALID_EMAIL_MESSAGE)

    submission = ContactSubmission(
        name=payload.name.strip(),
        email=payload.email.strip(),
        subject=payload.subject.strip(),
        message=payload.message.strip(),
    )

    try:
        await relay.relay(submission, background_tasks)
    except EmailServiceError:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return ContactResponse(status="error", message=FAILURE_MESSAGE)

    return ContactResponse(status="success", message=SUCCESS_MESSAGE)
