"""Pydantic schemas for the contact form."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class ContactRequest(BaseModel):
    """Contact form payload. Presence is checked by the controller so that
    missing fields produce the form's own error message."""

    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [
            field
            for field in ("name", "email", "subject", "message")
            if not (getattr(self, field) or "").strip()
        ]


class ContactResponse(BaseModel):
    status: Literal["success", "error"]
    message: str


__all__ = ["ContactRequest", "ContactResponse"]
