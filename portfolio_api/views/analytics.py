"""Pydantic schemas for page view analytics."""

from typing import Any, Optional

from pydantic import BaseModel, field_validator


class ViewTrackRequest(BaseModel):
    timezone: Optional[str] = None

    @field_validator("timezone", mode="before")
    @classmethod
    def _ignore_non_string(cls, value: Any) -> Optional[str]:
        # Anything but a string is recorded as an unknown timezone.
        return value if isinstance(value, str) else None


class ViewTrackResponse(BaseModel):
    success: bool


class ViewCountResponse(BaseModel):
    success: bool
    view_count: Optional[int] = None
