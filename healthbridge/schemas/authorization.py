"""Schemas for permission checks and store availability."""

from typing import Literal

from pydantic import BaseModel, Field


class AuthorizationRequest(BaseModel):
    """Data types to check, split by access direction."""

    read: list[str] = Field(default_factory=list)
    write: list[str] = Field(default_factory=list)


class AuthorizationResponse(BaseModel):
    """Whether every requested permission is held."""

    granted: bool


class AvailabilityResponse(BaseModel):
    """Health store SDK availability."""

    status: Literal["available", "unavailable", "provider_update_required"]
    available: bool
