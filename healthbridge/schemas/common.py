"""Common schemas used across the application."""

from typing import Literal

from pydantic import BaseModel


class ServiceStatus(BaseModel):
    """Service status response."""

    service: str
    version: str
    environment: Literal["development", "staging", "production"]
    status: Literal["operational", "degraded", "down"]
    health_store: str
    data_types: list[str]

