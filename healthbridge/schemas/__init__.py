"""Pydantic schemas for API request/response validation."""

from healthbridge.schemas.authorization import (
    AuthorizationRequest,
    AuthorizationResponse,
    AvailabilityResponse,
)
from healthbridge.schemas.common import ServiceStatus
from healthbridge.schemas.health import HealthResponse, ReadinessResponse
from healthbridge.schemas.records import (
    AggregateRequest,
    AggregationBucket,
    CanonicalRecord,
    DeleteRequest,
    DeleteResponse,
    EntryMethod,
    QueryRequest,
    StoreRequest,
    StoreResponse,
)

__all__ = [
    # Common
    "ServiceStatus",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    # Authorization
    "AuthorizationRequest",
    "AuthorizationResponse",
    "AvailabilityResponse",
    # Records
    "AggregateRequest",
    "AggregationBucket",
    "CanonicalRecord",
    "DeleteRequest",
    "DeleteResponse",
    "EntryMethod",
    "QueryRequest",
    "StoreRequest",
    "StoreResponse",
]
