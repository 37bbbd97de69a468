"""Permission and availability endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from healthbridge.core.auth import verify_api_key
from healthbridge.core.logging import get_logger
from healthbridge.dependencies import EngineDep
from healthbridge.schemas.authorization import (
    AuthorizationRequest,
    AuthorizationResponse,
    AvailabilityResponse,
)
from healthbridge.services.connect.errors import HealthEngineError

logger = get_logger(__name__)

router = APIRouter(tags=["authorization"], dependencies=[Depends(verify_api_key)])


@router.get("/availability", response_model=AvailabilityResponse)
def availability(engine: EngineDep) -> AvailabilityResponse:
    """
    Report whether the health store can be used.

    Returns 503 when the store is not available or must be installed or
    updated first.
    """
    try:
        engine.ensure_available()
    except HealthEngineError as e:
        logger.warning("Health store not usable", error=e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from None
    return AvailabilityResponse(status="available", available=True)


@router.post("/authorization/check", response_model=AuthorizationResponse)
def check_authorization(
    request: AuthorizationRequest, engine: EngineDep
) -> AuthorizationResponse:
    """Check whether every requested read/write permission is granted. Never prompts."""
    try:
        granted = engine.is_authorized(request)
    except HealthEngineError as e:
        logger.warning("Authorization check failed", error=e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from None
    return AuthorizationResponse(granted=granted)


@router.post("/authorization/request", response_model=AuthorizationResponse)
def request_authorization(
    request: AuthorizationRequest, engine: EngineDep
) -> AuthorizationResponse:
    """
    Check permissions and request every missing one in a single grant flow.

    `granted` reports whether the flow returned any permission.
    """
    try:
        granted = engine.request_authorization(request)
    except HealthEngineError as e:
        logger.warning("Authorization request failed", error=e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from None
    logger.info("Authorization requested", granted=granted)
    return AuthorizationResponse(granted=granted)
