"""Health check endpoints for monitoring and orchestration."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from healthbridge.core.logging import get_logger
from healthbridge.dependencies import HealthStoreDep
from healthbridge.schemas.health import HealthResponse, ReadinessResponse
from healthbridge.services.connect.errors import HealthEngineError
from healthbridge.services.connect.stores import HealthStore, SdkStatus, store_errors

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


def check_store_health(store: HealthStore | None) -> bool:
    """Report whether the bound health store is available."""
    if store is None:
        return False
    try:
        with store_errors("sdk_status"):
            return store.sdk_status() is SdkStatus.AVAILABLE
    except HealthEngineError as e:
        logger.warning("Health store check failed", error=e.message)
        return False


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the service is running. Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness(store: HealthStoreDep) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 only when the health store bound at startup is available.
    """
    store_healthy = check_store_health(store)

    return JSONResponse(
        status_code=200 if store_healthy else 503,
        content={
            "status": "ready" if store_healthy else "not ready",
            "checks": {"health_store": "ok" if store_healthy else "failed"},
        },
    )


@router.get("/health/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """
    Liveness probe endpoint.

    Returns 200 if the service is running and not deadlocked.
    """
    return HealthResponse(status="alive")
