"""Service status endpoint."""

from fastapi import APIRouter, Depends

from healthbridge import __version__
from healthbridge.core.auth import verify_api_key
from healthbridge.dependencies import EngineDep, SettingsDep
from healthbridge.schemas.common import ServiceStatus
from healthbridge.services.connect.registry import list_data_types
from healthbridge.services.connect.stores import SdkStatus

router = APIRouter(tags=["status"])


@router.get(
    "/status",
    response_model=ServiceStatus,
    dependencies=[Depends(verify_api_key)],
)
def get_status(settings: SettingsDep, engine: EngineDep) -> ServiceStatus:
    """
    Get service status, version and supported data types.

    Requires API key authentication.
    """
    store_available = engine.availability() is SdkStatus.AVAILABLE

    return ServiceStatus(
        service="healthbridge",
        version=__version__,
        environment=settings.environment,
        status="operational" if store_available else "degraded",
        health_store=settings.health_store_backend,
        data_types=list_data_types(),
    )
