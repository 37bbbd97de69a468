"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Request

from healthbridge.config import Settings, get_settings
from healthbridge.services.connect.engine import HealthConnectEngine
from healthbridge.services.connect.stores import HealthStore


def get_health_store(request: Request) -> HealthStore | None:
    """
    Get the health store bound at startup.

    Returns None when the application has no store session, in which
    case every engine operation reports that authorization must be
    requested first.
    """
    return getattr(request.app.state, "health_store", None)


def get_engine(
    store: Annotated[HealthStore | None, Depends(get_health_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthConnectEngine:
    """Build a per-request engine around the shared health store."""
    return HealthConnectEngine(
        store,
        zone=settings.zone,
        default_limit=settings.query_default_limit,
        enforce_permissions=settings.enforce_permissions,
    )


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
HealthStoreDep = Annotated[HealthStore | None, Depends(get_health_store)]
EngineDep = Annotated[HealthConnectEngine, Depends(get_engine)]
