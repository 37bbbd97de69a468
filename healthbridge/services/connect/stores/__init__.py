"""Health store implementations."""

from healthbridge.config import Settings
from healthbridge.services.connect.stores.base import HealthStore, SdkStatus, store_errors
from healthbridge.services.connect.stores.memory import InMemoryHealthStore

STORE_BACKENDS: dict[str, type[HealthStore]] = {
    InMemoryHealthStore.name: InMemoryHealthStore,
}


def create_store(settings: Settings) -> HealthStore:
    """
    Create the health store configured for this deployment.

    Raises:
        ValueError: If the configured backend is unknown
    """
    backend = STORE_BACKENDS.get(settings.health_store_backend)
    if backend is None:
        raise ValueError(f"Unknown health store backend: {settings.health_store_backend}")
    return backend(zone=settings.zone, auto_grant=settings.permission_auto_grant)


__all__ = ["HealthStore", "InMemoryHealthStore", "SdkStatus", "create_store", "store_errors"]
