"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables BEFORE any app imports
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["HEALTHBRIDGE_API_KEY"] = "test-api-key"
os.environ["TIME_ZONE"] = "UTC"
os.environ["ENFORCE_PERMISSIONS"] = "true"
os.environ["PERMISSION_AUTO_GRANT"] = "true"


@pytest.fixture(scope="session")
def test_settings():
    """Get test settings."""
    from healthbridge.config import Settings

    return Settings(
        environment="development",
        debug=True,
        healthbridge_api_key="test-api-key",
        time_zone="UTC",
    )


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test."""
    from healthbridge.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_settings(test_settings):
    """Mock get_settings to return test settings."""
    with patch("healthbridge.config.get_settings", return_value=test_settings):
        yield test_settings


@pytest.fixture
def health_store():
    """In-memory health store in UTC with nothing granted yet."""
    from healthbridge.services.connect.stores import InMemoryHealthStore

    return InMemoryHealthStore(zone=timezone.utc)


@pytest.fixture
def granted_store(health_store):
    """In-memory health store with every read and write permission granted."""
    from healthbridge.services.connect.records import RecordKind

    for kind in RecordKind:
        health_store.grant(kind.read_permission, kind.write_permission)
    return health_store


@pytest.fixture
def engine(granted_store):
    """Engine bound to the granted in-memory store, bucketing in UTC."""
    from healthbridge.services.connect import HealthConnectEngine

    return HealthConnectEngine(granted_store, zone=timezone.utc)


@pytest.fixture
def app(health_store):
    """Create test application instance with the in-memory store injected."""
    from healthbridge.dependencies import get_health_store
    from healthbridge.main import create_app

    application = create_app()
    application.dependency_overrides[get_health_store] = lambda: health_store
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def valid_api_key() -> str:
    """Return valid API key for testing."""
    return "test-api-key"


@pytest.fixture
def api_key_headers(valid_api_key) -> dict[str, str]:
    """Return headers with valid API key."""
    return {"X-API-Key": valid_api_key}
