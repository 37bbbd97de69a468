"""Health Connect translation engine."""

from healthbridge.services.connect.engine import HealthConnectEngine
from healthbridge.services.connect.errors import HealthEngineError
from healthbridge.services.connect.registry import DataTypeDescriptor, resolve

__all__ = ["DataTypeDescriptor", "HealthConnectEngine", "HealthEngineError", "resolve"]
