"""HealthBridge - canonical health data translation service."""

__version__ = "0.1.0"
