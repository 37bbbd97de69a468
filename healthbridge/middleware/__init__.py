"""Middleware modules for the application."""

from healthbridge.middleware.correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
