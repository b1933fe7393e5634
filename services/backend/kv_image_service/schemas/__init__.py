"""Pydantic schemas for API responses."""

from .error import ErrorResponse, error_responses
from .system import ConfigResponse, HealthResponse

__all__ = [
    "ErrorResponse",
    "error_responses",
    "ConfigResponse",
    "HealthResponse",
]
