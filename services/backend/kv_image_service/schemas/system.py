"""Schemas for service-level endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health-check endpoint."""

    status: str = Field(..., examples=["ok"])
    environment: str = Field(..., examples=["local"])
    version: str = Field(..., examples=["0.1.0"])


class ConfigResponse(BaseModel):
    """Non-sensitive configuration exposed by the config endpoint."""

    app_name: str
    app_version: str
    environment: str
    debug: bool
    lock_timeout: Optional[float]
    thumbnail_width: int
    thumbnail_height: int
    max_blur_sigma: float
    log_level: str
    log_json: bool
