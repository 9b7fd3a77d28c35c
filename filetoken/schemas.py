"""Response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class StorageRootHealth(BaseModel):
    """Health status of a single storage root."""
    healthy: bool = Field(..., description="Whether the root is a readable directory")
    message: str = Field(..., description="Status message")


class HealthResponse(BaseModel):
    """Service health."""
    status: str = Field(..., description="healthy, degraded or unhealthy")
    service: str
    version: str
    environment: str
    database: str
    storage: dict[str, StorageRootHealth]
    timestamp: datetime


class IssuedTokenResponse(BaseModel):
    """Issuer output as printed by the command line tool."""
    token: str
    url: str
    expires_at: datetime
    reused: bool
    durable: bool
