"""Models for admin service requests."""

from typing import Optional
from pydantic import BaseModel, Field


class ServicePayload(BaseModel):
    """Request body for creating a service."""
    name: str = Field(..., min_length=1, description="Display name of the service")
    url: str = Field(..., min_length=1, description="Public URL of the service")


class ServiceUpdatePayload(BaseModel):
    """Request body for editing a service; omitted fields are left unchanged."""
    name: Optional[str] = Field(default=None, min_length=1, description="Display name of the service")
    url: Optional[str] = Field(default=None, min_length=1, description="Public URL of the service")
