"""Model for API error responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Model for API error response."""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Detailed error description")
    field: Optional[str] = Field(default=None, description="Offending field, for validation errors")
    details: List[Dict[str, Any]] = Field(default_factory=list, description="Per-field validation errors")
