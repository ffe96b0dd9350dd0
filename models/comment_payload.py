"""Model for comments posted on an intervention."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CommentPayload(BaseModel):
    """Request body for posting a status update on an intervention."""
    description: str = Field(..., min_length=1, description="Text of the update")
    date: Optional[datetime] = Field(default=None, description="Date of the update (defaults to now)")
