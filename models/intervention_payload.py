"""Models for admin intervention requests."""

from datetime import datetime, timedelta
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from status_engine.models import InterventionStatus, Severity


class InterventionPayload(BaseModel):
    """
    Request body for creating an intervention.

    The end of the window is given either directly with ``end_date`` or as an
    ``estimated_duration`` in minutes counted from ``start_date``.
    """
    title: str = Field(..., min_length=1, description="Intervention summary")
    description: str = Field(default="", description="Detailed description")
    start_date: datetime = Field(..., description="Start of the planned window")
    end_date: Optional[datetime] = Field(default=None, description="End of the planned window")
    estimated_duration: Optional[int] = Field(default=None, gt=0, description="Estimated duration in minutes")
    severity: Severity = Field(..., description="performance_issue, partial_outage or full_outage")
    services: List[int] = Field(..., min_length=1, description="Ids of the affected services")
    is_planned: bool = Field(default=False, description="Planned maintenance rather than an unplanned outage")
    status: Optional[InterventionStatus] = Field(default=None, description="Progress reported by the operators")

    @field_validator('severity', mode='before')
    @classmethod
    def parse_severity(cls, v):
        """Accept stored values as well as the dashed form used by HTML forms."""
        return Severity.parse(v)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        if v is None:
            return v
        return InterventionStatus.parse(v)

    @model_validator(mode='after')
    def check_window(self):
        if self.end_date is None and self.estimated_duration is None:
            raise ValueError("either end_date or estimated_duration is required")
        if self.end_date is not None and self.estimated_duration is not None:
            raise ValueError("end_date and estimated_duration are mutually exclusive")
        return self

    def resolved_end_date(self) -> datetime:
        if self.end_date is not None:
            return self.end_date
        return self.start_date + timedelta(minutes=self.estimated_duration)


class InterventionUpdatePayload(BaseModel):
    """Request body for editing an intervention; omitted fields are left unchanged."""
    title: Optional[str] = Field(default=None, min_length=1, description="Intervention summary")
    description: Optional[str] = Field(default=None, description="Detailed description")
    start_date: Optional[datetime] = Field(default=None, description="Start of the planned window")
    end_date: Optional[datetime] = Field(default=None, description="End of the planned window")
    estimated_duration: Optional[int] = Field(default=None, gt=0, description="Estimated duration in minutes")
    severity: Optional[Severity] = Field(default=None, description="New severity")
    services: Optional[List[int]] = Field(default=None, description="Ids of the affected services")
    is_planned: Optional[bool] = Field(default=None, description="Planned maintenance rather than an unplanned outage")
    status: Optional[InterventionStatus] = Field(default=None, description="Progress reported by the operators")

    @field_validator('severity', mode='before')
    @classmethod
    def parse_severity(cls, v):
        if v is None:
            return v
        return Severity.parse(v)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        if v is None:
            return v
        return InterventionStatus.parse(v)

    @model_validator(mode='after')
    def check_window(self):
        if self.end_date is not None and self.estimated_duration is not None:
            raise ValueError("end_date and estimated_duration are mutually exclusive")
        return self
