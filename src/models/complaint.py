"""Complaint fact models consumed by the risk engine and the reports."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ResolutionStatus(str, Enum):
    """Lifecycle state of a complaint as exposed by the fact view."""

    OPEN = "Open"
    PENDING = "Pending"
    CLOSED = "Closed"


class Urgency(str, Enum):
    """Urgency levels, declared in reporting order."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


def _to_date(value):
    """Accept datetimes from the DB driver for DATE columns."""
    if isinstance(value, datetime):
        return value.date()
    return value


class ComplaintRecord(BaseModel):
    """One row of the complaint fact stream (one complaint, flattened)."""

    complaint_id: Optional[str] = None
    customer_id: Optional[str] = None
    complaint_date: date
    resolution_date: Optional[date] = None
    resolution_status: Optional[ResolutionStatus] = None
    resolution_type: Optional[str] = None
    urgency: Optional[Urgency] = None
    sentiment_score: Optional[float] = Field(default=None, ge=-1, le=1)
    sentiment_category: Optional[str] = None
    segment: Optional[str] = None
    signup_date: Optional[date] = None
    region: Optional[str] = None
    channel: Optional[str] = None
    product_area: Optional[str] = None
    keywords: Optional[str] = None
    agent_name: Optional[str] = None
    skillset: Optional[str] = None

    @field_validator("complaint_id", "customer_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        """Integer keys from the warehouse are carried as strings."""
        if value is None:
            return None
        return str(value)

    @field_validator("complaint_date", "resolution_date", "signup_date", mode="before")
    @classmethod
    def coerce_date(cls, value):
        return _to_date(value)

    @model_validator(mode="after")
    def derive_resolution_status(self) -> "ComplaintRecord":
        """Fill the status the same way the fact view does when it is absent."""
        if self.resolution_status is None:
            if self.resolution_date is None:
                self.resolution_status = ResolutionStatus.OPEN
            elif self.resolution_type == "Pending":
                self.resolution_status = ResolutionStatus.PENDING
            else:
                self.resolution_status = ResolutionStatus.CLOSED
        return self

    @property
    def resolution_time(self) -> Optional[int]:
        """Days to resolution; a resolution dated before the complaint counts as zero."""
        if self.resolution_date is None:
            return None
        return max((self.resolution_date - self.complaint_date).days, 0)

    @property
    def has_agent(self) -> bool:
        return bool(self.agent_name and self.agent_name.strip())


class CustomerSignal(BaseModel):
    """Pre-aggregated volume and severity signals supplied per customer."""

    customer_id: str
    volume_risk: Optional[float] = Field(default=None, ge=0, le=1)
    severity_risk: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("customer_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        return str(value)
