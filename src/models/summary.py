"""Complaint summary models (weekly/monthly operational report)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SummaryPeriod(str, Enum):
    """Recognised period selectors and their lookback in days."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

    @property
    def days(self) -> int:
        return 30 if self is SummaryPeriod.MONTHLY else 7


class ThemeCount(BaseModel):
    complaint_theme: str
    total_complaints: int


class UrgencyCount(BaseModel):
    urgency_level: Optional[str]
    total: int


class ProductAreaCount(BaseModel):
    product_area: Optional[str]
    total_complaints: int


class AgentResolution(BaseModel):
    """Resolution-time statistics for one agent inside the window."""

    agent_name: str
    cases_resolved: int
    average_resolution_time: float
    fastest_resolution: int
    slowest_resolution: int


class ComplaintSummary(BaseModel):
    """Four independent result sets for the requested lookback window."""

    requested_period: Optional[str] = None
    period: SummaryPeriod
    days: int
    window_start: datetime
    generated_at: datetime
    top_themes: List[ThemeCount] = Field(default_factory=list)
    urgency_counts: List[UrgencyCount] = Field(default_factory=list)
    product_areas: List[ProductAreaCount] = Field(default_factory=list)
    top_agents: List[AgentResolution] = Field(default_factory=list)
