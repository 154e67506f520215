"""Risk profile models produced by the scoring engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

DISPLAY_PRECISION = 2


class TenureBucket(str, Enum):
    """Account-age bins, in ascending order."""

    THREE_MONTHS = "3 Months"
    THREE_TO_SIX_MONTHS = "3-6 Months"
    SIX_TO_TWELVE_MONTHS = "6-12 Months"
    ONE_TO_TWO_YEARS = "1-2 Years"
    TWO_PLUS_YEARS = "2+ Years"


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class RiskProfile(BaseModel):
    """
    Per-customer churn-risk profile.

    Scores are kept at full precision; `display_row` rounds them for the
    dashboard.
    """

    customer_id: str
    segment: Optional[str] = None

    # Weighted components.
    volume_risk: float = 0.0
    severity_risk: float = 0.0
    recency_factor: float = Field(ge=0, le=1)
    is_new_customer: int = Field(ge=0, le=1)
    customer_value: int = Field(ge=1, le=2)
    sentiment: float = Field(default=0.0, ge=-1, le=1)

    # Informational.
    complaint_count: int = Field(ge=1)
    complaints_last_30_days: int = Field(ge=0)
    days_since_last_complaint: int
    frequency: float = Field(ge=0)
    sentiment_label: SentimentLabel
    tenure_bucket: Optional[TenureBucket] = None

    raw_risk_score: float
    normalized_risk_score: float = Field(default=0.0, ge=0, le=1)
    risk_rank: int = Field(default=1, ge=1)

    def display_row(self) -> dict:
        """Dashboard-friendly row with scores rounded to two places."""
        row = self.model_dump(mode="json")
        for key in ("recency_factor", "frequency", "raw_risk_score", "normalized_risk_score", "sentiment"):
            row[key] = round(row[key], DISPLAY_PRECISION)
        return row


class RiskRun(BaseModel):
    """Envelope for one full recomputation."""

    as_of: datetime
    customer_count: int
    min_raw_score: Optional[float] = None
    max_raw_score: Optional[float] = None
    profiles: List[RiskProfile] = Field(default_factory=list)
