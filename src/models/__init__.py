"""Pydantic models for complaint facts, risk profiles and reports."""

from models.complaint import (  # noqa: F401
    ComplaintRecord,
    CustomerSignal,
    ResolutionStatus,
    Urgency,
)
from models.report import (  # noqa: F401
    AgentPerformance,
    ChannelPerformance,
    ComplaintFrequencyCategory,
    MonthlyTrend,
    ParetoGroup,
    SkillsetAlignment,
    TenureCohort,
)
from models.response import ApiResponse  # noqa: F401
from models.risk import RiskProfile, RiskRun, SentimentLabel, TenureBucket  # noqa: F401
from models.summary import (  # noqa: F401
    AgentResolution,
    ComplaintSummary,
    ProductAreaCount,
    SummaryPeriod,
    ThemeCount,
    UrgencyCount,
)
