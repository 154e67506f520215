"""Row models for the supporting aggregate-and-report queries."""

from typing import Optional

from pydantic import BaseModel


class ChannelPerformance(BaseModel):
    channel: Optional[str]
    total_complaints: int
    total_agents: int
    resolved_complaints: int
    unresolved_complaints: int
    average_res_time: Optional[float]
    std_dev_res_time: Optional[float]
    min_res_time: Optional[int]
    max_res_time: Optional[int]
    unassigned_complaint_pct: float
    resolution_rate: float


class AgentPerformance(BaseModel):
    """Workload, speed and consistency for one agent."""

    agent_name: str
    skillset: Optional[str]
    total_complaints: int
    closed_complaints: int
    open_complaints: int
    avg_res_time: Optional[float]
    resolution_rate: float
    performance_score: Optional[float]
    performance_rank: int
    within_average_resolutions: int
    above_average_resolutions: int
    pci_index: float
    performance_flag: str


class SkillsetAlignment(BaseModel):
    agent_name: str
    skillset: Optional[str]
    alignment_status: str
    total_complaints: int
    closed_complaints: int
    open_complaints: int
    complaint_backlog: float
    resolution_rate: float
    avg_res_time: Optional[float]


class ParetoGroup(BaseModel):
    pareto_group: str
    total_customers: int
    total_complaints: int


class ComplaintFrequencyCategory(BaseModel):
    complaint_category: str
    segment: Optional[str]
    total_customers: int


class TenureCohort(BaseModel):
    tenure_bucket: str
    total_customers: int
    total_complaints: int
    total_resolved_complaints: int
    total_unresolved_complaints: int
    resolution_rate: float
    unresolved_rate: float


class MonthlyTrend(BaseModel):
    """Complaint volume for one calendar month."""

    complaint_month: str
    total_complaints: int
    rolling_3_month_avg: float
    month_over_month_change_pct: Optional[float] = None
