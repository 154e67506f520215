"""
Supporting complaint reports.

Plain group-and-aggregate views over the complaint fact stream used by the
dashboard: channel and agent performance, skillset alignment, Pareto,
complaint-frequency segmentation, tenure cohorts and monthly trends.
"""

from __future__ import annotations

import calendar
import statistics
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from models.complaint import ComplaintRecord, ResolutionStatus
from models.report import (
    AgentPerformance,
    ChannelPerformance,
    ComplaintFrequencyCategory,
    MonthlyTrend,
    ParetoGroup,
    SkillsetAlignment,
    TenureCohort,
)
from models.risk import TenureBucket
from services.risk_scoring_service import tenure_bucket
from utils.error_handling import NotFoundError
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Agent skillset -> product area the skillset is meant to cover.
SKILLSET_PRODUCT_MAP: Dict[str, str] = {
    "Billing Specialist": "Billing",
    "Export Specialist": "Export",
    "Integration Expert": "Integrations",
    "Mobile App Support": "Mobile App",
    "Notification Specialist": "Notifications",
    "Performance Analyst": "Performance",
}

PARETO_CUTOFF_PCT = 80.0

# (minimum complaints, label), checked top-down.
FREQUENCY_CATEGORIES: Tuple[Tuple[int, str], ...] = (
    (11, "Chronic Complainers"),
    (7, "Persistent Complainers"),
    (4, "Frequent Complainers"),
    (2, "Occasional Complainers"),
    (1, "1-Time Complainers"),
)


def pct(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(100.0 * part / whole, 2)


def _mean(values: List[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _stdev(values: List[int]) -> Optional[float]:
    """Sample standard deviation; undefined below two observations."""
    return statistics.stdev(values) if len(values) > 1 else None


def frequency_category(complaint_count: int) -> str:
    for minimum, label in FREQUENCY_CATEGORIES:
        if complaint_count >= minimum:
            return label
    return FREQUENCY_CATEGORIES[-1][1]


def performance_flag(pci_index: float) -> str:
    if pci_index >= 0.6:
        return "Consistent Performer"
    if pci_index >= 0.5:
        return "Average Performer"
    return "Overloaded Performer"


class ReportService:
    """Registry of named reports over a complaint snapshot."""

    def __init__(self) -> None:
        self._reports: Dict[str, Callable[[List[ComplaintRecord], date], list]] = {
            "channel_performance": self.channel_performance,
            "agent_performance": self.agent_performance,
            "skillset_alignment": self.skillset_alignment,
            "pareto": self.pareto,
            "complaint_frequency": self.complaint_frequency,
            "tenure_cohorts": self.tenure_cohorts,
            "monthly_trend": self.monthly_trend,
        }

    @property
    def available(self) -> List[str]:
        return sorted(self._reports)

    def run(
        self,
        name: str,
        complaints: Iterable[ComplaintRecord],
        now: Optional[datetime] = None,
    ) -> list:
        """Run a report by name; unknown names raise NotFoundError."""
        report = self._reports.get(name)
        if report is None:
            raise NotFoundError(f"Unknown report: {name}")
        today = (now or datetime.now(timezone.utc)).date()
        rows = report(self._as_of(complaints, today), today)
        logger.info("Report generated", extra={"report": name, "rows": len(rows)})
        return rows

    @staticmethod
    def _as_of(complaints: Iterable[ComplaintRecord], today: date) -> List[ComplaintRecord]:
        """Drop complaints or signups dated after the evaluation day."""
        return [
            c
            for c in complaints
            if c.complaint_date <= today and (c.signup_date is None or c.signup_date <= today)
        ]

    def channel_performance(self, complaints: List[ComplaintRecord], today: date) -> List[ChannelPerformance]:
        groups: Dict[Optional[str], List[ComplaintRecord]] = defaultdict(list)
        for complaint in complaints:
            groups[complaint.channel].append(complaint)

        rows = []
        for channel, items in groups.items():
            times = [c.resolution_time for c in items if c.resolution_time is not None]
            resolved = sum(1 for c in items if c.resolution_status == ResolutionStatus.CLOSED)
            unassigned = sum(1 for c in items if not c.has_agent)
            rows.append(
                ChannelPerformance(
                    channel=channel,
                    total_complaints=len(items),
                    total_agents=len({c.agent_name for c in items if c.has_agent}),
                    resolved_complaints=resolved,
                    unresolved_complaints=sum(
                        1 for c in items if c.resolution_status == ResolutionStatus.OPEN
                    ),
                    average_res_time=_mean(times),
                    std_dev_res_time=_stdev(times),
                    min_res_time=min(times) if times else None,
                    max_res_time=max(times) if times else None,
                    unassigned_complaint_pct=pct(unassigned, len(items)),
                    resolution_rate=pct(resolved, len(items)),
                )
            )
        rows.sort(key=lambda row: (-row.total_complaints, row.channel or ""))
        return rows

    def agent_performance(self, complaints: List[ComplaintRecord], today: date) -> List[AgentPerformance]:
        groups: Dict[str, List[ComplaintRecord]] = defaultdict(list)
        for complaint in complaints:
            if complaint.has_agent:
                groups[complaint.agent_name].append(complaint)

        drafts = []
        for agent, items in groups.items():
            times = [c.resolution_time for c in items if c.resolution_time is not None]
            avg = _mean(times)
            closed = sum(1 for c in items if c.resolution_status == ResolutionStatus.CLOSED)
            rate = pct(closed, len(items))
            within = sum(1 for t in times if t <= avg) if avg is not None else 0
            pci_index = round(within / len(items), 2)
            drafts.append(
                {
                    "agent_name": agent,
                    "skillset": next((c.skillset for c in items if c.skillset), None),
                    "total_complaints": len(items),
                    "closed_complaints": closed,
                    "open_complaints": sum(
                        1 for c in items if c.resolution_status == ResolutionStatus.OPEN
                    ),
                    "avg_res_time": avg,
                    "resolution_rate": rate,
                    "performance_score": round(rate / avg, 4) if avg else None,
                    "within_average_resolutions": within,
                    "above_average_resolutions": len(times) - within,
                    "pci_index": pci_index,
                    "performance_flag": performance_flag(pci_index),
                }
            )

        # Rank by resolution rate, then speed; equal keys share a rank.
        def rank_key(draft: dict) -> Tuple[float, float]:
            avg = draft["avg_res_time"]
            return (-draft["resolution_rate"], avg if avg is not None else float("inf"))

        drafts.sort(key=lambda d: (rank_key(d), d["agent_name"]))
        rows = []
        previous_key, current_rank = None, 0
        for position, draft in enumerate(drafts, start=1):
            key = rank_key(draft)
            if key != previous_key:
                current_rank, previous_key = position, key
            rows.append(AgentPerformance(**draft, performance_rank=current_rank))
        return rows

    def skillset_alignment(self, complaints: List[ComplaintRecord], today: date) -> List[SkillsetAlignment]:
        groups: Dict[Tuple[str, Optional[str], str], List[ComplaintRecord]] = defaultdict(list)
        for complaint in complaints:
            if not complaint.has_agent:
                continue
            matched = (
                complaint.skillset is not None
                and SKILLSET_PRODUCT_MAP.get(complaint.skillset) == complaint.product_area
            )
            status = "Matched" if matched else "Mismatched"
            groups[(complaint.agent_name, complaint.skillset, status)].append(complaint)

        rows = []
        for (agent, skillset, status), items in sorted(groups.items(), key=lambda g: (g[0][0], g[0][2])):
            closed = sum(1 for c in items if c.resolution_status == ResolutionStatus.CLOSED)
            opened = sum(1 for c in items if c.resolution_status == ResolutionStatus.OPEN)
            rows.append(
                SkillsetAlignment(
                    agent_name=agent,
                    skillset=skillset,
                    alignment_status=status,
                    total_complaints=len(items),
                    closed_complaints=closed,
                    open_complaints=opened,
                    complaint_backlog=pct(opened, len(items)),
                    resolution_rate=pct(closed, len(items)),
                    avg_res_time=_mean([c.resolution_time for c in items if c.resolution_time is not None]),
                )
            )
        return rows

    def pareto(self, complaints: List[ComplaintRecord], today: date) -> List[ParetoGroup]:
        """Split customers by whether they sit inside the first 80% of cumulative complaints."""
        counts = Counter(c.customer_id for c in complaints if c.customer_id)
        total = sum(counts.values())
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))

        groups: Dict[str, List[int]] = {"Top 20% Customers": [], "Bottom 80% Customers": []}
        running = 0
        for _, count in ordered:
            running += count
            label = "Top 20% Customers" if 100.0 * running / total <= PARETO_CUTOFF_PCT else "Bottom 80% Customers"
            groups[label].append(count)

        return [
            ParetoGroup(pareto_group=label, total_customers=len(values), total_complaints=sum(values))
            for label, values in groups.items()
            if values
        ]

    def complaint_frequency(
        self, complaints: List[ComplaintRecord], today: date
    ) -> List[ComplaintFrequencyCategory]:
        per_customer = Counter()
        segments: Dict[str, Optional[str]] = {}
        for complaint in complaints:
            if not complaint.customer_id:
                continue
            per_customer[complaint.customer_id] += 1
            segments.setdefault(complaint.customer_id, complaint.segment)

        buckets = Counter(
            (frequency_category(count), segments[customer_id])
            for customer_id, count in per_customer.items()
        )
        order = {label: position for position, (_, label) in enumerate(FREQUENCY_CATEGORIES)}
        return [
            ComplaintFrequencyCategory(complaint_category=category, segment=segment, total_customers=n)
            for (category, segment), n in sorted(
                buckets.items(), key=lambda item: (order[item[0][0]], item[0][1] or "")
            )
        ]

    def tenure_cohorts(self, complaints: List[ComplaintRecord], today: date) -> List[TenureCohort]:
        customers: Dict[str, dict] = {}
        for complaint in complaints:
            if not complaint.customer_id or complaint.signup_date is None:
                continue
            entry = customers.setdefault(
                complaint.customer_id,
                {"bucket": tenure_bucket((today - complaint.signup_date).days), "total": 0, "closed": 0, "open": 0},
            )
            entry["total"] += 1
            if complaint.resolution_status == ResolutionStatus.CLOSED:
                entry["closed"] += 1
            elif complaint.resolution_status == ResolutionStatus.OPEN:
                entry["open"] += 1

        rows = []
        for bucket in TenureBucket:
            members = [entry for entry in customers.values() if entry["bucket"] is bucket]
            if not members:
                continue
            total = sum(m["total"] for m in members)
            closed = sum(m["closed"] for m in members)
            opened = sum(m["open"] for m in members)
            rows.append(
                TenureCohort(
                    tenure_bucket=bucket.value,
                    total_customers=len(members),
                    total_complaints=total,
                    total_resolved_complaints=closed,
                    total_unresolved_complaints=opened,
                    resolution_rate=pct(closed, total),
                    unresolved_rate=pct(opened, total),
                )
            )
        return rows

    def monthly_trend(self, complaints: List[ComplaintRecord], today: date) -> List[MonthlyTrend]:
        """Monthly counts with a 3-month rolling average over the observed months."""
        counts = Counter((c.complaint_date.year, c.complaint_date.month) for c in complaints)
        rows: List[MonthlyTrend] = []
        history: List[int] = []
        for year, month in sorted(counts):
            total = counts[(year, month)]
            history.append(total)
            window = history[-3:]
            change = None
            if len(history) > 1 and history[-2]:
                change = round(100.0 * (total - history[-2]) / history[-2], 2)
            rows.append(
                MonthlyTrend(
                    complaint_month=f"{year}-{calendar.month_name[month]}",
                    total_complaints=total,
                    rolling_3_month_avg=round(sum(window) / len(window), 2),
                    month_over_month_change_pct=change,
                )
            )
        return rows
