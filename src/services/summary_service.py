"""
Complaint summary service.

Produces the weekly/monthly operational summary: top complaint themes,
urgency distribution, product-area counts and the fastest-resolving agents.
Unrecognised period selectors fall back to the weekly window rather than
raising.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from models.complaint import ComplaintRecord, Urgency
from models.summary import (
    AgentResolution,
    ComplaintSummary,
    ProductAreaCount,
    SummaryPeriod,
    ThemeCount,
    UrgencyCount,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)

TOP_N = 5
URGENCY_ORDER = {urgency.value: position for position, urgency in enumerate(Urgency)}


def resolve_period(period: Optional[str]) -> SummaryPeriod:
    """Map a selector to a known period; anything unrecognised is WEEKLY."""
    if period == SummaryPeriod.MONTHLY.value:
        return SummaryPeriod.MONTHLY
    return SummaryPeriod.WEEKLY


def lookback_window(period: Optional[str]) -> timedelta:
    return timedelta(days=resolve_period(period).days)


class SummaryService:
    """Build complaint summaries over an in-memory complaint snapshot."""

    def generate(
        self,
        complaints: Iterable[ComplaintRecord],
        period: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ComplaintSummary:
        """Summarise complaints filed inside the lookback window ending at `now`."""
        resolved = resolve_period(period)
        if period != resolved.value:
            logger.info(
                "Unrecognised summary period; using default window",
                extra={"requested_period": period, "period": resolved.value},
            )

        now = now or datetime.now(timezone.utc)
        window_start = now - lookback_window(resolved.value)

        in_window = [c for c in complaints if self._filed_at(c, now) >= window_start]

        summary = ComplaintSummary(
            requested_period=period,
            period=resolved,
            days=resolved.days,
            window_start=window_start,
            generated_at=now,
            top_themes=self._top_themes(in_window),
            urgency_counts=self._urgency_counts(in_window),
            product_areas=self._product_areas(in_window),
            top_agents=self._top_agents(in_window),
        )
        logger.info(
            "Complaint summary generated",
            extra={"period": resolved.value, "complaints_in_window": len(in_window)},
        )
        return summary

    @staticmethod
    def _filed_at(complaint: ComplaintRecord, now: datetime) -> datetime:
        """Complaint dates are whole days; compare them at midnight in the caller's timezone."""
        return datetime.combine(complaint.complaint_date, time.min, tzinfo=now.tzinfo)

    def _top_themes(self, complaints: List[ComplaintRecord]) -> List[ThemeCount]:
        counts = Counter(c.keywords for c in complaints if c.keywords)
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [ThemeCount(complaint_theme=k, total_complaints=v) for k, v in ordered[:TOP_N]]

    def _urgency_counts(self, complaints: List[ComplaintRecord]) -> List[UrgencyCount]:
        counts = Counter(c.urgency.value if c.urgency else None for c in complaints)
        ordered = sorted(
            counts.items(),
            key=lambda item: (URGENCY_ORDER.get(item[0], len(URGENCY_ORDER)), item[0] or ""),
        )
        return [UrgencyCount(urgency_level=k, total=v) for k, v in ordered]

    def _product_areas(self, complaints: List[ComplaintRecord]) -> List[ProductAreaCount]:
        counts = Counter(c.product_area for c in complaints)
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0] or ""))
        return [ProductAreaCount(product_area=k, total_complaints=v) for k, v in ordered]

    def _top_agents(self, complaints: List[ComplaintRecord]) -> List[AgentResolution]:
        times: Dict[str, List[int]] = defaultdict(list)
        for complaint in complaints:
            if complaint.resolution_time is None or not complaint.has_agent:
                continue
            times[complaint.agent_name].append(complaint.resolution_time)

        rows = [
            AgentResolution(
                agent_name=agent,
                cases_resolved=len(values),
                average_resolution_time=sum(values) / len(values),
                fastest_resolution=min(values),
                slowest_resolution=max(values),
            )
            for agent, values in times.items()
        ]
        rows.sort(key=lambda row: (row.average_resolution_time, row.agent_name))
        return rows[:TOP_N]
