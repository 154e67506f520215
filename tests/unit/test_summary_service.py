"""
Complaint summary tests.

Run with: pytest tests/unit/test_summary_service.py -v
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from models.summary import SummaryPeriod
from services.summary_service import SummaryService, lookback_window, resolve_period

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


class TestPeriodSelection:
    def test_monthly_is_thirty_days(self):
        assert resolve_period("MONTHLY") is SummaryPeriod.MONTHLY
        assert lookback_window("MONTHLY") == timedelta(days=30)

    def test_weekly_is_seven_days(self):
        assert lookback_window("WEEKLY") == timedelta(days=7)

    @pytest.mark.parametrize("period", ["QUARTERLY", "monthly", "", None])
    def test_unrecognised_period_falls_back_to_weekly(self, period):
        assert resolve_period(period) is SummaryPeriod.WEEKLY
        assert lookback_window(period) == timedelta(days=7)


class TestSummaryService:
    def test_monthly_window_starts_thirty_days_back(self, make_complaint):
        complaints = [
            make_complaint(complaint_date=date(2024, 5, 31), keywords="Billing"),
            make_complaint(complaint_date=date(2024, 6, 1), keywords="Billing"),
            make_complaint(complaint_date=date(2024, 6, 29), keywords="Login"),
        ]
        summary = SummaryService().generate(complaints, period="MONTHLY", now=NOW)

        assert summary.period is SummaryPeriod.MONTHLY
        assert summary.days == 30
        assert summary.window_start == NOW - timedelta(days=30)
        assert sum(t.total_complaints for t in summary.top_themes) == 2

    def test_unknown_period_uses_weekly_window(self, make_complaint):
        complaints = [
            make_complaint(complaint_date=date(2024, 6, 20), keywords="Billing"),
            make_complaint(complaint_date=date(2024, 6, 25), keywords="Login"),
        ]
        summary = SummaryService().generate(complaints, period="QUARTERLY", now=NOW)

        assert summary.requested_period == "QUARTERLY"
        assert summary.period is SummaryPeriod.WEEKLY
        assert summary.days == 7
        assert [t.complaint_theme for t in summary.top_themes] == ["Login"]

    def test_top_themes_limited_to_five(self, make_complaint):
        complaints = []
        for position, theme in enumerate(["A", "B", "C", "D", "E", "F", "G"]):
            for _ in range(7 - position):
                complaints.append(make_complaint(complaint_date=date(2024, 6, 28), keywords=theme))
        complaints.append(make_complaint(complaint_date=date(2024, 6, 28), keywords=None))

        themes = SummaryService().generate(complaints, now=NOW).top_themes

        assert [t.complaint_theme for t in themes] == ["A", "B", "C", "D", "E"]
        assert themes[0].total_complaints == 7

    def test_urgency_counts_in_reporting_order(self, make_complaint):
        complaints = [
            make_complaint(complaint_date=date(2024, 6, 28), urgency="Low"),
            make_complaint(complaint_date=date(2024, 6, 28), urgency="High"),
            make_complaint(complaint_date=date(2024, 6, 28), urgency="Medium"),
            make_complaint(complaint_date=date(2024, 6, 28), urgency="High"),
            make_complaint(complaint_date=date(2024, 6, 28)),
        ]
        counts = SummaryService().generate(complaints, now=NOW).urgency_counts

        assert [(c.urgency_level, c.total) for c in counts] == [
            ("High", 2),
            ("Medium", 1),
            ("Low", 1),
            (None, 1),
        ]

    def test_product_areas_by_volume(self, make_complaint):
        complaints = [
            make_complaint(complaint_date=date(2024, 6, 28), product_area="Billing"),
            make_complaint(complaint_date=date(2024, 6, 28), product_area="Export"),
            make_complaint(complaint_date=date(2024, 6, 28), product_area="Export"),
        ]
        areas = SummaryService().generate(complaints, now=NOW).product_areas
        assert [(a.product_area, a.total_complaints) for a in areas] == [("Export", 2), ("Billing", 1)]

    def test_top_agents_by_mean_resolution_time(self, make_complaint):
        def resolved(agent, days):
            return make_complaint(
                complaint_date=date(2024, 6, 25),
                resolution_date=date(2024, 6, 25) + timedelta(days=days),
                agent_name=agent,
            )

        complaints = [
            resolved("Slow", 4),
            resolved("Slow", 2),
            resolved("Fast", 1),
            resolved("Mid", 2),
            resolved("  ", 0),
            make_complaint(complaint_date=date(2024, 6, 25), agent_name="Open Only"),
        ] + [resolved(f"Extra{i}", 5) for i in range(4)]

        agents = SummaryService().generate(complaints, now=NOW).top_agents

        assert len(agents) == 5
        assert [a.agent_name for a in agents[:3]] == ["Fast", "Mid", "Slow"]
        slow = agents[2]
        assert slow.cases_resolved == 2
        assert slow.average_resolution_time == 3.0
        assert slow.fastest_resolution == 2
        assert slow.slowest_resolution == 4
        assert "Open Only" not in {a.agent_name for a in agents}

    def test_empty_window(self, make_complaint):
        summary = SummaryService().generate(
            [make_complaint(complaint_date=date(2024, 1, 1))], period="WEEKLY", now=NOW
        )
        assert summary.top_themes == []
        assert summary.urgency_counts == []
        assert summary.product_areas == []
        assert summary.top_agents == []
