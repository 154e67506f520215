"""
Fact reads and profile publishing.

SQLAlchemy runs against a throwaway SQLite file so the SQL paths are
exercised without PostgreSQL; S3 is mocked.

Run with: pytest tests/unit/test_data_access.py -v
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, text

from models.risk import RiskProfile, RiskRun, SentimentLabel
from repositories.postgres_repo import PostgresRepository
from services import fact_service
from services.fact_service import ComplaintFactService
from services.profile_sink_service import RiskProfileSink
from utils.error_handling import ValidationError


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'facts.db'}")
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE customer_intelligence ("
            " complaint_id TEXT, customer_id INTEGER, complaint_date TEXT,"
            " resolution_date TEXT, resolution_status TEXT, resolution_type TEXT,"
            " urgency TEXT, sentiment_score REAL, sentiment_category TEXT, segment TEXT,"
            " signup_date TEXT, region TEXT, channel TEXT, product_area TEXT,"
            " matched_keywords TEXT, agent_name TEXT, skillset TEXT)"
        ))
        conn.execute(text(
            "INSERT INTO customer_intelligence (complaint_id, customer_id, complaint_date,"
            " resolution_date, urgency, sentiment_score, segment, matched_keywords)"
            " VALUES ('C1', 101, '2024-06-01', '2024-06-03', 'High', -0.5, 'Premium', 'Billing'),"
            "        ('C2', 102, '2024-06-02', NULL, 'Low', NULL, 'Standard', NULL),"
            "        ('C3', 103, 'not-a-date', NULL, NULL, NULL, NULL, NULL)"
        ))
        conn.execute(text(
            "CREATE TABLE customer_risk_signals (customer_id TEXT, volume_risk REAL, severity_risk REAL)"
        ))
        conn.execute(text("INSERT INTO customer_risk_signals VALUES ('101', 1.0, 0.5)"))
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def clear_fact_cache():
    fact_service.fact_cache.clear()
    yield
    fact_service.fact_cache.clear()


class TestComplaintFactService:
    def test_load_complaints_parses_rows(self, engine):
        complaints = ComplaintFactService(engine=engine).load_complaints(use_cache=False)

        # The malformed row is dropped.
        assert [c.complaint_id for c in complaints] == ["C1", "C2"]
        first = complaints[0]
        assert first.customer_id == "101"
        assert first.keywords == "Billing"
        assert first.resolution_time == 2
        assert first.resolution_status.value == "Closed"
        assert complaints[1].resolution_status.value == "Open"

    def test_cached_reads_reuse_the_snapshot(self, engine):
        service = ComplaintFactService(engine=engine)
        first = service.load_complaints()
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM customer_intelligence"))

        assert service.load_complaints() is first
        assert service.load_complaints(use_cache=False) == []

    def test_load_signals(self, engine):
        signals = ComplaintFactService(engine=engine).load_signals()
        assert len(signals) == 1
        assert signals[0].customer_id == "101"
        assert signals[0].volume_risk == 1.0

    def test_no_database_yields_empty_snapshot(self):
        service = ComplaintFactService()
        assert service.repo is None
        assert service.load_complaints() == []
        assert service.load_signals() == []

    def test_rejects_unsafe_view_name(self, engine):
        with pytest.raises(ValidationError):
            ComplaintFactService(engine=engine, fact_view="facts; DROP TABLE x")


class TestPostgresRepository:
    def test_replace_all_overwrites_table(self, engine):
        repo = PostgresRepository(engine)
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE profiles (customer_id TEXT, score REAL)"))
        repo.replace_all("profiles", [{"customer_id": "old", "score": 0.1}])

        written = repo.replace_all(
            "profiles",
            [{"customer_id": "a", "score": 0.5}, {"customer_id": "b", "score": 0.9}],
        )

        assert written == 2
        rows = repo.fetch_all("SELECT customer_id FROM profiles ORDER BY customer_id")
        assert [r["customer_id"] for r in rows] == ["a", "b"]

    def test_replace_all_with_no_rows_empties_table(self, engine):
        repo = PostgresRepository(engine)
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE profiles (customer_id TEXT)"))
        repo.replace_all("profiles", [{"customer_id": "a"}])

        assert repo.replace_all("profiles", []) == 0
        assert repo.fetch_all("SELECT COUNT(*) AS n FROM profiles")[0]["n"] == 0


def _run():
    as_of = datetime(2024, 6, 30, 2, 0, tzinfo=timezone.utc)
    profile = RiskProfile(
        customer_id="A",
        segment="Premium",
        recency_factor=0.71653131,
        is_new_customer=0,
        customer_value=2,
        complaint_count=3,
        complaints_last_30_days=1,
        days_since_last_complaint=10,
        frequency=16.6666667,
        sentiment_label=SentimentLabel.NEGATIVE,
        raw_risk_score=0.343306262,
        normalized_risk_score=1.0,
        risk_rank=1,
    )
    return RiskRun(as_of=as_of, customer_count=1, min_raw_score=0.343306262,
                   max_raw_score=0.343306262, profiles=[profile])


class TestRiskProfileSink:
    def test_write_replaces_table_and_uploads_snapshot(self):
        repo = MagicMock()
        repo.replace_all.return_value = 1
        snapshots = MagicMock()

        result = RiskProfileSink(repo=repo, snapshots=snapshots).write(_run())

        table, rows = repo.replace_all.call_args.args
        assert table == "customer_risk_profiles"
        assert rows[0]["customer_id"] == "A"
        assert rows[0]["frequency"] == 16.666667
        assert rows[0]["sentiment_label"] == "Negative"
        assert rows[0]["computed_at"] == datetime(2024, 6, 30, 2, 0, tzinfo=timezone.utc)
        assert result.rows_written == 1
        assert result.snapshot_key == "risk-runs/2024/06/30/2024-06-30T02:00:00+00:00.json"
        key, body = snapshots.upload_text.call_args.args
        assert key == result.snapshot_key
        assert '"customer_id":"A"' in body

    def test_write_without_targets(self):
        result = RiskProfileSink().write(_run())
        assert result.rows_written == 0
        assert result.snapshot_key is None

    def test_from_environment_uses_snapshot_bucket(self, monkeypatch):
        monkeypatch.setenv("SNAPSHOT_BUCKET", "risk-snapshots")
        sink = RiskProfileSink.from_environment(None)
        assert sink.snapshots is not None
        assert sink.snapshots.bucket_name == "risk-snapshots"

    def test_from_environment_without_bucket(self, monkeypatch):
        monkeypatch.delenv("SNAPSHOT_BUCKET", raising=False)
        assert RiskProfileSink.from_environment(None).snapshots is None

    def test_read_profiles_without_database(self):
        assert RiskProfileSink().read_profiles(limit=10) == []


SCHEMA_PATH = Path(__file__).resolve().parents[2] / "sql" / "schema.sql"


def _apply_schema(engine):
    ddl = "\n".join(
        line for line in SCHEMA_PATH.read_text().splitlines() if not line.strip().startswith("--")
    )
    with engine.begin() as conn:
        for statement in ddl.split(";"):
            if statement.strip():
                conn.execute(text(statement))


class TestProfileTableContract:
    """The sink's row layout matches the shipped DDL."""

    def test_schema_columns_match_sink_rows(self):
        block = re.search(
            r"CREATE TABLE IF NOT EXISTS customer_risk_profiles \((.*?)\n\);",
            SCHEMA_PATH.read_text(),
            re.S,
        ).group(1)
        columns = {line.strip().split()[0] for line in block.strip().splitlines()}
        assert columns == set(RiskProfileSink.to_rows(_run())[0])

    def test_published_run_reads_back_rounded(self, engine):
        _apply_schema(engine)
        sink = RiskProfileSink(repo=PostgresRepository(engine))

        assert sink.write(_run()).rows_written == 1
        profiles = sink.read_profiles(limit=5)

        assert [p.customer_id for p in profiles] == ["A"]
        row = profiles[0].display_row()
        assert row["recency_factor"] == 0.72
        assert row["frequency"] == 16.67
        assert row["raw_risk_score"] == 0.34
        assert row["sentiment_label"] == "Negative"

    def test_read_profiles_orders_by_rank_and_limits(self, engine):
        _apply_schema(engine)
        first = _run().profiles[0]
        runner_up = first.model_copy(
            update={"customer_id": "B", "risk_rank": 2, "normalized_risk_score": 0.0}
        )
        run = _run().model_copy(update={"customer_count": 2, "profiles": [runner_up, first]})
        sink = RiskProfileSink(repo=PostgresRepository(engine))
        sink.write(run)

        assert [p.customer_id for p in sink.read_profiles(limit=5)] == ["A", "B"]
        assert [p.customer_id for p in sink.read_profiles(limit=1)] == ["A"]
