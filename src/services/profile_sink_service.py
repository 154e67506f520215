"""
Risk profile sink.

Publishes a finished risk run as a full replacement: the profile table is
overwritten in one transaction and, when a bucket is configured, a JSON
snapshot of the run is stored in S3. The published table is also what
GET /risk/profiles reads back. Column layout: sql/schema.sql.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from models.risk import RiskProfile, RiskRun
from repositories.postgres_repo import PostgresRepository
from repositories.s3_repo import S3Repository
from utils.logging_config import get_logger
from utils.validators import ensure_identifier

logger = get_logger(__name__)

# Matches the DECIMAL(10,6) score columns in sql/schema.sql.
STORAGE_PRECISION = 6


@dataclass
class SinkResult:
    rows_written: int
    snapshot_key: Optional[str] = None


class RiskProfileSink:
    """Write risk runs to PostgreSQL and, optionally, S3."""

    def __init__(
        self,
        repo: Optional[PostgresRepository] = None,
        snapshots: Optional[S3Repository] = None,
        table: Optional[str] = None,
    ):
        self.repo = repo
        self.snapshots = snapshots
        self.table = ensure_identifier(
            table or os.environ.get("RISK_PROFILE_TABLE", "customer_risk_profiles"),
            "RISK_PROFILE_TABLE",
        )

    @classmethod
    def from_environment(cls, repo: Optional[PostgresRepository]) -> "RiskProfileSink":
        bucket = os.environ.get("SNAPSHOT_BUCKET")
        return cls(repo=repo, snapshots=S3Repository(bucket) if bucket else None)

    def write(self, run: RiskRun) -> SinkResult:
        rows_written = 0
        if self.repo is not None:
            rows_written = self.repo.replace_all(self.table, self.to_rows(run))
        else:
            logger.warning("No database configured; risk profiles not persisted")

        snapshot_key = None
        if self.snapshots is not None:
            snapshot_key = f"risk-runs/{run.as_of:%Y/%m/%d}/{run.as_of.isoformat()}.json"
            self.snapshots.upload_text(snapshot_key, run.model_dump_json())

        logger.info(
            "Risk run published",
            extra={"table": self.table, "rows": rows_written, "snapshot_key": snapshot_key},
        )
        return SinkResult(rows_written=rows_written, snapshot_key=snapshot_key)

    @staticmethod
    def to_rows(run: RiskRun) -> List[dict]:
        rows = []
        for profile in run.profiles:
            row = profile.model_dump(mode="json")
            for key, value in row.items():
                if isinstance(value, float):
                    row[key] = round(value, STORAGE_PRECISION)
            row["computed_at"] = run.as_of
            rows.append(row)
        return rows

    def read_profiles(self, limit: int) -> List[RiskProfile]:
        """Top `limit` profiles of the last published run, by rank."""
        if self.repo is None:
            return []
        rows = self.repo.fetch_all(
            f"SELECT * FROM {self.table} ORDER BY risk_rank, customer_id LIMIT :limit",
            {"limit": limit},
        )
        return [RiskProfile.model_validate(row) for row in rows]
