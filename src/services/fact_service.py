"""
Complaint Fact Service.

Reads the complaint fact view and the per-customer risk signals from
PostgreSQL. To keep the stack deployable without a live database, the
engine is built lazily and an unconfigured database yields an empty
snapshot instead of an error.
"""

from __future__ import annotations

import json
import os
from typing import List, Optional

import boto3
from pydantic import ValidationError as ModelValidationError
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from models.complaint import ComplaintRecord, CustomerSignal
from repositories.postgres_repo import PostgresRepository
from utils.cache_service import LRUCache
from utils.logging_config import get_logger
from utils.validators import ensure_identifier

logger = get_logger(__name__)

# Connection pooling for Lambda reuse.
_engine = None

# Snapshot cache (survives warm Lambda invocations).
fact_cache = LRUCache(
    max_size=int(os.environ.get("CACHE_MAX_SIZE", "100")),
    ttl_seconds=int(os.environ.get("CACHE_TTL_SECONDS", "300")),
)

COMPLAINT_COLUMNS = """
    complaint_id, customer_id, complaint_date, resolution_date, resolution_status,
    resolution_type, urgency, sentiment_score, sentiment_category, segment,
    signup_date, region, channel, product_area, matched_keywords AS keywords,
    agent_name, skillset
"""


def get_db_engine() -> Optional[Engine]:
    """Get or create SQLAlchemy engine with connection pooling."""
    global _engine
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            secret_arn = os.environ.get("DB_SECRET_ARN")
            if secret_arn:
                db_url = _secret_to_db_url(secret_arn)
            if not db_url:
                logger.warning("DATABASE_URL not set; fact reads will return no rows")
                return None
        _engine = create_engine(
            db_url,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=2,
            pool_pre_ping=True,
            pool_recycle=300,
        )
    return _engine


def _secret_to_db_url(secret_arn: str) -> Optional[str]:
    """Build a SQLAlchemy URL from an RDS secret."""
    try:
        sm = boto3.client("secretsmanager")
        secret = json.loads(sm.get_secret_value(SecretId=secret_arn)["SecretString"])
    except Exception as exc:
        logger.warning("Failed to load DB secret", extra={"error": str(exc)})
        return None

    host = secret.get("host")
    username = secret.get("username")
    password = secret.get("password")
    if not (host and username and password):
        return None
    port = secret.get("port", 5432)
    dbname = secret.get("dbname", "postgres")
    return f"postgresql+psycopg2://{username}:{password}@{host}:{port}/{dbname}"


class ComplaintFactService:
    """Bulk reader for the complaint snapshot the engine and reports run on."""

    def __init__(
        self,
        engine: Optional[Engine] = None,
        fact_view: Optional[str] = None,
        signal_table: Optional[str] = None,
    ):
        self.engine = engine if engine is not None else get_db_engine()
        self.repo = PostgresRepository(self.engine) if self.engine is not None else None
        self.fact_view = ensure_identifier(
            fact_view or os.environ.get("COMPLAINT_FACT_VIEW", "customer_intelligence"),
            "COMPLAINT_FACT_VIEW",
        )
        self.signal_table = ensure_identifier(
            signal_table or os.environ.get("CUSTOMER_SIGNAL_TABLE", "customer_risk_signals"),
            "CUSTOMER_SIGNAL_TABLE",
        )

    def load_complaints(self, use_cache: bool = True) -> List[ComplaintRecord]:
        """Read every complaint row; cached reads serve the reporting routes."""
        if self.repo is None:
            return []
        if not use_cache:
            return self._read_complaints()
        return fact_cache.get_or_load(f"complaints:{self.fact_view}", self._read_complaints)

    def load_signals(self) -> List[CustomerSignal]:
        """Read the externally computed volume/severity signals."""
        if self.repo is None:
            return []
        rows = self.repo.fetch_all(
            f"SELECT customer_id, volume_risk, severity_risk FROM {self.signal_table}"
        )
        return self._parse(rows, CustomerSignal, "signal")

    def _read_complaints(self) -> List[ComplaintRecord]:
        rows = self.repo.fetch_all(f"SELECT {COMPLAINT_COLUMNS} FROM {self.fact_view}")
        complaints = self._parse(rows, ComplaintRecord, "complaint")
        logger.info("Complaint snapshot loaded", extra={"rows": len(complaints), "view": self.fact_view})
        return complaints

    @staticmethod
    def _parse(rows: List[dict], model, kind: str) -> list:
        """Validate rows, dropping the ones the model rejects."""
        parsed, rejected = [], 0
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ModelValidationError as exc:
                rejected += 1
                logger.debug("Row rejected", extra={"kind": kind, "error": str(exc)})
        if rejected:
            logger.warning("Rows failed validation", extra={"kind": kind, "rejected": rejected})
        return parsed
