"""
Risk handlers: POST /risk/recompute (also the scheduled batch run) and
GET /risk/profiles.

Every recompute scores the full customer population and overwrites the
previous profile set; there is no incremental mode.
"""

from __future__ import annotations

import json
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from models.response import ApiResponse
from utils.error_handling import AppError, ValidationError, json_response, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PROFILE_LIMIT = 100

# Lazy-loaded services to avoid import-time DB connections
_fact_service: Optional["ComplaintFactService"] = None
_scoring_service: Optional["RiskScoringService"] = None


def _get_fact_service():
    """Lazy-load ComplaintFactService."""
    global _fact_service
    if _fact_service is None:
        from services.fact_service import ComplaintFactService
        _fact_service = ComplaintFactService()
    return _fact_service


def _get_scoring_service():
    """Lazy-load RiskScoringService."""
    global _scoring_service
    if _scoring_service is None:
        from services.risk_scoring_service import RiskScoringService
        _scoring_service = RiskScoringService()
    return _scoring_service


def _get_sink(repo):
    from services.profile_sink_service import RiskProfileSink
    return RiskProfileSink.from_environment(repo)


def _parse_as_of(event: Dict) -> Optional[datetime]:
    """
    Pick the evaluation instant.

    API callers may pass `as_of` in the body; scheduled EventBridge events
    are scored as of their trigger time. Naive values are taken as UTC.
    """
    payload = event
    if event.get("body"):
        try:
            payload = json.loads(event["body"])
        except ValueError as exc:
            raise ValidationError("body must be a JSON object") from exc
        if not isinstance(payload, dict):
            raise ValidationError("body must be a JSON object")

    raw = payload.get("as_of")
    if raw is None and event.get("source") == "aws.events":
        raw = event.get("time")
    if raw is None:
        return None

    try:
        as_of = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"as_of must be an ISO-8601 timestamp: {raw!r}") from exc
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    return as_of


def lambda_handler(event, context) -> Dict:
    """Load the snapshot, score every customer and publish the run."""
    start = time.perf_counter()
    correlation_id = str(uuid.uuid4())
    try:
        as_of = _parse_as_of(event or {})
        facts = _get_fact_service()
        complaints = facts.load_complaints(use_cache=False)
        signals = facts.load_signals()

        run = _get_scoring_service().score(complaints, signals, as_of=as_of)
        published = _get_sink(facts.repo).write(run)

        logger.info(
            "Risk recompute complete",
            extra={
                "correlation_id": correlation_id,
                "customers": run.customer_count,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        response = ApiResponse(
            message="Risk profiles recomputed",
            data={
                "as_of": run.as_of.isoformat(),
                "customer_count": run.customer_count,
                "rows_written": published.rows_written,
                "snapshot_key": published.snapshot_key,
            },
            correlation_id=correlation_id,
        )
        return json_response(200, response.model_dump_json())
    except AppError as exc:
        logger.warning("Risk recompute rejected", extra={"correlation_id": correlation_id, "error": str(exc)})
        return to_response(exc, correlation_id)
    except Exception as exc:
        logger.exception("Risk recompute failed", extra={"correlation_id": correlation_id})
        return json_response(
            500,
            {
                "message": "Risk recompute failed",
                "error": str(exc),
                "correlation_id": correlation_id,
            },
        )


def _parse_limit(event: Dict) -> int:
    query_params = event.get("queryStringParameters") or {}
    raw = query_params.get("limit", DEFAULT_PROFILE_LIMIT)
    try:
        limit = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"limit must be a positive integer: {raw!r}") from exc
    if limit < 1:
        raise ValidationError(f"limit must be a positive integer: {raw!r}")
    return limit


def profiles_handler(event, context) -> Dict:
    """GET /risk/profiles: the last published run, highest risk first, rounded for display."""
    correlation_id = str(uuid.uuid4())
    try:
        limit = _parse_limit(event or {})
        profiles = _get_sink(_get_fact_service().repo).read_profiles(limit=limit)
    except AppError as exc:
        return to_response(exc, correlation_id)
    except Exception as exc:
        logger.exception("Risk profile read failed", extra={"correlation_id": correlation_id})
        return json_response(
            500,
            {
                "message": "Risk profile read failed",
                "error": str(exc),
                "correlation_id": correlation_id,
            },
        )

    return json_response(
        200,
        {"count": len(profiles), "profiles": [profile.display_row() for profile in profiles]},
    )
