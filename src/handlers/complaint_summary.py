"""Handler for GET /complaints/summary?period=WEEKLY|MONTHLY."""

import uuid
from typing import Optional

from utils.error_handling import json_response
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded services to avoid import-time DB connections
_fact_service: Optional["ComplaintFactService"] = None
_summary_service: Optional["SummaryService"] = None


def _get_fact_service():
    """Lazy-load ComplaintFactService."""
    global _fact_service
    if _fact_service is None:
        from services.fact_service import ComplaintFactService
        _fact_service = ComplaintFactService()
    return _fact_service


def _get_summary_service():
    """Lazy-load SummaryService."""
    global _summary_service
    if _summary_service is None:
        from services.summary_service import SummaryService
        _summary_service = SummaryService()
    return _summary_service


def lambda_handler(event, context):
    """Return the four summary result sets for the requested period."""
    correlation_id = str(uuid.uuid4())
    query_params = event.get("queryStringParameters") or {}
    # Direct invocations (scheduled reports) pass the period at the top level.
    period = query_params.get("period") or event.get("period")

    try:
        complaints = _get_fact_service().load_complaints()
        summary = _get_summary_service().generate(complaints, period=period)
    except Exception as exc:
        logger.exception("Complaint summary failed", extra={"correlation_id": correlation_id})
        return json_response(
            500,
            {
                "message": "Complaint summary failed",
                "error": str(exc),
                "correlation_id": correlation_id,
            },
        )

    logger.info(
        "Complaint summary served",
        extra={"correlation_id": correlation_id, "period": summary.period.value},
    )
    return json_response(200, summary.model_dump_json())
