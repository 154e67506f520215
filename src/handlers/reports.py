"""Handler for GET /reports and GET /reports/{name}."""

import uuid
from typing import Optional

from utils.error_handling import AppError, json_response, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded services to avoid import-time DB connections
_fact_service: Optional["ComplaintFactService"] = None
_report_service: Optional["ReportService"] = None


def _get_fact_service():
    """Lazy-load ComplaintFactService."""
    global _fact_service
    if _fact_service is None:
        from services.fact_service import ComplaintFactService
        _fact_service = ComplaintFactService()
    return _fact_service


def _get_report_service():
    """Lazy-load ReportService."""
    global _report_service
    if _report_service is None:
        from services.report_service import ReportService
        _report_service = ReportService()
    return _report_service


def _report_name(event) -> Optional[str]:
    path_params = event.get("pathParameters") or {}
    if path_params.get("name"):
        return path_params["name"]
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    parts = [part for part in path.split("/") if part]
    if len(parts) == 2 and parts[0] == "reports":
        return parts[1]
    return None


def lambda_handler(event, context):
    """Run a named report, or list the available ones."""
    correlation_id = str(uuid.uuid4())
    reports = _get_report_service()
    name = _report_name(event)
    if not name:
        return json_response(200, {"reports": reports.available})

    try:
        rows = reports.run(name, _get_fact_service().load_complaints())
    except AppError as exc:
        return to_response(exc, correlation_id)
    except Exception as exc:
        logger.exception("Report failed", extra={"correlation_id": correlation_id, "report": name})
        return json_response(
            500,
            {"message": "Report failed", "error": str(exc), "correlation_id": correlation_id},
        )

    return json_response(
        200,
        {"report": name, "rows": [row.model_dump(mode="json") for row in rows]},
    )
