"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

The same function is the EventBridge target for the scheduled risk
recompute, so scheduled events are dispatched before HTTP routing.
"""

from typing import Callable, Tuple

from . import complaint_summary, health_check, reports, risk_scoring
from utils.error_handling import json_response


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API or EventBridge.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    if event.get("source") == "aws.events":
        return risk_scoring.lambda_handler(event, context)

    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method.upper()} {path.rstrip('/')}"

    # Exact keys first, then prefixes for path parameters.
    exact_routes = {
        "GET /health": health_check.lambda_handler,
        "POST /risk/recompute": risk_scoring.lambda_handler,
        "GET /risk/profiles": risk_scoring.profiles_handler,
        "GET /complaints/summary": complaint_summary.lambda_handler,
        "GET /reports": reports.lambda_handler,
    }
    prefix_routes: Tuple[Tuple[str, Callable], ...] = (
        ("GET /reports/", reports.lambda_handler),
    )

    handler = exact_routes.get(route_key)
    if handler is not None:
        return handler(event, context)
    for prefix, handler in prefix_routes:
        if route_key.startswith(prefix):
            return handler(event, context)

    return json_response(404, {"message": "Route not found", "route": route_key})
