"""
Lambda handler reporting service health.
"""

from http import HTTPStatus
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.constants import SERVICE_VERSION
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.time import utc_now_iso

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle ``GET /health``.

    Returns 200 when both stores answer, 503 otherwise; the body always lists
    the state of each store.
    """
    services = get_image_service().check_health()
    healthy = all(state == "healthy" for state in services.values())

    body: dict[str, Any] = {
        "status": "ok" if healthy else "degraded",
        "timestamp": utc_now_iso(),
        "version": SERVICE_VERSION,
        "services": services,
    }

    if healthy:
        return ResponseBuilder.ok(body)

    logger.warning("Health check degraded", extra={"services": services})
    return ResponseBuilder.with_status(HTTPStatus.SERVICE_UNAVAILABLE, body)
