"""
Lambda handler deleting several images in one request.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import BatchDeleteRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle batch deletion.

    Expected body: ``{"image_ids": ["img_...", ...]}``. Each id is deleted
    independently; failures are reported per id and do not stop the batch.
    """
    logger.info("Received batch delete request", extra=request_log_extra(event, context))

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Request body must be a JSON object")

    request = validate_request(BatchDeleteRequest, body)

    service = get_image_service()
    result = service.delete_many(request.image_ids, deadline=request_deadline(context, service))

    metrics.add_metric(name="ImagesDeleted", unit=MetricUnit.Count, value=result.deleted_count)

    return ResponseBuilder.ok(
        {
            "deleted_count": result.deleted_count,
            "deleted": [item.model_dump() for item in result.deleted],
            "failed": [item.model_dump() for item in result.failed],
        }
    )
