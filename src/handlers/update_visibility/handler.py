"""
Lambda handler changing whether an image is public.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import path_param, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import UpdateVisibilityRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle ``PUT /api/v1/images/{image_id}/visibility``.

    Expected body: ``{"is_public": true}``.
    """
    logger.info("Received visibility change request", extra=request_log_extra(event, context))

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Request body must be a JSON object")

    request = validate_request(
        UpdateVisibilityRequest,
        {"image_id": path_param(event, "image_id"), "is_public": body.get("is_public")},
    )

    service = get_image_service()
    descriptor = service.set_visibility(
        request.image_id,
        is_public=request.is_public,
        deadline=request_deadline(context, service),
    )

    return ResponseBuilder.ok(descriptor.model_dump())
