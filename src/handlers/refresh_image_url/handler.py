"""
Lambda handler that re-issues the access URL of an image.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import path_param, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request
from handlers.get_image.models import GetImageRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Handle ``PUT /api/v1/images/{image_id}/refresh``."""
    logger.info("Received URL refresh request", extra=request_log_extra(event, context))

    request = validate_request(GetImageRequest, {"image_id": path_param(event, "image_id")})

    service = get_image_service()
    descriptor = service.refresh_url(request.image_id, deadline=request_deadline(context, service))

    logger.info(
        "Image URL refreshed",
        extra={"image_id": descriptor.image_id, "expires_at": descriptor.public_url_expires_at},
    )
    return ResponseBuilder.ok(descriptor.model_dump())
