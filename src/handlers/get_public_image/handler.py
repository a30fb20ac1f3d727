"""
Lambda handler serving public images by their storage key.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import path_param, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import GetPublicImageRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle ``GET /api/v1/images/public/{key+}``.

    The key is URL-decoded before lookup. Private images answer 403 and
    unknown keys 404 (mapped by ``api_gateway_handler``).
    """
    logger.info("Received public image request", extra=request_log_extra(event, context))

    request = validate_request(GetPublicImageRequest, {"key": path_param(event, "key")})

    service = get_image_service()
    descriptor = service.get_by_public_key(
        request.key,
        deadline=request_deadline(context, service),
    )

    return ResponseBuilder.ok(descriptor.model_dump())
