"""
Lambda handler responsible for returning one image with a valid URL.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.errors import NotFoundError
from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import path_param, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import GetImageRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image retrieval requests.

    The returned descriptor always carries a URL that has not expired; a
    stale cached URL is re-issued first.

    Args:
        event: API Gateway event payload.
        context: AWS Lambda runtime context.

    Returns:
        API Gateway-compatible response dictionary.
    """
    logger.info("Received image get request", extra=request_log_extra(event, context))

    try:
        request = validate_request(
            GetImageRequest,
            {"image_id": path_param(event, "image_id")},
        )
    except ValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": exc.errors()},
        )
        return ResponseBuilder.bad_request(
            message="Invalid request params",
            details={"errors": sanitize_validation_errors(list(exc.errors()))},
        )

    service = get_image_service()

    try:
        descriptor = service.get(request.image_id, deadline=request_deadline(context, service))
    except NotFoundError as exc:
        logger.info("Image not found", extra={"image_id": request.image_id})
        return ResponseBuilder.not_found(
            f"Image not found: {request.image_id}",
            error=exc.error_code,
        )

    return ResponseBuilder.ok(descriptor.model_dump())
