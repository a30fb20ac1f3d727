"""
Lambda handler responsible for deleting an image resource.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.errors import NotFoundError
from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import path_param, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import DeleteImageRequest, DeleteImageResponse

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image deletion requests.

    This function:
    - Extracts the image identifier from API Gateway path parameters
    - Delegates deletion to the image service
    - Reports whether the stored object was removed or deferred

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    logger.info("Received image delete request", extra=request_log_extra(event, context))

    try:
        request = validate_request(
            DeleteImageRequest,
            {"image_id": path_param(event, "image_id")},
        )
    except ValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": exc.errors()},
        )
        return ResponseBuilder.bad_request(
            message="Invalid request payload",
            details={"errors": sanitize_validation_errors(list(exc.errors()))},
        )

    service = get_image_service()

    try:
        result = service.delete(request.image_id, deadline=request_deadline(context, service))
    except NotFoundError as exc:
        logger.info("Image not found during delete", extra={"image_id": request.image_id})
        return ResponseBuilder.not_found(
            f"Image not found: {request.image_id}",
            error=exc.error_code,
        )

    metrics.add_metric(name="ImagesDeleted", unit=MetricUnit.Count, value=1)
    if not result.object_removed:
        metrics.add_metric(name="DeferredObjectRemovals", unit=MetricUnit.Count, value=1)

    response = DeleteImageResponse(
        image_id=result.image_id,
        message="Image deleted successfully",
        deleted_at=result.deleted_at,
        storage_key=result.storage_key,
        object_removed=result.object_removed,
    )

    return ResponseBuilder.ok(response.model_dump())
