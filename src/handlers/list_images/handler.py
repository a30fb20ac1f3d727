"""
Lambda handler responsible for listing images with optional filtering and pagination.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.image import ListImagesResponse
from core.models.pagination import PaginationInfo
from core.services.factory import get_image_service
from core.utils.decorators import api_gateway_handler
from core.utils.events import query_params, request_deadline, request_log_extra
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import ListImagesRequest

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle requests to list images.

    Supports:
    - Filtering by folder and visibility
    - Newest-first ordering with cursor pagination

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    logger.info("Received image list request", extra=request_log_extra(event, context))

    try:
        request = validate_request(ListImagesRequest, query_params(event))
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
    page = service.list_images(
        folder=request.folder,
        is_public=request.is_public,
        cursor=request.cursor,
        limit=request.limit,
        deadline=request_deadline(context, service),
    )

    response = ListImagesResponse(
        images=page.items,
        returned_count=len(page.items),
        pagination=PaginationInfo(
            limit=page.limit,
            has_more=page.has_more,
            next_cursor=page.next_cursor,
        ),
    )

    return ResponseBuilder.ok(response.model_dump())
