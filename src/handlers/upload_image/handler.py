"""
Lambda handler responsible for image upload and metadata creation.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError as PydanticValidationError

from core.services.factory import get_image_service
from core.utils.constants import ERROR_CODE_NO_FILE
from core.utils.decorators import api_gateway_handler
from core.utils.events import request_deadline, request_log_extra
from core.utils.multipart import is_multipart, parse_multipart
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import ImageUploadRequest, ImageUploadResponse, JsonUploadBody

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


def _no_file_response(request_id: str | None) -> dict[str, Any]:
    return ResponseBuilder.bad_request(
        message="No file provided",
        error=ERROR_CODE_NO_FILE,
        request_id=request_id,
    )


def _read_upload(event: dict[str, Any]) -> dict[str, Any] | None:
    """Collect upload parameters from a multipart or JSON body.

    Returns None when the request carries no file.
    """
    if is_multipart(event):
        form = parse_multipart(event)
        uploaded = form.files.get("file")
        if uploaded is None or not uploaded.data:
            return None

        return {
            "file_data": uploaded.data,
            "content_type": uploaded.content_type,
            "original_name": uploaded.filename,
            "is_public": form.fields.get("is_public"),
            "folder": form.fields.get("folder"),
        }

    body = validate_request(JsonUploadBody, json.loads(event.get("body") or "{}"))
    file_data = body.decoded_file()
    if not file_data:
        return None

    return {
        "file_data": file_data,
        "content_type": body.content_type,
        "original_name": body.file_name,
        "is_public": body.is_public,
        "folder": body.folder,
    }


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image upload requests.

    Accepts ``multipart/form-data`` with a ``file`` part and optional
    ``is_public`` and ``folder`` fields, or a JSON body with a base64 encoded
    ``file``.

    Args:
        event: API Gateway Lambda proxy event containing the upload payload
        context: AWS Lambda execution context

    Returns:
        201 with the created image descriptor
    """
    logger.info("Received image upload request", extra=request_log_extra(event, context))
    request_id = getattr(context, "aws_request_id", None)

    try:
        params = _read_upload(event)
    except PydanticValidationError:
        raise
    except ValueError as exc:
        logger.warning("Unreadable upload body", extra={"error": str(exc)})
        return ResponseBuilder.bad_request(message="Invalid request body", request_id=request_id)

    if params is None:
        logger.info("Upload request without file")
        return _no_file_response(request_id)

    request = validate_request(ImageUploadRequest, params)

    service = get_image_service()
    descriptor = service.upload(
        file_data=request.file_data,
        content_type=request.content_type,
        is_public=request.is_public,
        folder=request.folder,
        original_name=request.original_name,
        deadline=request_deadline(context, service),
    )

    metrics.add_metric(name="ImagesUploaded", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name="UploadedBytes", unit=MetricUnit.Bytes, value=descriptor.size_bytes)

    response = ImageUploadResponse(
        **descriptor.model_dump(),
        message="Image uploaded successfully",
    )
    return ResponseBuilder.created(response.model_dump(), request_id=request_id)
