"""
Centralized API response builder for AWS Lambda / API Gateway.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from core.models.errors import (
    ConflictError,
    DeadlineExceededError,
    FileSizeError,
    ForbiddenError,
    ImageServiceError,
    NotFoundError,
    PartialFailureError,
    StoreUnavailableError,
    ValidationError,
)
from core.utils.constants import (
    CORS_HEADERS,
    CORS_METHODS,
    CORS_ORIGIN,
    DEFAULT_CONTENT_TYPE,
    ERROR_CODE_INTERNAL_ERROR,
    EXPOSE_HEADERS,
)
from core.utils.time import utc_now_iso

JsonDict = dict[str, Any]

PARTIAL_FAILURE_MESSAGE = "The request could not be completed. Please try again later."


class ResponseBuilder:
    """Factory for API Gateway-compatible HTTP responses."""

    DEFAULT_HEADERS: dict[str, str] = {
        "Content-Type": DEFAULT_CONTENT_TYPE,
    }

    DEFAULT_CORS_HEADERS: dict[str, str] = {
        "Access-Control-Allow-Origin": CORS_ORIGIN,
        "Access-Control-Allow-Headers": CORS_HEADERS,
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Expose-Headers": EXPOSE_HEADERS,
    }

    @staticmethod
    def _build_headers(cors_origin: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = dict(ResponseBuilder.DEFAULT_HEADERS)

        # Always include CORS headers
        headers.update(ResponseBuilder.DEFAULT_CORS_HEADERS)

        if cors_origin:
            headers["Access-Control-Allow-Origin"] = cors_origin

        return headers

    @staticmethod
    def _response(
        *,
        status: HTTPStatus,
        body: JsonDict | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        payload: JsonDict = {}

        if body:
            payload.update(body)

        if request_id:
            payload["request_id"] = request_id

        response: JsonDict = {
            "statusCode": status.value,
            "headers": ResponseBuilder._build_headers(cors_origin),
            "body": json.dumps(payload),
        }

        return response

    @staticmethod
    def ok(
        body: JsonDict,
        *,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder._response(
            status=HTTPStatus.OK,
            body=body,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def created(
        body: JsonDict,
        *,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder._response(
            status=HTTPStatus.CREATED,
            body=body,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def with_status(
        status: HTTPStatus,
        body: JsonDict,
        *,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder._response(
            status=status,
            body=body,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def no_content(*, cors_origin: str | None = None) -> JsonDict:
        response: JsonDict = {
            "statusCode": HTTPStatus.NO_CONTENT.value,
            "headers": ResponseBuilder._build_headers(cors_origin),
            "body": "",
        }
        return response

    @staticmethod
    def error(
        *,
        status: HTTPStatus,
        message: str,
        error: str | None = None,
        details: JsonDict | list[Any] | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        payload: JsonDict = {
            "error": error or status.name,
            "message": message,
            "timestamp": utc_now_iso(),
        }

        if details:
            payload["details"] = details

        return ResponseBuilder._response(
            status=status,
            body=payload,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def bad_request(
        message: str,
        *,
        error: str | None = None,
        details: JsonDict | list[Any] | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.BAD_REQUEST,
            message=message,
            error=error,
            details=details,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def forbidden(
        message: str = "Forbidden",
        *,
        error: str | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.FORBIDDEN,
            message=message,
            error=error,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def not_found(
        message: str = "Resource not found",
        *,
        error: str | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.NOT_FOUND,
            message=message,
            error=error,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def conflict(
        message: str = "Resource already exists",
        *,
        error: str | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.CONFLICT,
            message=message,
            error=error,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def payload_too_large(
        message: str,
        *,
        error: str | None = None,
        details: JsonDict | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
            message=message,
            error=error,
            details=details,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def service_unavailable(
        message: str = "Service temporarily unavailable",
        *,
        error: str | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            message=message,
            error=error,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    @staticmethod
    def internal_error(
        message: str = "Internal server error",
        *,
        error: str | None = None,
        request_id: str | None = None,
        cors_origin: str | None = None,
    ) -> JsonDict:
        return ResponseBuilder.error(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            message=message,
            error=error,
            request_id=request_id,
            cors_origin=cors_origin,
        )


def handle_exception(
    exc: ImageServiceError,
    *,
    request_id: str | None = None,
    cors_origin: str | None = None,
) -> JsonDict:
    """Map an image service error onto its HTTP response.

    Partial failures are reported with a generic message; their details stay
    in the logs.
    """
    if isinstance(exc, FileSizeError):
        return ResponseBuilder.payload_too_large(
            exc.message,
            error=exc.error_code,
            details=exc.details,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    if isinstance(exc, ValidationError):
        return ResponseBuilder.bad_request(
            exc.message,
            error=exc.error_code,
            details=exc.details,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    if isinstance(exc, NotFoundError):
        return ResponseBuilder.not_found(
            exc.message, error=exc.error_code, request_id=request_id, cors_origin=cors_origin
        )

    if isinstance(exc, ForbiddenError):
        return ResponseBuilder.forbidden(
            exc.message, error=exc.error_code, request_id=request_id, cors_origin=cors_origin
        )

    if isinstance(exc, ConflictError):
        return ResponseBuilder.conflict(
            exc.message, error=exc.error_code, request_id=request_id, cors_origin=cors_origin
        )

    if isinstance(exc, StoreUnavailableError):
        return ResponseBuilder.service_unavailable(
            exc.message, error=exc.error_code, request_id=request_id, cors_origin=cors_origin
        )

    if isinstance(exc, DeadlineExceededError):
        return ResponseBuilder.error(
            status=HTTPStatus.GATEWAY_TIMEOUT,
            message=exc.message,
            error=exc.error_code,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    if isinstance(exc, PartialFailureError):
        return ResponseBuilder.internal_error(
            PARTIAL_FAILURE_MESSAGE,
            error=exc.error_code,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    return ResponseBuilder.internal_error(
        "Internal server error",
        error=ERROR_CODE_INTERNAL_ERROR,
        request_id=request_id,
        cors_origin=cors_origin,
    )
