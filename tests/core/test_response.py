import json
from http import HTTPStatus

import pytest

from core.models.errors import (
    ConflictError,
    DeadlineExceededError,
    FileSizeError,
    ForbiddenError,
    ImageServiceError,
    MIMETypeError,
    NotFoundError,
    PartialFailureError,
    StoreUnavailableError,
    ValidationError,
)
from core.utils.response import PARTIAL_FAILURE_MESSAGE, ResponseBuilder, handle_exception


def _body(response):
    return json.loads(response["body"])


class TestResponseBuilder:
    def test_ok_includes_cors_and_request_id(self) -> None:
        response = ResponseBuilder.ok({"a": 1}, request_id="req-1")

        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == "application/json"
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert _body(response) == {"a": 1, "request_id": "req-1"}

    def test_cors_origin_override(self) -> None:
        response = ResponseBuilder.created({}, cors_origin="https://app.example.com")

        assert response["statusCode"] == 201
        assert response["headers"]["Access-Control-Allow-Origin"] == "https://app.example.com"

    def test_no_content(self) -> None:
        response = ResponseBuilder.no_content()

        assert response["statusCode"] == 204
        assert response["body"] == ""

    def test_with_status(self) -> None:
        response = ResponseBuilder.with_status(HTTPStatus.SERVICE_UNAVAILABLE, {"status": "degraded"})

        assert response["statusCode"] == 503
        assert _body(response)["status"] == "degraded"

    def test_error_payload(self) -> None:
        response = ResponseBuilder.bad_request("bad", error="NO_FILE", details={"field": "file"})
        body = _body(response)

        assert response["statusCode"] == 400
        assert body["error"] == "NO_FILE"
        assert body["message"] == "bad"
        assert body["details"] == {"field": "file"}
        assert "timestamp" in body

    def test_error_code_defaults_to_status_name(self) -> None:
        assert _body(ResponseBuilder.not_found())["error"] == "NOT_FOUND"


class TestHandleException:
    @pytest.mark.parametrize(
        "error,status",
        [
            (FileSizeError(message="big"), 413),
            (MIMETypeError(message="type"), 400),
            (ValidationError(message="bad"), 400),
            (NotFoundError(message="missing"), 404),
            (ForbiddenError(message="private"), 403),
            (ConflictError(message="dup"), 409),
            (StoreUnavailableError(message="down"), 503),
            (DeadlineExceededError(message="slow"), 504),
            (PartialFailureError(message="half"), 500),
            (ImageServiceError(message="other", error_code="OTHER"), 500),
        ],
    )
    def test_status_mapping(self, error, status) -> None:
        assert handle_exception(error)["statusCode"] == status

    def test_error_code_is_propagated(self) -> None:
        body = _body(handle_exception(NotFoundError(message="gone", error_code="IMAGE_NOT_FOUND")))

        assert body["error"] == "IMAGE_NOT_FOUND"
        assert body["message"] == "gone"

    def test_partial_failure_hides_details(self) -> None:
        error = PartialFailureError(message="object missing for img_1", details={"storage_key": "k"})

        body = _body(handle_exception(error, request_id="req-1"))

        assert body["message"] == PARTIAL_FAILURE_MESSAGE
        assert "details" not in body
        assert body["request_id"] == "req-1"

    def test_unknown_error_is_internal(self) -> None:
        body = _body(handle_exception(ImageServiceError(message="secret detail", error_code="OTHER")))

        assert body["error"] == "INTERNAL_ERROR"
        assert "secret" not in body["message"]
