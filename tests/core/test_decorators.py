import json
from types import SimpleNamespace

from pydantic import BaseModel

from core.models.errors import ForbiddenError, PartialFailureError, StoreUnavailableError
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder

CONTEXT = SimpleNamespace(aws_request_id="req-123", function_name="test")


class StrictModel(BaseModel):
    limit: int


def _make_handler(exc: Exception | None = None):
    @api_gateway_handler
    def handler(event, context):
        if exc is not None:
            raise exc
        return ResponseBuilder.ok({"status": "ok"})

    return handler


def test_passes_through_success() -> None:
    response = _make_handler()({"httpMethod": "GET"}, CONTEXT)

    assert response["statusCode"] == 200


def test_options_preflight() -> None:
    response = _make_handler(RuntimeError("never"))({"httpMethod": "OPTIONS"}, CONTEXT)

    assert response["statusCode"] == 204


def test_pydantic_error_is_bad_request() -> None:
    @api_gateway_handler
    def handler(event, context):
        StrictModel.model_validate({"limit": "many"})

    response = handler({"httpMethod": "GET"}, CONTEXT)
    body = json.loads(response["body"])

    assert response["statusCode"] == 400
    assert body["message"] == "Invalid request params"
    assert body["details"]["errors"][0]["field"] == "limit"
    assert body["request_id"] == "req-123"


def test_image_service_errors_are_mapped() -> None:
    assert _make_handler(ForbiddenError(message="private"))({}, CONTEXT)["statusCode"] == 403
    assert _make_handler(StoreUnavailableError(message="down"))({}, CONTEXT)["statusCode"] == 503
    assert _make_handler(PartialFailureError(message="half"))({}, CONTEXT)["statusCode"] == 500


def test_timeout_is_gateway_timeout() -> None:
    assert _make_handler(TimeoutError())({}, CONTEXT)["statusCode"] == 504


def test_unexpected_error_is_internal() -> None:
    response = _make_handler(KeyError("boom"))({}, CONTEXT)
    body = json.loads(response["body"])

    assert response["statusCode"] == 500
    assert "boom" not in body["message"]
