from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from core.services.factory import get_image_service


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )


@pytest.fixture(autouse=True)
def fresh_image_service():
    get_image_service.cache_clear()
    yield
    get_image_service.cache_clear()


@pytest.fixture
def use_service(monkeypatch, service) -> Callable[[str], Any]:
    """Point a handler module at the in-memory image service.

    Usage:
        use_service("handlers.get_image.handler")
    """

    def _use(module: str) -> Any:
        monkeypatch.setattr(f"{module}.get_image_service", lambda: service)
        return service

    return _use


@pytest.fixture
def moto_env(monkeypatch, aws_mock, dynamodb_table, s3_bucket):
    """Real S3 and DynamoDB implementations backed by moto."""
    for name in ("AWS_ENDPOINT_URL", "APP_RUNTIME", "IMAGE_PUBLIC_BASE_URL", "IMAGE_ORPHAN_TABLE_NAME"):
        monkeypatch.delenv(name, raising=False)
    yield
