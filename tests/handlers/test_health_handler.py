from handler_events import response_body
from handlers.health.handler import handler

MODULE = "handlers.health.handler"


def test_healthy(use_service, lambda_context) -> None:
    use_service(MODULE)

    response = handler({"httpMethod": "GET"}, lambda_context)
    body = response_body(response)

    assert response["statusCode"] == 200
    assert body["status"] == "ok"
    assert body["version"] == "1.0.0"
    assert body["services"] == {"object_store": "healthy", "metadata": "healthy"}


def test_degraded(use_service, lambda_context, metadata, dynamodb_failure) -> None:
    use_service(MODULE)
    metadata.failures["ping"] = dynamodb_failure

    response = handler({"httpMethod": "GET"}, lambda_context)
    body = response_body(response)

    assert response["statusCode"] == 503
    assert body["status"] == "degraded"
    assert body["services"]["metadata"] == "unhealthy"
