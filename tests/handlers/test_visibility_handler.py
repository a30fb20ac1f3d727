import json

from handler_events import response_body
from handlers.update_visibility.handler import handler

MODULE = "handlers.update_visibility.handler"


def _event(image_id: str, body: str) -> dict:
    return {"httpMethod": "PUT", "pathParameters": {"image_id": image_id}, "body": body}


class TestUpdateVisibilityHandler:
    def test_make_public(self, use_service, lambda_context) -> None:
        service = use_service(MODULE)
        descriptor = service.upload(file_data=b"\xff\xd8\xffabc", content_type="image/jpeg")

        response = handler(_event(descriptor.image_id, json.dumps({"is_public": True})), lambda_context)
        body = response_body(response)

        assert response["statusCode"] == 200
        assert body["is_public"] is True
        assert body["public_url"]

    def test_string_boolean(self, use_service, lambda_context) -> None:
        service = use_service(MODULE)
        descriptor = service.upload(file_data=b"\xff\xd8\xffabc", content_type="image/jpeg", is_public=True)

        body = response_body(handler(_event(descriptor.image_id, json.dumps({"is_public": "false"})), lambda_context))

        assert body["is_public"] is False

    def test_missing_flag(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        assert handler(_event("img_1", "{}"), lambda_context)["statusCode"] == 400

    def test_invalid_json(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        assert handler(_event("img_1", "{oops"), lambda_context)["statusCode"] == 400

    def test_unknown_image(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        response = handler(_event("img_missing", json.dumps({"is_public": True})), lambda_context)

        assert response["statusCode"] == 404

    def test_disabled_by_configuration(self, make_service, monkeypatch, lambda_context) -> None:
        service = make_service(allow_visibility_change=False)
        monkeypatch.setattr(f"{MODULE}.get_image_service", lambda: service)
        descriptor = service.upload(file_data=b"\xff\xd8\xffabc", content_type="image/jpeg")

        response = handler(_event(descriptor.image_id, json.dumps({"is_public": True})), lambda_context)

        assert response["statusCode"] == 403
        assert response_body(response)["error"] == "VISIBILITY_CHANGE_DISABLED"
