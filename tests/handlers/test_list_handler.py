from handler_events import response_body
from handlers.list_images.handler import handler

MODULE = "handlers.list_images.handler"


def _event(**params: str) -> dict:
    return {"httpMethod": "GET", "queryStringParameters": params or None}


def _seed(service, clock, count: int, **kwargs) -> list:
    uploaded = []
    for _ in range(count):
        uploaded.append(service.upload(file_data=b"\xff\xd8\xffabc", content_type="image/jpeg", **kwargs))
        clock.advance(1)
    return uploaded


class TestListImagesHandler:
    def test_empty(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        body = response_body(handler(_event(), lambda_context))

        assert body["images"] == []
        assert body["returned_count"] == 0
        assert body["pagination"] == {"limit": 20, "has_more": False, "next_cursor": None}

    def test_pages_with_cursor(self, use_service, lambda_context, clock) -> None:
        service = use_service(MODULE)
        uploaded = _seed(service, clock, 3)

        first = response_body(handler(_event(limit="2"), lambda_context))

        assert [image["image_id"] for image in first["images"]] == [
            uploaded[2].image_id,
            uploaded[1].image_id,
        ]
        assert first["pagination"]["has_more"] is True

        second = response_body(
            handler(_event(limit="2", cursor=first["pagination"]["next_cursor"]), lambda_context)
        )

        assert [image["image_id"] for image in second["images"]] == [uploaded[0].image_id]
        assert second["pagination"]["has_more"] is False

    def test_filters(self, use_service, lambda_context, clock) -> None:
        service = use_service(MODULE)
        [public] = _seed(service, clock, 1, folder="pets", is_public=True)
        _seed(service, clock, 1, folder="pets")
        _seed(service, clock, 1, folder="cars", is_public=True)

        body = response_body(handler(_event(folder="pets", is_public="true"), lambda_context))

        assert [image["image_id"] for image in body["images"]] == [public.image_id]

    def test_limit_is_clamped(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        body = response_body(handler(_event(limit="1000"), lambda_context))

        assert body["pagination"]["limit"] == 100

    def test_invalid_limit(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        assert handler(_event(limit="many"), lambda_context)["statusCode"] == 400

    def test_invalid_is_public(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        assert handler(_event(is_public="maybe"), lambda_context)["statusCode"] == 400

    def test_invalid_cursor(self, use_service, lambda_context) -> None:
        use_service(MODULE)

        response = handler(_event(cursor="@@@"), lambda_context)

        assert response["statusCode"] == 400
        assert response_body(response)["error"] == "INVALID_CURSOR"
