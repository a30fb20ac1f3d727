from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.models.image import ImageDescriptor

NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestImageDescriptor:
    def test_from_item_narrows_decimals_and_ignores_unknown(self) -> None:
        descriptor = ImageDescriptor.from_item(
            {
                "image_id": "img_1",
                "storage_key": "images/img_1.jpg",
                "is_public": True,
                "content_type": "image/jpeg",
                "size_bytes": Decimal("3"),
                "created_at": "2024-01-01T00:00:00.000000+00:00",
                "legacy_field": "ignored",
            }
        )

        assert descriptor.size_bytes == 3
        assert descriptor.is_public is True

    def test_to_item_drops_none(self, make_descriptor) -> None:
        item = make_descriptor().to_item()

        assert "public_url" not in item
        assert "folder" not in item
        assert item["size_bytes"] == 100

    def test_strict_types(self, make_descriptor) -> None:
        with pytest.raises(ValidationError):
            make_descriptor(size_bytes="100")

    def test_has_valid_url(self, make_descriptor) -> None:
        expires = (NOW + timedelta(hours=1)).isoformat()
        descriptor = make_descriptor(public_url="https://x", public_url_expires_at=expires)

        assert descriptor.has_valid_url(NOW) is True
        assert descriptor.has_valid_url(NOW, margin_seconds=3600) is False
        assert descriptor.has_valid_url(NOW + timedelta(hours=2)) is False

    def test_has_valid_url_without_url(self, make_descriptor) -> None:
        assert make_descriptor().has_valid_url(NOW) is False

    def test_without_url(self, make_descriptor) -> None:
        descriptor = make_descriptor(
            public_url="https://x", public_url_expires_at=NOW.isoformat()
        ).without_url()

        assert descriptor.public_url is None
        assert descriptor.public_url_expires_at is None
