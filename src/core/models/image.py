"""Shared image descriptor model."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr

from core.models.pagination import PaginationInfo
from core.utils.time import parse_iso

Item = dict[str, Any]


class ImageDescriptor(BaseModel):
    """Durable metadata record for one uploaded image."""

    image_id: StrictStr = Field(..., description="Unique image identifier")
    storage_key: StrictStr = Field(..., description="Object key in the image bucket")
    is_public: StrictBool = Field(False, description="Whether the image is retrievable by key")
    folder: StrictStr | None = Field(None, description="Optional grouping label")
    original_name: StrictStr | None = Field(None, description="Client-supplied file name")

    content_type: StrictStr = Field(..., description="MIME type of the image (e.g. image/jpeg)")
    size_bytes: StrictInt = Field(..., ge=0, description="Image size in bytes")

    public_url: StrictStr | None = Field(None, description="Cached signed URL")
    public_url_expires_at: StrictStr | None = Field(
        None, description="ISO-8601 expiry of the cached URL (UTC)"
    )

    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")
    updated_at: StrictStr | None = Field(None, description="ISO-8601 last update timestamp (UTC)")

    @classmethod
    def from_item(cls, item: Item) -> "ImageDescriptor":
        """Build a descriptor from a DynamoDB item.

        DynamoDB returns numbers as ``Decimal``; they are narrowed to ``int``.
        """
        data = {
            key: int(value) if isinstance(value, Decimal) else value
            for key, value in item.items()
            if key in cls.model_fields
        }
        return cls.model_validate(data)

    def to_item(self) -> Item:
        """Serialize to a DynamoDB item, dropping empty optional attributes."""
        return {key: value for key, value in self.model_dump().items() if value is not None}

    def has_valid_url(self, now: datetime, *, margin_seconds: int = 0) -> bool:
        """Return True when the cached URL is present and not (about to be) expired."""
        if not self.public_url or not self.public_url_expires_at:
            return False

        remaining = (parse_iso(self.public_url_expires_at) - now).total_seconds()
        return remaining > margin_seconds

    def without_url(self) -> "ImageDescriptor":
        """Return a copy with the URL cache cleared."""
        return self.model_copy(update={"public_url": None, "public_url_expires_at": None})


class ListImagesResponse(BaseModel):
    """Paginated response for listing images."""

    images: list[ImageDescriptor] = Field(..., description="Image descriptors for this page")
    returned_count: StrictInt = Field(..., description="Number of images returned in this response")
    pagination: PaginationInfo = Field(..., description="Pagination metadata")
