"""Pydantic models for image upload request/response."""

import base64
import binascii
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.image import ImageDescriptor
from core.utils.constants import FOLDER_MAX_LENGTH, ORIGINAL_NAME_MAX_LENGTH
from core.utils.validators import parse_bool

logger = Logger(UTC=True)


class ImageUploadRequest(BaseModel):
    """Validation model for image upload request.

    Built either from multipart form parts or from a JSON body carrying a
    base64 encoded ``file``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    file_data: bytes = Field(..., description="Raw image bytes")
    content_type: str | None = Field(None, description="Declared MIME type of the file")
    original_name: str | None = Field(
        None, max_length=ORIGINAL_NAME_MAX_LENGTH, description="Client file name"
    )
    is_public: bool = Field(False, description="Whether the image is retrievable by key")
    folder: str | None = Field(None, max_length=FOLDER_MAX_LENGTH, description="Grouping label")

    @field_validator("is_public", mode="before")
    @classmethod
    def validate_is_public(cls, value: Any) -> bool:
        parsed = parse_bool(value)
        return bool(parsed)

    @field_validator("folder", "original_name", "content_type", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class JsonUploadBody(BaseModel):
    """JSON upload body: ``{"file": "<base64>", "content_type": ..., ...}``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    file: str | None = Field(None, description="Base64 encoded image file")
    content_type: str | None = None
    file_name: str | None = None
    is_public: Any = None
    folder: str | None = None

    @field_validator("file")
    @classmethod
    def validate_file(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None

        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"File validation error: Invalid base64 - {e}")
            raise ValueError("Invalid base64 encoded file") from e

        return value

    def decoded_file(self) -> bytes | None:
        return base64.b64decode(self.file) if self.file else None


class ImageUploadResponse(ImageDescriptor):
    """Response model for successful image upload."""

    message: str = Field(..., description="Success message")
