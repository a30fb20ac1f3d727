"""
Pydantic models for list images request and response.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils.validators import parse_bool


class ListImagesRequest(BaseModel):
    """
    Validation model for list images API.

    Supports two filters (folder, is_public) and cursor pagination. An out
    of range ``limit`` is clamped by the image service, not rejected here.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    folder: str | None = Field(None, description="Exact folder to list")
    is_public: bool | None = Field(None, description="Filter by visibility")

    # Pagination
    cursor: str | None = Field(None, description="Cursor returned with the previous page")
    limit: int | None = Field(None, description="Results per page")

    @field_validator("is_public", mode="before")
    @classmethod
    def validate_is_public(cls, value: Any) -> bool | None:
        return parse_bool(value)

    @field_validator("folder", "cursor", "limit", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
