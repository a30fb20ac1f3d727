"""Pydantic models for the visibility change request."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from core.utils.validators import parse_bool


class UpdateVisibilityRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(..., min_length=1)
    is_public: StrictBool = Field(..., description="New visibility of the image")

    @field_validator("is_public", mode="before")
    @classmethod
    def validate_is_public(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_bool(value)
        return value
