"""Pydantic models for batch image deletion."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils.constants import MAX_BATCH_DELETE


class BatchDeleteRequest(BaseModel):
    """Validation model for ``POST /api/v1/images/batch-delete``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_ids: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_DELETE)

    @field_validator("image_ids")
    @classmethod
    def validate_image_ids(cls, value: list[str]) -> list[str]:
        if any(not image_id for image_id in value):
            raise ValueError("image_ids must not contain blank values")
        return value
