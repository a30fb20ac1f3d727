from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class GetImageRequest(BaseModel):
    """Validation model for get image request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(
        ...,
        min_length=1,
        description="Image ID to retrieve",
    )

    @field_validator("image_id")
    @classmethod
    def validate_image_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("image_id must not be blank")
        return value
