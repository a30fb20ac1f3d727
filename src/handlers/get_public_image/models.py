from pydantic import BaseModel, ConfigDict, Field, StrictStr


class GetPublicImageRequest(BaseModel):
    """Validation model for fetching a public image by storage key."""

    model_config = ConfigDict(str_strip_whitespace=True)

    key: StrictStr = Field(..., min_length=1, description="Storage key of the image")
