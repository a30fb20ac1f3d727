"""Result models returned by image service operations."""

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr

from core.models.image import ImageDescriptor


class ImagePage(BaseModel):
    """One page of descriptors in list order."""

    items: list[ImageDescriptor] = Field(default_factory=list)
    limit: StrictInt = Field(..., description="Effective page size after clamping")
    next_cursor: StrictStr | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class DeleteResult(BaseModel):
    """Outcome of a logical image deletion."""

    image_id: StrictStr
    storage_key: StrictStr
    deleted_at: StrictStr
    object_removed: StrictBool = Field(
        ..., description="False when blob removal was deferred to orphan cleanup"
    )


class BatchDeleteFailure(BaseModel):
    image_id: StrictStr
    error_code: StrictStr
    message: StrictStr


class BatchDeleteResult(BaseModel):
    """Outcome of deleting several images in one call."""

    deleted: list[DeleteResult] = Field(default_factory=list)
    failed: list[BatchDeleteFailure] = Field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)
