"""Pagination model."""

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr


class PaginationInfo(BaseModel):
    """Pagination metadata for list responses."""

    limit: StrictInt = Field(..., description="Effective page size after clamping")
    has_more: StrictBool = Field(..., description="Whether more items are available after this page")
    next_cursor: StrictStr | None = Field(
        None,
        description="Opaque cursor to pass for the next page, if available",
    )
