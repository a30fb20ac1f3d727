"""
Keyset (cursor) pagination over image descriptors.
"""

import base64
import binascii
import json
from collections.abc import Sequence

from core.models.errors import FilterError
from core.models.image import ImageDescriptor
from core.utils.constants import ERROR_CODE_INVALID_CURSOR, MIN_LIMIT


class KeysetPagination:
    """
    Cursor-based pagination helper.

    Items are ordered by ``created_at`` descending with ``image_id`` ascending
    as tie-breaker, which is a total order. A cursor encodes the sort key of
    the last item of a page; the next page starts strictly after it, so pages
    stay stable when items are inserted or removed elsewhere.

    Typical usage:
    1. Clamp the requested limit
    2. Sort the candidate items
    3. Slice the page after the decoded cursor and encode the next cursor
    """

    @staticmethod
    def clamp_limit(limit: int | None, *, default: int, maximum: int) -> int:
        """Clamp a requested page size into ``[MIN_LIMIT, maximum]``."""
        if limit is None:
            limit = default
        return max(MIN_LIMIT, min(limit, maximum))

    @staticmethod
    def sort(items: Sequence[ImageDescriptor]) -> list[ImageDescriptor]:
        """Sort newest first, ties broken by image id ascending."""
        by_id = sorted(items, key=lambda item: item.image_id)
        return sorted(by_id, key=lambda item: item.created_at, reverse=True)

    @staticmethod
    def encode_cursor(item: ImageDescriptor) -> str:
        payload = json.dumps(
            {"created_at": item.created_at, "image_id": item.image_id},
            separators=(",", ":"),
            sort_keys=True,
        )
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")

    @staticmethod
    def decode_cursor(cursor: str) -> tuple[str, str]:
        """Decode a cursor into ``(created_at, image_id)``.

        Raises:
            FilterError: If the cursor is malformed
        """
        padded = cursor + "=" * (-len(cursor) % 4)

        try:
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            created_at = payload["created_at"]
            image_id = payload["image_id"]
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
            raise FilterError(
                message="Invalid pagination cursor",
                error_code=ERROR_CODE_INVALID_CURSOR,
                details={"cursor": cursor},
            ) from exc

        if not isinstance(created_at, str) or not isinstance(image_id, str):
            raise FilterError(
                message="Invalid pagination cursor",
                error_code=ERROR_CODE_INVALID_CURSOR,
                details={"cursor": cursor},
            )

        return created_at, image_id

    @classmethod
    def paginate(
        cls,
        items: Sequence[ImageDescriptor],
        *,
        limit: int,
        cursor: str | None = None,
    ) -> tuple[list[ImageDescriptor], str | None]:
        """
        Return one page of sorted items and the cursor of the next page.

        Args:
            items: Candidate items, any order
            limit: Page size (already clamped)
            cursor: Cursor returned with the previous page, if any

        Returns:
            A tuple of (page_items, next_cursor); next_cursor is None when
            the result set is exhausted.

        Example:
            created_at: t3, t2, t2, t1 (ids b, a, c, d), limit 2
            → page [b, a], cursor(a); next page [c, d], None
        """
        ordered = cls.sort(items)

        if cursor:
            created_at, image_id = cls.decode_cursor(cursor)
            ordered = [
                item
                for item in ordered
                if item.created_at < created_at
                or (item.created_at == created_at and item.image_id > image_id)
            ]

        page = ordered[:limit]
        has_more = len(ordered) > limit
        next_cursor = cls.encode_cursor(page[-1]) if has_more and page else None

        return page, next_cursor
