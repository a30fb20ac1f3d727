"""Abstract contract for image object storage."""

from abc import ABC, abstractmethod
from datetime import datetime


class ImageStorageRepository(ABC):
    """Contract for storing, signing and removing image objects.

    Implementations could be S3, R2, GCS, local disk, etc.
    The image service depends on this interface, not the implementation.
    """

    @abstractmethod
    def put_object(
        self,
        *,
        key: str,
        file_data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Store image bytes under `key`.

        Args:
            key: Storage key derived by the image service
            file_data: Binary image content
            content_type: MIME type (e.g., 'image/jpeg')
            metadata: Optional user metadata stored with the object

        Raises:
            S3Error: If the store cannot be reached or rejects the write
        """

    @abstractmethod
    def download_object(self, *, key: str) -> tuple[bytes, str, int]:
        """Download object bytes by key.

        Returns:
            Tuple of (content_bytes, content_type, content_length)

        Raises:
            NotFoundError: If the key does not exist
            S3Error: If download fails
        """

    @abstractmethod
    def remove_object(self, *, key: str) -> None:
        """Delete an object by key. Deleting an absent key is not an error.

        Raises:
            S3Error: If deletion fails
        """

    @abstractmethod
    def sign_url(
        self,
        *,
        key: str,
        ttl_seconds: int,
        is_public: bool = False,
    ) -> tuple[str, datetime]:
        """Issue a time-limited URL for reading the object.

        Args:
            key: Storage key
            ttl_seconds: URL lifetime in seconds
            is_public: Whether the image is public (may use a CDN base URL)

        Returns:
            Tuple of (url, expires_at)

        Raises:
            NotFoundError: If the key does not exist
            S3Error: If signing fails
        """

    @abstractmethod
    def ping(self) -> None:
        """Check that the store is reachable.

        Raises:
            S3Error: If the store cannot be reached
        """
