"""Abstract contract for image descriptor persistence."""

from abc import ABC, abstractmethod

from core.models.image import ImageDescriptor


class ImageMetadataRepository(ABC):
    """Contract for storing and retrieving image descriptors.

    Implementations could be DynamoDB, PostgreSQL, MongoDB, etc.
    Every operation is atomic with respect to a single descriptor.
    """

    @abstractmethod
    def create_metadata(self, *, descriptor: ImageDescriptor) -> None:
        """Persist a new descriptor.

        Raises:
            ConflictError: If the image_id or storage_key already exists
            DynamoDBError: If creation fails for other reasons
        """

    @abstractmethod
    def fetch_metadata(self, *, image_id: str) -> ImageDescriptor | None:
        """Fetch a descriptor by image id.

        Returns:
            The descriptor, or None if not found

        Raises:
            DynamoDBError: If fetch fails
        """

    @abstractmethod
    def fetch_metadata_by_key(self, *, storage_key: str) -> ImageDescriptor | None:
        """Fetch a descriptor by storage key.

        Returns:
            The descriptor, or None if not found

        Raises:
            DynamoDBError: If fetch fails
        """

    @abstractmethod
    def list_images(
        self,
        *,
        folder: str | None = None,
        is_public: bool | None = None,
    ) -> list[ImageDescriptor]:
        """List descriptors matching the filters, in no particular order.

        Raises:
            DynamoDBError: If the query fails
        """

    @abstractmethod
    def remove_metadata(self, *, image_id: str) -> ImageDescriptor:
        """Remove a descriptor and return the removed record.

        Raises:
            NotFoundError: If no descriptor exists for image_id
            DynamoDBError: If deletion fails
        """

    @abstractmethod
    def update_url_cache(
        self,
        *,
        image_id: str,
        url: str,
        expires_at: str,
    ) -> ImageDescriptor:
        """Replace the cached URL of an existing descriptor.

        Raises:
            NotFoundError: If the descriptor no longer exists
            DynamoDBError: If the update fails
        """

    @abstractmethod
    def update_visibility(self, *, image_id: str, is_public: bool) -> ImageDescriptor:
        """Change the public flag of an existing descriptor.

        Raises:
            NotFoundError: If the descriptor no longer exists
            DynamoDBError: If the update fails
        """

    @abstractmethod
    def ping(self) -> None:
        """Check that the metadata store is reachable.

        Raises:
            DynamoDBError: If the store cannot be reached
        """
