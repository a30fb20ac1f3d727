"""Two-step storage protocols used by the image service.

Each protocol is a small object with one method per step and an explicit
compensating action, so the failure path can be exercised on its own.

Upload:  store_object → persist_descriptor; compensation removes the object.
Delete:  remove_descriptor → remove_object; compensation records the object
         as an orphan for later cleanup.
"""

from aws_lambda_powertools import Logger

from core.models.errors import ImageServiceError
from core.models.image import ImageDescriptor
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.orphan_repository import OrphanRecord, OrphanRecorder
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import OBJECT_METADATA_IMAGE_ID
from core.utils.time import Clock, to_iso, utc_now

logger = Logger(UTC=True)


class UploadWorkflow:
    """Store bytes first, then persist the descriptor.

    Invariant: after ``compensate`` either the object is gone or it is
    recorded as an orphan; a descriptor never exists without its object.
    """

    operation = "upload"

    def __init__(
        self,
        *,
        storage: ImageStorageRepository,
        metadata: ImageMetadataRepository,
        orphans: OrphanRecorder,
        descriptor: ImageDescriptor,
        file_data: bytes,
        clock: Clock = utc_now,
    ) -> None:
        self._storage = storage
        self._metadata = metadata
        self._orphans = orphans
        self._clock = clock
        self.descriptor = descriptor
        self.file_data = file_data
        self.object_stored = False
        self.store_attempted = False

    def store_object(self) -> None:
        """Step 1: write the bytes. Raises the storage leaf's errors.

        A failed put may still have landed (e.g. a read timeout after the
        store accepted the body), so ``compensate`` treats any attempt as a
        possibly stored object.
        """
        self.store_attempted = True
        self._storage.put_object(
            key=self.descriptor.storage_key,
            file_data=self.file_data,
            content_type=self.descriptor.content_type,
            metadata={OBJECT_METADATA_IMAGE_ID: self.descriptor.image_id},
        )
        self.object_stored = True

    def persist_descriptor(self) -> None:
        """Step 2: write the descriptor. Raises the metadata leaf's errors."""
        self._metadata.create_metadata(descriptor=self.descriptor)

    def compensate(self, *, reason: str) -> bool:
        """Undo step 1 after it failed ambiguously or step 2 failed.

        Object deletes are idempotent, so removing a key that never landed
        is harmless.

        Returns:
            True if the object was removed (or never attempted), False if it
            could not be removed and was recorded as an orphan.
        """
        if not self.store_attempted:
            return True

        storage_key = self.descriptor.storage_key
        logger.warning(
            "Rolling back stored object",
            extra={
                "image_id": self.descriptor.image_id,
                "storage_key": storage_key,
                "reason": reason,
            },
        )

        try:
            self._storage.remove_object(key=storage_key)
        except ImageServiceError as exc:
            self._orphans.record(
                OrphanRecord(
                    storage_key=storage_key,
                    image_id=self.descriptor.image_id,
                    operation=self.operation,
                    reason=f"{reason}; rollback failed: {exc.message}",
                    recorded_at=to_iso(self._clock()),
                )
            )
            return False

        self.object_stored = False
        self.store_attempted = False
        return True


class DeleteWorkflow:
    """Remove the descriptor first, then the bytes.

    Once ``remove_descriptor`` succeeds the image is unreachable through the
    service; a failing ``remove_object`` only leaves a recorded orphan.
    """

    operation = "delete"

    def __init__(
        self,
        *,
        storage: ImageStorageRepository,
        metadata: ImageMetadataRepository,
        orphans: OrphanRecorder,
        image_id: str,
        clock: Clock = utc_now,
    ) -> None:
        self._storage = storage
        self._metadata = metadata
        self._orphans = orphans
        self._clock = clock
        self.image_id = image_id
        self.removed: ImageDescriptor | None = None

    def remove_descriptor(self) -> ImageDescriptor:
        """Step 1: atomically remove and return the descriptor."""
        self.removed = self._metadata.remove_metadata(image_id=self.image_id)
        return self.removed

    def remove_object(self) -> bool:
        """Step 2: remove the bytes; on failure defer to orphan cleanup.

        Returns:
            True if the object was removed, False if it was recorded as an orphan.
        """
        descriptor = self._require_removed()

        try:
            self._storage.remove_object(key=descriptor.storage_key)
        except ImageServiceError as exc:
            self.defer_object_removal(reason=exc.message)
            return False

        return True

    def defer_object_removal(self, *, reason: str) -> None:
        """Compensation: record the object for background cleanup."""
        descriptor = self._require_removed()
        self._orphans.record(
            OrphanRecord(
                storage_key=descriptor.storage_key,
                image_id=descriptor.image_id,
                operation=self.operation,
                reason=reason,
                recorded_at=to_iso(self._clock()),
            )
        )

    def _require_removed(self) -> ImageDescriptor:
        if self.removed is None:
            raise RuntimeError("remove_descriptor must succeed before the object is removed")
        return self.removed
