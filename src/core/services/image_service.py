"""Business logic for image ingestion and retrieval.

This module is the only place where the consistency rules between the object
store and the metadata repository are enforced:

- upload stores bytes before persisting the descriptor, and compensates
- delete removes the descriptor before the bytes, and defers failed removals
- cached URLs are never returned past their expiry

Storage leaf errors (``S3Error``, ``DynamoDBError``) are translated into the
service taxonomy here and never reach callers.
"""

import re
import uuid
from collections.abc import Iterable

from aws_lambda_powertools import Logger

from core.config import ServiceSettings
from core.filters.keyset_pagination import KeysetPagination
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.dynamodb_orphan_recorder import DynamoDBOrphanRecorder
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.infrastructure.logging_orphan_recorder import LoggingOrphanRecorder
from core.models.errors import (
    DeadlineExceededError,
    DynamoDBError,
    FileSizeError,
    ForbiddenError,
    ImageServiceError,
    MIMETypeError,
    NotFoundError,
    PartialFailureError,
    S3Error,
    StoreUnavailableError,
    ValidationError,
)
from core.models.image import ImageDescriptor
from core.models.results import BatchDeleteFailure, BatchDeleteResult, DeleteResult, ImagePage
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.orphan_repository import OrphanRecorder
from core.repositories.storage_repository import ImageStorageRepository
from core.services.workflows import DeleteWorkflow, UploadWorkflow
from core.utils.constants import (
    ALLOWED_MIME_TYPES,
    DEFAULT_STORAGE_PREFIX,
    ERROR_CODE_EMPTY_FILE,
    ERROR_CODE_IMAGE_NOT_FOUND,
    ERROR_CODE_INVALID_FOLDER,
    ERROR_CODE_PRIVATE_IMAGE,
    ERROR_CODE_VISIBILITY_CHANGE_DISABLED,
    FOLDER_MAX_LENGTH,
    FOLDER_PATTERN,
    GENERIC_BINARY_MIME_TYPE,
    IMAGE_ID_PREFIX,
    canonical_extension,
    format_file_size,
)
from core.utils.deadline import Deadline
from core.utils.mime import detect_mime_type, normalize_mime_type
from core.utils.time import Clock, to_iso, utc_now

logger = Logger(UTC=True)

_FOLDER_RE = re.compile(FOLDER_PATTERN)


class ImageService:
    """Application service for the image lifecycle.

    This service orchestrates:
    - Validating uploads and deriving storage keys
    - The upload and delete protocols (see ``core.services.workflows``)
    - Issuing and caching time-limited image URLs
    - Listing with deterministic ordering and cursor pagination
    - Cleaning up orphaned objects
    """

    def __init__(
        self,
        *,
        storage: ImageStorageRepository,
        metadata: ImageMetadataRepository,
        settings: ServiceSettings,
        orphans: OrphanRecorder | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.storage = storage
        self.metadata = metadata
        self.settings = settings
        self.orphans = orphans or LoggingOrphanRecorder()
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "ImageService":
        """Wire the service to the S3 and DynamoDB implementations.

        Orphans go to the orphan table when one is configured, otherwise
        they are only logged.
        """
        orphans: OrphanRecorder | None = None
        if settings.orphan_table_name:
            orphans = DynamoDBOrphanRecorder(settings)
        else:
            logger.warning("No orphan table configured; orphans are only logged")

        return cls(
            storage=S3ImageStorage(settings),
            metadata=DynamoDBMetadata(settings),
            settings=settings,
            orphans=orphans,
        )

    # ------------------------------------------------------------------
    # Identifiers and validation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_image_id() -> str:
        """Generate a unique image identifier."""
        return f"{IMAGE_ID_PREFIX}{uuid.uuid4().hex}"

    @staticmethod
    def derive_storage_key(image_id: str, content_type: str, folder: str | None = None) -> str:
        """Derive the object key for an image.

        Example:
            derive_storage_key("img_ab12", "image/jpeg", "test") -> "test/img_ab12.jpg"
        """
        prefix = folder or DEFAULT_STORAGE_PREFIX
        return f"{prefix}/{image_id}.{canonical_extension(content_type)}"

    @staticmethod
    def normalize_folder(folder: str | None) -> str | None:
        """Strip surrounding slashes and validate a folder label.

        Raises:
            ValidationError: If the folder contains unsupported characters
        """
        if folder is None:
            return None

        normalized = folder.strip().strip("/")
        if not normalized:
            return None

        if len(normalized) > FOLDER_MAX_LENGTH or not _FOLDER_RE.match(normalized):
            raise ValidationError(
                message=(
                    "Invalid folder. Use letters, digits, '-', '_' and '/' "
                    f"(max {FOLDER_MAX_LENGTH} characters)"
                ),
                error_code=ERROR_CODE_INVALID_FOLDER,
                details={"folder": folder},
            )

        return normalized

    def resolve_content_type(self, file_data: bytes, declared: str | None) -> str:
        """Return the supported content type of an upload.

        A declared type wins; a missing or generic type is sniffed from the
        leading bytes.

        Raises:
            MIMETypeError: If the type is unknown or not supported
        """
        content_type = normalize_mime_type(declared)

        if content_type is None or content_type == GENERIC_BINARY_MIME_TYPE:
            try:
                content_type = detect_mime_type(file_data)
            except ValueError as exc:
                raise MIMETypeError(
                    message="Unsupported or unknown image type",
                    details={"content_type": declared},
                ) from exc

        if content_type not in ALLOWED_MIME_TYPES:
            logger.warning("Unsupported MIME type", extra={"content_type": content_type})
            raise MIMETypeError(
                message="Unsupported image type",
                details={
                    "content_type": content_type,
                    "allowed": sorted(ALLOWED_MIME_TYPES),
                },
            )

        return content_type

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def upload(
        self,
        *,
        file_data: bytes,
        content_type: str | None,
        is_public: bool = False,
        folder: str | None = None,
        original_name: str | None = None,
        deadline: Deadline | None = None,
    ) -> ImageDescriptor:
        """Upload an image and persist its descriptor.

        The upload flow is:
        1. Validate size, content type and folder
        2. Store the bytes under a key derived from a fresh image id
        3. Persist the descriptor
        4. If step 2 fails ambiguously or step 3 fails, remove the stored
           bytes (compensation)
        5. Issue an access URL, best effort

        Raises:
            ValidationError: If the input is empty, too large or unsupported
            StoreUnavailableError: If a backing store cannot be reached
            ConflictError: If the generated id or key is already taken
            PartialFailureError: If rollback failed and an orphan was recorded
            DeadlineExceededError: If the request ran out of time
        """
        if not file_data:
            raise ValidationError(
                message="File must not be empty",
                error_code=ERROR_CODE_EMPTY_FILE,
            )

        if len(file_data) > self.settings.max_file_size:
            raise FileSizeError(
                message=f"File size exceeds {format_file_size(self.settings.max_file_size)} limit",
                details={"size_bytes": len(file_data), "max_bytes": self.settings.max_file_size},
            )

        resolved_type = self.resolve_content_type(file_data, content_type)
        normalized_folder = self.normalize_folder(folder)

        image_id = self.generate_image_id()
        descriptor = ImageDescriptor(
            image_id=image_id,
            storage_key=self.derive_storage_key(image_id, resolved_type, normalized_folder),
            is_public=is_public,
            folder=normalized_folder,
            original_name=original_name,
            content_type=resolved_type,
            size_bytes=len(file_data),
            created_at=to_iso(self._clock()),
        )

        logger.debug(
            "Starting image upload",
            extra={"image_id": image_id, "storage_key": descriptor.storage_key},
        )

        workflow = UploadWorkflow(
            storage=self.storage,
            metadata=self.metadata,
            orphans=self.orphans,
            descriptor=descriptor,
            file_data=file_data,
            clock=self._clock,
        )

        # Step 1: store bytes
        self._check_deadline(deadline, "upload.store_object")
        try:
            workflow.store_object()
        except S3Error as exc:
            logger.exception("Image upload to storage failed", extra={"image_id": image_id})

            if not workflow.compensate(reason=exc.message):
                raise self._orphaned_upload(descriptor) from exc
            raise self._store_unavailable(exc, operation="upload", image_id=image_id) from exc

        # Step 2: persist descriptor, compensating on failure
        try:
            self._check_deadline(deadline, "upload.persist_descriptor")
            workflow.persist_descriptor()
        except ImageServiceError as exc:
            logger.exception("Failed to persist image descriptor", extra={"image_id": image_id})

            if not workflow.compensate(reason=exc.message):
                raise self._orphaned_upload(descriptor) from exc

            if isinstance(exc, DynamoDBError):
                raise self._store_unavailable(exc, operation="upload", image_id=image_id) from exc
            raise

        logger.info(
            "Image uploaded successfully",
            extra={"image_id": image_id, "storage_key": descriptor.storage_key},
        )

        return self._try_issue_url(descriptor, deadline)

    def get(self, image_id: str, *, deadline: Deadline | None = None) -> ImageDescriptor:
        """Return a descriptor with a valid URL, refreshing a stale cache.

        Raises:
            NotFoundError: If no descriptor exists for image_id
            StoreUnavailableError: If a backing store cannot be reached
            PartialFailureError: If the descriptor's object is missing
        """
        descriptor = self._get_or_raise(image_id)
        return self._ensure_fresh_url(descriptor, deadline)

    def get_by_public_key(
        self,
        storage_key: str,
        *,
        deadline: Deadline | None = None,
    ) -> ImageDescriptor:
        """Return a public image by its storage key.

        Raises:
            NotFoundError: If no descriptor exists for the key
            ForbiddenError: If the image is private
        """
        try:
            descriptor = self.metadata.fetch_metadata_by_key(storage_key=storage_key)
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="get_by_public_key") from exc

        if descriptor is None:
            raise NotFoundError(
                message="Image not found",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details={"storage_key": storage_key},
            )

        if not descriptor.is_public:
            logger.info("Private image requested by key", extra={"storage_key": storage_key})
            raise ForbiddenError(
                message="This image is not public",
                error_code=ERROR_CODE_PRIVATE_IMAGE,
                details={"storage_key": storage_key},
            )

        return self._ensure_fresh_url(descriptor, deadline)

    def list_images(
        self,
        *,
        folder: str | None = None,
        is_public: bool | None = None,
        cursor: str | None = None,
        limit: int | None = None,
        deadline: Deadline | None = None,
    ) -> ImagePage:
        """List images newest first with cursor pagination.

        ``limit`` is clamped to ``[1, settings.max_list_limit]``. Stale URLs on
        the returned page are refreshed best effort; an item whose refresh
        fails is returned without a URL.

        Raises:
            FilterError: If the cursor is malformed
            ValidationError: If the folder is invalid
            StoreUnavailableError: If the metadata store cannot be reached
        """
        normalized_folder = self.normalize_folder(folder)
        effective_limit = KeysetPagination.clamp_limit(
            limit,
            default=self.settings.default_list_limit,
            maximum=self.settings.max_list_limit,
        )
        if cursor:
            KeysetPagination.decode_cursor(cursor)

        self._check_deadline(deadline, "list_images")
        try:
            candidates = self.metadata.list_images(folder=normalized_folder, is_public=is_public)
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="list_images") from exc

        page, next_cursor = KeysetPagination.paginate(
            candidates,
            limit=effective_limit,
            cursor=cursor,
        )

        now = self._clock()
        items = [
            item
            if item.has_valid_url(now, margin_seconds=self.settings.url_refresh_margin_seconds)
            else self._try_issue_url(item, deadline)
            for item in page
        ]

        logger.info(
            "Images listed successfully",
            extra={"count": len(items), "has_more": next_cursor is not None},
        )

        return ImagePage(items=items, limit=effective_limit, next_cursor=next_cursor)

    def refresh_url(self, image_id: str, *, deadline: Deadline | None = None) -> ImageDescriptor:
        """Re-issue the URL of an image regardless of the cached one.

        Raises:
            NotFoundError: If no descriptor exists for image_id
        """
        descriptor = self._get_or_raise(image_id)
        return self._issue_url(descriptor, deadline)

    def set_visibility(
        self,
        image_id: str,
        *,
        is_public: bool,
        deadline: Deadline | None = None,
    ) -> ImageDescriptor:
        """Change whether an image can be fetched by its public key.

        Raises:
            ForbiddenError: If visibility changes are disabled by configuration
            NotFoundError: If no descriptor exists for image_id
        """
        if not self.settings.allow_visibility_change:
            raise ForbiddenError(
                message="Changing image visibility is disabled",
                error_code=ERROR_CODE_VISIBILITY_CHANGE_DISABLED,
                details={"image_id": image_id},
            )

        self._check_deadline(deadline, "set_visibility")
        try:
            descriptor = self.metadata.update_visibility(image_id=image_id, is_public=is_public)
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="set_visibility", image_id=image_id) from exc

        logger.info(
            "Image visibility changed",
            extra={"image_id": image_id, "is_public": is_public},
        )
        return self._try_issue_url(descriptor, deadline)

    def delete(self, image_id: str, *, deadline: Deadline | None = None) -> DeleteResult:
        """Delete an image: descriptor first, then bytes.

        A failed object removal does not fail the deletion; the key is
        recorded for background cleanup and ``object_removed`` is False.

        Raises:
            NotFoundError: If no descriptor exists for image_id
            StoreUnavailableError: If the metadata store cannot be reached
        """
        logger.debug("Starting image deletion", extra={"image_id": image_id})

        workflow = DeleteWorkflow(
            storage=self.storage,
            metadata=self.metadata,
            orphans=self.orphans,
            image_id=image_id,
            clock=self._clock,
        )

        # Step 1: remove the descriptor, making the image unreachable
        self._check_deadline(deadline, "delete.remove_descriptor")
        try:
            descriptor = workflow.remove_descriptor()
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="delete", image_id=image_id) from exc

        # Step 2: remove the bytes, or defer them to orphan cleanup
        if deadline is not None and deadline.expired:
            workflow.defer_object_removal(reason="deadline exceeded before object removal")
            object_removed = False
        else:
            object_removed = workflow.remove_object()

        if not object_removed:
            logger.warning(
                "Image deleted but object removal was deferred",
                extra={"image_id": image_id, "storage_key": descriptor.storage_key},
            )
        else:
            logger.info("Image deleted successfully", extra={"image_id": image_id})

        return DeleteResult(
            image_id=image_id,
            storage_key=descriptor.storage_key,
            deleted_at=to_iso(self._clock()),
            object_removed=object_removed,
        )

    def delete_many(
        self,
        image_ids: Iterable[str],
        *,
        deadline: Deadline | None = None,
    ) -> BatchDeleteResult:
        """Delete several images; a failing id does not stop the batch."""
        result = BatchDeleteResult()

        for image_id in dict.fromkeys(image_ids):
            try:
                result.deleted.append(self.delete(image_id, deadline=deadline))
            except ImageServiceError as exc:
                logger.warning(
                    "Batch delete item failed",
                    extra={"image_id": image_id, "error_code": exc.error_code},
                )
                result.failed.append(
                    BatchDeleteFailure(
                        image_id=image_id,
                        error_code=exc.error_code,
                        message=exc.message,
                    )
                )

        logger.info(
            "Batch delete completed",
            extra={"deleted": result.deleted_count, "failed": len(result.failed)},
        )
        return result

    def purge_orphans(self, *, deadline: Deadline | None = None) -> int:
        """Retry removal of recorded orphan objects, oldest first.

        Stops early, without error, once the deadline has passed; whatever is
        left stays recorded for the next run.

        Returns:
            Number of orphans removed; the rest stay recorded

        Raises:
            StoreUnavailableError: If the recorded orphans cannot be read
        """
        try:
            pending = self.orphans.pending()
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="purge_orphans") from exc

        removed = 0

        for index, orphan in enumerate(pending):
            if deadline is not None and deadline.expired:
                logger.info(
                    "Orphan cleanup stopped at deadline",
                    extra={"removed": removed, "remaining": len(pending) - index},
                )
                break

            try:
                self.storage.remove_object(key=orphan.storage_key)
                self.orphans.resolve(storage_key=orphan.storage_key)
            except (S3Error, DynamoDBError) as exc:
                logger.warning(
                    "Orphan cleanup failed, will retry later",
                    extra={
                        "storage_key": orphan.storage_key,
                        "image_id": orphan.image_id,
                        "error": exc.message,
                    },
                )
                continue

            removed += 1

        return removed

    def check_health(self) -> dict[str, str]:
        """Report reachability of each backing store."""
        services: dict[str, str] = {}

        for name, ping in (("object_store", self.storage.ping), ("metadata", self.metadata.ping)):
            try:
                ping()
                services[name] = "healthy"
            except (S3Error, DynamoDBError) as exc:
                logger.warning("Health check failed", extra={"service": name, "error": exc.message})
                services[name] = "unhealthy"

        return services

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_raise(self, image_id: str) -> ImageDescriptor:
        try:
            descriptor = self.metadata.fetch_metadata(image_id=image_id)
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="get", image_id=image_id) from exc

        if descriptor is None:
            logger.warning("Image metadata not found", extra={"image_id": image_id})
            raise NotFoundError(
                message="Image not found",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details={"image_id": image_id},
            )

        return descriptor

    def _ensure_fresh_url(
        self,
        descriptor: ImageDescriptor,
        deadline: Deadline | None,
    ) -> ImageDescriptor:
        margin = self.settings.url_refresh_margin_seconds
        if descriptor.has_valid_url(self._clock(), margin_seconds=margin):
            return descriptor
        return self._issue_url(descriptor, deadline)

    def _issue_url(
        self,
        descriptor: ImageDescriptor,
        deadline: Deadline | None,
    ) -> ImageDescriptor:
        """Sign a new URL and store it in the descriptor's cache."""
        image_id = descriptor.image_id
        self._check_deadline(deadline, "sign_url")

        try:
            url, expires_at = self.storage.sign_url(
                key=descriptor.storage_key,
                ttl_seconds=self.settings.url_ttl_seconds,
                is_public=descriptor.is_public,
            )
        except NotFoundError as exc:
            logger.error(
                "Descriptor references a missing object",
                extra={
                    "image_id": image_id,
                    "storage_key": descriptor.storage_key,
                    "operation": "sign_url",
                    "timestamp": to_iso(self._clock()),
                },
            )
            raise PartialFailureError(
                message="Image content is missing",
                details={"image_id": image_id, "storage_key": descriptor.storage_key},
            ) from exc
        except S3Error as exc:
            raise self._store_unavailable(exc, operation="sign_url", image_id=image_id) from exc

        self._check_deadline(deadline, "update_url_cache")
        try:
            refreshed = self.metadata.update_url_cache(
                image_id=image_id,
                url=url,
                expires_at=to_iso(expires_at),
            )
        except DynamoDBError as exc:
            raise self._store_unavailable(exc, operation="update_url_cache", image_id=image_id) from exc

        logger.debug("Image URL issued", extra={"image_id": image_id})
        return refreshed

    def _try_issue_url(
        self,
        descriptor: ImageDescriptor,
        deadline: Deadline | None,
    ) -> ImageDescriptor:
        """Issue a URL, returning the descriptor without one on failure."""
        try:
            return self._issue_url(descriptor, deadline)
        except (StoreUnavailableError, PartialFailureError, DeadlineExceededError, NotFoundError) as exc:
            logger.warning(
                "Unable to issue image URL",
                extra={"image_id": descriptor.image_id, "error_code": exc.error_code},
            )
            return descriptor.without_url()

    @staticmethod
    def _check_deadline(deadline: Deadline | None, operation: str) -> None:
        if deadline is not None:
            deadline.check(operation)

    @staticmethod
    def _store_unavailable(
        exc: ImageServiceError,
        *,
        operation: str,
        image_id: str | None = None,
    ) -> StoreUnavailableError:
        details: dict[str, str] = {"operation": operation, "cause": exc.error_code}
        if image_id:
            details["image_id"] = image_id

        return StoreUnavailableError(
            message="Image storage is temporarily unavailable. Please try again.",
            details=details,
        )

    @staticmethod
    def _orphaned_upload(descriptor: ImageDescriptor) -> PartialFailureError:
        return PartialFailureError(
            message="Image upload left an orphaned object",
            details={
                "image_id": descriptor.image_id,
                "storage_key": descriptor.storage_key,
                "operation": "upload",
            },
        )
