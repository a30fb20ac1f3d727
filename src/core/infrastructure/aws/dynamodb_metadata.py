"""DynamoDB-backed implementation of ImageMetadataRepository."""

from typing import Any

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, ConditionBase, Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from core.config import ServiceSettings
from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import ConflictError, DynamoDBError, NotFoundError
from core.models.image import ImageDescriptor
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.constants import (
    ERROR_CODE_IMAGE_NOT_FOUND,
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_INVALID_FORMAT,
    ERROR_CODE_METADATA_LIST_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    STORAGE_KEY_INDEX_NAME,
)
from core.utils.time import Clock, to_iso, utc_now

Item = dict[str, Any]

logger = Logger(UTC=True)

_CONDITION_FAILED = "ConditionalCheckFailedException"
_RECORD_EXISTS = "attribute_exists(image_id)"


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == _CONDITION_FAILED


class DynamoDBMetadata(ImageMetadataRepository):
    """DynamoDB-backed descriptor storage with error handling.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        adapter: DynamoDBAdapterProtocol | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter(settings)
        self._clock = clock

    def create_metadata(self, *, descriptor: ImageDescriptor) -> None:
        """Create a descriptor record.

        The storage-key lookup and the conditional put are two requests; the
        key is derived from the (unique) image id, so the conditional put on
        ``image_id`` is what actually guards concurrent writers.

        Raises:
            ConflictError: If the image id or storage key is already taken
            DynamoDBError: If creation fails
        """
        image_id = descriptor.image_id

        logger.debug(
            "Creating metadata",
            extra={"image_id": image_id, "storage_key": descriptor.storage_key},
        )

        existing = self.fetch_metadata_by_key(storage_key=descriptor.storage_key)
        if existing is not None:
            raise ConflictError(
                message="Storage key is already in use",
                details={"storage_key": descriptor.storage_key, "image_id": existing.image_id},
            )

        try:
            self._db.put_item(
                item=descriptor.to_item(),
                condition_expression="attribute_not_exists(image_id)",  # Partition key
            )
            logger.info("Metadata created", extra={"image_id": image_id})

        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ConflictError(
                    message="Image id is already in use",
                    details={"image_id": image_id},
                ) from exc

            logger.error("DynamoDB put_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except BotoCoreError as exc:
            logger.error("DynamoDB put_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": image_id},
            ) from exc

    def fetch_metadata(self, *, image_id: str) -> ImageDescriptor | None:
        """Fetch a descriptor by image id.

        Raises:
            DynamoDBError: If fetch fails
        """
        logger.debug("Fetching metadata", extra={"image_id": image_id})

        try:
            response = self._db.get_item(key={"image_id": image_id})
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB get_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

        item = response.get("Item")
        if item is None:
            return None

        return self._to_descriptor(item)

    def fetch_metadata_by_key(self, *, storage_key: str) -> ImageDescriptor | None:
        """Fetch a descriptor through the storage-key index.

        Raises:
            DynamoDBError: If the query fails
        """
        logger.debug("Fetching metadata by key", extra={"storage_key": storage_key})

        try:
            response = self._db.query(
                IndexName=STORAGE_KEY_INDEX_NAME,
                KeyConditionExpression=Key("storage_key").eq(storage_key),
                Limit=1,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB key query failed", extra={"storage_key": storage_key})
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"storage_key": storage_key},
            ) from exc

        items = response.get("Items", [])
        if not items:
            return None

        return self._to_descriptor(items[0])

    def list_images(
        self,
        *,
        folder: str | None = None,
        is_public: bool | None = None,
    ) -> list[ImageDescriptor]:
        """List descriptors matching the filters.

        NOTE:
        - Filters are applied server-side with a scan filter expression.
        - Ordering and cursor handling happen in the service layer.
        - Malformed items are skipped with a warning.
        """
        logger.debug(
            "Listing images",
            extra={"folder": folder, "is_public": is_public},
        )

        filter_expression: ConditionBase | None = None
        if folder is not None:
            filter_expression = Attr("folder").eq(folder)
        if is_public is not None:
            visibility = Attr("is_public").eq(is_public)
            filter_expression = visibility if filter_expression is None else filter_expression & visibility

        scan_kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            scan_kwargs["FilterExpression"] = filter_expression

        descriptors: list[ImageDescriptor] = []

        try:
            while True:
                response = self._db.scan(**scan_kwargs)

                for item in response.get("Items", []):
                    try:
                        descriptors.append(ImageDescriptor.from_item(item))
                    except PydanticValidationError:
                        logger.warning(
                            "Skipping malformed item",
                            extra={"image_id": item.get("image_id")},
                        )

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB scan failed", extra={"folder": folder})
            raise DynamoDBError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"folder": folder},
            ) from exc

        logger.info("Images listed", extra={"count": len(descriptors)})
        return descriptors

    def remove_metadata(self, *, image_id: str) -> ImageDescriptor:
        """Remove a descriptor, returning the removed record.

        Raises:
            NotFoundError: If the descriptor does not exist
            DynamoDBError: If deletion fails
        """
        logger.debug("Removing metadata", extra={"image_id": image_id})

        try:
            response = self._db.delete_item(
                key={"image_id": image_id},
                condition_expression=_RECORD_EXISTS,
                return_values="ALL_OLD",
            )

        except ClientError as exc:
            if _is_condition_failure(exc):
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                ) from exc

            logger.error("DynamoDB delete_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to delete image metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except BotoCoreError as exc:
            logger.error("DynamoDB delete_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to delete image metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_id": image_id},
            ) from exc

        logger.info("Metadata removed", extra={"image_id": image_id})
        return self._removed_descriptor(image_id, response.get("Attributes") or {})

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
        return self._update(
            image_id=image_id,
            update_expression=(
                "SET public_url = :url, public_url_expires_at = :expires_at, updated_at = :now"
            ),
            values={":url": url, ":expires_at": expires_at},
        )

    def update_visibility(self, *, image_id: str, is_public: bool) -> ImageDescriptor:
        """Change the public flag of an existing descriptor.

        The URL cache is dropped because a public image may be served from a
        different base URL than a private one.

        Raises:
            NotFoundError: If the descriptor no longer exists
            DynamoDBError: If the update fails
        """
        return self._update(
            image_id=image_id,
            update_expression=(
                "SET is_public = :is_public, updated_at = :now "
                "REMOVE public_url, public_url_expires_at"
            ),
            values={":is_public": is_public},
        )

    def ping(self) -> None:
        """Check that the table is reachable."""
        try:
            self._db.describe()
        except (ClientError, BotoCoreError) as exc:
            raise DynamoDBError(
                message="Image metadata table is unreachable",
            ) from exc

    def _update(
        self,
        *,
        image_id: str,
        update_expression: str,
        values: dict[str, Any],
    ) -> ImageDescriptor:
        logger.debug("Updating metadata", extra={"image_id": image_id})

        try:
            response = self._db.update_item(
                Key={"image_id": image_id},
                UpdateExpression=update_expression,
                ConditionExpression=_RECORD_EXISTS,
                ExpressionAttributeValues={**values, ":now": to_iso(self._clock())},
                ReturnValues="ALL_NEW",
            )

        except ClientError as exc:
            if _is_condition_failure(exc):
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                ) from exc

            logger.error("DynamoDB update_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except BotoCoreError as exc:
            logger.error("DynamoDB update_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        return self._to_descriptor(response.get("Attributes") or {})

    @staticmethod
    def _removed_descriptor(image_id: str, item: Item) -> ImageDescriptor:
        """Describe a record that is already deleted.

        The record is gone either way, so a malformed item still yields its
        ``storage_key`` for the object removal step instead of an error.
        """
        try:
            return ImageDescriptor.from_item(item)
        except PydanticValidationError:
            storage_key = item.get("storage_key")
            if not isinstance(storage_key, str) or not storage_key:
                return DynamoDBMetadata._to_descriptor(item)

            logger.warning(
                "Removed malformed metadata record",
                extra={"image_id": image_id, "storage_key": storage_key},
            )
            fields = {key: value for key, value in item.items() if key in ImageDescriptor.model_fields}
            fields.update(image_id=image_id, storage_key=storage_key)
            return ImageDescriptor.model_construct(**fields)

    @staticmethod
    def _to_descriptor(item: Item) -> ImageDescriptor:
        try:
            return ImageDescriptor.from_item(item)
        except PydanticValidationError as exc:
            logger.error(
                "Invalid image metadata format",
                extra={"image_id": item.get("image_id")},
            )
            raise DynamoDBError(
                message="Invalid image metadata format",
                error_code=ERROR_CODE_METADATA_INVALID_FORMAT,
                details={"image_id": item.get("image_id")},
            ) from exc
