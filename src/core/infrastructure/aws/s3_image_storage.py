"""S3-backed implementation of ImageStorageRepository."""

from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from core.config import ServiceSettings
from core.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from core.models.errors import NotFoundError, S3Error
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
    ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED,
    ERROR_CODE_IMAGE_UPLOAD_FAILED,
    ERROR_CODE_OBJECT_NOT_FOUND,
    LOCALHOST_URL,
    LOCALSTACK_URL,
)
from core.utils.time import Clock, expires_after, utc_now

logger = Logger(UTC=True)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3ImageStorage(ImageStorageRepository):
    """Image storage implementation backed by Amazon S3.

    All boto3 errors are caught and translated: a missing key becomes
    ``NotFoundError``, anything else (transport, auth, throttling) ``S3Error``.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        adapter: S3AdapterProtocol | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        """Create storage using the provided S3 adapter."""
        self._settings = settings
        self._s3: S3AdapterProtocol = adapter or S3Adapter(settings)
        self._clock = clock

    def put_object(
        self,
        *,
        key: str,
        file_data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Upload image bytes to S3 under the given key."""
        logger.debug(
            "Uploading object",
            extra={"storage_key": key, "size": len(file_data)},
        )

        try:
            self._s3.put_object(
                key=key,
                body=file_data,
                content_type=content_type,
                metadata=metadata or {},
            )
            logger.info("Object uploaded successfully", extra={"storage_key": key})

        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 upload failed", extra={"storage_key": key})
            raise S3Error(
                message="Unable to upload image at this time",
                error_code=ERROR_CODE_IMAGE_UPLOAD_FAILED,
                details={"storage_key": key},
            ) from exc

    def download_object(self, *, key: str) -> tuple[bytes, str, int]:
        """Download object bytes directly from S3."""
        logger.debug("Downloading object", extra={"storage_key": key})

        try:
            response = self._s3.get_object(key=key)
            body = response["Body"].read()
            content_type = response.get("ContentType", "application/octet-stream")
            content_length = response.get("ContentLength", len(body))

            return body, content_type, content_length

        except ClientError as exc:
            if _is_not_found(exc):
                raise NotFoundError(
                    message="Image object not found",
                    error_code=ERROR_CODE_OBJECT_NOT_FOUND,
                    details={"storage_key": key},
                ) from exc

            logger.error("S3 download failed", extra={"storage_key": key})
            raise S3Error(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"storage_key": key},
            ) from exc

        except BotoCoreError as exc:
            logger.error("S3 download failed", extra={"storage_key": key})
            raise S3Error(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"storage_key": key},
            ) from exc

    def remove_object(self, *, key: str) -> None:
        """Delete an image object from S3."""
        logger.debug("Deleting object", extra={"storage_key": key})

        try:
            self._s3.delete_object(key=key)
            logger.info("Object deleted successfully", extra={"storage_key": key})

        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 deletion failed", extra={"storage_key": key})
            raise S3Error(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"storage_key": key},
            ) from exc

    def sign_url(
        self,
        *,
        key: str,
        ttl_seconds: int,
        is_public: bool = False,
    ) -> tuple[str, datetime]:
        """Issue a read URL for an existing object.

        The object is checked with a HEAD request first so that a dangling key
        surfaces as ``NotFoundError`` instead of a URL that returns 404.
        """
        logger.debug(
            "Signing object URL",
            extra={"storage_key": key, "ttl_seconds": ttl_seconds},
        )

        issued_at = self._clock()

        try:
            self._s3.head_object(key=key)

            if is_public and self._settings.public_base_url:
                url = f"{self._settings.public_base_url.rstrip('/')}/{key}"
            else:
                params: dict[str, Any] = {"Key": key}
                url = self._s3.generate_presigned_url(
                    method="get_object",
                    params=params,
                    expires_in=ttl_seconds,
                )
                if self._settings.is_localstack:
                    url = self._rewrite_localstack_url(url)

        except ClientError as exc:
            if _is_not_found(exc):
                raise NotFoundError(
                    message="Image object not found",
                    error_code=ERROR_CODE_OBJECT_NOT_FOUND,
                    details={"storage_key": key},
                ) from exc

            logger.error("Failed to generate pre-signed URL", extra={"storage_key": key})
            raise S3Error(
                message="Unable to generate image access URL",
                error_code=ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED,
                details={"storage_key": key},
            ) from exc

        except BotoCoreError as exc:
            logger.error("Failed to generate pre-signed URL", extra={"storage_key": key})
            raise S3Error(
                message="Unable to generate image access URL",
                error_code=ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED,
                details={"storage_key": key},
            ) from exc

        return url, expires_after(issued_at, ttl_seconds)

    def ping(self) -> None:
        """Check that the bucket is reachable.

        Raises:
            S3Error: If the bucket cannot be reached
        """
        try:
            self._s3.head_bucket()
        except (ClientError, BotoCoreError) as exc:
            raise S3Error(
                message="Image bucket is unreachable",
                details={"bucket": self._settings.bucket_name},
            ) from exc

    @staticmethod
    def _rewrite_localstack_url(url: str) -> str:
        """
        Replace internal LocalStack hostname with localhost
        so URLs are accessible from the host machine.
        """
        return url.replace(LOCALSTACK_URL, LOCALHOST_URL, 1)
