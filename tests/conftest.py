"""
Pytest configuration and fixtures for image service tests.
Provides AWS mocking, DynamoDB and S3 fixtures with proper cleanup, and
in-memory store doubles for service and handler tests.
"""

import os

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "image-storage-images-test")
os.environ.setdefault("IMAGE_METADATA_TABLE_NAME", "image-storage-metadata-test")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-service")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ImageService")

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from core.config import ServiceSettings
from core.infrastructure.logging_orphan_recorder import LoggingOrphanRecorder
from core.models.errors import ConflictError, DynamoDBError, NotFoundError, S3Error
from core.models.image import ImageDescriptor
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.services.image_service import ImageService
from core.utils.constants import ERROR_CODE_IMAGE_NOT_FOUND, STORAGE_KEY_INDEX_NAME
from core.utils.time import expires_after, to_iso

# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# In-memory store doubles
# ============================================================================


class InMemoryStorage(ImageStorageRepository):
    """Object store double.

    Set ``failures[<method name>]`` to an exception to make that method raise.
    """

    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self.objects: dict[str, tuple[bytes, str, dict[str, str]]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self._signed = 0

    def _maybe_fail(self, method: str, key: str) -> None:
        self.calls.append((method, key))
        if method in self.failures:
            raise self.failures[method]

    def put_object(
        self,
        *,
        key: str,
        file_data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        with self._lock:
            self._maybe_fail("put_object", key)
            self.objects[key] = (file_data, content_type, dict(metadata or {}))

    def download_object(self, *, key: str) -> tuple[bytes, str, int]:
        with self._lock:
            self._maybe_fail("download_object", key)
            if key not in self.objects:
                raise NotFoundError(message="Image object not found", details={"storage_key": key})
            data, content_type, _ = self.objects[key]
            return data, content_type, len(data)

    def remove_object(self, *, key: str) -> None:
        with self._lock:
            self._maybe_fail("remove_object", key)
            self.objects.pop(key, None)

    def sign_url(
        self,
        *,
        key: str,
        ttl_seconds: int,
        is_public: bool = False,
    ) -> tuple[str, datetime]:
        with self._lock:
            self._maybe_fail("sign_url", key)
            if key not in self.objects:
                raise NotFoundError(message="Image object not found", details={"storage_key": key})
            self._signed += 1
            return (
                f"https://signed.example.com/{key}?signature={self._signed}",
                expires_after(self._clock(), ttl_seconds),
            )

    def ping(self) -> None:
        self._maybe_fail("ping", "")

    @property
    def sign_count(self) -> int:
        return self._signed


class InMemoryMetadata(ImageMetadataRepository):
    """Metadata repository double with the same atomicity per record."""

    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self.records: dict[str, ImageDescriptor] = {}
        self.failures: dict[str, Exception] = {}

    def _maybe_fail(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def create_metadata(self, *, descriptor: ImageDescriptor) -> None:
        with self._lock:
            self._maybe_fail("create_metadata")
            if descriptor.image_id in self.records:
                raise ConflictError(message="Image id is already in use")
            if any(r.storage_key == descriptor.storage_key for r in self.records.values()):
                raise ConflictError(message="Storage key is already in use")
            self.records[descriptor.image_id] = descriptor

    def fetch_metadata(self, *, image_id: str) -> ImageDescriptor | None:
        with self._lock:
            self._maybe_fail("fetch_metadata")
            return self.records.get(image_id)

    def fetch_metadata_by_key(self, *, storage_key: str) -> ImageDescriptor | None:
        with self._lock:
            self._maybe_fail("fetch_metadata_by_key")
            return next(
                (r for r in self.records.values() if r.storage_key == storage_key),
                None,
            )

    def list_images(
        self,
        *,
        folder: str | None = None,
        is_public: bool | None = None,
    ) -> list[ImageDescriptor]:
        with self._lock:
            self._maybe_fail("list_images")
            return [
                r
                for r in self.records.values()
                if (folder is None or r.folder == folder)
                and (is_public is None or r.is_public == is_public)
            ]

    def remove_metadata(self, *, image_id: str) -> ImageDescriptor:
        with self._lock:
            self._maybe_fail("remove_metadata")
            if image_id not in self.records:
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                )
            return self.records.pop(image_id)

    def update_url_cache(self, *, image_id: str, url: str, expires_at: str) -> ImageDescriptor:
        return self._update(
            "update_url_cache",
            image_id,
            {"public_url": url, "public_url_expires_at": expires_at},
        )

    def update_visibility(self, *, image_id: str, is_public: bool) -> ImageDescriptor:
        return self._update(
            "update_visibility",
            image_id,
            {"is_public": is_public, "public_url": None, "public_url_expires_at": None},
        )

    def ping(self) -> None:
        self._maybe_fail("ping")

    def _update(self, method: str, image_id: str, changes: dict[str, Any]) -> ImageDescriptor:
        with self._lock:
            self._maybe_fail(method)
            if image_id not in self.records:
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                )
            updated = self.records[image_id].model_copy(
                update={**changes, "updated_at": to_iso(self._clock())}
            )
            self.records[image_id] = updated
            return updated


@pytest.fixture
def storage(clock) -> InMemoryStorage:
    return InMemoryStorage(clock)


@pytest.fixture
def metadata(clock) -> InMemoryMetadata:
    return InMemoryMetadata(clock)


@pytest.fixture
def orphans() -> LoggingOrphanRecorder:
    return LoggingOrphanRecorder()


@pytest.fixture
def settings() -> ServiceSettings:
    return ServiceSettings(
        bucket_name=os.environ["IMAGE_S3_BUCKET_NAME"],
        table_name=os.environ["IMAGE_METADATA_TABLE_NAME"],
        region=os.environ["AWS_REGION"],
    )


@pytest.fixture
def make_service(storage, metadata, orphans, clock) -> Callable[..., ImageService]:
    """Build an ImageService over the in-memory doubles with custom settings."""

    def _make(**overrides: Any) -> ImageService:
        values: dict[str, Any] = {
            "bucket_name": os.environ["IMAGE_S3_BUCKET_NAME"],
            "table_name": os.environ["IMAGE_METADATA_TABLE_NAME"],
        }
        values.update(overrides)
        return ImageService(
            storage=storage,
            metadata=metadata,
            settings=ServiceSettings(**values),
            orphans=orphans,
            clock=clock,
        )

    return _make


@pytest.fixture
def service(make_service) -> ImageService:
    return make_service()


@pytest.fixture
def s3_failure() -> S3Error:
    return S3Error(message="S3 is unreachable")


@pytest.fixture
def dynamodb_failure() -> DynamoDBError:
    return DynamoDBError(message="DynamoDB is unreachable")


# ============================================================================
# AWS (moto) fixtures
# ============================================================================


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource):
    """Helper to create the metadata table with its storage-key index."""
    table_name = os.getenv("IMAGE_METADATA_TABLE_NAME")

    return dynamodb_resource.create_table(
        TableName=table_name,
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "image_id", "AttributeType": "S"},
            {"AttributeName": "storage_key", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": STORAGE_KEY_INDEX_NAME,
                "KeySchema": [{"AttributeName": "storage_key", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the DynamoDB metadata table for one test.

    moto discards the table when the mock context exits.
    """
    table = _create_dynamodb_table(dynamodb_resource)
    table.wait_until_exists()
    yield table


@pytest.fixture(scope="function")
def orphan_table(dynamodb_resource):
    """Create the orphan table (keyed by storage key) for one test."""
    table = dynamodb_resource.create_table(
        TableName="image-storage-orphans-test",
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "storage_key", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "storage_key", "AttributeType": "S"}],
    )
    table.wait_until_exists()
    yield table


@pytest.fixture
def dynamodb_put_item(dynamodb_table) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """
    Helper to insert a single raw item into DynamoDB.

    Usage:
        item = dynamodb_put_item({"image_id": "img_1", ...})
    """

    def _put(item: dict[str, Any]) -> dict[str, Any]:
        dynamodb_table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    def _get(image_id: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(Key={"image_id": image_id})
        item: dict[str, Any] | None = response.get("Item")
        return item

    return _get


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """Create the image bucket for one test."""
    bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")

    try:
        s3_client.create_bucket(Bucket=bucket_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
            raise

    yield s3_client


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., dict[str, Any]]:
    """
    Helper to upload an object to S3.

    Usage:
        s3_put_object("images/img_1.jpg", image_bytes, "image/jpeg")
    """

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        return s3_bucket.put_object(
            Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"),
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    return _put


@pytest.fixture
def s3_get_object(s3_bucket) -> Callable[[str], bytes]:
    def _get(key: str) -> bytes:
        response: dict[str, Any] = s3_bucket.get_object(
            Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"),
            Key=key,
        )
        data: bytes = response["Body"].read()
        return data

    return _get


# ============================================================================
# Sample data
# ============================================================================


@pytest.fixture
def make_descriptor() -> Callable[..., ImageDescriptor]:
    def _make(image_id: str = "img_1", **overrides: Any) -> ImageDescriptor:
        values: dict[str, Any] = {
            "image_id": image_id,
            "storage_key": f"images/{image_id}.jpg",
            "is_public": False,
            "content_type": "image/jpeg",
            "size_bytes": 100,
            "created_at": "2024-01-01T10:00:00.000000+00:00",
        }
        values.update(overrides)
        return ImageDescriptor(**values)

    return _make


@pytest.fixture
def sample_png_binary() -> bytes:
    """Sample binary image data (1x1 PNG)."""
    import base64

    png_base64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
    return base64.b64decode(png_base64)


@pytest.fixture
def sample_jpeg_binary() -> bytes:
    """JPEG magic bytes followed by filler."""
    return b"\xff\xd8\xff\xe0" + b"jpeg-body" * 8
