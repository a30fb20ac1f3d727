"""Explicit service configuration.

Everything the storage adapters and the image service need is carried by
``ServiceSettings``. Only the handler layer calls ``from_env``; the rest of the
code receives a settings object at construction time.
"""

import os

from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from core.utils.constants import (
    DEFAULT_AWS_REGION,
    DEFAULT_DEADLINE_MARGIN_MS,
    DEFAULT_LIMIT,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_URL_REFRESH_MARGIN_SECONDS,
    DEFAULT_URL_TTL_SECONDS,
    ENV_ALLOW_VISIBILITY_CHANGE,
    ENV_APP_RUNTIME,
    ENV_AWS_CONNECT_TIMEOUT,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_MAX_ATTEMPTS,
    ENV_AWS_READ_TIMEOUT,
    ENV_AWS_REGION,
    ENV_DEADLINE_MARGIN_MS,
    ENV_DEFAULT_LIST_LIMIT,
    ENV_IMAGE_METADATA_TABLE_NAME,
    ENV_IMAGE_ORPHAN_TABLE_NAME,
    ENV_IMAGE_S3_BUCKET_NAME,
    ENV_MAX_FILE_SIZE,
    ENV_MAX_LIST_LIMIT,
    ENV_PUBLIC_BASE_URL,
    ENV_URL_REFRESH_MARGIN_SECONDS,
    ENV_URL_TTL_SECONDS,
    LOCALSTACK_RUNTIME,
    MAX_LIMIT,
)


class ServiceSettings(BaseModel):
    """Configuration for the image service and its storage clients."""

    model_config = ConfigDict(frozen=True)

    bucket_name: StrictStr = Field(..., min_length=1, description="S3 bucket holding image bytes")
    table_name: StrictStr = Field(..., min_length=1, description="DynamoDB metadata table")
    orphan_table_name: StrictStr | None = Field(None, description="DynamoDB table of orphaned objects")
    region: StrictStr = Field(DEFAULT_AWS_REGION, description="AWS region")
    endpoint_url: StrictStr | None = Field(None, description="Override endpoint (LocalStack, R2, MinIO)")
    runtime: StrictStr | None = Field(None, description="Runtime marker, e.g. 'localstack'")

    url_ttl_seconds: int = Field(DEFAULT_URL_TTL_SECONDS, gt=0)
    url_refresh_margin_seconds: int = Field(DEFAULT_URL_REFRESH_MARGIN_SECONDS, ge=0)
    max_file_size: int = Field(DEFAULT_MAX_FILE_SIZE, gt=0)
    max_list_limit: int = Field(MAX_LIMIT, ge=1)
    default_list_limit: int = Field(DEFAULT_LIMIT, ge=1)
    public_base_url: StrictStr | None = Field(None, description="CDN base URL for public images")
    allow_visibility_change: bool = True

    connect_timeout: float = Field(5.0, gt=0)
    read_timeout: float = Field(10.0, gt=0)
    max_attempts: int = Field(3, ge=1)
    deadline_margin_ms: int = Field(DEFAULT_DEADLINE_MARGIN_MS, ge=0)

    @property
    def is_localstack(self) -> bool:
        return self.runtime == LOCALSTACK_RUNTIME

    def boto_config(self) -> Config:
        """Build the botocore client configuration (timeouts and retries)."""
        return Config(
            region_name=self.region,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            retries={"max_attempts": self.max_attempts, "mode": "standard"},
        )

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Load settings from process environment variables.

        Raises:
            RuntimeError: If the bucket or table name is not configured
        """
        bucket_name = os.getenv(ENV_IMAGE_S3_BUCKET_NAME)
        if not bucket_name:
            raise RuntimeError(f"{ENV_IMAGE_S3_BUCKET_NAME} environment variable is not set")

        table_name = os.getenv(ENV_IMAGE_METADATA_TABLE_NAME)
        if not table_name:
            raise RuntimeError(f"{ENV_IMAGE_METADATA_TABLE_NAME} environment variable is not set")

        values: dict[str, object] = {
            "bucket_name": bucket_name,
            "table_name": table_name,
            "orphan_table_name": os.getenv(ENV_IMAGE_ORPHAN_TABLE_NAME) or None,
            "region": os.getenv(ENV_AWS_REGION) or DEFAULT_AWS_REGION,
            "endpoint_url": os.getenv(ENV_AWS_ENDPOINT_URL) or None,
            "runtime": os.getenv(ENV_APP_RUNTIME) or None,
            "public_base_url": os.getenv(ENV_PUBLIC_BASE_URL) or None,
        }

        numeric_env = {
            "url_ttl_seconds": ENV_URL_TTL_SECONDS,
            "url_refresh_margin_seconds": ENV_URL_REFRESH_MARGIN_SECONDS,
            "max_file_size": ENV_MAX_FILE_SIZE,
            "max_list_limit": ENV_MAX_LIST_LIMIT,
            "default_list_limit": ENV_DEFAULT_LIST_LIMIT,
            "max_attempts": ENV_AWS_MAX_ATTEMPTS,
            "deadline_margin_ms": ENV_DEADLINE_MARGIN_MS,
            "connect_timeout": ENV_AWS_CONNECT_TIMEOUT,
            "read_timeout": ENV_AWS_READ_TIMEOUT,
        }
        for field_name, env_name in numeric_env.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw

        allow_change = os.getenv(ENV_ALLOW_VISIBILITY_CHANGE)
        if allow_change:
            values["allow_visibility_change"] = allow_change.strip().lower() in {"1", "true", "yes"}

        return cls.model_validate(values)
