"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_INVALID_FILTER = "INVALID_FILTER"
ERROR_CODE_INVALID_CURSOR = "INVALID_CURSOR"
ERROR_CODE_INVALID_FOLDER = "INVALID_FOLDER"
ERROR_CODE_EMPTY_FILE = "EMPTY_FILE"
ERROR_CODE_NO_FILE = "NO_FILE"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"

# Not Found / Access Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
ERROR_CODE_OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
ERROR_CODE_FORBIDDEN = "FORBIDDEN"
ERROR_CODE_PRIVATE_IMAGE = "PRIVATE_IMAGE"
ERROR_CODE_VISIBILITY_CHANGE_DISABLED = "VISIBILITY_CHANGE_DISABLED"
ERROR_CODE_CONFLICT = "CONFLICT"

# Storage Errors
ERROR_CODE_S3 = "S3_ERROR"
ERROR_CODE_STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
ERROR_CODE_IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
ERROR_CODE_IMAGE_DOWNLOAD_FAILED = "IMAGE_DOWNLOAD_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED = "PRESIGNED_URL_FAILED"

# Metadata / DynamoDB Errors
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_METADATA_CREATE_FAILED = "METADATA_CREATE_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"
ERROR_CODE_METADATA_INVALID_FORMAT = "METADATA_INVALID_FORMAT"
ERROR_CODE_ORPHAN_LIST_FAILED = "ORPHAN_LIST_FAILED"
ERROR_CODE_ORPHAN_RESOLVE_FAILED = "ORPHAN_RESOLVE_FAILED"

# Consistency Errors
ERROR_CODE_PARTIAL_FAILURE = "PARTIAL_FAILURE"
ERROR_CODE_DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

# Internal / Unexpected
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# File Upload Constraints
# ============================================================================

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB in bytes

GENERIC_BINARY_MIME_TYPE = "application/octet-stream"

MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
    "image/svg+xml": ("svg",),
}

ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(MIME_TYPE_EXTENSION_MAP.keys())


# ============================================================================
# Image Descriptor Constraints
# ============================================================================

IMAGE_ID_PREFIX = "img_"
DEFAULT_STORAGE_PREFIX = "images"
FOLDER_PATTERN = r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$"
FOLDER_MAX_LENGTH = 100
ORIGINAL_NAME_MAX_LENGTH = 255

# ============================================================================
# Pagination Constraints
# ============================================================================

DEFAULT_LIMIT = 20
MIN_LIMIT = 1
MAX_LIMIT = 100
MAX_BATCH_DELETE = 100

# ============================================================================
# Signed URL Policy
# ============================================================================

DEFAULT_URL_TTL_SECONDS = 24 * 60 * 60
DEFAULT_URL_REFRESH_MARGIN_SECONDS = 60
DEFAULT_DEADLINE_MARGIN_MS = 500

# S3 user-metadata keys travel as x-amz-meta-* headers; hyphens only
OBJECT_METADATA_IMAGE_ID = "image-id"

# ============================================================================
# DynamoDB Layout
# ============================================================================

STORAGE_KEY_INDEX_NAME = "storage-key-index"
ORPHAN_KEY_ATTRIBUTE = "storage_key"

# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization,X-Api-Key"
EXPOSE_HEADERS = "Content-Type,Content-Length"
DEFAULT_CONTENT_TYPE = "application/json"

SERVICE_VERSION = "1.0.0"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_METADATA_TABLE_NAME = "IMAGE_METADATA_TABLE_NAME"
ENV_IMAGE_ORPHAN_TABLE_NAME = "IMAGE_ORPHAN_TABLE_NAME"
ENV_APP_RUNTIME = "APP_RUNTIME"
ENV_URL_TTL_SECONDS = "IMAGE_URL_TTL_SECONDS"
ENV_URL_REFRESH_MARGIN_SECONDS = "IMAGE_URL_REFRESH_MARGIN_SECONDS"
ENV_MAX_FILE_SIZE = "IMAGE_MAX_FILE_SIZE"
ENV_MAX_LIST_LIMIT = "IMAGE_MAX_LIST_LIMIT"
ENV_DEFAULT_LIST_LIMIT = "IMAGE_DEFAULT_LIST_LIMIT"
ENV_PUBLIC_BASE_URL = "IMAGE_PUBLIC_BASE_URL"
ENV_ALLOW_VISIBILITY_CHANGE = "IMAGE_ALLOW_VISIBILITY_CHANGE"
ENV_AWS_CONNECT_TIMEOUT = "AWS_CONNECT_TIMEOUT"
ENV_AWS_READ_TIMEOUT = "AWS_READ_TIMEOUT"
ENV_AWS_MAX_ATTEMPTS = "AWS_MAX_ATTEMPTS"
ENV_DEADLINE_MARGIN_MS = "REQUEST_DEADLINE_MARGIN_MS"

DEFAULT_AWS_REGION = "us-east-1"
LOCALSTACK_RUNTIME = "localstack"
LOCALSTACK_URL = "http://localstack"
LOCALHOST_URL = "http://localhost"

# ============================================================================
# Helper Functions
# ============================================================================


def canonical_extension(mime_type: str) -> str:
    """Return the preferred file extension for a MIME type."""
    extensions = MIME_TYPE_EXTENSION_MAP.get(mime_type)
    return extensions[0] if extensions else "bin"


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted file size string
    """
    size: float = float(size_bytes)

    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0

    return f"{size:.1f} TB"
