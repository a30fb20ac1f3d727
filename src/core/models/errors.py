"""Custom exception classes for the image service.

The service-level taxonomy (``ValidationError``, ``NotFoundError``,
``ForbiddenError``, ``ConflictError``, ``StoreUnavailableError``,
``PartialFailureError``) is what handlers see. ``S3Error`` and
``DynamoDBError`` are raised by the storage leaves only and are translated by
the image service before they reach a handler.
"""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_CONFLICT,
    ERROR_CODE_DEADLINE_EXCEEDED,
    ERROR_CODE_DYNAMODB,
    ERROR_CODE_FILE_SIZE_EXCEEDED,
    ERROR_CODE_FORBIDDEN,
    ERROR_CODE_INVALID_FILTER,
    ERROR_CODE_PARTIAL_FAILURE,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_S3,
    ERROR_CODE_STORE_UNAVAILABLE,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    ERROR_CODE_VALIDATION_FAILED,
)


class ImageServiceError(Exception):
    """
    Base exception for all image service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(ImageServiceError):
    """Raised when client input is invalid."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class MIMETypeError(ValidationError):
    """Raised when an unsupported MIME type is provided."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_UNSUPPORTED_MIME_TYPE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class FileSizeError(ValidationError):
    """Raised when file size exceeds the allowed limit."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_FILE_SIZE_EXCEEDED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class FilterError(ValidationError):
    """Raised when list filter or pagination parameters are invalid."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_FILTER,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(ImageServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ForbiddenError(ImageServiceError):
    """Raised when a resource exists but may not be accessed this way."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_FORBIDDEN,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ConflictError(ImageServiceError):
    """Raised when a record with the same identifier or storage key exists."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CONFLICT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class StoreUnavailableError(ImageServiceError):
    """Raised when a backing store cannot be reached. Safe to retry."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_STORE_UNAVAILABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class PartialFailureError(ImageServiceError):
    """Raised when storage and metadata were left inconsistent.

    Never retryable by the client; the orphaned key is recorded for
    reconciliation before this is raised.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_PARTIAL_FAILURE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DeadlineExceededError(ImageServiceError):
    """Raised when an operation runs out of time before a storage call."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DEADLINE_EXCEEDED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class S3Error(ImageServiceError):
    """Raised by the object store client when S3 cannot serve a request."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_S3,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DynamoDBError(ImageServiceError):
    """Raised by the metadata repository when a DynamoDB operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DYNAMODB,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
