"""Helpers for reading API Gateway proxy events."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from core.services.image_service import ImageService
from core.utils.deadline import Deadline


def request_log_extra(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Structured fields logged when a handler receives a request."""
    return {
        "http_method": event.get("httpMethod"),
        "path": event.get("path"),
        "query_params": event.get("queryStringParameters"),
        "request_id": getattr(context, "aws_request_id", None),
        "function_name": getattr(context, "function_name", None),
        "remaining_time_ms": context.get_remaining_time_in_millis()
        if hasattr(context, "get_remaining_time_in_millis")
        else None,
    }


def path_param(event: Mapping[str, Any], name: str) -> str | None:
    """Return a URL-decoded path parameter."""
    value = (event.get("pathParameters") or {}).get(name)
    return unquote(value) if value is not None else None


def query_params(event: Mapping[str, Any]) -> dict[str, Any]:
    return dict(event.get("queryStringParameters") or {})


def header(event: Mapping[str, Any], name: str) -> str | None:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in (event.get("headers") or {}).items():
        if key.lower() == wanted:
            return value
    return None


def request_deadline(context: Any, service: ImageService) -> Deadline | None:
    return Deadline.from_lambda_context(context, margin_ms=service.settings.deadline_margin_ms)
