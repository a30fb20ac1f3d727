"""Builders for API Gateway proxy events used by the handler tests."""

import base64
import json
from typing import Any

BOUNDARY = "----imageuploadboundary"


def multipart_event(
    *,
    file_data: bytes | None,
    filename: str = "photo.jpg",
    content_type: str | None = "image/jpeg",
    fields: dict[str, str] | None = None,
) -> dict[str, Any]:
    chunks: list[bytes] = []

    if file_data is not None:
        head = [
            f"--{BOUNDARY}",
            f'Content-Disposition: form-data; name="file"; filename="{filename}"',
        ]
        if content_type:
            head.append(f"Content-Type: {content_type}")
        chunks.append("\r\n".join(head).encode() + b"\r\n\r\n" + file_data + b"\r\n")

    for name, value in (fields or {}).items():
        chunks.append(
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )

    chunks.append(f"--{BOUNDARY}--\r\n".encode())

    return {
        "httpMethod": "POST",
        "path": "/api/v1/images",
        "headers": {"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        "body": base64.b64encode(b"".join(chunks)).decode(),
        "isBase64Encoded": True,
    }


def json_event(body: Any, **extra: Any) -> dict[str, Any]:
    return {
        "httpMethod": "POST",
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
        **extra,
    }


def path_event(method: str = "GET", **path_parameters: str) -> dict[str, Any]:
    return {"httpMethod": method, "pathParameters": path_parameters, "headers": {}}


def response_body(response: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = json.loads(response["body"])
    return body
