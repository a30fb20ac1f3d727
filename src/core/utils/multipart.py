"""Minimal multipart/form-data decoding for API Gateway proxy events."""

import base64
import binascii
from collections.abc import Mapping
from email import policy
from email.parser import BytesParser
from typing import Any

from pydantic import BaseModel, Field

from core.utils.events import header


class UploadedFile(BaseModel):
    data: bytes
    content_type: str | None = None
    filename: str | None = None


class FormData(BaseModel):
    fields: dict[str, str] = Field(default_factory=dict)
    files: dict[str, UploadedFile] = Field(default_factory=dict)


def event_body_bytes(event: Mapping[str, Any]) -> bytes:
    """Return the raw request body, decoding API Gateway base64 bodies.

    Raises:
        ValueError: If a base64-flagged body does not decode
    """
    body = event.get("body") or ""

    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Invalid base64 request body") from exc

    return body.encode("utf-8") if isinstance(body, str) else bytes(body)


def is_multipart(event: Mapping[str, Any]) -> bool:
    content_type = header(event, "Content-Type") or ""
    return content_type.lower().startswith("multipart/form-data")


def parse_multipart(event: Mapping[str, Any]) -> FormData:
    """Split a multipart/form-data body into text fields and files.

    Parts with a filename are files; everything else is decoded as UTF-8 text.

    Raises:
        ValueError: If the body is not a well-formed multipart document
    """
    content_type = header(event, "Content-Type")
    if not content_type or "boundary=" not in content_type.lower():
        raise ValueError("Missing multipart boundary")

    raw = event_body_bytes(event)
    envelope = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("utf-8")
    message = BytesParser(policy=policy.default).parsebytes(envelope + raw)

    if not message.is_multipart():
        raise ValueError("Malformed multipart body")

    form = FormData()
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name:
            continue

        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()

        if filename is not None:
            form.files[name] = UploadedFile(
                data=payload,
                content_type=part.get_content_type() if part.get("Content-Type") else None,
                filename=filename,
            )
        else:
            form.fields[name] = payload.decode("utf-8", errors="replace")

    return form
