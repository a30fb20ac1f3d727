from collections.abc import Mapping

MAGIC_BYTES: Mapping[bytes, str] = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
}


def detect_mime_type(file_data: bytes) -> str:
    for signature, mime in MAGIC_BYTES.items():
        if file_data.startswith(signature):
            return mime

    if file_data[:4] == b"RIFF" and file_data[8:12] == b"WEBP":
        return "image/webp"

    head = file_data[:256].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"

    raise ValueError("Unsupported or unknown file type")


def normalize_mime_type(value: str | None) -> str | None:
    """Lower-case a Content-Type value and drop parameters such as charset."""
    if not value:
        return None

    mime = value.split(";", 1)[0].strip().lower()
    return mime or None
