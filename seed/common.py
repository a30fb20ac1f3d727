"""Shared helpers for the scripts that talk to a deployed image API."""

import base64

LOCALSTACK_API_URL = "http://localhost:4566/restapis/{0}/snd/_user_request_"
IMAGES_PATH = "/api/v1/images"

# 1x1 transparent PNG
SAMPLE_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


def resolve_base_url(*, base_url: str | None, api_id: str | None) -> str:
    """Return the API root from an explicit URL or a LocalStack API id."""
    if base_url:
        return base_url.rstrip("/")
    if api_id:
        return LOCALSTACK_API_URL.format(api_id)
    raise SystemExit("Either --base-url or --api-id is required")


def auth_headers(api_key: str | None) -> dict[str, str]:
    return {"x-api-key": api_key} if api_key else {}
