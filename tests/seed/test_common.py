import pytest

from common import LOCALSTACK_API_URL, SAMPLE_PNG, auth_headers, resolve_base_url


def test_explicit_base_url_wins() -> None:
    assert resolve_base_url(base_url="https://api.example.com/", api_id="abc") == "https://api.example.com"


def test_localstack_api_id() -> None:
    assert resolve_base_url(base_url=None, api_id="abc") == LOCALSTACK_API_URL.format("abc")


def test_missing_target_exits() -> None:
    with pytest.raises(SystemExit):
        resolve_base_url(base_url=None, api_id=None)


def test_auth_headers() -> None:
    assert auth_headers("key") == {"x-api-key": "key"}
    assert auth_headers(None) == {}


def test_sample_png_is_png() -> None:
    assert SAMPLE_PNG.startswith(b"\x89PNG")
