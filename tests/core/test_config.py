import pytest
from pydantic import ValidationError

from core.config import ServiceSettings


@pytest.fixture
def base_env(monkeypatch):
    monkeypatch.setenv("IMAGE_S3_BUCKET_NAME", "bucket")
    monkeypatch.setenv("IMAGE_METADATA_TABLE_NAME", "table")
    for name in (
        "AWS_ENDPOINT_URL",
        "APP_RUNTIME",
        "IMAGE_URL_TTL_SECONDS",
        "IMAGE_PUBLIC_BASE_URL",
        "IMAGE_ALLOW_VISIBILITY_CHANGE",
        "IMAGE_MAX_LIST_LIMIT",
        "IMAGE_ORPHAN_TABLE_NAME",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults(base_env) -> None:
    settings = ServiceSettings.from_env()

    assert settings.bucket_name == "bucket"
    assert settings.table_name == "table"
    assert settings.url_ttl_seconds == 86400
    assert settings.max_list_limit == 100
    assert settings.allow_visibility_change is True
    assert settings.endpoint_url is None
    assert settings.orphan_table_name is None
    assert settings.is_localstack is False


def test_from_env_overrides(base_env, monkeypatch) -> None:
    monkeypatch.setenv("IMAGE_URL_TTL_SECONDS", "600")
    monkeypatch.setenv("IMAGE_ALLOW_VISIBILITY_CHANGE", "false")
    monkeypatch.setenv("APP_RUNTIME", "localstack")
    monkeypatch.setenv("IMAGE_PUBLIC_BASE_URL", "https://cdn.example.com")
    monkeypatch.setenv("IMAGE_ORPHAN_TABLE_NAME", "orphans")

    settings = ServiceSettings.from_env()

    assert settings.url_ttl_seconds == 600
    assert settings.allow_visibility_change is False
    assert settings.is_localstack is True
    assert settings.public_base_url == "https://cdn.example.com"
    assert settings.orphan_table_name == "orphans"


@pytest.mark.parametrize("missing", ["IMAGE_S3_BUCKET_NAME", "IMAGE_METADATA_TABLE_NAME"])
def test_from_env_requires_bucket_and_table(base_env, monkeypatch, missing) -> None:
    monkeypatch.delenv(missing)

    with pytest.raises(RuntimeError, match=missing):
        ServiceSettings.from_env()


def test_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValidationError):
        ServiceSettings(bucket_name="b", table_name="t", url_ttl_seconds=0)


def test_settings_are_frozen() -> None:
    settings = ServiceSettings(bucket_name="b", table_name="t")

    with pytest.raises(ValidationError):
        settings.bucket_name = "other"


def test_boto_config() -> None:
    config = ServiceSettings(bucket_name="b", table_name="t", max_attempts=5).boto_config()

    assert config.retries == {"max_attempts": 5, "mode": "standard"}
    assert config.connect_timeout == 5.0
