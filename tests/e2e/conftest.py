"""
Fixtures for tests against a deployed API (LocalStack or AWS).

Set E2E_BASE_URL (and E2E_API_KEY when the API requires one); the tests are
skipped otherwise.
"""

import os

import pytest

from common import SAMPLE_PNG, auth_headers
from e2e_api_client import E2EAPIClient


@pytest.fixture(scope="session")
def api_endpoint():
    endpoint = os.getenv("E2E_BASE_URL")
    if not endpoint:
        pytest.skip("E2E_BASE_URL is not set")
    return endpoint.rstrip("/")


@pytest.fixture
def api_client(api_endpoint):
    """HTTP client wrapper for E2E API testing"""
    _client = E2EAPIClient(api_endpoint, auth_headers(os.getenv("E2E_API_KEY")))
    yield _client
    _client.session.close()


@pytest.fixture
def png_bytes():
    return SAMPLE_PNG


@pytest.fixture
def uploaded_images(api_client):
    """Collects ids of uploaded images and deletes them after the test."""
    image_ids = []
    yield image_ids
    if image_ids:
        api_client.post("/api/v1/images/batch-delete", {"image_ids": image_ids})
