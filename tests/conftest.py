from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from family_cloud.common.config import Settings
from family_cloud.main import create_app
from tests.services.mock_storage import MockStorageClient


@pytest.fixture()
def settings() -> Settings:
    return Settings(ENABLE_METRICS=False)


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def app(settings, mock_storage):
    return create_app(settings, storage_client=mock_storage)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
