"""Shared test fixtures and utilities."""

from unittest.mock import Mock

import pytest

from blobdisk.adapter import BlobStorageAdapter
from blobdisk.storage.base import BlobRecord
from blobdisk.storage.fs import FilesystemBlobClient

from tests.fixtures.storage import OCT_1_2021


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer credentials out of config defaults."""
    for var in ("AZURE_STORAGE_KEY", "AZURE_STORAGE_CONNECTION_STRING", "BLOBDISK_CONFIG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fs_client(tmp_path):
    """Directory-backed blob client for round-trip tests."""
    return FilesystemBlobClient(tmp_path / "blobs", "container")


@pytest.fixture
def fs_adapter(fs_client):
    return BlobStorageAdapter(fs_client, "container")


@pytest.fixture
def mock_client():
    """Blob client double; configure return values per test."""
    client = Mock()
    client.container = "container"
    return client


@pytest.fixture
def adapter(mock_client):
    return BlobStorageAdapter(mock_client, "container")


@pytest.fixture
def make_record():
    """Factory fixture for blob records with realistic properties."""
    def _make(name: str = "file.txt", content: bytes = b"content", **overrides):
        fields = {
            "name": name,
            "content": content,
            "content_length": len(content),
            "content_type": "text/plain",
            "last_modified": OCT_1_2021,
            "content_md5": "Y29udGVudA==",
            "creation_time": OCT_1_2021,
        }
        fields.update(overrides)
        return BlobRecord(**fields)
    return _make
