"""
Shared fixtures.

Stores are the in-memory mocks shipped with the infrastructure layer,
so the real repository and orchestration code runs without AWS.
"""

import pytest

from multimedia.core.assets.uploader import AssetUploader
from multimedia.infrastructure.dynamodb.client import MockDynamoDBClient
from multimedia.infrastructure.dynamodb.repositories.assets import DynamoDBAssetRepository
from multimedia.infrastructure.storage.client import MockStorageClient, StorageConfig

TABLE_NAME = "multimedia-assets"
BUCKET = "test-bucket"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


@pytest.fixture
def dynamodb_client() -> MockDynamoDBClient:
    client = MockDynamoDBClient()
    client.create_table(TABLE_NAME, "id")
    return client


@pytest.fixture
def repository(dynamodb_client) -> DynamoDBAssetRepository:
    return DynamoDBAssetRepository(TABLE_NAME, dynamodb_client)


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient(StorageConfig(bucket_name=BUCKET))


@pytest.fixture
def uploader(repository, storage) -> AssetUploader:
    return AssetUploader(
        bucket=BUCKET,
        region="us-east-1",
        repository=repository,
        storage=storage,
    )


@pytest.fixture
def png_file(tmp_path):
    """A small PNG on disk, as the ingestion layer would leave it."""
    path = tmp_path / "upload-photo.png"
    path.write_bytes(PNG_BYTES)
    return path
