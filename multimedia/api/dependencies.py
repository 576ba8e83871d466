"""
FastAPI dependency injection.

Dependencies provide the uploader, repositories and configuration to
route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is read here, not inside the asset core

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.assets.uploader import AssetUploader
from ..infrastructure.aws import create_aws_uploader
from ..infrastructure.dynamodb.client import MockDynamoDBClient, create_dynamodb_client
from ..infrastructure.dynamodb.repositories.assets import KEY_ATTRIBUTE
from ..infrastructure.dynamodb.repositories.options import DynamoDBPageOptionRepository
from ..infrastructure.storage.client import MockStorageClient, StorageConfig, create_storage_client
from .ingestion import HttpFileUploader

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock instances (shared across requests so data persists)
_mock_storage_client = None
_mock_dynamodb_client = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def _shared_mock_storage(settings: Settings) -> MockStorageClient:
    global _mock_storage_client

    if _mock_storage_client is None:
        _mock_storage_client = create_storage_client(
            StorageConfig(
                bucket_name=settings.s3_bucket_name,
                region=settings.aws_region,
                acl=settings.s3_acl,
                content_disposition=settings.s3_content_disposition,
                server_side_encryption=settings.s3_server_side_encryption,
            ),
            mock_mode=True,
        )
        logger.info("Created shared mock storage client for session")
    return _mock_storage_client


def _shared_mock_dynamodb_client(settings: Settings) -> MockDynamoDBClient:
    """One in-memory DynamoDB for both the asset and page option tables."""
    global _mock_dynamodb_client

    if _mock_dynamodb_client is None:
        _mock_dynamodb_client = MockDynamoDBClient()
        logger.info("Created shared mock DynamoDB client for session")

    if settings.dynamodb_table_name:
        _mock_dynamodb_client.create_table(settings.dynamodb_table_name, KEY_ATTRIBUTE)
    if settings.page_options_table_name:
        _mock_dynamodb_client.create_table(settings.page_options_table_name, "name")

    return _mock_dynamodb_client


def get_asset_uploader(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AssetUploader:
    """
    Provide the AssetUploader.

    Each mocked backend is a single instance shared across requests, so
    data persists during the session even when only one of the two
    stores is mocked. Misconfiguration (empty table, bucket or region)
    raises InvalidArgumentError here.
    """
    return create_aws_uploader(
        table_name=settings.dynamodb_table_name,
        bucket=settings.s3_bucket_name,
        region=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        storage_mock_mode=settings.storage_mock_mode,
        metadata_mock_mode=settings.metadata_mock_mode,
        acl=settings.s3_acl,
        content_disposition=settings.s3_content_disposition,
        server_side_encryption=settings.s3_server_side_encryption,
        storage=_shared_mock_storage(settings) if settings.storage_mock_mode else None,
        dynamodb_client=_shared_mock_dynamodb_client(settings) if settings.metadata_mock_mode else None,
    )


def get_http_file_uploader(
    settings: Annotated[Settings, Depends(get_settings)],
    uploader: Annotated[AssetUploader, Depends(get_asset_uploader)],
) -> HttpFileUploader:
    return HttpFileUploader(uploader, max_upload_bytes=settings.max_upload_size_bytes)


def get_page_option_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> DynamoDBPageOptionRepository:
    """Provide the page option repository, sharing the mock DynamoDB in mock mode."""
    if settings.metadata_mock_mode:
        client = _shared_mock_dynamodb_client(settings)
    else:
        client = create_dynamodb_client(
            region=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
        )

    return DynamoDBPageOptionRepository(settings.page_options_table_name, client)


def reset_mock_instances() -> None:
    """Drop the shared mock stores (for test isolation)."""
    global _mock_storage_client, _mock_dynamodb_client
    _mock_storage_client = None
    _mock_dynamodb_client = None


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
AssetUploaderDep = Annotated[AssetUploader, Depends(get_asset_uploader)]
HttpFileUploaderDep = Annotated[HttpFileUploader, Depends(get_http_file_uploader)]
PageOptionRepositoryDep = Annotated[DynamoDBPageOptionRepository, Depends(get_page_option_repository)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
