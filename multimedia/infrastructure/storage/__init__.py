"""
Object storage integration for asset payloads.

Supports S3 via boto3. Includes mock mode for local development
without credentials.
"""

from .client import (
    MockStorageClient,
    S3StorageClient,
    StorageConfig,
    create_storage_client,
    detect_content_type,
)

__all__ = [
    "MockStorageClient",
    "S3StorageClient",
    "StorageConfig",
    "create_storage_client",
    "detect_content_type",
]
