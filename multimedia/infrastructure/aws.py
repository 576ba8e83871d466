"""
Wiring of the asset uploader against AWS.

Configuration is checked before anything is built: an empty table,
bucket or region is a construction-time error, never one discovered
on the first request. The S3 and DynamoDB clients come from a single
boto3 session so they share credentials and region.
"""

import logging
from typing import Any, Optional

import boto3

from ..core.assets.errors import InvalidArgumentError
from ..core.assets.uploader import AssetUploader, ObjectStorage
from .dynamodb.client import MockDynamoDBClient, create_dynamodb_client
from .dynamodb.repositories.assets import KEY_ATTRIBUTE, DynamoDBAssetRepository
from .storage.client import StorageConfig, create_storage_client

logger = logging.getLogger(__name__)


def create_aws_uploader(
    table_name: str,
    bucket: str,
    region: str,
    endpoint_url: Optional[str] = None,
    storage_mock_mode: bool = False,
    metadata_mock_mode: bool = False,
    acl: str = "public-read",
    content_disposition: str = "attachment",
    server_side_encryption: str = "AES256",
    session: Any = None,
    storage: Optional[ObjectStorage] = None,
    dynamodb_client: Any = None,
) -> AssetUploader:
    """
    Build an AssetUploader backed by S3 and DynamoDB.

    Args:
        table_name: DynamoDB table holding asset records
        bucket: S3 bucket holding payloads
        region: AWS region of both
        endpoint_url: Override for local endpoints such as LocalStack
        storage_mock_mode: Use in-memory payload storage
        metadata_mock_mode: Use in-memory DynamoDB tables
        acl, content_disposition, server_side_encryption: applied to
            every object written
        session: Existing boto3 Session to reuse
        storage: Already-built payload storage, used instead of
            building one (e.g. a mock shared across requests)
        dynamodb_client: Already-built DynamoDB client, same idea

    Raises:
        InvalidArgumentError: table_name, bucket or region is empty
    """
    if not table_name or not bucket or not region:
        raise InvalidArgumentError("TableName, Bucket or Region cannot be empty")

    builds_s3 = storage is None and not storage_mock_mode
    builds_dynamodb = dynamodb_client is None and not metadata_mock_mode

    if session is None and (builds_s3 or builds_dynamodb):
        session = boto3.session.Session(region_name=region)

    if dynamodb_client is None:
        if metadata_mock_mode:
            dynamodb_client = MockDynamoDBClient()
            dynamodb_client.create_table(table_name, KEY_ATTRIBUTE)
        else:
            dynamodb_client = create_dynamodb_client(session=session, endpoint_url=endpoint_url)

    repository = DynamoDBAssetRepository(table_name, dynamodb_client)

    if storage is None:
        storage_config = StorageConfig(
            bucket_name=bucket,
            region=region,
            endpoint_url=endpoint_url,
            acl=acl,
            content_disposition=content_disposition,
            server_side_encryption=server_side_encryption,
        )
        s3_client = session.client("s3", endpoint_url=endpoint_url) if builds_s3 else None
        storage = create_storage_client(storage_config, mock_mode=storage_mock_mode, s3_client=s3_client)

    logger.info(
        "Created asset uploader",
        extra={
            "table": table_name,
            "bucket": bucket,
            "region": region,
            "mock_mode": {"storage": storage_mock_mode, "metadata": metadata_mock_mode},
        },
    )

    return AssetUploader(bucket=bucket, region=region, repository=repository, storage=storage)
