"""
Object storage client for asset payloads.

Wraps an S3 bucket behind the ObjectStorage protocol from the core.
Includes an in-memory mock for local development and tests, so the
whole upload flow can run without AWS credentials.

Nothing here retries: every client failure is wrapped in a
StorageError and handed back to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ...core.assets.errors import ObjectNotFoundError, StorageError

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


@dataclass
class StorageConfig:
    """
    Configuration for S3 payload storage.

    acl, content_disposition and server_side_encryption are applied to
    every object written. Their defaults make uploads publicly readable,
    downloaded as attachments and encrypted at rest.
    """
    bucket_name: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    acl: str = "public-read"
    content_disposition: str = "attachment"
    server_side_encryption: str = "AES256"


# (offset, signature, content type), checked in order
_SIGNATURES: list[tuple[int, bytes, str]] = [
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (0, b"BM", "image/bmp"),
    (0, b"\x00\x00\x01\x00", "image/x-icon"),
    (0, b"%PDF-", "application/pdf"),
    (0, b"ID3", "audio/mpeg"),
    (0, b"OggS", "application/ogg"),
    (0, b"fLaC", "audio/flac"),
    (0, b"\x1a\x45\xdf\xa3", "video/webm"),
    (0, b"PK\x03\x04", "application/zip"),
    (4, b"ftyp", "video/mp4"),
]


def detect_content_type(data: bytes) -> str:
    """
    Best-effort MIME type from the leading bytes of a payload.

    Covers the formats assets are usually uploaded as. Anything
    unrecognised is text/plain when it decodes as UTF-8 without control
    characters, otherwise application/octet-stream.
    """
    head = data[:512]

    if head[:4] == b"RIFF":
        if head[8:12] == b"WEBP":
            return "image/webp"
        if head[8:12] == b"WAVE":
            return "audio/wave"
        if head[8:12] == b"AVI ":
            return "video/avi"

    # MPEG audio frame sync without an ID3 header
    if len(head) >= 2 and head[0] == 0xFF and (head[1] & 0xE0) == 0xE0:
        return "audio/mpeg"

    for offset, signature, content_type in _SIGNATURES:
        if head[offset:offset + len(signature)] == signature:
            return content_type

    if not head:
        return "text/plain; charset=utf-8"

    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError:
        if len(head) < 512:
            return "application/octet-stream"
        # A multi-byte character may be cut at the 512 byte boundary
        try:
            text = head[:-3].decode("utf-8")
        except UnicodeDecodeError:
            return "application/octet-stream"

    if any(ord(c) < 32 and c not in "\t\n\r\f" for c in text):
        return "application/octet-stream"

    return "text/plain; charset=utf-8"


def _is_missing_key(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in MISSING_KEY_CODES


class S3StorageClient:
    """
    S3 payload storage for one bucket.

    Accepts an already-built boto3 S3 client so the S3 and DynamoDB
    clients can share one session, and so tests can pass a stub.
    """

    def __init__(self, config: StorageConfig, s3_client: Any = None) -> None:
        self._config = config

        if s3_client is None:
            import boto3
            from botocore.config import Config

            s3_client = boto3.client(
                "s3",
                region_name=config.region,
                endpoint_url=config.endpoint_url,
                config=Config(signature_version="s3v4"),
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized S3 storage client",
            extra={"bucket": config.bucket_name, "region": config.region},
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    def store(self, local_path: str, destination_key: str) -> None:
        """
        Upload the file at local_path under destination_key.

        The file is read fully into memory so its length and content
        type are known before the request is made.
        """
        try:
            with open(local_path, "rb") as source:
                payload = source.read()
        except OSError as e:
            logger.error(
                "Failed to read local file",
                extra={"path": local_path, "error": str(e)},
            )
            raise StorageError(f"Cannot read {local_path}: {e}") from e

        content_type = detect_content_type(payload)

        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=destination_key,
                Body=payload,
                ContentLength=len(payload),
                ContentType=content_type,
                ACL=self._config.acl,
                ContentDisposition=self._config.content_disposition,
                ServerSideEncryption=self._config.server_side_encryption,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to upload object",
                extra={"key": destination_key, "error": str(e)},
            )
            raise StorageError(f"Upload failed: {e}") from e

        logger.debug(
            "Uploaded object",
            extra={
                "key": destination_key,
                "size_bytes": len(payload),
                "content_type": content_type,
            },
        )

    def read(self, key: str) -> bytes:
        """
        Download the payload stored under key.

        The body is read to end-of-stream; a body shorter than the
        advertised length is returned as-is.
        """
        try:
            response = self._s3_client.get_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
            return response["Body"].read()

        except ClientError as e:
            if _is_missing_key(e):
                raise ObjectNotFoundError(f"Object not found: {key}") from e
            logger.error("Failed to download object", extra={"key": key, "error": str(e)})
            raise StorageError(f"Download failed: {e}") from e

        except BotoCoreError as e:
            logger.error("Failed to download object", extra={"key": key, "error": str(e)})
            raise StorageError(f"Download failed: {e}") from e

    def remove(self, key: str) -> None:
        """Delete the object. S3 reports success for missing keys too."""
        try:
            self._s3_client.delete_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to delete object", extra={"key": key, "error": str(e)})
            raise StorageError(f"Delete failed: {e}") from e

        logger.debug("Deleted object", extra={"key": key})

    def list_keys(self, prefix: str = "") -> list[str]:
        """List every key in the bucket under prefix."""
        keys: list[str] = []

        try:
            paginator = self._s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._config.bucket_name, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to list objects", extra={"prefix": prefix, "error": str(e)})
            raise StorageError(f"Listing failed: {e}") from e

        return keys


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory payload storage.

    Objects live in a dict keyed by object key, along with the headers
    S3 would have recorded. Not suitable for production.
    """

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self._config = config or StorageConfig(bucket_name="mock-bucket")
        self.objects: dict[str, bytes] = {}
        self.headers: dict[str, dict[str, str]] = {}
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    def store(self, local_path: str, destination_key: str) -> None:
        try:
            with open(local_path, "rb") as source:
                payload = source.read()
        except OSError as e:
            raise StorageError(f"Cannot read {local_path}: {e}") from e

        self.objects[destination_key] = payload
        self.headers[destination_key] = {
            "ContentType": detect_content_type(payload),
            "ACL": self._config.acl,
            "ContentDisposition": self._config.content_disposition,
            "ServerSideEncryption": self._config.server_side_encryption,
        }

    def read(self, key: str) -> bytes:
        if key not in self.objects:
            raise ObjectNotFoundError(f"Object not found: {key}")
        return self.objects[key]

    def remove(self, key: str) -> None:
        self.objects.pop(key, None)
        self.headers.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self.objects if key.startswith(prefix))


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
    s3_client: Any = None,
):
    """
    Create a storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory client
        s3_client: Pre-built boto3 S3 client, e.g. from a shared session

    Returns:
        S3StorageClient or MockStorageClient
    """
    if mock_mode:
        return MockStorageClient(config)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config, s3_client=s3_client)
