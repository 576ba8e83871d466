"""
Upload and delete orchestration across the object and metadata stores.

The two stores have no shared transaction, so every operation here is
an ordered sequence of single-store calls:

    upload: validate -> store blob -> persist record
    delete: find record -> remove blob -> remove record

A failure between the steps leaves an orphan (a blob with no record
on upload, or a record whose blob is gone on delete). Those are found
and cleaned up by the reconciliation sweep in reconcile.py.

This module is framework-agnostic: storage and repository are passed
in as protocol implementations, so tests run against in-memory fakes.
"""

import logging
from typing import Optional, Protocol

from .errors import AssetNotFoundError, PersistError, StorageError
from .models import AssetType, MultimediaAsset, new_multimedia_asset

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


class ObjectStorage(Protocol):
    """Payload operations against a single bucket."""

    def store(self, local_path: str, destination_key: str) -> None:
        """Upload the file at local_path under destination_key."""
        ...

    def read(self, key: str) -> bytes:
        """Return the full payload stored under key."""
        ...

    def remove(self, key: str) -> None:
        """Delete the payload stored under key."""
        ...


class AssetRepository(Protocol):
    """Metadata record operations, keyed by asset id."""

    def store(self, asset: MultimediaAsset) -> None:
        """Persist the asset and assign its id."""
        ...

    def find(self, asset_id: str) -> Optional[MultimediaAsset]:
        """Return the asset or None when no record exists."""
        ...

    def find_many(self, asset_ids: list[str]) -> list[MultimediaAsset]:
        """Return the assets found, in the order requested."""
        ...

    def remove(self, asset_id: str) -> None:
        """Delete the record for asset_id."""
        ...


def build_bucket_url(bucket: str, region: str) -> str:
    """
    Public base URL of a bucket.

    us-east-1 is addressed without a region in the host; every other
    region uses the dashed s3-{region} host form.
    """
    if region == DEFAULT_REGION:
        return f"https://{bucket}.s3.amazonaws.com"
    return f"https://{bucket}.s3-{region}.amazonaws.com"


def classify_file_type(local_path: str) -> AssetType:
    """
    Decide which AssetType a file is recorded as.

    Every upload is currently recorded as an image regardless of its
    content; the object store still receives a sniffed Content-Type.
    """
    return AssetType.IMAGE


class AssetUploader:
    """
    Keeps the object store and the metadata store in step.

    No step is retried. Errors from either store propagate to the
    caller unchanged, apart from the metadata cleanup in delete().
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        repository: AssetRepository,
        storage: ObjectStorage,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self._repository = repository
        self._storage = storage

    @property
    def bucket_url(self) -> str:
        return build_bucket_url(self.bucket, self.region)

    @property
    def storage(self) -> ObjectStorage:
        return self._storage

    @property
    def repository(self) -> AssetRepository:
        return self._repository

    def upload(self, local_path: str, destination: str) -> MultimediaAsset:
        """
        Store the file at local_path as a new asset named destination.

        Validation runs before any store is touched. The record is only
        written after the blob write succeeds. Returns the persisted
        asset, carrying its new id.
        """
        asset = new_multimedia_asset(
            bucket=self.bucket_url,
            filename=destination,
            type=classify_file_type(local_path),
        )

        self._storage.store(local_path, destination)

        try:
            self._repository.store(asset)
        except PersistError as e:
            logger.error(
                "Blob stored but metadata write failed, blob is orphaned",
                extra={"key": destination, "bucket": self.bucket, "error": str(e)},
            )
            raise

        logger.info(
            "Uploaded asset",
            extra={
                "asset_id": asset.id,
                "key": destination,
                "type": asset.type.value,
            },
        )

        return asset

    def find(self, asset_id: str) -> Optional[MultimediaAsset]:
        return self._repository.find(asset_id)

    def find_many(self, asset_ids: list[str]) -> list[MultimediaAsset]:
        return self._repository.find_many(asset_ids)

    def read(self, asset_id: str) -> tuple[MultimediaAsset, bytes]:
        """Return an asset's record together with its payload."""
        asset = self._repository.find(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)

        return asset, self._storage.read(asset.filename)

    def delete(self, asset_id: str) -> None:
        """
        Delete the blob and then the record of an asset.

        The record counts as gone once blob removal has been attempted:
        its removal is tried even when the blob removal failed, and a
        failure to remove it is logged, not raised. A blob removal
        failure is re-raised after that cleanup attempt.
        """
        asset = self._repository.find(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)

        storage_error: Optional[StorageError] = None
        try:
            self._storage.remove(asset.filename)
        except StorageError as e:
            storage_error = e

        try:
            self._repository.remove(asset_id)
        except PersistError as e:
            logger.warning(
                "Metadata record left behind after blob removal",
                extra={"asset_id": asset_id, "key": asset.filename, "error": str(e)},
            )

        if storage_error is not None:
            logger.error(
                "Failed to remove blob",
                extra={"asset_id": asset_id, "key": asset.filename, "error": str(storage_error)},
            )
            raise storage_error

        logger.info("Deleted asset", extra={"asset_id": asset_id, "key": asset.filename})
