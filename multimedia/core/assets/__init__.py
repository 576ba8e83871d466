"""
Multimedia asset logic.

Contains the asset model and validation, the upload/delete orchestrator,
stream ingestion and the cross-store reconciliation sweep.
"""

from .errors import (
    AssetError,
    AssetNotFoundError,
    AssetValidationError,
    FieldViolation,
    IngestionError,
    InvalidArgumentError,
    ObjectNotFoundError,
    PersistError,
    StorageError,
    UploadTooLargeError,
)
from .models import ACCEPTED_TYPES, AssetType, MultimediaAsset, new_multimedia_asset
from .options import PageOption
from .uploader import AssetUploader, build_bucket_url

__all__ = [
    "ACCEPTED_TYPES",
    "AssetError",
    "AssetNotFoundError",
    "AssetType",
    "AssetUploader",
    "AssetValidationError",
    "FieldViolation",
    "IngestionError",
    "InvalidArgumentError",
    "MultimediaAsset",
    "ObjectNotFoundError",
    "PageOption",
    "PersistError",
    "StorageError",
    "UploadTooLargeError",
    "build_bucket_url",
    "new_multimedia_asset",
]
