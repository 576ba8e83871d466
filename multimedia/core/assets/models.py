"""
Domain models for multimedia assets.

An asset is split across two stores: the payload lives in the object
store and a MultimediaAsset record describing it lives in the metadata
store. These models have no knowledge of either store; marshalling to
and from store rows happens in the infrastructure repositories.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse

from .errors import AssetValidationError, FieldViolation


class AssetType(Enum):
    """Kinds of multimedia content."""
    SOUND = "sound"
    IMAGE = "image"
    PDF = "pdf"
    VIDEO = "video"  # Only found in older records, rejected for new assets


ACCEPTED_TYPES = frozenset({AssetType.SOUND, AssetType.IMAGE, AssetType.PDF})


def utc_timestamp() -> str:
    """Current time as RFC 3339 with an explicit UTC offset."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class MultimediaAsset:
    """
    The metadata record for one stored payload.

    `id` stays None until the metadata repository persists the record.
    Use new_multimedia_asset() to build assets so validation always runs;
    the plain constructor is for repositories rehydrating stored rows.
    """
    bucket: str
    filename: str
    type: AssetType
    created_at: str = field(default_factory=utc_timestamp)
    id: Optional[str] = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def url(self) -> str:
        """Public address of the payload."""
        return f"{self.bucket.rstrip('/')}/{self.filename.lstrip('/')}"


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def _parse_type(value: Union[AssetType, str, None]) -> Optional[AssetType]:
    if isinstance(value, AssetType):
        return value
    try:
        return AssetType(value)
    except ValueError:
        return None


def new_multimedia_asset(
    bucket: str,
    filename: str,
    type: Union[AssetType, str],
) -> MultimediaAsset:
    """
    Validate the inputs and build an unpersisted asset.

    All fields are checked before raising so the AssetValidationError
    lists every problem. On success created_at is stamped with the
    current time and id is left unset.
    """
    violations: list[FieldViolation] = []

    if not bucket:
        violations.append(FieldViolation("bucket", "is required"))
    elif not _is_absolute_url(bucket):
        violations.append(FieldViolation("bucket", "must be an absolute URL"))

    if not filename:
        violations.append(FieldViolation("filename", "is required"))

    asset_type = _parse_type(type)
    if not type:
        violations.append(FieldViolation("type", "is required"))
    elif asset_type not in ACCEPTED_TYPES:
        accepted = ", ".join(sorted(t.value for t in ACCEPTED_TYPES))
        violations.append(FieldViolation("type", f"must be one of: {accepted}"))

    if violations:
        raise AssetValidationError(violations)

    return MultimediaAsset(
        bucket=bucket,
        filename=filename,
        type=asset_type,
        created_at=utc_timestamp(),
    )
