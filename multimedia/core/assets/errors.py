"""
Error types for multimedia asset operations.

Every failure the asset layer can produce is a subclass of AssetError,
so the API layer can map them to HTTP responses in one place.
Infrastructure adapters wrap their client exceptions in these types
(raise ... from e) instead of leaking boto3 errors upward.
"""

from dataclasses import dataclass


class AssetError(Exception):
    """Base class for asset-layer failures."""
    pass


@dataclass(frozen=True)
class FieldViolation:
    """A single field that failed validation."""
    field: str
    message: str


class AssetValidationError(AssetError):
    """
    Raised when an asset fails validation.

    Carries every violation found, not just the first one, so callers
    can report all problems with a request at once.
    """

    def __init__(self, violations: list[FieldViolation]) -> None:
        self.violations = list(violations)
        details = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        super().__init__(f"Invalid multimedia asset ({details})")

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class StorageError(AssetError):
    """Raised when an object store operation fails."""
    pass


class ObjectNotFoundError(StorageError):
    """Raised when the object store reports a missing key."""
    pass


class PersistError(AssetError):
    """Raised when a metadata store write, read or decode fails."""
    pass


class AssetNotFoundError(AssetError):
    """Raised when a requested asset has no metadata record."""

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} not found")


class InvalidArgumentError(AssetError, ValueError):
    """Raised for malformed construction-time configuration."""
    pass


class IngestionError(AssetError):
    """Raised when an inbound payload cannot be extracted."""
    pass


class UploadTooLargeError(IngestionError):
    """Raised when an inbound payload exceeds the configured limit."""
    pass
