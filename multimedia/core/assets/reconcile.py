"""
Orphan detection across the object and metadata stores.

Uploads write the blob before the record and deletes remove the blob
before the record, so an interrupted operation leaves one side behind:

- orphaned blob: an object with no record pointing at it
- orphaned record: a record whose filename has no object

find_orphans() compares full listings of both stores. Listings are
not a snapshot: an upload in flight can briefly show up as an orphaned
blob, so sweeps should run when uploads are quiet or in dry-run first.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .errors import AssetError
from .models import MultimediaAsset
from .uploader import AssetRepository, ObjectStorage

logger = logging.getLogger(__name__)


class ListableStorage(ObjectStorage, Protocol):
    def list_keys(self, prefix: str = "") -> list[str]: ...


class ListableRepository(AssetRepository, Protocol):
    def list_all(self) -> list[MultimediaAsset]: ...


@dataclass
class ReconciliationReport:
    """What a sweep found and what it managed to clean up."""
    orphaned_blobs: list[str] = field(default_factory=list)
    orphaned_records: list[MultimediaAsset] = field(default_factory=list)
    removed_blobs: list[str] = field(default_factory=list)
    removed_records: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def is_consistent(self) -> bool:
        return not self.orphaned_blobs and not self.orphaned_records


def find_orphans(
    storage: ListableStorage,
    repository: ListableRepository,
) -> ReconciliationReport:
    """Compare both stores and report entries missing their counterpart."""
    keys = set(storage.list_keys())
    records = repository.list_all()
    referenced = {asset.filename for asset in records}

    report = ReconciliationReport(
        orphaned_blobs=sorted(keys - referenced),
        orphaned_records=[asset for asset in records if asset.filename not in keys],
    )

    logger.info(
        "Compared object and metadata stores",
        extra={
            "objects": len(keys),
            "records": len(records),
            "orphaned_blobs": len(report.orphaned_blobs),
            "orphaned_records": len(report.orphaned_records),
        },
    )

    return report


class AssetReconciler:
    """
    Finds orphans and optionally removes them.

    Each removal is attempted once; failures are recorded in the report
    against the blob key or record id and the sweep moves on.
    """

    def __init__(self, storage: ListableStorage, repository: ListableRepository) -> None:
        self._storage = storage
        self._repository = repository

    def sweep(self, dry_run: bool = True) -> ReconciliationReport:
        report = find_orphans(self._storage, self._repository)
        if dry_run:
            return report

        for key in report.orphaned_blobs:
            try:
                self._storage.remove(key)
                report.removed_blobs.append(key)
            except AssetError as e:
                report.failures[key] = str(e)

        for asset in report.orphaned_records:
            try:
                self._repository.remove(asset.id)
                report.removed_records.append(asset.id)
            except AssetError as e:
                report.failures[asset.id] = str(e)

        if report.failures:
            logger.warning(
                "Reconciliation sweep left entries behind",
                extra={"failures": report.failures},
            )

        return report
