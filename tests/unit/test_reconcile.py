"""Unit tests for the orphan reconciliation sweep."""

from unittest.mock import MagicMock

import pytest

from multimedia.core.assets.errors import StorageError
from multimedia.core.assets.reconcile import AssetReconciler, find_orphans


@pytest.fixture
def populated(uploader, storage, repository, png_file):
    """
    One consistent asset, one blob with no record and one record whose
    blob is gone.
    """
    kept = uploader.upload(str(png_file), "kept.png")

    storage.store(str(png_file), "stray.png")

    lost = uploader.upload(str(png_file), "lost.png")
    storage.remove("lost.png")

    return kept, lost


class TestFindOrphans:

    def test_consistent_stores(self, uploader, storage, repository, png_file):
        uploader.upload(str(png_file), "a.png")

        report = find_orphans(storage, repository)

        assert report.is_consistent
        assert report.orphaned_blobs == []
        assert report.orphaned_records == []

    def test_reports_both_kinds(self, populated, storage, repository):
        _, lost = populated

        report = find_orphans(storage, repository)

        assert report.orphaned_blobs == ["stray.png"]
        assert report.orphaned_records == [lost]
        assert not report.is_consistent


class TestSweep:

    def test_dry_run_changes_nothing(self, populated, storage, repository):
        _, lost = populated

        report = AssetReconciler(storage, repository).sweep()

        assert report.removed_blobs == []
        assert report.removed_records == []
        assert "stray.png" in storage.objects
        assert repository.find(lost.id) is not None

    def test_apply_removes_orphans_only(self, populated, storage, repository):
        kept, lost = populated

        report = AssetReconciler(storage, repository).sweep(dry_run=False)

        assert report.removed_blobs == ["stray.png"]
        assert report.removed_records == [lost.id]
        assert "stray.png" not in storage.objects
        assert repository.find(lost.id) is None
        assert repository.find(kept.id) == kept
        assert find_orphans(storage, repository).is_consistent

    def test_failures_are_recorded_and_sweep_continues(self, populated, repository):
        _, lost = populated
        storage = MagicMock()
        storage.list_keys.return_value = ["kept.png", "stray.png"]
        storage.remove.side_effect = StorageError("access denied")

        report = AssetReconciler(storage, repository).sweep(dry_run=False)

        assert report.failures == {"stray.png": "access denied"}
        assert report.removed_records == [lost.id]
