"""
Unit tests for the rotation data models.

Tests policy validation, statistics folding and report serialisation.
"""

import unittest
from datetime import datetime
from pathlib import Path

import pytest

from logrotd.rotation.rotation_errors import InvalidPolicyError
from logrotd.rotation.rotation_models import (
    ItemResult, ItemStatus, RotationPolicy, RotationReport, RotationStatistics,
    Stage, UsageSnapshot
)


class TestRotationPolicy(unittest.TestCase):
    """Test rotation policy functionality."""

    def test_default_policy(self):
        """Test the default policy thresholds."""
        policy = RotationPolicy()

        self.assertEqual(policy.compress_after_days, 7)
        self.assertEqual(policy.retention_days, 30)
        self.assertEqual(policy.archive_retention_days, 90)
        self.assertFalse(policy.dry_run)

    def test_negative_days_rejected(self):
        """Test negative day counts are rejected."""
        with self.assertRaises(InvalidPolicyError):
            RotationPolicy(compress_after_days=-1)

        with self.assertRaises(InvalidPolicyError):
            RotationPolicy(archive_retention_days=-5)

    def test_non_integer_days_rejected(self):
        """Test non-integer day counts are rejected."""
        with self.assertRaises(InvalidPolicyError):
            RotationPolicy(retention_days="30")

        with self.assertRaises(InvalidPolicyError):
            RotationPolicy(retention_days=None)

        with self.assertRaises(InvalidPolicyError):
            RotationPolicy(retention_days=True)

    def test_invalid_policy_is_value_error(self):
        """Test invalid policy errors are also ValueErrors."""
        with pytest.raises(ValueError):
            RotationPolicy(compress_after_days=-1)

    def test_zero_days_allowed(self):
        """Test zero-day thresholds are allowed."""
        policy = RotationPolicy(compress_after_days=0, retention_days=0, archive_retention_days=0)
        self.assertEqual(policy.retention_days, 0)

    def test_policy_is_immutable(self):
        """Test the policy cannot be changed after creation."""
        policy = RotationPolicy()
        with self.assertRaises(AttributeError):
            policy.retention_days = 10

    def test_to_dict(self):
        """Test policy serialisation."""
        policy = RotationPolicy(3, 14, 60, True)
        self.assertEqual(policy.to_dict(), {
            "compressAfterDays": 3,
            "retentionDays": 14,
            "archiveRetentionDays": 60,
            "dryRun": True
        })


class TestRotationStatistics(unittest.TestCase):
    """Test folding item results into run statistics."""

    def setUp(self):
        self.stats = RotationStatistics()

    def test_compress_success(self):
        """Test a compressed file updates the compression counters."""
        self.stats.record(ItemResult(Stage.COMPRESS, Path("a.log"), ItemStatus.SUCCESS,
                                     bytes_affected=1000, archive_size_bytes=120))

        self.assertEqual(self.stats.files_compressed, 1)
        self.assertEqual(self.stats.bytes_compressed, 1000)
        self.assertEqual(self.stats.bytes_freed, 1000)
        self.assertEqual(self.stats.bytes_archived, 120)
        self.assertEqual(self.stats.net_bytes_freed, 880)

    def test_delete_success(self):
        """Test a deleted file updates the deletion counters."""
        self.stats.record(ItemResult(Stage.DELETE, Path("a.log"), ItemStatus.SUCCESS, bytes_affected=500))

        self.assertEqual(self.stats.files_deleted, 1)
        self.assertEqual(self.stats.bytes_freed, 500)
        self.assertEqual(self.stats.files_compressed, 0)

    def test_prune_and_sweep_success(self):
        """Test pruned archives and swept directories are counted."""
        self.stats.record(ItemResult(Stage.PRUNE, Path("a.gz"), ItemStatus.SUCCESS, bytes_affected=64))
        self.stats.record(ItemResult(Stage.SWEEP, Path("sub"), ItemStatus.SUCCESS))

        self.assertEqual(self.stats.archives_deleted, 1)
        self.assertEqual(self.stats.archive_bytes_freed, 64)
        self.assertEqual(self.stats.directories_removed, 1)
        self.assertEqual(self.stats.bytes_freed, 0)

    def test_discarded_partials_are_counted_separately(self):
        """Test removed partial archives do not count as pruned archives."""
        self.stats.record(ItemResult(Stage.DISCARD, Path("a.gz.partial"), ItemStatus.SUCCESS,
                                     bytes_affected=32))
        self.stats.record(ItemResult(Stage.DISCARD, Path("b.gz.partial"), ItemStatus.PLANNED))

        self.assertEqual(self.stats.partial_archives_removed, 1)
        self.assertEqual(self.stats.planned_partial_removals, 1)
        self.assertEqual(self.stats.archives_deleted, 0)
        self.assertEqual(self.stats.archive_bytes_freed, 0)
        self.assertEqual(self.stats.to_dict()["partialArchivesRemoved"], 1)

    def test_failures_count_as_errors_only(self):
        """Test failures only increment the error counter."""
        self.stats.record_all([
            ItemResult(Stage.COMPRESS, Path("a.log"), ItemStatus.FAILED, error_message="locked"),
            ItemResult(Stage.DELETE, Path("b.log"), ItemStatus.FAILED, error_message="denied"),
        ])

        self.assertEqual(self.stats.errors, 2)
        self.assertEqual(self.stats.files_compressed, 0)
        self.assertEqual(self.stats.files_deleted, 0)

    def test_skipped_is_not_an_error(self):
        """Test skipped items are not errors."""
        self.stats.record(ItemResult(Stage.COMPRESS, Path("a.log"), ItemStatus.SKIPPED))

        self.assertEqual(self.stats.skipped, 1)
        self.assertEqual(self.stats.errors, 0)

    def test_planned_results_leave_mutation_counters_alone(self):
        """Test planned items only increment the planned counters."""
        self.stats.record_all([
            ItemResult(Stage.COMPRESS, Path("a.log"), ItemStatus.PLANNED, bytes_affected=10),
            ItemResult(Stage.DELETE, Path("b.log"), ItemStatus.PLANNED, bytes_affected=10),
            ItemResult(Stage.PRUNE, Path("c.gz"), ItemStatus.PLANNED, bytes_affected=10),
            ItemResult(Stage.SWEEP, Path("d"), ItemStatus.PLANNED),
        ])

        self.assertEqual(self.stats.planned_compressions, 1)
        self.assertEqual(self.stats.planned_deletions, 1)
        self.assertEqual(self.stats.planned_archive_deletions, 1)
        self.assertEqual(self.stats.planned_directory_removals, 1)
        self.assertEqual(self.stats.files_compressed, 0)
        self.assertEqual(self.stats.files_deleted, 0)
        self.assertEqual(self.stats.archives_deleted, 0)
        self.assertEqual(self.stats.bytes_freed, 0)

    def test_snapshot_is_detached(self):
        """Test the snapshot does not change with the live counters."""
        self.stats.files_deleted = 2
        snapshot = self.stats.snapshot()
        self.stats.files_deleted = 5

        self.assertEqual(snapshot.files_deleted, 2)


class TestRotationReport(unittest.TestCase):
    """Test report serialisation."""

    def test_to_dict(self):
        """Test report serialisation."""
        stats = RotationStatistics(files_compressed=1, bytes_freed=100)
        usage = UsageSnapshot(active_files=2, active_bytes=300, archive_files=1, archive_bytes=40)
        report = RotationReport(
            run_timestamp=datetime(2026, 10, 18, 3, 0, 0),
            log_path=Path("/var/log/svc"),
            archive_path=Path("/var/log/svc/archive"),
            policy=RotationPolicy(),
            statistics=stats,
            usage=usage
        )

        data = report.to_dict()

        self.assertEqual(data["runTimestamp"], "2026-10-18T03:00:00")
        self.assertEqual(data["settings"]["logPath"], "/var/log/svc")
        self.assertEqual(data["settings"]["compressAfterDays"], 7)
        self.assertEqual(data["statistics"]["filesCompressed"], 1)
        self.assertEqual(data["statistics"]["bytesFreed"], 100)
        self.assertEqual(data["usage"]["totalBytes"], 340)
