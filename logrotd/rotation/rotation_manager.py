"""
Main rotation manager - orchestrates the rotation pipeline.

This is the main entry point that runs classification, compression, raw
deletion, archive pruning, directory sweeping and usage reporting in order.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from .rotation_classifier import classify_files, discover_log_files, normalize_extensions
from .rotation_cleanup import ArchivePruner, DirectorySweeper, RawLogCleaner
from .rotation_compression import LogCompressor
from .rotation_errors import LogPathNotFoundError
from .rotation_metrics import RotationMetrics
from .rotation_models import ItemResult, RotationPolicy, RotationReport, RotationStatistics
from .rotation_reporting import UsageReporter

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_DIR_NAME = "archive"


class RotationManager:
    """
    Runs one rotation pass over a managed log directory.

    Every stage returns per-item results; the manager folds them into the
    run's statistics. Per-item failures are counted, never raised.
    """

    def __init__(self, log_path: str, archive_path: Optional[str] = None,
                 policy: Optional[RotationPolicy] = None, reports_dir: Optional[str] = None,
                 extensions: Optional[Iterable[str]] = None, metrics_file: Optional[str] = None):
        self.log_path = Path(log_path)
        self.archive_path = Path(archive_path) if archive_path else self.log_path / DEFAULT_ARCHIVE_DIR_NAME
        self.policy = policy or RotationPolicy()
        self.reports_dir = Path(reports_dir) if reports_dir else None
        self.extensions = normalize_extensions(extensions)
        self.metrics_file = Path(metrics_file) if metrics_file else None

        self.compressor = LogCompressor(self.log_path, self.archive_path, self.policy.dry_run)
        self.cleaner = RawLogCleaner(self.policy.dry_run)
        self.pruner = ArchivePruner(self.archive_path, self.policy.archive_retention_days, self.policy.dry_run)
        self.sweeper = DirectorySweeper(self.log_path, self.archive_path, self.policy.dry_run)
        self.reporter = UsageReporter(self.log_path, self.archive_path, self.reports_dir, self.extensions)
        self.metrics = RotationMetrics()

        self.last_results: List[ItemResult] = []
        self.last_report_path: Optional[Path] = None

        if self.policy.compress_after_days >= self.policy.retention_days:
            logger.warning(f"compress_after_days ({self.policy.compress_after_days}) is not below "
                           f"retention_days ({self.policy.retention_days}); aging files will be "
                           f"deleted without being compressed")

    def run(self, now: Optional[datetime] = None) -> RotationReport:
        """
        Run all stages in order and return the run report.

        Args:
            now: Reference time for age calculations and archive stamps.
                Defaults to the current local time.

        Raises:
            LogPathNotFoundError: If the managed log directory does not exist.
        """
        if not self.log_path.is_dir():
            raise LogPathNotFoundError(f"Log path does not exist: {self.log_path}")

        now = now or datetime.now().astimezone()
        start_time = time.monotonic()
        statistics = RotationStatistics()
        results: List[ItemResult] = []

        logger.info(f"Starting log rotation for {self.log_path} (dry_run={self.policy.dry_run})")

        self._ensure_archive_dir()

        log_files = discover_log_files(self.log_path, self.archive_path, self.extensions)
        classification = classify_files(log_files, now, self.policy)

        results.extend(self.compressor.compress_files(classification.compressible, now))
        results.extend(self.cleaner.delete_files(classification.expired))
        results.extend(self.pruner.prune(now))
        results.extend(self.pruner.discard_partials(now))
        results.extend(self.sweeper.sweep())

        statistics.record_all(results)
        self.last_results = results

        report = self.reporter.build_report(now, self.policy, statistics)
        if self.policy.dry_run:
            logger.info(f"DRY RUN: Report not written: {report.to_dict()}")
            self.last_report_path = None
        else:
            self.last_report_path = self.reporter.write_report(report)

        duration = time.monotonic() - start_time
        self._export_metrics(report, duration)

        logger.info(f"Log rotation completed in {duration:.2f} seconds with {statistics.errors} errors")
        return report

    def _ensure_archive_dir(self):
        if self.archive_path.is_dir():
            return
        if self.policy.dry_run:
            logger.info(f"DRY RUN: Would create archive directory {self.archive_path}")
            return
        try:
            self.archive_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created archive directory {self.archive_path}")
        except OSError as e:
            logger.error(f"Failed to create archive directory {self.archive_path}: {e}")

    def _export_metrics(self, report: RotationReport, duration: float):
        self.metrics.update(report, duration)
        if self.metrics_file is None:
            return
        if self.policy.dry_run:
            logger.info(f"DRY RUN: Metrics file {self.metrics_file} not written")
            return
        self.metrics.write_textfile(self.metrics_file)


def create_rotation_manager(log_path: str, archive_path: Optional[str] = None,
                            policy: Optional[RotationPolicy] = None,
                            reports_dir: Optional[str] = None,
                            extensions: Optional[Iterable[str]] = None,
                            metrics_file: Optional[str] = None) -> RotationManager:
    """Create a new RotationManager instance."""
    return RotationManager(log_path, archive_path, policy, reports_dir, extensions, metrics_file)
