"""
Usage reporting for the rotation system.

This module computes post-run disk usage, assembles the run report, persists
it as JSON and renders the human-readable run summary.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .rotation_classifier import discover_log_files
from .rotation_cleanup import discover_archives
from .rotation_models import RotationPolicy, RotationReport, RotationStatistics, UsageSnapshot

logger = logging.getLogger(__name__)

REPORT_PREFIX = "rotation_report"


class UsageReporter:
    """Builds and persists rotation reports."""

    def __init__(self, log_root: Path, archive_root: Path, reports_dir: Optional[Path] = None,
                 extensions: Optional[Iterable[str]] = None):
        self.log_root = Path(log_root)
        self.archive_root = Path(archive_root)
        self.reports_dir = Path(reports_dir) if reports_dir else self.log_root
        self.extensions = extensions

    def snapshot(self) -> UsageSnapshot:
        """Current usage of remaining active files and archives."""
        log_files = discover_log_files(self.log_root, self.archive_root, self.extensions)
        archives = discover_archives(self.archive_root)

        return UsageSnapshot(
            active_files=len(log_files),
            active_bytes=sum(f.size_bytes for f in log_files),
            archive_files=len(archives),
            archive_bytes=sum(a.size_bytes for a in archives)
        )

    def build_report(self, run_timestamp: datetime, policy: RotationPolicy,
                     statistics: RotationStatistics) -> RotationReport:
        return RotationReport(
            run_timestamp=run_timestamp,
            log_path=self.log_root,
            archive_path=self.archive_root,
            policy=policy,
            statistics=statistics.snapshot(),
            usage=self.snapshot()
        )

    def write_report(self, report: RotationReport) -> Optional[Path]:
        """
        Persist the report as a new, timestamp-qualified JSON file.

        Existing reports are never overwritten. Write failures are logged and
        reported as None; they do not affect the run.
        """
        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            report_file = self._create_report_file(report)
        except OSError as e:
            logger.error(f"Failed to save rotation report: {e}")
            return None

        logger.info(f"Rotation report saved: {report_file}")
        return report_file

    def _create_report_file(self, report: RotationReport) -> Path:
        timestamp = report.run_timestamp.strftime("%Y%m%d_%H%M%S")
        payload = json.dumps(report.to_dict(), indent=2)

        attempt = 0
        while True:
            suffix = f"_{attempt}" if attempt else ""
            report_file = self.reports_dir / f"{REPORT_PREFIX}_{timestamp}{suffix}.json"
            try:
                with open(report_file, 'x') as f:
                    f.write(payload)
                return report_file
            except FileExistsError:
                attempt += 1


def _format_bytes(size_bytes: int) -> str:
    size_mb = size_bytes / 1024 / 1024
    if size_mb >= 1:
        return f"{size_mb:.2f} MB"
    return f"{size_bytes / 1024:.2f} KB"


def format_summary(report: RotationReport) -> str:
    """Human-readable summary of a rotation run."""
    stats = report.statistics
    usage = report.usage
    title = "Log Rotation Summary (DRY RUN)" if report.policy.dry_run else "Log Rotation Summary"

    lines = [
        title,
        "=" * 40,
        f"Run timestamp: {report.run_timestamp.isoformat()}",
        f"Log path: {report.log_path}",
        f"Archive path: {report.archive_path}",
        f"Policy: compress after {report.policy.compress_after_days}d, "
        f"delete after {report.policy.retention_days}d, "
        f"prune archives after {report.policy.archive_retention_days}d",
        "",
    ]

    if report.policy.dry_run:
        lines.extend([
            f"Would compress: {stats.planned_compressions} files",
            f"Would delete: {stats.planned_deletions} files",
            f"Would prune: {stats.planned_archive_deletions} archives",
            f"Would remove: {stats.planned_directory_removals} empty directories",
        ])
    else:
        lines.extend([
            f"Files compressed: {stats.files_compressed} ({_format_bytes(stats.bytes_compressed)})",
            f"Files deleted: {stats.files_deleted}",
            f"Archives deleted: {stats.archives_deleted}",
            f"Directories removed: {stats.directories_removed}",
            f"Bytes freed: {_format_bytes(stats.bytes_freed)} "
            f"(net {_format_bytes(stats.net_bytes_freed)} after archives)",
        ])

    lines.extend([
        f"Skipped: {stats.skipped}",
        f"Errors: {stats.errors}",
        "",
        "Usage",
        f"  Active: {usage.active_files} files, {_format_bytes(usage.active_bytes)}",
        f"  Archived: {usage.archive_files} archives, {_format_bytes(usage.archive_bytes)}",
        f"  Total: {_format_bytes(usage.total_bytes)}",
    ])
    return "\n".join(lines)
