"""
Data models for the rotation system.

This module contains all the data classes and enums used by the rotation system.
"""

import copy
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any, Set

from .rotation_errors import InvalidPolicyError


DEFAULT_COMPRESS_AFTER_DAYS = 7
DEFAULT_RETENTION_DAYS = 30
DEFAULT_ARCHIVE_RETENTION_DAYS = 90
DEFAULT_EXTENSIONS = ('log', 'json')


class AgeBucket(Enum):
    """Lifecycle buckets assigned by the age classifier."""
    ACTIVE = "active"
    COMPRESSIBLE = "compressible"
    EXPIRED = "expired"


class ItemStatus(Enum):
    """Outcome of a stage applied to a single file or directory."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"  # dry run


class Stage(Enum):
    """Pipeline stages that produce item results."""
    COMPRESS = "compress"
    DELETE = "delete"
    PRUNE = "prune"
    SWEEP = "sweep"
    DISCARD = "discard"  # stale partial archives


@dataclass
class LogFile:
    """A raw log or metadata file under the managed root."""
    path: Path
    last_modified: datetime
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path) -> 'LogFile':
        stat = os.stat(path)
        return cls(
            path=Path(path),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size
        )


@dataclass
class Archive:
    """A compressed bundle stored under the archive directory."""
    path: Path
    last_modified: datetime
    size_bytes: int
    sources: Set[str] = field(default_factory=set)

    @classmethod
    def from_path(cls, path: Path, sources: Optional[Set[str]] = None) -> 'Archive':
        stat = os.stat(path)
        return cls(
            path=Path(path),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
            sources=set(sources or ())
        )


@dataclass(frozen=True)
class RotationPolicy:
    """Age thresholds (in days) driving a rotation run."""
    compress_after_days: int = DEFAULT_COMPRESS_AFTER_DAYS
    retention_days: int = DEFAULT_RETENTION_DAYS
    archive_retention_days: int = DEFAULT_ARCHIVE_RETENTION_DAYS
    dry_run: bool = False

    def __post_init__(self):
        for name in ('compress_after_days', 'retention_days', 'archive_retention_days'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidPolicyError(f"{name} must be a non-negative integer, got {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compressAfterDays": self.compress_after_days,
            "retentionDays": self.retention_days,
            "archiveRetentionDays": self.archive_retention_days,
            "dryRun": self.dry_run
        }


@dataclass
class ClassificationResult:
    """Log files partitioned by age bucket."""
    active: List[LogFile] = field(default_factory=list)
    compressible: List[LogFile] = field(default_factory=list)
    expired: List[LogFile] = field(default_factory=list)

    def add(self, bucket: AgeBucket, log_file: LogFile):
        if bucket is AgeBucket.EXPIRED:
            self.expired.append(log_file)
        elif bucket is AgeBucket.COMPRESSIBLE:
            self.compressible.append(log_file)
        else:
            self.active.append(log_file)


@dataclass
class ItemResult:
    """Result of applying one stage to one filesystem entry."""
    stage: Stage
    path: Path
    status: ItemStatus
    bytes_affected: int = 0
    archive_path: Optional[Path] = None
    archive_size_bytes: int = 0
    error_message: Optional[str] = None


@dataclass
class RotationStatistics:
    """Counters accumulated over a single rotation run."""
    files_compressed: int = 0
    files_deleted: int = 0
    archives_deleted: int = 0
    directories_removed: int = 0
    partial_archives_removed: int = 0
    bytes_freed: int = 0
    bytes_compressed: int = 0
    bytes_archived: int = 0
    archive_bytes_freed: int = 0
    errors: int = 0
    skipped: int = 0
    planned_compressions: int = 0
    planned_deletions: int = 0
    planned_archive_deletions: int = 0
    planned_directory_removals: int = 0
    planned_partial_removals: int = 0

    @property
    def net_bytes_freed(self) -> int:
        """Raw bytes removed minus the space taken by newly written archives."""
        return self.bytes_freed - self.bytes_archived

    def record(self, result: ItemResult):
        """Fold a single item result into the counters."""
        if result.status is ItemStatus.FAILED:
            self.errors += 1
        elif result.status is ItemStatus.SKIPPED:
            self.skipped += 1
        elif result.status is ItemStatus.PLANNED:
            self._record_planned(result.stage)
        else:
            self._record_success(result)

    def record_all(self, results: List[ItemResult]):
        for result in results:
            self.record(result)

    def _record_planned(self, stage: Stage):
        if stage is Stage.COMPRESS:
            self.planned_compressions += 1
        elif stage is Stage.DELETE:
            self.planned_deletions += 1
        elif stage is Stage.PRUNE:
            self.planned_archive_deletions += 1
        elif stage is Stage.SWEEP:
            self.planned_directory_removals += 1
        elif stage is Stage.DISCARD:
            self.planned_partial_removals += 1

    def _record_success(self, result: ItemResult):
        if result.stage is Stage.COMPRESS:
            self.files_compressed += 1
            self.bytes_compressed += result.bytes_affected
            self.bytes_freed += result.bytes_affected
            self.bytes_archived += result.archive_size_bytes
        elif result.stage is Stage.DELETE:
            self.files_deleted += 1
            self.bytes_freed += result.bytes_affected
        elif result.stage is Stage.PRUNE:
            self.archives_deleted += 1
            self.archive_bytes_freed += result.bytes_affected
        elif result.stage is Stage.SWEEP:
            self.directories_removed += 1
        elif result.stage is Stage.DISCARD:
            self.partial_archives_removed += 1

    def snapshot(self) -> 'RotationStatistics':
        """Return a detached copy for the report."""
        return copy.copy(self)

    def to_dict(self) -> Dict[str, int]:
        return {
            "filesCompressed": self.files_compressed,
            "filesDeleted": self.files_deleted,
            "archivesDeleted": self.archives_deleted,
            "directoriesRemoved": self.directories_removed,
            "partialArchivesRemoved": self.partial_archives_removed,
            "bytesFreed": self.bytes_freed,
            "bytesCompressed": self.bytes_compressed,
            "bytesArchived": self.bytes_archived,
            "archiveBytesFreed": self.archive_bytes_freed,
            "netBytesFreed": self.net_bytes_freed,
            "errors": self.errors,
            "skipped": self.skipped,
            "plannedCompressions": self.planned_compressions,
            "plannedDeletions": self.planned_deletions,
            "plannedArchiveDeletions": self.planned_archive_deletions,
            "plannedDirectoryRemovals": self.planned_directory_removals,
            "plannedPartialRemovals": self.planned_partial_removals
        }


@dataclass(frozen=True)
class UsageSnapshot:
    """Disk usage of the managed tree after a run."""
    active_files: int
    active_bytes: int
    archive_files: int
    archive_bytes: int

    @property
    def total_bytes(self) -> int:
        return self.active_bytes + self.archive_bytes

    def to_dict(self) -> Dict[str, int]:
        return {
            "activeFiles": self.active_files,
            "activeBytes": self.active_bytes,
            "archiveFiles": self.archive_files,
            "archiveBytes": self.archive_bytes,
            "totalBytes": self.total_bytes
        }


@dataclass(frozen=True)
class RotationReport:
    """Persisted outcome of one rotation run."""
    run_timestamp: datetime
    log_path: Path
    archive_path: Path
    policy: RotationPolicy
    statistics: RotationStatistics
    usage: UsageSnapshot

    def to_dict(self) -> Dict[str, Any]:
        settings = {
            "logPath": str(self.log_path),
            "archivePath": str(self.archive_path)
        }
        settings.update(self.policy.to_dict())
        return {
            "runTimestamp": self.run_timestamp.isoformat(),
            "settings": settings,
            "statistics": self.statistics.to_dict(),
            "usage": self.usage.to_dict()
        }
