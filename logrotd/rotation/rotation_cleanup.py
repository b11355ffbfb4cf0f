"""
Deletion stages for the rotation system.

This module handles raw log deletion past the retention ceiling, pruning of
archives past their retention horizon, and removal of directories left empty.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from .rotation_classifier import age_of, is_within
from .rotation_compression import ARCHIVE_SUFFIX, PARTIAL_SUFFIX, sources_from_archive_name
from .rotation_models import Archive, ItemResult, ItemStatus, LogFile, Stage

logger = logging.getLogger(__name__)


def discover_archives(archive_root: Path) -> List[Archive]:
    """Find every archive bundle under the archive directory."""
    archive_root = Path(archive_root)
    if not archive_root.is_dir():
        return []

    archives = []
    for path in sorted(archive_root.rglob(f"*{ARCHIVE_SUFFIX}")):
        if not path.is_file():
            continue
        try:
            archives.append(Archive.from_path(path, sources_from_archive_name(path.name)))
        except OSError as e:
            logger.warning(f"Skipping archive {path}: {e}")
    return archives


def discover_partial_archives(archive_root: Path) -> List[Archive]:
    """Find partial archives left behind by an interrupted compression."""
    archive_root = Path(archive_root)
    if not archive_root.is_dir():
        return []

    partials = []
    for path in sorted(archive_root.rglob(f"*{ARCHIVE_SUFFIX}{PARTIAL_SUFFIX}")):
        if not path.is_file():
            continue
        try:
            partials.append(Archive.from_path(path))
        except OSError as e:
            logger.warning(f"Skipping partial archive {path}: {e}")
    return partials


class RawLogCleaner:
    """Deletes raw files that reached the retention ceiling."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def delete_files(self, log_files: Iterable[LogFile]) -> List[ItemResult]:
        results = [self.delete_file(log_file) for log_file in log_files]
        deleted = sum(1 for r in results if r.status is ItemStatus.SUCCESS)
        logger.info(f"Raw deletion complete: {deleted} of {len(results)} expired files deleted")
        return results

    def delete_file(self, log_file: LogFile) -> ItemResult:
        if self.dry_run:
            logger.info(f"DRY RUN: Would delete expired file {log_file.path} ({log_file.size_bytes} bytes)")
            return ItemResult(Stage.DELETE, log_file.path, ItemStatus.PLANNED,
                              bytes_affected=log_file.size_bytes)

        try:
            log_file.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Expired file {log_file.path} already removed")
            return ItemResult(Stage.DELETE, log_file.path, ItemStatus.SKIPPED)
        except OSError as e:
            logger.error(f"Failed to delete expired file {log_file.path}: {e}")
            return ItemResult(Stage.DELETE, log_file.path, ItemStatus.FAILED, error_message=str(e))

        logger.info(f"Deleted expired file {log_file.path} ({log_file.size_bytes} bytes)")
        return ItemResult(Stage.DELETE, log_file.path, ItemStatus.SUCCESS,
                          bytes_affected=log_file.size_bytes)


class ArchivePruner:
    """Deletes archives older than the archive retention horizon."""

    def __init__(self, archive_root: Path, archive_retention_days: int, dry_run: bool = False):
        self.archive_root = Path(archive_root)
        self.archive_retention_days = archive_retention_days
        self.dry_run = dry_run

    def is_expired(self, archive: Archive, now: datetime) -> bool:
        return age_of(archive.last_modified, now) >= timedelta(days=self.archive_retention_days)

    def prune(self, now: datetime, archives: Optional[List[Archive]] = None) -> List[ItemResult]:
        if archives is None:
            archives = discover_archives(self.archive_root)

        results = [self.delete_archive(a) for a in archives if self.is_expired(a, now)]
        logger.info(f"Archive pruning complete: {len(results)} of {len(archives)} archives past "
                    f"{self.archive_retention_days} days")
        return results

    def delete_archive(self, archive: Archive) -> ItemResult:
        if self.dry_run:
            logger.info(f"DRY RUN: Would delete archive {archive.path}")
            return ItemResult(Stage.PRUNE, archive.path, ItemStatus.PLANNED,
                              bytes_affected=archive.size_bytes)

        try:
            archive.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Archive {archive.path} already removed")
            return ItemResult(Stage.PRUNE, archive.path, ItemStatus.SKIPPED)
        except OSError as e:
            logger.error(f"Failed to delete archive {archive.path}: {e}")
            return ItemResult(Stage.PRUNE, archive.path, ItemStatus.FAILED, error_message=str(e))

        logger.info(f"Deleted archive {archive.path}")
        return ItemResult(Stage.PRUNE, archive.path, ItemStatus.SUCCESS,
                          bytes_affected=archive.size_bytes)

    def discard_partials(self, now: datetime) -> List[ItemResult]:
        """
        Remove partial archives last written before this run started.

        A completed compression always renames or removes its partial file,
        so any partial older than the run belongs to an interrupted one.
        """
        stale = [p for p in discover_partial_archives(self.archive_root)
                 if age_of(p.last_modified, now) > timedelta(0)]
        results = [self.discard_partial(p) for p in stale]
        if results:
            logger.info(f"Discarded {len(results)} partial archives from interrupted runs")
        return results

    def discard_partial(self, partial: Archive) -> ItemResult:
        if self.dry_run:
            logger.info(f"DRY RUN: Would remove partial archive {partial.path}")
            return ItemResult(Stage.DISCARD, partial.path, ItemStatus.PLANNED,
                              bytes_affected=partial.size_bytes)

        try:
            partial.path.unlink()
        except FileNotFoundError:
            return ItemResult(Stage.DISCARD, partial.path, ItemStatus.SKIPPED)
        except OSError as e:
            logger.error(f"Failed to remove partial archive {partial.path}: {e}")
            return ItemResult(Stage.DISCARD, partial.path, ItemStatus.FAILED, error_message=str(e))

        logger.warning(f"Removed partial archive {partial.path} left by an interrupted run")
        return ItemResult(Stage.DISCARD, partial.path, ItemStatus.SUCCESS,
                          bytes_affected=partial.size_bytes)


class DirectorySweeper:
    """
    Removes empty directories under the managed root.

    The archive subtree is left to the archive stages: it is neither walked
    nor swept. The managed root itself is never removed. A directory holding
    any entry at all is left alone.
    """

    def __init__(self, log_root: Path, archive_root: Path, dry_run: bool = False):
        self.log_root = Path(log_root)
        self.archive_root = Path(archive_root)
        self.dry_run = dry_run

    def sweep(self) -> List[ItemResult]:
        results = []

        # Children come before their parents, so parents emptied by removing
        # their children are seen as empty.
        for directory in reversed(self._candidate_directories()):
            result = self._sweep_directory(directory)
            if result is not None:
                results.append(result)

        removed = sum(1 for r in results if r.status is ItemStatus.SUCCESS)
        logger.info(f"Directory sweep complete: {removed} empty directories removed")
        return results

    def _candidate_directories(self) -> List[Path]:
        """Directories below the managed root in top-down order, archive subtree excluded."""
        directories = []
        for dirpath, dirnames, _ in os.walk(self.log_root):
            current = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not is_within(current / d, self.archive_root))
            directories.extend(current / d for d in dirnames)
        return directories

    def _sweep_directory(self, directory: Path) -> Optional[ItemResult]:
        try:
            is_empty = not any(directory.iterdir())
        except OSError as e:
            logger.error(f"Failed to inspect directory {directory}: {e}")
            return ItemResult(Stage.SWEEP, directory, ItemStatus.FAILED, error_message=str(e))

        if not is_empty:
            return None

        if self.dry_run:
            logger.info(f"DRY RUN: Would remove empty directory {directory}")
            return ItemResult(Stage.SWEEP, directory, ItemStatus.PLANNED)

        try:
            directory.rmdir()
        except OSError as e:
            logger.error(f"Failed to remove empty directory {directory}: {e}")
            return ItemResult(Stage.SWEEP, directory, ItemStatus.FAILED, error_message=str(e))

        logger.debug(f"Removed empty directory {directory}")
        return ItemResult(Stage.SWEEP, directory, ItemStatus.SUCCESS)
