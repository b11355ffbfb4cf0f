"""
Compression stage for the rotation system.

Each compressible file is gzipped into a dated archive under the archive
directory. The source is deleted only once the archive has been written,
flushed and renamed into place.
"""

import gzip
import logging
import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Set

from .rotation_models import ItemResult, ItemStatus, LogFile, Stage

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".gz"
PARTIAL_SUFFIX = ".partial"
DATE_STAMP_FORMAT = "%Y%m%d"

# {stem}_{YYYYMMDD}{suffix}.gz
_ARCHIVE_NAME_RE = re.compile(r"^(?P<stem>.+)_(?P<stamp>\d{8})(?P<suffix>\.[^.]+)?\.gz$")


def archive_name(source_name: str, run_date: datetime) -> str:
    """Derive the archive file name for a source file on a given day."""
    source = Path(source_name)
    return f"{source.stem}_{run_date.strftime(DATE_STAMP_FORMAT)}{source.suffix}{ARCHIVE_SUFFIX}"


def sources_from_archive_name(name: str) -> Set[str]:
    """Recover the original source name encoded in an archive name."""
    match = _ARCHIVE_NAME_RE.match(name)
    if not match:
        return set()
    return {f"{match.group('stem')}{match.group('suffix') or ''}"}


class LogCompressor:
    """Archives compressible log files, one gzip bundle per source per day."""

    def __init__(self, log_root: Path, archive_root: Path, dry_run: bool = False):
        self.log_root = Path(log_root)
        self.archive_root = Path(archive_root)
        self.dry_run = dry_run

    def archive_path_for(self, log_file: LogFile, now: datetime) -> Path:
        """Archive location mirroring the source's directory under the managed root."""
        try:
            relative_parent = log_file.path.parent.resolve().relative_to(self.log_root.resolve())
        except ValueError:
            relative_parent = Path()
        return self.archive_root / relative_parent / archive_name(log_file.path.name, now)

    def compress_files(self, log_files: Iterable[LogFile], now: datetime) -> List[ItemResult]:
        """Compress every file; one failure never stops the batch."""
        results = [self.compress_file(log_file, now) for log_file in log_files]

        compressed = sum(1 for r in results if r.status is ItemStatus.SUCCESS)
        failed = sum(1 for r in results if r.status is ItemStatus.FAILED)
        if self.dry_run:
            planned = sum(1 for r in results if r.status is ItemStatus.PLANNED)
            logger.info(f"DRY RUN: Would compress {planned} files")
        else:
            logger.info(f"Compression complete: {compressed} compressed, {failed} failed")
        return results

    def compress_file(self, log_file: LogFile, now: datetime) -> ItemResult:
        archive_path = self.archive_path_for(log_file, now)

        if archive_path.exists():
            logger.info(f"Archive {archive_path} already exists, skipping {log_file.path}")
            return ItemResult(Stage.COMPRESS, log_file.path, ItemStatus.SKIPPED,
                              archive_path=archive_path)

        if self.dry_run:
            logger.info(f"DRY RUN: Would compress {log_file.path} -> {archive_path}")
            return ItemResult(Stage.COMPRESS, log_file.path, ItemStatus.PLANNED,
                              bytes_affected=log_file.size_bytes, archive_path=archive_path)

        try:
            archive_size = self._write_archive(log_file, archive_path)
        except OSError as e:
            logger.error(f"Failed to compress {log_file.path}: {e}")
            return ItemResult(Stage.COMPRESS, log_file.path, ItemStatus.FAILED,
                              archive_path=archive_path, error_message=str(e))

        try:
            log_file.path.unlink()
        except OSError as e:
            logger.error(f"Archived {log_file.path} but could not remove it: {e}")
            return ItemResult(Stage.COMPRESS, log_file.path, ItemStatus.FAILED,
                              archive_path=archive_path, archive_size_bytes=archive_size,
                              error_message=str(e))

        logger.info(f"Compressed {log_file.path} -> {archive_path} "
                    f"({log_file.size_bytes} -> {archive_size} bytes)")
        return ItemResult(Stage.COMPRESS, log_file.path, ItemStatus.SUCCESS,
                          bytes_affected=log_file.size_bytes, archive_path=archive_path,
                          archive_size_bytes=archive_size)

    def _write_archive(self, log_file: LogFile, archive_path: Path) -> int:
        """Write to a partial file, then rename it over the final name. Returns the archive size."""
        partial_path = archive_path.with_name(archive_path.name + PARTIAL_SUFFIX)
        archive_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(log_file.path, 'rb') as source, open(partial_path, 'wb') as raw:
                with gzip.GzipFile(filename=log_file.path.name, mode='wb', fileobj=raw,
                                   mtime=int(log_file.last_modified.timestamp())) as target:
                    shutil.copyfileobj(source, target)
                raw.flush()
                os.fsync(raw.fileno())
            os.replace(partial_path, archive_path)
            return archive_path.stat().st_size
        except OSError:
            self._discard_partial(partial_path)
            raise

    def _discard_partial(self, partial_path: Path):
        try:
            if partial_path.exists():
                partial_path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial archive {partial_path}: {e}")

