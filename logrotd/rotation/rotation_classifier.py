"""
File discovery and age classification for the rotation system.

Files under the archive directory are never classified; they are only
visible to the archive pruning stage.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from .rotation_models import (
    AgeBucket, ClassificationResult, LogFile, RotationPolicy, DEFAULT_EXTENSIONS
)

logger = logging.getLogger(__name__)


def normalize_extensions(extensions: Optional[Iterable[str]]) -> List[str]:
    """Lower-case extensions without leading dots."""
    if not extensions:
        extensions = DEFAULT_EXTENSIONS
    return sorted({ext.lower().lstrip('.') for ext in extensions if ext.strip('.')})


def is_within(path: Path, root: Path) -> bool:
    """True if path is root or lies below it."""
    try:
        Path(path).resolve().relative_to(Path(root).resolve())
        return True
    except ValueError:
        return False


def age_of(last_modified: datetime, now: datetime) -> timedelta:
    """
    Elapsed time between two instants.

    Compared as epoch seconds, so naive local and timezone-aware datetimes
    mix freely and a DST change never adds or removes an hour of age.
    """
    return timedelta(seconds=now.timestamp() - last_modified.timestamp())


def has_extension(path: Path, extensions: Iterable[str]) -> bool:
    return path.suffix.lower().lstrip('.') in extensions


def discover_log_files(log_root: Path, archive_root: Optional[Path] = None,
                       extensions: Optional[Iterable[str]] = None) -> List[LogFile]:
    """
    Find raw log files under the managed root.

    The archive subtree is pruned from the walk. Files that disappear or
    cannot be stat'ed while walking are skipped with a warning.
    """
    log_root = Path(log_root)
    extensions = normalize_extensions(extensions)
    archive_resolved = Path(archive_root).resolve() if archive_root else None
    log_files = []

    for dirpath, dirnames, filenames in os.walk(log_root):
        current = Path(dirpath)
        if archive_resolved is not None:
            dirnames[:] = [d for d in dirnames if (current / d).resolve() != archive_resolved]
        dirnames.sort()

        for filename in sorted(filenames):
            path = current / filename
            if not has_extension(path, extensions):
                continue
            try:
                log_files.append(LogFile.from_path(path))
            except OSError as e:
                logger.warning(f"Skipping {path}: {e}")

    logger.debug(f"Discovered {len(log_files)} log files under {log_root}")
    return log_files


def classify(log_file: LogFile, now: datetime, policy: RotationPolicy) -> AgeBucket:
    """
    Assign a log file to its lifecycle bucket.

    Thresholds are inclusive: a file is eligible the instant its age reaches
    the configured number of days.
    """
    age = age_of(log_file.last_modified, now)

    if age >= timedelta(days=policy.retention_days):
        return AgeBucket.EXPIRED
    if age >= timedelta(days=policy.compress_after_days):
        return AgeBucket.COMPRESSIBLE
    return AgeBucket.ACTIVE


def classify_files(log_files: Iterable[LogFile], now: datetime,
                   policy: RotationPolicy) -> ClassificationResult:
    """Partition log files into active, compressible and expired sets."""
    result = ClassificationResult()
    for log_file in log_files:
        result.add(classify(log_file, now, policy), log_file)

    logger.info(f"Classified files: {len(result.active)} active, "
                f"{len(result.compressible)} compressible, {len(result.expired)} expired")
    return result
