"""
Log rotation module for logrotd.

This module provides the rotation pipeline for a managed log directory:
- Age classification of raw log and metadata files
- Compression of aging files into dated gzip archives
- Deletion of raw files past the retention ceiling
- Pruning of archives past their retention horizon
- Removal of directories left empty
- Usage reports and Prometheus metrics for each run
"""

from .rotation_classifier import classify, classify_files, discover_log_files
from .rotation_cleanup import (
    ArchivePruner, DirectorySweeper, RawLogCleaner, discover_archives, discover_partial_archives
)
from .rotation_compression import LogCompressor, archive_name
from .rotation_config import RotationConfigManager
from .rotation_errors import RotationError, LogPathNotFoundError, InvalidPolicyError
from .rotation_manager import RotationManager, create_rotation_manager
from .rotation_metrics import RotationMetrics
from .rotation_models import (
    AgeBucket, Archive, ItemResult, ItemStatus, LogFile, RotationPolicy,
    RotationReport, RotationStatistics, Stage, UsageSnapshot
)
from .rotation_reporting import UsageReporter, format_summary

__all__ = [
    'AgeBucket',
    'Archive',
    'ArchivePruner',
    'DirectorySweeper',
    'InvalidPolicyError',
    'ItemResult',
    'ItemStatus',
    'LogCompressor',
    'LogFile',
    'LogPathNotFoundError',
    'RawLogCleaner',
    'RotationConfigManager',
    'RotationError',
    'RotationManager',
    'RotationMetrics',
    'RotationPolicy',
    'RotationReport',
    'RotationStatistics',
    'Stage',
    'UsageReporter',
    'UsageSnapshot',
    'archive_name',
    'classify',
    'classify_files',
    'create_rotation_manager',
    'discover_archives',
    'discover_partial_archives',
    'discover_log_files',
    'format_summary'
]
