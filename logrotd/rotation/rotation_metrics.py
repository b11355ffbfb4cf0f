"""
Prometheus metrics for rotation runs.

Each run populates gauges in a private registry. When a metrics file is
configured the registry is written in the text exposition format for the
node exporter's textfile collector.
"""

import logging
from pathlib import Path
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest, write_to_textfile

from .rotation_models import RotationReport

logger = logging.getLogger(__name__)


class RotationMetrics:
    """Gauges describing the most recent rotation run."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._initialize_metrics()

    def _initialize_metrics(self) -> None:
        self.files_processed = Gauge(
            'logrotd_files_processed',
            'Files acted on during the last rotation run',
            ['action'],
            registry=self.registry
        )
        self.bytes_processed = Gauge(
            'logrotd_bytes_processed',
            'Bytes acted on during the last rotation run',
            ['kind'],
            registry=self.registry
        )
        self.errors = Gauge(
            'logrotd_errors',
            'Per-item errors during the last rotation run',
            registry=self.registry
        )
        self.usage_files = Gauge(
            'logrotd_usage_files',
            'Files remaining after the last rotation run',
            ['tier'],
            registry=self.registry
        )
        self.usage_bytes = Gauge(
            'logrotd_usage_bytes',
            'Bytes remaining after the last rotation run',
            ['tier'],
            registry=self.registry
        )
        self.run_duration = Gauge(
            'logrotd_run_duration_seconds',
            'Wall-clock duration of the last rotation run',
            registry=self.registry
        )
        self.last_run = Gauge(
            'logrotd_last_run_timestamp_seconds',
            'Unix time of the last rotation run',
            registry=self.registry
        )

    def update(self, report: RotationReport, duration_seconds: float) -> None:
        stats = report.statistics
        usage = report.usage

        self.files_processed.labels(action='compressed').set(stats.files_compressed)
        self.files_processed.labels(action='deleted').set(stats.files_deleted)
        self.files_processed.labels(action='archives_deleted').set(stats.archives_deleted)
        self.files_processed.labels(action='directories_removed').set(stats.directories_removed)

        self.bytes_processed.labels(kind='freed').set(stats.bytes_freed)
        self.bytes_processed.labels(kind='compressed').set(stats.bytes_compressed)
        self.bytes_processed.labels(kind='archived').set(stats.bytes_archived)
        self.bytes_processed.labels(kind='archive_freed').set(stats.archive_bytes_freed)

        self.errors.set(stats.errors)

        self.usage_files.labels(tier='active').set(usage.active_files)
        self.usage_files.labels(tier='archive').set(usage.archive_files)
        self.usage_bytes.labels(tier='active').set(usage.active_bytes)
        self.usage_bytes.labels(tier='archive').set(usage.archive_bytes)

        self.run_duration.set(duration_seconds)
        self.last_run.set(report.run_timestamp.timestamp())

    def export(self) -> bytes:
        """Metrics in Prometheus text format."""
        return generate_latest(self.registry)

    def write_textfile(self, path: Path) -> bool:
        """Write metrics for the textfile collector; failures are logged only."""
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            write_to_textfile(str(path), self.registry)
        except OSError as e:
            logger.error(f"Failed to write metrics file {path}: {e}")
            return False

        logger.debug(f"Metrics written to {path}")
        return True
