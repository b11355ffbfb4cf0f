"""
Log Rotation CLI for logrotd.

This module provides the command-line interface for a single rotation run.
It is meant to be invoked periodically by an external scheduler.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .rotation_config import RotationConfigManager
from .rotation_errors import InvalidPolicyError, LogPathNotFoundError
from .rotation_manager import DEFAULT_ARCHIVE_DIR_NAME, create_rotation_manager
from .rotation_models import (
    DEFAULT_ARCHIVE_RETENTION_DAYS, DEFAULT_COMPRESS_AFTER_DAYS, DEFAULT_RETENTION_DAYS
)
from .rotation_reporting import format_summary

EXIT_OK = 0
EXIT_LOG_PATH_MISSING = 1
EXIT_USAGE = 2


def setup_logging(level: str = 'INFO', log_file: Optional[str] = None):
    """Setup logging configuration."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def non_negative_int(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if days < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {days}")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="logrotd - compress, expire and prune service log files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rotate with default thresholds (7 / 30 / 90 days)
  logrotd-rotate --log-path /var/log/myservice

  # Show what would happen without touching the filesystem
  logrotd-rotate --log-path /var/log/myservice --dry-run

  # Custom thresholds and an external archive directory
  logrotd-rotate --log-path /var/log/myservice --compress-after-days 3 \\
      --retention-days 14 --archive-path /srv/archive/myservice
        """
    )

    parser.add_argument('--log-path', required=True,
                        help='Managed log directory (must exist)')
    parser.add_argument('--compress-after-days', type=non_negative_int, default=None,
                        help=f'Compress files at least this many days old (default: {DEFAULT_COMPRESS_AFTER_DAYS})')
    parser.add_argument('--retention-days', type=non_negative_int, default=None,
                        help=f'Delete raw files at least this many days old (default: {DEFAULT_RETENTION_DAYS})')
    parser.add_argument('--archive-path', default=None,
                        help=f'Archive directory (default: <log-path>/{DEFAULT_ARCHIVE_DIR_NAME})')
    parser.add_argument('--archive-retention-days', type=non_negative_int, default=None,
                        help=f'Delete archives at least this many days old (default: {DEFAULT_ARCHIVE_RETENTION_DAYS})')
    parser.add_argument('--dry-run', action='store_true',
                        help='Report intended actions without modifying anything')
    parser.add_argument('--config', default=None,
                        help='Optional YAML configuration file')
    parser.add_argument('--reports-dir', default=None,
                        help='Directory for run reports (default: <log-path>)')
    parser.add_argument('--metrics-file', default=None,
                        help='Write Prometheus metrics to this file')
    parser.add_argument('--extensions', nargs='+', default=None,
                        help='File extensions to manage (default: log json)')
    parser.add_argument('--log-file', default=None,
                        help='Also write this job\'s own log to a file')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_manager = RotationConfigManager(args.config)

    level = 'DEBUG' if args.verbose else config_manager.get_log_level()
    setup_logging(level, args.log_file or config_manager.get_log_file())
    logger = logging.getLogger(__name__)

    try:
        policy = config_manager.get_policy(
            compress_after_days=args.compress_after_days,
            retention_days=args.retention_days,
            archive_retention_days=args.archive_retention_days,
            dry_run=args.dry_run or None
        )
    except InvalidPolicyError as e:
        print(f"Invalid rotation policy: {e}", file=sys.stderr)
        return EXIT_USAGE

    manager = create_rotation_manager(
        args.log_path,
        archive_path=args.archive_path or config_manager.get_archive_path(),
        policy=policy,
        reports_dir=args.reports_dir or config_manager.get_reports_dir(),
        extensions=args.extensions or config_manager.get_extensions(),
        metrics_file=args.metrics_file or config_manager.get_metrics_file()
    )

    try:
        report = manager.run()
    except LogPathNotFoundError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_LOG_PATH_MISSING
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1

    print(format_summary(report))
    if manager.last_report_path:
        print(f"\nReport: {manager.last_report_path}")

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
