"""
Configuration management for the rotation system.

This module handles loading and access of the optional YAML configuration.
Command-line flags take precedence over values loaded here.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .rotation_errors import InvalidPolicyError
from .rotation_models import (
    DEFAULT_ARCHIVE_RETENTION_DAYS, DEFAULT_COMPRESS_AFTER_DAYS, DEFAULT_EXTENSIONS,
    DEFAULT_RETENTION_DAYS, RotationPolicy
)

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'true', 'yes', 'on', '1'}
_FALSE_STRINGS = {'false', 'no', 'off', '0', ''}


def _as_bool(value: Any) -> bool:
    """Interpret a YAML flag; quoted values such as "false" are parsed, not truth-tested."""
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
        raise InvalidPolicyError(f"dry_run must be a boolean, got {value!r}")
    return bool(value)


@dataclass
class RotationConfig:
    """Configuration sections for rotation runs."""
    rotation_settings: Dict[str, Any] = field(default_factory=dict)
    file_settings: Dict[str, Any] = field(default_factory=dict)
    reporting_settings: Dict[str, Any] = field(default_factory=dict)
    logging_settings: Dict[str, Any] = field(default_factory=dict)


class RotationConfigManager:
    """Manages rotation system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config()

    def _load_config(self) -> RotationConfig:
        """Load configuration from YAML file, falling back to defaults."""
        if self.config_path is None:
            return self._parse_config(self._get_default_config())

        if not self.config_path.exists():
            logger.warning(f"Config file not found at {self.config_path}. Using defaults.")
            return self._parse_config(self._get_default_config())

        try:
            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ValueError("top-level YAML value must be a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            config_data = {}

        return self._parse_config(self._merge_with_defaults(config_data))

    def _merge_with_defaults(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        merged = self._get_default_config()
        for section, values in config_data.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                logger.warning(f"Ignoring unknown or malformed config section: {section}")
        return merged

    def _parse_config(self, config_data: Dict[str, Any]) -> RotationConfig:
        return RotationConfig(
            rotation_settings=config_data.get('rotation', {}),
            file_settings=config_data.get('files', {}),
            reporting_settings=config_data.get('reporting', {}),
            logging_settings=config_data.get('logging', {})
        )

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            'rotation': {
                'compress_after_days': DEFAULT_COMPRESS_AFTER_DAYS,
                'retention_days': DEFAULT_RETENTION_DAYS,
                'archive_retention_days': DEFAULT_ARCHIVE_RETENTION_DAYS,
                'dry_run': False
            },
            'files': {
                'extensions': list(DEFAULT_EXTENSIONS),
                'archive_path': None
            },
            'reporting': {
                'reports_dir': None,
                'metrics_file': None
            },
            'logging': {
                'level': 'INFO',
                'log_file': None
            }
        }

    def get_policy(self, compress_after_days: Optional[int] = None,
                   retention_days: Optional[int] = None,
                   archive_retention_days: Optional[int] = None,
                   dry_run: Optional[bool] = None) -> RotationPolicy:
        """Build a policy from config values, overridden by any non-None argument."""
        settings = self.config.rotation_settings

        def pick(override, key):
            return override if override is not None else settings.get(key)

        return RotationPolicy(
            compress_after_days=pick(compress_after_days, 'compress_after_days'),
            retention_days=pick(retention_days, 'retention_days'),
            archive_retention_days=pick(archive_retention_days, 'archive_retention_days'),
            dry_run=bool(dry_run) or _as_bool(settings.get('dry_run', False))
        )

    def get_extensions(self) -> List[str]:
        extensions = self.config.file_settings.get('extensions') or DEFAULT_EXTENSIONS
        if not isinstance(extensions, (list, tuple)):
            extensions = [extensions]
        return [str(ext) for ext in extensions]

    def get_archive_path(self) -> Optional[str]:
        return self.config.file_settings.get('archive_path')

    def get_reports_dir(self) -> Optional[str]:
        return self.config.reporting_settings.get('reports_dir')

    def get_metrics_file(self) -> Optional[str]:
        return self.config.reporting_settings.get('metrics_file')

    def get_log_level(self) -> str:
        return str(self.config.logging_settings.get('level', 'INFO')).upper()

    def get_log_file(self) -> Optional[str]:
        return self.config.logging_settings.get('log_file')
