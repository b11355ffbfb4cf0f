"""
logrotd - Log lifecycle management for long-running services.

This package compresses aging log files into dated archives, enforces
retention ceilings on raw logs and archives, and reports disk usage.
"""

__version__ = "0.1.0"
