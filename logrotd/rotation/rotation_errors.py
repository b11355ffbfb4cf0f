"""
Exceptions raised by the rotation system.

Per-file I/O failures are never raised out of a stage; they are reported as
failed item results. Only precondition failures use these exceptions.
"""


class RotationError(Exception):
    """Base class for rotation errors."""
    pass


class LogPathNotFoundError(RotationError, FileNotFoundError):
    """Raised when the managed log directory does not exist."""
    pass


class InvalidPolicyError(RotationError, ValueError):
    """Raised when a rotation policy holds invalid values."""
    pass
