"""
annostore exception hierarchy.

All annostore exceptions inherit from AnnostoreError, so consumers can catch
library-level errors while still telling startup failures (bad config,
unreachable backend) apart from per-request ones.
"""


class AnnostoreError(Exception):
    """Base exception class for all annostore errors."""


class ConfigurationError(AnnostoreError):
    """Raised for configuration errors (bad storage string, invalid settings)."""


class InvalidAnnotationError(AnnostoreError):
    """Raised when a client submits a malformed annotation."""
