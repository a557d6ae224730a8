"""
Exception types for the sign recognition engine.

Per-frame input problems never raise; they degrade to the "no gesture"
result. Only configuration problems surface to the caller.
"""


class SignRecognitionError(Exception):
    """Base class for all sign recognition errors."""


class ConfigurationError(SignRecognitionError, ValueError):
    """Raised when classifier constants or thresholds are inconsistent."""
