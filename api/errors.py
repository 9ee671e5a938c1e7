"""
Error taxonomy for the companion pipeline.

Three kinds of failure, each handled at a different boundary:
- InputValidationError: the caller sent something unusable → 400, nothing mutated
- ConfigurationError: a programming defect (e.g. a mode with no config) → 500
- UpstreamError: an external service failed → recovered and reported in the envelope
"""


class CompanionError(Exception):
    """Base class for everything the companion raises on purpose."""


class InputValidationError(CompanionError):
    """Missing or out-of-range request fields."""


class ConfigurationError(CompanionError):
    """Static configuration is inconsistent. Never a user-facing problem."""


class UpstreamError(CompanionError):
    """The generation call or an external data source failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
