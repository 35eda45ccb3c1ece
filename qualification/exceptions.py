"""
Error taxonomy for lead qualification.

ConfigurationError and ProviderCallError reach the boundary with a
remediation message; MalformedResponseError never leaves the engine.
"""

from typing import Optional


class QualificationError(Exception):
    """Base class for qualification errors."""

    def __init__(self, message: str, remediation: str = ""):
        super().__init__(message)
        self.message = message
        self.remediation = remediation

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "remediation": self.remediation,
        }


class ConfigurationError(QualificationError):
    """Missing or malformed credential, empty catalog, bad business config."""


class ProviderCallError(QualificationError):
    """The reasoning provider could not be reached or rejected the request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        kind: str = "request",
        remediation: str = "",
    ):
        super().__init__(message, remediation=remediation)
        self.status_code = status_code
        self.kind = kind  # auth | rate_limit | timeout | connection | request


class MalformedResponseError(QualificationError):
    """Provider output could not be parsed into a qualifying result."""

    def __init__(self, message: str, raw_response: Optional[str] = None):
        super().__init__(message)
        self.raw_response = raw_response


class InvariantViolation(MalformedResponseError):
    """Provider output parsed but broke a catalog or label invariant."""


class SessionNotFoundError(QualificationError):
    """No lead session exists for the given id."""
