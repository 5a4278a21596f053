"""
Custom exceptions for the FireGuide dashboard sync service.
"""
from typing import Optional


class BaseDashboardError(Exception):
    """Base class for exceptions in this module."""
    pass

class NotAuthenticatedError(BaseDashboardError):
    """Raised when the session token or professional id is missing."""
    def __init__(self, missing: str = "session token"):
        self.missing = missing
        super().__init__(f"Not authenticated: no {missing} available. Please log in again.")

class MissingRecordError(BaseDashboardError):
    """Raised when an update targets a requirement that has no backing record yet."""
    def __init__(self, requirement: str):
        self.requirement = requirement
        super().__init__(
            f"No existing {requirement} record found. "
            f"A {requirement} record must exist before its document can be updated."
        )

class InvalidFileError(BaseDashboardError):
    """Raised when an upload is rejected by the file-kind or size gate."""
    def __init__(self, filename: Optional[str], reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid file '{filename or 'unnamed'}': {reason}")

class UnsupportedRequirementError(BaseDashboardError):
    """Raised when evidence is submitted for a requirement that does not accept uploads."""
    def __init__(self, requirement: str):
        self.requirement = requirement
        super().__init__(f"Evidence uploads are not supported for '{requirement}'.")

class RemoteCallError(BaseDashboardError):
    """Raised when a FireGuide API call fails or returns a non-success body."""
    def __init__(self, message: str, endpoint: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)
