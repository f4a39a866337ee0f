"""Custom exception classes for Workdesk."""

from typing import Optional


class StatusProviderError(RuntimeError):
    """Raised by a status provider when a check summary cannot be fetched.

    Attributes:
        reference: External reference that was being queried (PR URL, ticket key)
        status_code: HTTP status code, if the failure came from an HTTP response
    """

    def __init__(self, message: str, reference: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.reference = reference
        self.status_code = status_code


class StaleUpdateError(RuntimeError):
    """Raised when an update carries a version that no longer matches the stored record.

    Attributes:
        workstream_id: Workstream that was being updated
        expected_version: Version the caller based its change on
        actual_version: Version currently stored
    """

    def __init__(self, workstream_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Workstream {workstream_id} is at version {actual_version}, update was based on {expected_version}"
        )
        self.workstream_id = workstream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
