"""Domain errors raised by the tracker service and the stores.

Every error is local to one user action; the API layer turns them into
HTTP responses with a stable `code`.
"""


class TrackerError(Exception):
    code = "TRACKER_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(TrackerError):
    """Input rejected before it reaches storage."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvariantViolation(TrackerError):
    """Storage refused an operation that would break a stored invariant."""

    code = "INVARIANT_VIOLATION"
    status_code = 409


class NotFound(TrackerError):
    code = "RESOURCE_NOT_FOUND"
    status_code = 404


class StorageUnavailable(TrackerError):
    """The backing file or database could not be read or written."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503
