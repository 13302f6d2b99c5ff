"""
Error taxonomy for the job board core.

Fetch errors are recoverable through a user-triggered retry, validation
errors are returned to the caller as part of a result, and persistence
errors are logged by the bridge and never surface to the user.
"""

from typing import Optional


class JobBoardError(Exception):
    """Base class for all job board errors."""
    pass


class FetchError(JobBoardError):
    """Raised when the job listing could not be fetched."""

    kind = "fetch"


class NetworkError(FetchError):
    """Connection failure, timeout or exhausted retries."""

    kind = "network"


class HttpError(FetchError):
    """Upstream answered with a non-success HTTP status."""

    kind = "http"

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        super().__init__(message or f"HTTP error! Status: {status}")


class MalformedResponse(FetchError):
    """Upstream body is not JSON or has no recognizable job envelope."""

    kind = "malformed"


class ValidationError(JobBoardError):
    """A user-correctable problem with an application draft."""

    code = "invalid"


class MissingField(ValidationError):
    code = "missing_field"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' is required")


class InvalidEmail(ValidationError):
    code = "invalid_email"

    def __init__(self, message: str = "Please enter a valid email address"):
        super().__init__(message)


class InvalidPhone(ValidationError):
    code = "invalid_phone"

    def __init__(self, message: str = "Phone number must contain exactly 11 digits"):
        super().__init__(message)


class MissingCoverLetter(ValidationError):
    code = "missing_cover_letter"

    def __init__(self, message: str = "Please write a cover letter"):
        super().__init__(message)


class PersistenceError(JobBoardError):
    """Raised by byte stores; the persistence bridge logs and swallows it."""
    pass


class FormClosed(JobBoardError):
    """Raised when a submitted or cancelled application form is edited."""
    pass


class UnknownJob(JobBoardError):
    """Raised when a job id is not present in the catalog."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")
