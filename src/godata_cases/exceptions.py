"""Exceptions raised by the case creation pipeline."""

from typing import Optional


class GoDataCasesError(Exception):
    """Base exception for godata-cases errors."""

    pass


class ConfigurationError(GoDataCasesError):
    """Invalid configuration or input; raised before any network call."""

    pass


class PlatformError(GoDataCasesError):
    """The platform returned an error or a response we could not use."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(PlatformError):
    """Access token could not be obtained."""

    pass


class PlatformConnectionError(PlatformError):
    """
    Transport failure talking to the platform.
    request_sent is False only when the request provably never left (connect failure).
    """

    def __init__(self, message: str, request_sent: bool):
        super().__init__(message)
        self.request_sent = request_sent


class SubmissionOutcomeUnknown(PlatformError):
    """Create request may or may not have been applied server-side. Do not resubmit blindly."""

    pass


class AlreadySubmittedError(PlatformError):
    """A creation batch was submitted twice."""

    pass


class DedupError(GoDataCasesError):
    """Matcher broke its contract (e.g. wrong number of outcomes)."""

    pass


class JobError(GoDataCasesError):
    """Export job did not reach the finished state."""

    def __init__(self, message: str, job_id: str):
        super().__init__(message)
        self.job_id = job_id


class JobTimeoutError(JobError):
    """Polling deadline passed before the job finished."""

    pass


class JobCancelledError(JobError):
    """Polling was cancelled by the caller."""

    pass


class JobFailedError(JobError):
    """Platform reported the export job as failed."""

    pass
