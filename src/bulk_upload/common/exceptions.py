"""Custom exception hierarchy for bulk upload operations."""

from bulk_upload.common.classifier import ErrorClassification, classify_error


class UploadError(Exception):
    """Base exception for all upload operations."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(UploadError):
    """Required configuration is missing or malformed."""
    pass


class PreflightError(UploadError):
    """The batch cannot start (no valid files, destination unreachable)."""
    pass


class ValidationError(UploadError):
    """A local file failed a pre-flight check."""

    def __init__(self, reason: str, message: str, details: dict | None = None):
        super().__init__(message, details=details)
        self.reason = reason


class ClassifiedTransferError(UploadError):
    """A transfer failed with a message and an optional status or error code."""

    def __init__(
        self,
        message: str,
        code: str | int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details=details)
        self.code = code

    @property
    def classification(self) -> ErrorClassification:
        return classify_error(str(self), self.code)


class SchedulerTaskError(UploadError):
    """A scheduled task raised instead of returning a result."""

    def __init__(self, message: str, index: int, details: dict | None = None):
        super().__init__(message, details=details)
        self.index = index
