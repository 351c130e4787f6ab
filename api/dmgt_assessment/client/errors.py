from typing import Any

from ..schemas import ValidationError


class AssessmentError(Exception):
    pass


class ConfigError(AssessmentError):
    pass


class NetworkError(AssessmentError):
    """HTTP failure or timeout. ``status_code`` is None for transport errors."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = False, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable
        self.detail = detail


class FileUploadError(AssessmentError):
    def __init__(self, message: str, *, file_name: str | None = None):
        super().__init__(message)
        self.file_name = file_name


class ValidationFailed(AssessmentError):
    def __init__(self, errors: list[ValidationError]):
        super().__init__(f"{len(errors)} question(s) need attention")
        self.errors = errors
