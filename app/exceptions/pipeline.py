# ruff: noqa: D107
"""Message-processing pipeline exceptions."""

from typing import Any

from .base import AuthenticationError, BaseAppException, NotFoundError, ValidationError


class PipelineError(BaseAppException):
    """Base exception for failures along the analysis pipeline."""

    def __init__(
        self,
        message: str = "Message processing failed",
        status_code: int = 500,
        error_code: str = "PIPELINE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message, status_code=status_code, error_code=error_code, details=details
        )


class ConfigurationError(PipelineError):
    """Exception raised when a required external endpoint is not configured."""

    def __init__(
        self,
        message: str = "Required external endpoint is not configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 500, "CONFIGURATION_ERROR", details)


class UpstreamError(PipelineError):
    """Exception raised when the workflow engine answers with a non-success status."""

    def __init__(
        self,
        message: str = "Workflow engine request failed",
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        if details is None:
            details = {}
        if status is not None:
            details["upstream_status"] = status
        self.upstream_status = status
        super().__init__(message, 502, "UPSTREAM_ERROR", details)


class UpstreamResponseError(PipelineError):
    """Exception raised when the workflow response yields no usable text."""

    def __init__(
        self,
        message: str = "No response content from workflow engine",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 502, "UPSTREAM_RESPONSE_ERROR", details)


class PersistenceError(PipelineError):
    """Exception raised when a derived record cannot be written."""

    def __init__(
        self,
        message: str = "Failed to save analysis result",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 500, "PERSISTENCE_ERROR", details)


class StorageError(PipelineError):
    """Exception raised when a file cannot be stored in object storage."""

    def __init__(
        self,
        message: str = "File upload failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 502, "STORAGE_ERROR", details)


class MemoryServiceError(PipelineError):
    """Exception raised for any memory service failure. Never surfaced to users."""

    def __init__(
        self,
        message: str = "Memory service request failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 502, "MEMORY_SERVICE_ERROR", details)


# Map structured error codes back to exceptions
PIPELINE_ERROR_MAPPING: dict[str, type[BaseAppException]] = {
    "CONFIGURATION_ERROR": ConfigurationError,
    "UPSTREAM_ERROR": UpstreamError,
    "UPSTREAM_RESPONSE_ERROR": UpstreamResponseError,
    "PERSISTENCE_ERROR": PersistenceError,
    "STORAGE_ERROR": StorageError,
    "MEMORY_SERVICE_ERROR": MemoryServiceError,
    "AUTHENTICATION_ERROR": AuthenticationError,
    "NOT_FOUND": NotFoundError,
    "VALIDATION_ERROR": ValidationError,
}


def map_pipeline_error(
    error_code: str | None, message: str, details: dict[str, Any] | None = None
) -> BaseAppException:
    """Map an error code to the matching exception instance."""
    exception_class = PIPELINE_ERROR_MAPPING.get(error_code or "", PipelineError)
    return exception_class(message=message, details=details)
