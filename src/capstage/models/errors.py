"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class CapstageError(Exception):
    """Base error for all Capstage errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class InvalidArguments(CapstageError):
    """Required job inputs are missing or malformed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="arguments", details=details)


class ManifestError(CapstageError):
    """The caption/B-roll manifest could not be read or parsed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="manifest", details=details)


class NotFoundError(CapstageError):
    """A file the job depends on does not exist."""

    def __init__(self, message: str, component: str = "server", details: dict | None = None):
        super().__init__(message, component=component, details=details)


class StagingError(CapstageError):
    """Per-entry B-roll acquisition errors. Never fatal to a job."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="staging", details=details)


class SourceNotFound(StagingError):
    """A local B-roll source path does not exist."""


class DownloadFailed(StagingError):
    """A remote B-roll source could not be fetched."""

    def __init__(self, message: str, status: int | None = None, details: dict | None = None):
        super().__init__(message, details={"status": status, **(details or {})})
        self.status = status


class TrimFailed(StagingError):
    """Both trim tiers failed; the untrimmed asset is used instead."""


class RenderingError(CapstageError):
    """Errors during video rendering."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="rendering", details=details)


class RenderTimeout(RenderingError):
    """The render engine exceeded its time budget and was killed."""


class RenderEngineError(RenderingError):
    """The render engine failed or could not be started."""


class OutputMissing(RenderingError):
    """The render finished but produced no usable output file."""


class ProviderError(CapstageError):
    """An external collaborator (transcription, stock search) failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="collaborator", details=details)


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: CapstageError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
