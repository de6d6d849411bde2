"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from capstage.models.errors import (
    CapstageError,
    ErrorResponse,
    InvalidArguments,
    ManifestError,
    NotFoundError,
    ProviderError,
    RenderTimeout,
)

logger = logging.getLogger(__name__)


async def capstage_error_handler(request: Request, exc: CapstageError) -> JSONResponse:
    """Handle CapstageError exceptions."""
    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def _get_status_code(exc: CapstageError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, (InvalidArguments, ManifestError, NotFoundError)):
        return 400
    elif isinstance(exc, ProviderError):
        return 502
    return 500


def _get_guidance(exc: CapstageError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, (InvalidArguments, NotFoundError)):
        return "Check the uploaded video, style preset and job id."
    if isinstance(exc, ManifestError):
        return "Send captions as a JSON array or an object with captions/bRolls arrays."
    if isinstance(exc, RenderTimeout):
        return "Try a shorter duration or fewer B-rolls."
    return "Please try again or contact support."


def _is_retryable(exc: CapstageError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, (ProviderError, RenderTimeout))
