"""
Domain exceptions and their HTTP mapping.

Services raise these; ``register_exception_handlers`` turns them into
short ``{"detail": ...}`` JSON responses. Messages shown to submitters are
deliberately generic so that no response distinguishes a mistyped tracking ID
from one that was never issued.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from survivor_hub.core.logging import get_logger

logger = get_logger(__name__)


class SurvivorHubError(Exception):
    """Base class for domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SurvivorHubError):
    """Malformed or missing submission fields."""

    status_code = 422
    default_message = "Please fill in all required fields."


class InvalidFormatError(SurvivorHubError):
    """Tracking ID does not match RPT-XXXXXXXX."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid tracking ID format. Expected format: RPT-XXXXXXXX"


class NotFoundError(SurvivorHubError):
    """Valid-format token with no report, or a denied lookup."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Report not found. Please check your tracking ID and try again."


class PartialFailureError(SurvivorHubError):
    """
    The report was saved but some evidence could not be stored.

    Carries the tracking ID so the submitter still receives their credential.
    """

    status_code = status.HTTP_207_MULTI_STATUS
    default_message = "Report saved, evidence may be incomplete."

    def __init__(
        self,
        tracking_id: str,
        failed_files: list[str],
        message: str | None = None,
    ) -> None:
        self.tracking_id = tracking_id
        self.failed_files = failed_files
        super().__init__(message)


class UpstreamServiceError(SurvivorHubError):
    """Chat or email provider returned a non-success response."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Service temporarily unavailable. Please try again later."

    def __init__(self, message: str | None = None, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        if upstream_status == status.HTTP_429_TOO_MANY_REQUESTS:
            self.status_code = status.HTTP_429_TOO_MANY_REQUESTS
        elif upstream_status == status.HTTP_402_PAYMENT_REQUIRED:
            self.status_code = status.HTTP_402_PAYMENT_REQUIRED
        super().__init__(message)


class TransientNetworkError(SurvivorHubError):
    """Connection to the chat provider dropped mid-stream."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Connection lost. Please try again."


async def survivor_hub_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as JSON."""
    assert isinstance(exc, SurvivorHubError)

    if isinstance(exc, PartialFailureError):
        return partial_failure_response(exc)

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def partial_failure_response(exc: PartialFailureError) -> JSONResponse:
    """Build the 207 body that still hands the tracking ID to the submitter."""
    logger.warning(
        "report_evidence_incomplete",
        tracking_id=exc.tracking_id,
        failed_count=len(exc.failed_files),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "tracking_id": exc.tracking_id,
            "evidence_complete": False,
            "failed_files": exc.failed_files,
            "detail": exc.message,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach domain error handlers to the application."""
    app.add_exception_handler(SurvivorHubError, survivor_hub_error_handler)
