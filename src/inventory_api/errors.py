import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ResourceNotFoundError(Exception):
    """Raised when a single-resource lookup matches nothing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


def server_error(context: str, exc: Exception) -> JSONResponse:
    """Log a failed backend call and convert it to the 500 error envelope."""
    logger.error("Error %s: %s", context, exc, exc_info=exc)
    return error_response(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)


async def not_found_handler(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    """Handle missing resources with 404 Not Found."""
    return error_response(exc.message, status.HTTP_404_NOT_FOUND)
