from fastapi import Request, status
from fastapi.responses import JSONResponse

from credgate.core.config import request_logger
from credgate.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    UpstreamException,
)


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handles application exceptions by returning a JSON response with the error message.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: A response containing the error message and the exception's status code.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    content: dict = {"detail": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def database_exception_handler(request: Request, exc: DatabaseException):
    """
    Handles database exceptions without leaking driver messages to the caller.

    Args:
        request: The request object.
        exc (DatabaseException): The database exception instance.

    Returns:
        JSONResponse: A generic error message with status code 500.
    """
    request_logger.error(f"DatabaseException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": "A database error occurred."},
    )


async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
):
    """
    Handles authentication exceptions by returning a JSON response.

    Args:
        request: The request object.
        exc (AuthenticationException): The authentication exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 401.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def upstream_exception_handler(request: Request, exc: UpstreamException):
    """
    Handles store or mailer failures surfaced by the credential core.

    Args:
        request: The request object.
        exc (UpstreamException): The upstream exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 502.
    """
    request_logger.error(f"UpstreamException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


exception_schema = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"detail": "A database error occurred."},
            }
        },
    },
    status.HTTP_502_BAD_GATEWAY: {
        "description": "Upstream Failure",
        "content": {
            "application/json": {
                "example": {
                    "detail": "An upstream service failed. Please try again later."
                },
            }
        },
    },
}


__all__ = [
    "app_exception_handler",
    "database_exception_handler",
    "authentication_exception_handler",
    "upstream_exception_handler",
    "exception_schema",
]
