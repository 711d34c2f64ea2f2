"""
Error handling utilities
"""

from enum import Enum
from typing import Optional
from tasksync.models.response import ErrorResponse
from tasksync.utils.logger import logger


class FetchErrorReason(str, Enum):
    """Why a remote fetch failed"""
    UNAUTHENTICATED = "unauthenticated"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


class SyncError(Exception):
    """Base exception for sync errors"""
    pass


class FetchError(SyncError):
    """Remote fetch error exception"""
    def __init__(
        self,
        message: str,
        reason: FetchErrorReason = FetchErrorReason.GENERIC,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.reason = reason
        self.status_code = status_code
        super().__init__(self.message)


class StorageError(SyncError):
    """Local storage error exception"""
    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)


class ValidationError(SyncError):
    """Validation error exception"""
    pass


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message

    Args:
        error: Exception to handle

    Returns:
        ErrorResponse with user-friendly message
    """
    logger.error(f"Error occurred: {error}", exc_info=True)

    if isinstance(error, FetchError):
        if error.reason == FetchErrorReason.UNAUTHENTICATED:
            message = "GitHub rejected the token. Check GITHUB_TOKEN."
        elif error.reason == FetchErrorReason.RATE_LIMITED:
            message = "GitHub rate limit reached. Try again later."
        else:
            message = f"GitHub error: {error.message}"
        return ErrorResponse(
            message=message,
            error_code=error.reason.value,
            details={"status_code": error.status_code} if error.status_code else None,
        )

    if isinstance(error, StorageError):
        return ErrorResponse(
            message=f"Storage error: {error.message}",
            error_code="storage",
        )

    if isinstance(error, ValidationError):
        return ErrorResponse(
            message=f"Validation error: {str(error)}",
            error_code="validation",
        )

    # Generic error message
    return ErrorResponse(
        message="Something went wrong. Check the log for details.",
    )


def format_error_message(error: Exception) -> str:
    """
    Format error message for user

    Args:
        error: Exception to format

    Returns:
        User-friendly error message
    """
    error_response = handle_error(error)
    return error_response.message
