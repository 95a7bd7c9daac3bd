"""Service-level errors and their HTTP mapping.

Services raise ``ValueError`` subclasses for problems with the caller's input
or ownership; routers translate them with :func:`http_error_from`. Structural
corruption raises :class:`GoalTreeError`, which routers never catch.
"""
from fastapi import HTTPException, status


class InvalidTimePeriodError(ValueError):
    """Raised for malformed or inconsistent year/quarter/week coordinates."""


class GoalValidationError(ValueError):
    """Raised when goal input breaks a depth, parent or title rule."""


class GoalNotFoundError(ValueError):
    """Raised when a goal id does not resolve."""

    def __init__(self, message: str = "Goal not found"):
        super().__init__(message)


class GoalAccessDeniedError(ValueError):
    """Raised when a goal exists but belongs to another user."""

    def __init__(self, message: str = "Goal does not belong to the current user"):
        super().__init__(message)


class GoalTreeError(RuntimeError):
    """Raised when stored goals cannot form a valid hierarchy."""


def http_error_from(exc: ValueError) -> HTTPException:
    """
    Map a service error onto an HTTP exception.

    Args:
        exc: Error raised by a service

    Returns:
        HTTPException with a matching status code
    """
    if isinstance(exc, GoalNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, GoalAccessDeniedError):
        code = status.HTTP_403_FORBIDDEN
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))
