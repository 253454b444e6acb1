"""Domain error taxonomy mapped to HTTP responses by the app."""

from __future__ import annotations

from fastapi import status


class ApiError(Exception):
    """Base class for errors that carry a client-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


__all__ = [
    "ApiError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
]
