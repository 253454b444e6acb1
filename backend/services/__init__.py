"""Business logic services."""

from .errors import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .pagination import (
    MAX_LIKERS_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Page,
    validate_page,
)

__all__ = [
    "ApiError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "MAX_LIKERS_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "Page",
    "validate_page",
]
