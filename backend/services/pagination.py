"""Page/limit validation shared by every paginated listing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .errors import ValidationError

T = TypeVar("T")

MAX_PAGE_SIZE = 50
MAX_LIKERS_PAGE_SIZE = 100
INVALID_PAGINATION_MESSAGE = "Invalid pagination parameters"


def validate_page(page: int, limit: int, *, max_limit: int = MAX_PAGE_SIZE) -> int:
    """Return the row offset for ``page``/``limit`` or raise ValidationError."""
    if page < 1 or limit < 1 or limit > max_limit:
        raise ValidationError(INVALID_PAGINATION_MESSAGE)
    return (page - 1) * limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = MAX_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.limit)
