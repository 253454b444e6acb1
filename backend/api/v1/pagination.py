"""Pagination defaults and response helpers for list endpoints."""

from __future__ import annotations

from typing import Any

from services.pagination import Page

from .schemas import PaginationResponse

DEFAULT_PAGE = 1
DEFAULT_POSTS_PAGE_SIZE = 10
DEFAULT_COMMENTS_PAGE_SIZE = 10
DEFAULT_LIKERS_PAGE_SIZE = 20


def build_pagination(page: Page[Any]) -> PaginationResponse:
    return PaginationResponse(
        page=page.page,
        limit=page.limit,
        total=page.total,
        total_pages=page.total_pages,
    )
