"""Database helpers."""

from .errors import is_unique_violation
from .expressions import json_array_agg
from .session import AsyncSessionMaker, async_engine

__all__ = ["AsyncSessionMaker", "async_engine", "is_unique_violation", "json_array_agg"]
