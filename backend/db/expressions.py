"""SQL constructs that need per-dialect rendering."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.compiler import SQLCompiler
from sqlalchemy.sql.functions import FunctionElement


class json_array_agg(FunctionElement[Any]):
    """Aggregate one column into a JSON array; an empty group yields ``[]``.

    Element order follows the order of the rows fed to the aggregate.
    """

    type = JSON()
    name = "json_array_agg"
    inherit_cache = True


@compiles(json_array_agg)
def _compile_json_array_agg(element: json_array_agg, compiler: SQLCompiler, **kw: Any) -> str:
    return f"coalesce(json_agg({compiler.process(element.clauses, **kw)}), '[]'::json)"


@compiles(json_array_agg, "sqlite")
def _compile_json_array_agg_sqlite(
    element: json_array_agg,
    compiler: SQLCompiler,
    **kw: Any,
) -> str:
    return f"json_group_array({compiler.process(element.clauses, **kw)})"


__all__ = ["json_array_agg"]
