"""
Assembly of the final view query over a fast view or a cache table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from logviews.constants import LOG_ALIAS
from logviews.models.catalog import JoinSpec, LogTypeCatalog, RenderedView


@dataclass
class ViewColumns:
    """
    Projections of a view, split by whether they are grouped or aggregated, and
    the dimension joins they need, keyed by target view.
    """

    group_by: list[str] = field(default_factory=list)
    aggregates: list[str] = field(default_factory=list)
    joins: dict[str, JoinSpec] = field(default_factory=dict)


def present_columns(
    log_type: LogTypeCatalog,
    query_columns: Iterable[str],
) -> ViewColumns:
    """
    Project each requested column from the log source under its requested name.
    """
    view_columns = ViewColumns()
    for name in query_columns:
        target = log_type.target(name)
        for join in target.joins_required:
            view_columns.joins[join.target_view] = join
        if target.is_aggregate:
            expression = (
                target.presentation_expression
                or f'SUM({LOG_ALIAS}."{target.name}")'
            )
            view_columns.aggregates.append(f'{expression} AS "{name}"')
            continue
        expression = target.presentation_expression or f'{LOG_ALIAS}."{target.name}"'
        view_columns.group_by.append(f'{expression} AS "{name}"')
    return view_columns


def render_join(join: JoinSpec, view: RenderedView, alias: str) -> str:
    """
    Render a dimension join against the log source.
    """
    return (
        f"{join.kind.value.upper()} JOIN {view.sql} "
        f'ON {LOG_ALIAS}."{join.left_column}" = {alias}."{join.right_column}"'
    )


def fast_view_source(view: RenderedView) -> str:
    """
    The log source when reading from a fast view.
    """
    return f"(SELECT * FROM {view.sql}) AS {LOG_ALIAS}"


def cache_table_source(table_name: str) -> str:
    """
    The log source when reading from a cache table, with the partition columns
    converted from UTC to the tenant's time zone as ``time_tz``.
    """
    return (
        "(SELECT *, timezone(:time_zone, timezone('UTC', "
        "\"date\" + hour * INTERVAL '1 hour'))::timestamptz AS time_tz "
        f"FROM {table_name}) AS {LOG_ALIAS}"
    )


def compile_view(
    view_columns: ViewColumns,
    source: str,
    join_clauses: Iterable[str] = (),
) -> str:
    """
    Compile the view query.
    """
    projections = ",\n  ".join(view_columns.group_by + view_columns.aggregates)
    sql = f"SELECT\n  {projections}\nFROM {source}"
    for clause in join_clauses:
        sql += f"\n{clause}"
    if view_columns.group_by:
        positions = range(1, len(view_columns.group_by) + 1)
        sql += "\nGROUP BY " + ", ".join(str(position) for position in positions)
    return sql
