"""
Extraction queries: the templated aggregation over the raw partitioned logs that
populates a cache table. The scheduler binds the time window placeholders.
"""

from typing import Collection, Iterable

from logviews.constants import (
    END_DATE,
    END_HOUR,
    START_DATE,
    START_HOUR,
    TIME_PARTITION_COLUMNS,
)
from logviews.errors import UnknownColumnException
from logviews.models.catalog import LogTypeCatalog


def compile_extraction(
    log_type: LogTypeCatalog,
    tenant_id: int,
    cache_columns: Iterable[str],
    excluded_columns: Collection[str] = TIME_PARTITION_COLUMNS,
) -> str:
    """
    Build the extraction query for a set of cache columns.

    ``date`` and ``hour`` always lead the grouping columns. The output depends only
    on the set of columns, not on their order.
    """
    group_by = ['"date"', "hour"]
    aggregates = []
    cross_joins: dict[str, None] = {}

    for name in sorted(set(cache_columns)):
        if name in excluded_columns:
            continue
        if name not in log_type.columns:
            raise UnknownColumnException(log_type.id, name)
        column = log_type.columns[name]
        if column.cross_join_clause:
            cross_joins[column.cross_join_clause] = None
        if column.is_aggregate:
            expression = column.source_expression or f'SUM("{name}")'
            aggregates.append(f'{expression} AS "{name}"')
            continue
        group_by.append(
            f'{column.source_expression} AS "{name}"'
            if column.source_expression
            else f'"{name}"',
        )

    projections = ",\n  ".join(group_by + aggregates)
    joins = "".join(f"\n{clause}" for clause in cross_joins)
    positions = ", ".join(str(index) for index in range(1, len(group_by) + 1))
    return (
        f"SELECT\n  {projections}\n"
        f"FROM {log_type.source_table}{joins}\n"
        "WHERE\n"
        f"  {log_type.tenant_column} = {int(tenant_id)}\n"
        '  AND "date" IS NOT NULL\n'
        "  AND hour IS NOT NULL\n"
        "  AND (\n"
        f"    \"date\" > date '{START_DATE}' AND \"date\" < date '{END_DATE}'\n"
        f"    OR {START_HOUR} < 23 AND \"date\" = date '{START_DATE}' "
        f"AND hour > {START_HOUR}\n"
        f"    OR \"date\" = date '{END_DATE}' AND ({END_HOUR} = 23 "
        f"OR hour <= {END_HOUR})\n"
        "  )\n"
        f"GROUP BY {positions}"
    )
