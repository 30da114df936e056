"""
Column dependency resolution: which catalog columns a query tree references and
which raw columns must be stored to answer it.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Mapping

from logviews.construction.expression import (
    ColumnRef,
    Node,
    Raw,
    Wildcard,
    parse_tree,
)
from logviews.models.catalog import ColumnSpec

logger = logging.getLogger(__name__)


@dataclass
class ResolvedColumns:
    """
    Columns referenced by a query for one view.

    ``cache_columns`` are the dependency- and alias-resolved raw columns to store,
    ``query_columns`` the names as requested. Both keep first-seen order.
    """

    cache_columns: list[str] = field(default_factory=list)
    query_columns: list[str] = field(default_factory=list)
    min_access_tier: int = 0


def referenced_columns(
    view_id: str,
    columns: Mapping[str, ColumnSpec],
    root: Node,
) -> list[str]:
    """
    Names of the catalog columns that ``root`` references for ``view_id``, in
    breadth-first order. A resolved reference is not descended into.
    """
    found: dict[str, None] = {}
    queue: deque[Node] = deque([root])
    while queue:
        node = queue.popleft()
        if isinstance(node, Wildcard) and node.view == view_id:
            found.update(dict.fromkeys(columns))
            continue
        if (
            isinstance(node, ColumnRef)
            and node.view == view_id
            and node.column in columns
        ):
            found[node.column] = None
            continue
        queue.extend(node.children)
    return list(found)


def resolve_columns(
    view_id: str,
    columns: Mapping[str, ColumnSpec],
    expression_tree: Any,
    access_tier: int,
) -> ResolvedColumns:
    """
    Extract and classify the columns an expression tree needs from a view.

    Columns above ``access_tier`` are dropped without error: a query may mix tiers
    and only what the caller can see resolves. Derived columns contribute their
    dependencies to the cache columns, aliases contribute their target.
    """
    root = (
        expression_tree
        if isinstance(expression_tree, (ColumnRef, Wildcard, Raw))
        else parse_tree(expression_tree)
    )

    cache_columns: dict[str, None] = {}
    query_columns: dict[str, None] = {}
    min_access_tier = 0
    for name in referenced_columns(view_id, columns, root):
        column = columns[name]
        if column.tier > access_tier:
            logger.debug(
                "Dropping column %s of %s above access tier %s",
                name,
                view_id,
                access_tier,
            )
            continue
        query_columns[name] = None
        min_access_tier = max(min_access_tier, column.tier)

        target = columns[column.alias_for] if column.alias_for else column
        if target.depends_on:
            cache_columns.update(dict.fromkeys(target.depends_on))
            continue
        cache_columns[target.name] = None

    return ResolvedColumns(
        cache_columns=list(cache_columns),
        query_columns=list(query_columns),
        min_access_tier=min_access_tier,
    )
