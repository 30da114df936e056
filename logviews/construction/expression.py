"""
Typed view of query expression trees.

Query trees are arbitrary nested JSON. Only column leaves matter to the planner:
``{"type": "column", "view": ..., "column": ...}`` descriptors (``kind`` is accepted in
place of ``type``), ``[column, view]`` pairs, ``["*", view]`` wildcards and
``"column.view"`` strings, which are read as pairs. Everything else is kept as
``Raw`` so it can be walked without being interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

WILDCARD = "*"


@dataclass(frozen=True)
class ColumnRef:
    """
    A reference to ``column`` of ``view``. ``children`` holds the node's own content,
    walked when the reference does not resolve.
    """

    column: str
    view: Any
    children: tuple[Node, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class Wildcard:
    """
    Every column of ``view``.
    """

    view: Any
    children: tuple[Node, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class Raw:
    """
    Opaque payload.
    """

    children: tuple[Node, ...] = ()


Node = Union[ColumnRef, Wildcard, Raw]


def parse_tree(item: Any) -> Node:
    """
    Convert a JSON-like expression tree into nodes.
    """
    if isinstance(item, str):
        if "." in item:
            return parse_tree(item.split(".")[:2])
        return Raw()
    if isinstance(item, dict):
        children = tuple(parse_tree(value) for value in item.values())
        kind = item.get("type", item.get("kind"))
        if kind == "column" and isinstance(item.get("column"), str):
            return ColumnRef(item["column"], item.get("view"), children)
        return Raw(children)
    if isinstance(item, (list, tuple)):
        children = tuple(parse_tree(value) for value in item)
        if len(item) == 2 and isinstance(item[0], str):
            if item[0] == WILDCARD:
                return Wildcard(item[1], children)
            return ColumnRef(item[0], item[1], children)
        return Raw(children)
    return Raw()
