"""
Fast view selection: find precomputed views that hold every required raw column.
"""

from typing import Iterable, List, Mapping

from logviews.models.catalog import ColumnSpec


def select_fast_views(
    columns: Mapping[str, ColumnSpec],
    cache_columns: Iterable[str],
) -> List[str]:
    """
    Fast views containing all of ``cache_columns``, lowest cardinality first.

    Returns an empty list as soon as one column has no candidates or the running
    intersection empties, which means the durable cache has to be used instead.
    """
    fast_views: List[str] | None = None
    for name in cache_columns:
        candidates = columns[name].fast_view_candidates
        if not candidates:
            return []
        if fast_views is None:
            fast_views = list(candidates)
            continue
        fast_views = [view for view in fast_views if view in candidates]
        if not fast_views:
            return []
    return fast_views or []
