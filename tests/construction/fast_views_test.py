"""
Tests for ``logviews.construction.fast_views``.
"""

from logviews.construction.fast_views import select_fast_views
from logviews.models.catalog import Catalog, ColumnSpec


def test_select_fast_views(catalog: Catalog) -> None:
    """
    Fast views holding every column, in ascending cardinality.
    """
    columns = catalog.log_types["imp"].columns
    assert select_fast_views(columns, ["camp_code"]) == ["fv1", "fv2"]
    assert select_fast_views(columns, ["camp_code", "impressions", "date"]) == [
        "fv1",
        "fv2",
    ]
    assert select_fast_views(columns, ["camp_code", "os_id"]) == ["fv2"]
    assert select_fast_views(columns, []) == []


def test_short_circuit(catalog: Catalog) -> None:
    """
    A column without candidates rules out every fast view.
    """
    columns = catalog.log_types["imp"].columns
    assert select_fast_views(columns, ["fsa", "camp_code"]) == []
    assert select_fast_views(columns, ["camp_code", "fsa"]) == []


def test_empty_intersection() -> None:
    """
    Columns held by disjoint fast views have no fast view in common.
    """
    columns = {
        "a": ColumnSpec(name="a", fast_view_candidates=["x", "y"]),
        "b": ColumnSpec(name="b", fast_view_candidates=["z"]),
        "c": ColumnSpec(name="c", fast_view_candidates=["y", "x"]),
    }
    assert select_fast_views(columns, ["a", "b", "c"]) == []
    # order follows the first column
    assert select_fast_views(columns, ["a", "c"]) == ["x", "y"]
    assert select_fast_views(columns, ["c", "a"]) == ["y", "x"]
