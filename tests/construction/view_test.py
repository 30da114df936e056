"""
Tests for ``logviews.construction.view``.
"""

from logviews.construction.view import (
    cache_table_source,
    compile_view,
    fast_view_source,
    present_columns,
    render_join,
)
from logviews.models.catalog import Catalog, JoinKind, JoinSpec, RenderedView


def test_present_columns(catalog: Catalog) -> None:
    """
    Columns are projected under the requested names.
    """
    view_columns = present_columns(
        catalog.log_types["imp"],
        ["camp_name", "spend", "camp_code", "impressions", "os_name"],
    )
    assert view_columns.group_by == [
        'camps.camp_name AS "camp_name"',
        'log."camp_code" AS "camp_code"',
        'os.os_name AS "os_name"',
    ]
    assert view_columns.aggregates == [
        'SUM(log."revenue") AS "spend"',
        'SUM(log."impressions") AS "impressions"',
    ]
    assert list(view_columns.joins) == ["camps", "os"]


def test_render_join() -> None:
    """
    Joins are rendered against the log alias.
    """
    view = RenderedView(sql="(SELECT 1 AS camp_code) AS camps")
    assert render_join(
        JoinSpec(target_view="camps", left_column="camp_code", right_column="id"),
        view,
        "camps",
    ) == 'LEFT JOIN (SELECT 1 AS camp_code) AS camps ON log."camp_code" = camps."id"'
    assert render_join(
        JoinSpec(
            kind=JoinKind.INNER,
            target_view="camps",
            left_column="camp_code",
            right_column="camp_code",
        ),
        view,
        "camps",
    ).startswith("INNER JOIN ")


def test_sources() -> None:
    """
    Fast views and cache tables are both aliased as ``log``.
    """
    assert (
        fast_view_source(RenderedView(sql="(SELECT 1) AS fv1"))
        == "(SELECT * FROM (SELECT 1) AS fv1) AS log"
    )
    source = cache_table_source("ql.log_view_3")
    assert source.startswith("(SELECT *, timezone(:time_zone, ")
    assert source.endswith("AS time_tz FROM ql.log_view_3) AS log")


def test_compile_view(catalog: Catalog) -> None:
    """
    Grouping columns are grouped by position, joins follow the source.
    """
    view_columns = present_columns(catalog.log_types["imp"], ["camp_name", "impressions"])
    assert compile_view(
        view_columns,
        "log_source AS log",
        ["LEFT JOIN camps_source ON true"],
    ) == (
        "SELECT\n"
        '  camps.camp_name AS "camp_name",\n'
        '  SUM(log."impressions") AS "impressions"\n'
        "FROM log_source AS log\n"
        "LEFT JOIN camps_source ON true\n"
        "GROUP BY 1"
    )

    aggregates_only = present_columns(catalog.log_types["imp"], ["impressions"])
    assert "GROUP BY" not in compile_view(aggregates_only, "log_source AS log")
