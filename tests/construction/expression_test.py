"""
Tests for ``logviews.construction.expression``.
"""

from logviews.construction.expression import ColumnRef, Raw, Wildcard, parse_tree


def test_parse_pairs_and_descriptors() -> None:
    """
    Pairs, wildcards and column descriptors become typed nodes.
    """
    assert parse_tree(["camp_code", "logs_imp_5"]) == ColumnRef("camp_code", "logs_imp_5")
    assert parse_tree(["*", "logs_imp_5"]) == Wildcard("logs_imp_5")
    assert parse_tree(
        {"type": "column", "view": "logs_imp_5", "column": "fsa"},
    ) == ColumnRef("fsa", "logs_imp_5")
    assert parse_tree(
        {"kind": "column", "view": "logs_imp_5", "column": "fsa"},
    ) == ColumnRef("fsa", "logs_imp_5")


def test_parse_dotted_strings() -> None:
    """
    Dotted strings are read as pairs, other strings are opaque.
    """
    assert parse_tree("camp_code.logs_imp_5") == ColumnRef("camp_code", "logs_imp_5")
    assert parse_tree("camp_code.logs_imp_5.extra") == ColumnRef(
        "camp_code",
        "logs_imp_5",
    )
    assert parse_tree("camp_code") == Raw()


def test_parse_opaque_payload() -> None:
    """
    Anything that is not a column leaf is kept, with its children, as ``Raw``.
    """
    node = parse_tree({"type": "sum", "args": [["impressions", "logs_imp_5"], 3, None]})
    assert isinstance(node, Raw)
    (args,) = node.children[1:]
    assert isinstance(args, Raw)
    assert args.children[0] == ColumnRef("impressions", "logs_imp_5")
    assert args.children[1:] == (Raw(), Raw())

    # a descriptor with a non-string column is not a column leaf
    assert isinstance(parse_tree({"type": "column", "column": 1}), Raw)
    # pairs must start with a string
    assert isinstance(parse_tree([1, "logs_imp_5"]), Raw)
