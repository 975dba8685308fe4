"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           tests/unit/test_taxonomy.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Unit tests for tree building, record placement and queries.
------------------------------------------------------------------------------
"""

import json

import pytest

from core.models.node import ROOT_ID, TaxonomyNode, natural_sort_key
from core.taxonomy import (
    DigitPlacement,
    PathPlacement,
    archive_layout,
    breadcrumb,
    build_initial_tree,
    contains_record,
    count_records,
    flatten,
    get_strategy,
    insert_record,
    search,
)

PATH = PathPlacement()
DIGITS = DigitPlacement()

ALGEBRA_PATH = (("500", "Science"), ("510", "Mathematics"), ("512", "Algebra"))


def _child_ids(node):
    return [c.id for c in node.children]


def test_initial_tree_seeds_main_classes(reference):
    tree = build_initial_tree(reference, PATH)
    assert tree.id == ROOT_ID
    assert _child_ids(tree) == ["000", "100", "200", "300", "400", "500", "600", "700", "800", "900"]
    science = tree.find_child("500")
    assert science.name == "500 - Science"
    assert science.records == ()
    assert "schema:description" in science.metadata


def test_initial_tree_digit_keys(reference):
    tree = build_initial_tree(reference, DIGITS)
    assert _child_ids(tree) == [str(i) for i in range(10)]
    assert tree.find_child("5").name == "5 - Science"


def test_initial_tree_without_seed(reference):
    tree = build_initial_tree(reference, PATH, seed=False)
    assert tree.children == ()
    assert not tree.has_content()


def test_path_placement_creates_hierarchy(reference, record_factory):
    """Scenario: record b1 with path 500 > 510 > 512 lands in the 512 node."""
    tree = build_initial_tree(reference, PATH)
    b1 = record_factory("b1", "512", ALGEBRA_PATH)

    result = insert_record(tree, b1, strategy=PATH, reference=reference)

    n500 = result.find_child("500")
    n510 = n500.find_child("510")
    n512 = n510.find_child("512")
    assert _child_ids(n500) == ["510"]
    assert n510.name == "510 - Mathematics"
    assert n512.name == "512 - Algebra"
    assert [r.id for r in n512.records] == ["b1"]
    assert count_records(result) == 1


def test_digit_placement_creates_prefix_chain(reference, record_factory):
    """005.13 is shelved under 0 > 00 > 005 > 0051 > 00513."""
    tree = build_initial_tree(reference, DIGITS)
    rec = record_factory("c1", "005.13")

    result = insert_record(tree, rec, strategy=DIGITS, reference=reference)

    trail = breadcrumb(result, "c1")
    assert [n.id for n in trail] == [ROOT_ID, "0", "00", "005", "0051", "00513"]
    assert trail[3].name == "005 - Computer programming, programs & data"
    # No reference entry for 0051
    assert trail[4].name == "0051"


def test_insert_does_not_modify_input(reference, record_factory):
    tree = build_initial_tree(reference, PATH)
    before = tree.model_copy(deep=True)

    insert_record(tree, record_factory("b1", "512", ALGEBRA_PATH), strategy=PATH, reference=reference)

    assert tree == before
    assert count_records(tree) == 0


def test_insert_is_idempotent(reference, record_factory):
    b1 = record_factory("b1", "512", ALGEBRA_PATH)
    once = insert_record(build_initial_tree(reference, PATH), b1, strategy=PATH, reference=reference)
    twice = insert_record(once, b1, strategy=PATH, reference=reference)

    assert twice == once
    assert count_records(twice) == 1


def test_record_id_unique_across_tree(reference, record_factory):
    """Same id with a different code is not shelved a second time."""
    tree = insert_record(
        build_initial_tree(reference, PATH),
        record_factory("b1", "512", ALGEBRA_PATH),
        strategy=PATH, reference=reference,
    )
    other = record_factory("b1", "005", (("000", "Computer science"), ("005", "Programming")))

    result = insert_record(tree, other, strategy=PATH, reference=reference)

    assert [r.id for r in flatten(result)] == ["b1"]
    assert result.find_child("000").children == ()


def test_siblings_sorted_numerically(reference, record_factory):
    tree = build_initial_tree(reference, PATH, seed=False)
    for rid, code in (("a", "10"), ("b", "9"), ("c", "100")):
        tree = insert_record(tree, record_factory(rid, code, ((code, ""),)), strategy=PATH, reference=reference)

    assert _child_ids(tree) == ["9", "10", "100"]


def test_natural_sort_key():
    assert sorted(["10", "9", "512", "005.13", "005.2"], key=natural_sort_key) == [
        "005.13", "005.2", "9", "10", "512"
    ]
    assert sorted(["005", "005.2", "005.13", "5", "005.1"], key=natural_sort_key) == [
        "005", "5", "005.1", "005.13", "005.2"
    ]
    assert natural_sort_key("999") < natural_sort_key("5xx")
    assert natural_sort_key("9") < natural_sort_key("10")
    assert natural_sort_key("510") < natural_sort_key("512")


def test_record_without_usable_key_goes_to_root(reference, record_factory):
    tree = build_initial_tree(reference, DIGITS)
    rec = record_factory("x1", "unknown")

    result = insert_record(tree, rec, strategy=DIGITS, reference=reference)

    assert [r.id for r in result.records] == ["x1"]
    assert _child_ids(result) == _child_ids(tree)


def test_path_placement_skips_empty_steps(reference, record_factory):
    rec = record_factory("b2", "512", (("500", "Science"), ("", "ghost"), ("512", "Algebra")))
    result = insert_record(build_initial_tree(reference, PATH), rec, strategy=PATH, reference=reference)

    assert [n.id for n in breadcrumb(result, "b2")] == [ROOT_ID, "500", "512"]


def test_shared_prefix_reuses_nodes(reference, record_factory):
    tree = build_initial_tree(reference, DIGITS)
    tree = insert_record(tree, record_factory("r1", "512"), strategy=DIGITS, reference=reference)
    tree = insert_record(tree, record_factory("r2", "515"), strategy=DIGITS, reference=reference)

    n51 = tree.find_child("5").find_child("51")
    assert _child_ids(n51) == ["512", "515"]


def test_flatten_order_and_contains(reference, record_factory):
    tree = build_initial_tree(reference, DIGITS)
    tree = insert_record(tree, record_factory("root-rec", "none"), strategy=DIGITS, reference=reference)
    tree = insert_record(tree, record_factory("r2", "515"), strategy=DIGITS, reference=reference)
    tree = insert_record(tree, record_factory("r1", "005"), strategy=DIGITS, reference=reference)

    assert [r.id for r in flatten(tree)] == ["root-rec", "r1", "r2"]
    assert contains_record(tree, "r2")
    assert not contains_record(tree, "r3")


def test_breadcrumb_unknown_record(reference):
    assert breadcrumb(build_initial_tree(reference), "missing") is None


def test_get_strategy():
    assert get_strategy().name == "digits"
    assert get_strategy("path").name == "path"
    with pytest.raises(ValueError):
        get_strategy("alphabetical")


@pytest.fixture
def library(reference, record_factory):
    tree = build_initial_tree(reference, PATH)
    records = [
        record_factory("b1", "512", ALGEBRA_PATH, title="Linear Algebra", keywords=("matrices",)),
        record_factory("b2", "515", (("500", "Science"), ("510", "Mathematics"), ("515", "Analysis")),
                       title="Calculus Primer", keywords=("Integrals",)),
        record_factory("b3", "005.13", (("000", "Computer science"), ("005", "Programming")),
                       title="Python Idioms", summary="Writing clean algebraic code."),
    ]
    for rec in records:
        tree = insert_record(tree, rec, strategy=PATH, reference=reference)
    return tree


def test_search_keyword_case_insensitive(library):
    assert [r.id for r in search(library, keyword="INTEGRALS")] == ["b2"]
    # title in b1, summary in b3
    assert {r.id for r in search(library, keyword="algebra")} == {"b1", "b3"}


def test_search_code_prefix(library):
    assert {r.id for r in search(library, code="51")} == {"b1", "b2"}
    assert [r.id for r in search(library, code="005")] == ["b3"]


def test_search_keyword_takes_precedence(library):
    assert [r.id for r in search(library, keyword="python", code="51")] == ["b3"]


def test_search_without_query(library):
    assert search(library) == []
    assert search(library, keyword="", code="") == []


def test_archive_layout(library):
    layout = archive_layout(library)

    assert layout["Library/"] is None
    assert layout["Library/500 - Science/"] is None
    key = "Library/500 - Science/510 - Mathematics/512 - Algebra/b1.jsonld"
    assert key in layout
    doc = json.loads(layout[key])
    assert doc["@type"] == "schema:Book"
    assert doc["dewey:class"] == "512"
    assert sum(1 for k in layout if k.endswith(".jsonld")) == 3


def test_node_rejects_duplicate_children():
    child = TaxonomyNode(id="500")
    with pytest.raises(ValueError):
        TaxonomyNode(id=ROOT_ID, children=(child, child))


def test_archive_names_distinct_for_cleaned_ids(reference, record_factory):
    tree = build_initial_tree(reference, DIGITS)
    for rec in (record_factory("a/b", "512"), record_factory("a-b", "512")):
        tree = insert_record(tree, rec, strategy=DIGITS, reference=reference)

    layout = archive_layout(tree)
    files = sorted(k.rsplit("/", 1)[1] for k in layout if k.endswith(".jsonld"))

    assert len(files) == 2
    assert "a-b.jsonld" in files
    assert any(name.startswith("a-b~") for name in files)
    ids = {json.loads(v)["@id"] for v in layout.values() if v is not None}
    assert ids == {"urn:library:book:a/b", "urn:library:book:a-b"}


def test_empty_code_goes_to_root(reference, record_factory):
    for strategy in (DIGITS, PATH):
        tree = build_initial_tree(reference, strategy)
        result = insert_record(tree, record_factory("x1", ""), strategy=strategy, reference=reference)

        assert [r.id for r in result.records] == ["x1"]
        assert _child_ids(result) == _child_ids(tree)
