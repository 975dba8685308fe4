"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           tests/unit/test_reconcile.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Unit tests for tree merging and flatten-and-reinsert.
------------------------------------------------------------------------------
"""

import random

import pytest

from core.exchange import ExchangeService
from core.models.node import natural_sort_key
from core.reconcile import merge_trees, reconcile
from core.taxonomy import (
    DigitPlacement,
    PathPlacement,
    build_initial_tree,
    count_records,
    flatten,
    insert_record,
)

PATH = PathPlacement()
DIGITS = DigitPlacement()

ALGEBRA_PATH = (("500", "Science"), ("510", "Mathematics"), ("512", "Algebra"))
ANALYSIS_PATH = (("500", "Science"), ("510", "Mathematics"), ("515", "Analysis"))


def _build(reference, records, strategy=PATH):
    tree = build_initial_tree(reference, strategy)
    for rec in records:
        tree = insert_record(tree, rec, strategy=strategy, reference=reference)
    return tree


def test_merge_with_itself_is_identity(reference, record_factory):
    tree = _build(reference, [record_factory("b1", "512", ALGEBRA_PATH)])

    assert merge_trees(tree, tree) == tree
    assert merge_trees(tree, tree) is tree


def test_merge_keeps_record_unique(reference, record_factory):
    """Target holds b1 at 512; source holds b1 and b2 at 512."""
    b1 = record_factory("b1", "512", ALGEBRA_PATH)
    b2 = record_factory("b2", "512", ALGEBRA_PATH)
    target = _build(reference, [b1])
    source = _build(reference, [b1, b2])

    merged = merge_trees(target, source)

    n512 = merged.find_child("500").find_child("510").find_child("512")
    assert [r.id for r in n512.records] == ["b1", "b2"]
    assert count_records(merged) == 2


def test_merge_adopts_new_subtrees_in_order(reference, record_factory):
    target = _build(reference, [record_factory("b2", "515", ANALYSIS_PATH)])
    source = _build(reference, [record_factory("b1", "512", ALGEBRA_PATH)])

    merged = merge_trees(target, source)

    n510 = merged.find_child("500").find_child("510")
    assert [c.id for c in n510.children] == ["512", "515"]


def test_merge_drops_known_ids_from_adopted_subtrees(reference, record_factory):
    """b1 filed elsewhere in the source is not duplicated."""
    target = _build(reference, [record_factory("b1", "512", ALGEBRA_PATH)])
    source = _build(reference, [record_factory("b1", "515", ANALYSIS_PATH)])

    merged = merge_trees(target, source)

    assert [r.id for r in flatten(merged)] == ["b1"]


def test_reconcile_round_trip(reference, record_factory):
    """Serializing, reading back and re-shelving rebuilds the same library."""
    records = [
        record_factory("b1", "512", ALGEBRA_PATH),
        record_factory("b2", "515", ANALYSIS_PATH),
        record_factory("b3", "005.13", (("000", "Computer science"), ("005", "Programming"))),
    ]
    original = _build(reference, records)
    restored = ExchangeService.tree_from_json(ExchangeService.tree_to_json(original))

    rebuilt = reconcile(build_initial_tree(reference, PATH), restored, strategy=PATH, reference=reference)

    assert rebuilt == original


def test_reconcile_reshapes_foreign_tree(reference, record_factory):
    """A tree built by path is re-shelved by digits."""
    path_tree = _build(reference, [record_factory("b1", "512", ALGEBRA_PATH)], strategy=PATH)

    result = reconcile(build_initial_tree(reference, DIGITS), path_tree, strategy=DIGITS, reference=reference)

    n512 = result.find_child("5").find_child("51").find_child("512")
    assert [r.id for r in n512.records] == ["b1"]


def test_reconcile_matches_structural_merge(reference, record_factory):
    b1 = record_factory("b1", "512", ALGEBRA_PATH)
    b2 = record_factory("b2", "515", ANALYSIS_PATH)
    target = _build(reference, [b1])
    source = _build(reference, [b2])

    assert reconcile(target, source, strategy=PATH, reference=reference) == merge_trees(target, source)


def test_reconcile_skips_known_records(reference, record_factory):
    b1 = record_factory("b1", "512", ALGEBRA_PATH)
    target = _build(reference, [b1])

    result = reconcile(target, _build(reference, [b1]), strategy=PATH, reference=reference)

    assert result == target
    assert count_records(result) == 1


PROGRAMMING_PATH = (("000", "Computer science"), ("005", "Programming"))

SHELF = [
    ("b1", "512", ALGEBRA_PATH),
    ("b2", "515", ANALYSIS_PATH),
    ("b3", "005.13", PROGRAMMING_PATH + (("005.13", "Languages"),)),
    ("b4", "005.2", PROGRAMMING_PATH + (("005.2", "Programming for specific computers"),)),
    ("b5", "512", ALGEBRA_PATH),
    ("b6", "900", (("900", "History & geography"),)),
    ("b7", "", ()),
    ("b8", "519.5", ALGEBRA_PATH[:2] + (("519", "Probabilities"), ("519.5", "Statistics"))),
]


def _shape(node, trail=()):
    """Maps each node's id trail to the set of record ids filed there."""
    trail = trail + (node.id,)
    shape = {trail: {r.id for r in node.records}}
    for child in node.children:
        shape.update(_shape(child, trail))
    return shape


def _assert_children_sorted(tree):
    for node in tree.iter_nodes():
        keys = [natural_sort_key(c.id) for c in node.children]
        assert keys == sorted(keys), node.id


@pytest.mark.parametrize("strategy", [PATH, DIGITS], ids=["path", "digits"])
@pytest.mark.parametrize("seed", [1, 7, 42])
def test_round_trip_independent_of_insertion_order(reference, record_factory, strategy, seed):
    records = [record_factory(rid, code, path) for rid, code, path in SHELF]
    shuffled = list(records)
    random.Random(seed).shuffle(shuffled)

    expected = _build(reference, records, strategy=strategy)
    original = _build(reference, shuffled, strategy=strategy)
    restored = ExchangeService.tree_from_json(ExchangeService.tree_to_json(original))
    rebuilt = reconcile(build_initial_tree(reference, strategy), restored, strategy=strategy, reference=reference)

    assert _shape(rebuilt) == _shape(expected)
    assert _shape(_build(reference, list(reversed(records)), strategy=strategy)) == _shape(expected)


@pytest.mark.parametrize("strategy", [PATH, DIGITS], ids=["path", "digits"])
def test_children_stay_sorted_after_random_inserts(reference, record_factory, strategy):
    rng = random.Random(2024)
    codes = ["005.13", "005.2", "005.1", "512", "515", "510", "940", "900", "519.5", "004", "006.3"]
    tree = build_initial_tree(reference, strategy)

    for i in range(40):
        code = rng.choice(codes)
        whole = code.split(".")[0].zfill(3)
        steps = dict.fromkeys([whole[0] + "00", whole[:2] + "0", whole, code])
        path = tuple((step, "") for step in steps)
        tree = insert_record(tree, record_factory(f"r{i}", code, path), strategy=strategy, reference=reference)
        _assert_children_sorted(tree)

    assert count_records(tree) == 40
