"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/taxonomy.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Taxonomy engine. Builds the initial library tree, shelves
                classified records by code digits or classification path,
                and flattens/searches/lays out the tree for export.
                All operations are pure: they return new trees and never
                modify an existing node.
------------------------------------------------------------------------------
"""

import hashlib
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set, Tuple

from core.logger import get_logger
from core.models.node import ROOT_ID, ROOT_NAME, TaxonomyNode, natural_sort_key
from core.models.record import ClassificationRecord
from core.reference import ReferenceEntry, ReferenceTable

logger = get_logger("taxonomy")

CLASS_CONTEXT: Dict[str, str] = {
    "schema": "http://schema.org/",
    "dc": "http://purl.org/dc/terms/",
    "dewey": "http://purl.org/NET/decimalised#",
}

# (node key, label, scope note) for one level of descent
PlacementStep = Tuple[str, Optional[str], Optional[str]]


def root_metadata() -> Dict[str, Any]:
    return {
        "@context": {"schema": "http://schema.org/"},
        "@id": "urn:library:root",
        "@type": "schema:Library",
        "name": "DeweyFlux Knowledge Library",
    }


def class_metadata(key: str, label: Optional[str], scope_note: Optional[str] = None) -> Dict[str, Any]:
    meta: Dict[str, Any] = {
        "@context": dict(CLASS_CONTEXT),
        "@id": f"urn:library:class:{key}",
        "@type": "schema:CollectionPage",
        "name": label or key,
        "dewey:notation": key,
    }
    if scope_note:
        meta["schema:description"] = scope_note
    return meta


def make_class_node(key: str, label: Optional[str], scope_note: Optional[str] = None) -> TaxonomyNode:
    """Creates an empty category node named '<key> - <label>' (bare key without label)."""
    name = f"{key} - {label}" if label else key
    return TaxonomyNode(id=key, name=name, metadata=class_metadata(key, label, scope_note))


def sort_children(children: Tuple[TaxonomyNode, ...]) -> Tuple[TaxonomyNode, ...]:
    return tuple(sorted(children, key=lambda c: natural_sort_key(c.id)))


class PlacementStrategy(ABC):
    """Decides the chain of category keys a record is shelved under."""

    name: str = ""

    @abstractmethod
    def steps(self, record: ClassificationRecord, reference: ReferenceTable) -> List[PlacementStep]:
        """Returns the keys (with labels) from the top level down to the record's node."""

    @abstractmethod
    def seed_key(self, notation: str) -> str:
        """Maps a main-class notation (e.g. '500') to this strategy's first-level key."""

    def describe(self, key: str, reference: ReferenceTable) -> Tuple[Optional[str], Optional[str]]:
        entry = reference.get(key)
        if entry:
            return entry.label, entry.scope_note
        return None, None


class PathPlacement(PlacementStrategy):
    """
    Follows the classification path delivered with the record,
    e.g. 500 -> 510 -> 512. Path steps without a number are skipped.
    """

    name = "path"

    def steps(self, record: ClassificationRecord, reference: ReferenceTable) -> List[PlacementStep]:
        result: List[PlacementStep] = []
        for info in record.path:
            key = info.number.strip()
            if not key:
                continue
            label, scope = self.describe(key, reference)
            result.append((key, info.name or label, scope))
        return result

    def seed_key(self, notation: str) -> str:
        return notation


class DigitPlacement(PlacementStrategy):
    """
    Treats every digit of the code as one level: '005.13' is shelved under
    0 -> 00 -> 005 -> 0051 -> 00513. Works without any path information.
    """

    name = "digits"

    def steps(self, record: ClassificationRecord, reference: ReferenceTable) -> List[PlacementStep]:
        digits = re.sub(r"\D", "", record.code)
        result: List[PlacementStep] = []
        for k in range(1, len(digits) + 1):
            prefix = digits[:k]
            label, scope = self.describe(prefix, reference)
            result.append((prefix, label, scope))
        return result

    def seed_key(self, notation: str) -> str:
        digits = re.sub(r"\D", "", notation)
        return digits[:1] or notation

    def describe(self, key: str, reference: ReferenceTable) -> Tuple[Optional[str], Optional[str]]:
        # "5" and "51" are looked up as "500" and "510"
        for candidate in dict.fromkeys((key, key.ljust(2, "0"), key.ljust(3, "0"))):
            entry: Optional[ReferenceEntry] = reference.get(candidate)
            if entry:
                return entry.label, entry.scope_note
        return None, None


STRATEGIES: Dict[str, PlacementStrategy] = {
    DigitPlacement.name: DigitPlacement(),
    PathPlacement.name: PathPlacement(),
}

DEFAULT_STRATEGY = DigitPlacement.name


def get_strategy(name: Optional[str] = None) -> PlacementStrategy:
    """Returns the placement strategy registered under name ('digits' or 'path')."""
    key = name or DEFAULT_STRATEGY
    if key not in STRATEGIES:
        raise ValueError(f"Unknown placement strategy: {name}")
    return STRATEGIES[key]


def build_initial_tree(
    reference: Optional[ReferenceTable] = None,
    strategy: Optional[PlacementStrategy] = None,
    seed: bool = True,
) -> TaxonomyNode:
    """
    Creates the library root. With seed=True, one empty child per main class
    (000, 100, ... 900) is pre-created so the top level is browsable.

    Args:
        reference: Reference table; the packaged DDC table by default.
        strategy: Placement strategy deciding the key of the seeded nodes.
        seed: Whether to pre-create the main classes.

    Returns:
        The root node.
    """
    reference = reference if reference is not None else ReferenceTable.load()
    strategy = strategy or get_strategy()

    children: Dict[str, TaxonomyNode] = {}
    if seed:
        for entry in reference.main_classes():
            key = strategy.seed_key(entry.notation)
            if key not in children:
                children[key] = make_class_node(key, entry.label, entry.scope_note)

    return TaxonomyNode(
        id=ROOT_ID,
        name=ROOT_NAME,
        children=sort_children(tuple(children.values())),
        metadata=root_metadata(),
    )


def _insert_along(node: TaxonomyNode, steps: List[PlacementStep], record: ClassificationRecord) -> TaxonomyNode:
    if not steps:
        if any(r.id == record.id for r in node.records):
            return node
        return node.model_copy(update={"records": node.records + (record,)})

    key, label, scope = steps[0]
    existing = node.find_child(key)
    if existing is None:
        new_child = _insert_along(make_class_node(key, label, scope), steps[1:], record)
        children = sort_children(node.children + (new_child,))
    else:
        new_child = _insert_along(existing, steps[1:], record)
        children = tuple(new_child if c.id == key else c for c in node.children)
    return node.model_copy(update={"children": children})


def insert_record(
    tree: TaxonomyNode,
    record: ClassificationRecord,
    strategy: Optional[PlacementStrategy] = None,
    reference: Optional[ReferenceTable] = None,
) -> TaxonomyNode:
    """
    Shelves a record and returns the updated tree.

    Missing categories are created on demand and kept in numeric-aware order.
    A record whose id already exists anywhere in the tree is not filed again.
    Codes without any usable key file the record at the root.
    """
    if contains_record(tree, record.id):
        logger.debug(f"Record {record.id} already shelved, skipping")
        return tree

    reference = reference if reference is not None else ReferenceTable.load()
    strategy = strategy or get_strategy()

    steps = strategy.steps(record, reference)
    if not steps:
        logger.info(f"Record {record.id} has no usable code '{record.code}', filing at root")
    return _insert_along(tree, steps, record)


def flatten(tree: TaxonomyNode) -> List[ClassificationRecord]:
    """All records in pre-order: a node's own records before those of its children."""
    result: List[ClassificationRecord] = []
    for node in tree.iter_nodes():
        result.extend(node.records)
    return result


def record_ids(tree: TaxonomyNode) -> Set[str]:
    return {r.id for r in flatten(tree)}


def contains_record(tree: TaxonomyNode, record_id: str) -> bool:
    return any(r.id == record_id for node in tree.iter_nodes() for r in node.records)


def find_record(tree: TaxonomyNode, record_id: str) -> Optional[ClassificationRecord]:
    for node in tree.iter_nodes():
        for rec in node.records:
            if rec.id == record_id:
                return rec
    return None


def breadcrumb(tree: TaxonomyNode, record_id: str) -> Optional[List[TaxonomyNode]]:
    """Returns the nodes from root to the node holding the record, or None."""
    def _recurse(node: TaxonomyNode, trail: List[TaxonomyNode]) -> Optional[List[TaxonomyNode]]:
        trail = trail + [node]
        if any(r.id == record_id for r in node.records):
            return trail
        for child in node.children:
            found = _recurse(child, trail)
            if found:
                return found
        return None
    return _recurse(tree, [])


def count_records(tree: TaxonomyNode) -> int:
    return sum(len(node.records) for node in tree.iter_nodes())


def search(tree: TaxonomyNode, keyword: Optional[str] = None, code: Optional[str] = None) -> List[ClassificationRecord]:
    """
    Queries the library.

    Args:
        tree: The library root.
        keyword: Case-insensitive match on title, summary or any keyword.
        code: Matches records whose DDC number starts with this prefix.

    Returns:
        Matching records in flatten order, unique by id. Empty without a query.
    """
    if keyword:
        needle = keyword.lower()

        def predicate(rec: ClassificationRecord) -> bool:
            return (
                needle in rec.title.lower()
                or needle in rec.summary.lower()
                or any(needle in kw.lower() for kw in rec.keywords)
            )
    elif code:
        def predicate(rec: ClassificationRecord) -> bool:
            return rec.code.startswith(code)
    else:
        return []

    seen: Set[str] = set()
    results: List[ClassificationRecord] = []
    for rec in flatten(tree):
        if rec.id not in seen and predicate(rec):
            seen.add(rec.id)
            results.append(rec)
    return results


def _safe_segment(name: str) -> str:
    cleaned = re.sub(r"[\\/]+", "-", name).strip().strip(".")
    return cleaned or "_"


def record_filename(record: ClassificationRecord) -> str:
    """
    Archive file name of a record. Ids that had to be cleaned get a short
    digest of the raw id appended so "a/b" and "a-b" stay distinct.
    """
    segment = _safe_segment(record.id)
    if segment != record.id:
        segment = f"{segment}~{hashlib.sha256(record.id.encode('utf-8')).hexdigest()[:8]}"
    return f"{segment}.jsonld"


def archive_layout(tree: TaxonomyNode) -> Dict[str, Optional[str]]:
    """
    Maps archive paths to file contents for a folder-per-node export.

    Folder entries end with '/' and map to None. Each record becomes
    '<breadcrumb>/<record id>.jsonld' holding its JSON-LD description.
    """
    layout: Dict[str, Optional[str]] = {}

    def _walk(node: TaxonomyNode, prefix: str) -> None:
        folder = f"{prefix}{_safe_segment(node.label)}/"
        layout[folder] = None
        for rec in node.records:
            layout[folder + record_filename(rec)] = json.dumps(
                rec.to_json_ld(), indent=2, ensure_ascii=False
            )
        for child in node.children:
            _walk(child, folder)

    _walk(tree, "")
    return layout
