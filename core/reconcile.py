"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/reconcile.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Combines two library trees without duplicating records.
                Flatten-and-reinsert normalizes foreign tree shapes and is
                the default for baselines and imports; the structural merge
                is for trees built with the same strategy and table.
------------------------------------------------------------------------------
"""

from typing import Optional, Set, Tuple

from core.logger import get_logger
from core.models.node import TaxonomyNode
from core.models.record import ClassificationRecord
from core.reference import ReferenceTable
from core.taxonomy import PlacementStrategy, flatten, insert_record, record_ids, sort_children

logger = get_logger("reconcile")


def _without_known(node: TaxonomyNode, known: Set[str]) -> TaxonomyNode:
    """Copy of a source subtree minus records already present; registers adopted ids."""
    records: Tuple[ClassificationRecord, ...] = ()
    for rec in node.records:
        if rec.id not in known:
            known.add(rec.id)
            records += (rec,)
    children = tuple(_without_known(child, known) for child in node.children)
    if records == node.records and all(a is b for a, b in zip(children, node.children)):
        return node
    return node.model_copy(update={"records": records, "children": children})


def _merge_nodes(target: TaxonomyNode, source: TaxonomyNode, known: Set[str]) -> TaxonomyNode:
    records = target.records
    for rec in source.records:
        if rec.id not in known:
            known.add(rec.id)
            records += (rec,)

    children = list(target.children)
    index = {c.id: i for i, c in enumerate(children)}
    adopted = False
    for src_child in source.children:
        if src_child.id in index:
            pos = index[src_child.id]
            children[pos] = _merge_nodes(children[pos], src_child, known)
        else:
            children.append(_without_known(src_child, known))
            adopted = True

    new_children = sort_children(tuple(children)) if adopted else tuple(children)
    if records == target.records and new_children == target.children:
        return target
    return target.model_copy(update={"records": records, "children": new_children})


def merge_trees(target: TaxonomyNode, source: TaxonomyNode) -> TaxonomyNode:
    """
    Structural merge of source into target.

    Matching nodes (same id at the same position) have their records united by
    id; nodes only present in source are adopted with their whole subtree.
    Records whose id already exists anywhere in target are dropped.
    Only meaningful when both trees were built with the same placement
    strategy and reference table.
    """
    known = record_ids(target)
    merged = _merge_nodes(target, source, known)
    logger.debug(f"Structural merge: {len(known)} records after merge")
    return merged


def reconcile(
    target: TaxonomyNode,
    source: TaxonomyNode,
    strategy: Optional[PlacementStrategy] = None,
    reference: Optional[ReferenceTable] = None,
) -> TaxonomyNode:
    """
    Flatten-and-reinsert: every record of source is shelved into target with
    the given placement strategy, regardless of the shape source was built with.
    """
    result = target
    incoming = flatten(source)
    for rec in incoming:
        result = insert_record(result, rec, strategy=strategy, reference=reference)
    logger.info(f"Reconciled {len(incoming)} incoming records")
    return result
