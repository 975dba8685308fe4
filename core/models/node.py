"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/models/node.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Immutable taxonomy node. A node is one DDC category holding
                child categories and the records filed directly at it.
------------------------------------------------------------------------------
"""

import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.models.record import ClassificationRecord

ROOT_ID = "root"
ROOT_NAME = "Library"

_DIGIT_RUNS = re.compile(r"(\d+)")
_DECIMAL = re.compile(r"^(\d+)(?:\.(\d+))?$")


def natural_sort_key(value: str) -> Tuple[Any, ...]:
    """
    Shelf ordering key for category ids.

    Class numbers compare by their integer part, then by the digits after the
    point as a string, so "9" < "10" and "005.13" < "005.2". Other ids sort
    after them with numeric-aware comparison of their digit runs. Ties between
    spellings of the same number ("5" / "005") fall back to the raw string.
    """
    match = _DECIMAL.match(value)
    if match:
        return (0, (int(match.group(1)), match.group(2) or ""), value)
    parts: List[Tuple[int, Any]] = []
    for token in _DIGIT_RUNS.split(value):
        if not token:
            continue
        if token.isdigit():
            parts.append((0, int(token)))
        else:
            parts.append((1, token))
    return (1, tuple(parts), value)


class TaxonomyNode(BaseModel):
    """
    One category in the library tree.

    Nodes are frozen; the placement and merge functions build new nodes
    along the changed branch and share every untouched subtree.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    children: Tuple["TaxonomyNode", ...] = ()
    records: Tuple[ClassificationRecord, ...] = Field((), alias="books")
    metadata: Dict[str, Any] = Field(default_factory=dict, alias="config")

    @model_validator(mode="after")
    def check_unique_ids(self) -> "TaxonomyNode":
        child_ids = [c.id for c in self.children]
        if len(child_ids) != len(set(child_ids)):
            raise ValueError(f"duplicate child ids below node '{self.id}'")
        record_ids = [r.id for r in self.records]
        if len(record_ids) != len(set(record_ids)):
            raise ValueError(f"duplicate record ids at node '{self.id}'")
        return self

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @property
    def label(self) -> str:
        return self.name or self.id

    def find_child(self, child_id: str) -> Optional["TaxonomyNode"]:
        for child in self.children:
            if child.id == child_id:
                return child
        return None

    def has_content(self) -> bool:
        return bool(self.children or self.records)

    def iter_nodes(self) -> Iterator["TaxonomyNode"]:
        """Pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
