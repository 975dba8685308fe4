"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/reference.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Static DDC reference table mapping notations to human-readable
                labels and optional scope notes. Ships with the main classes
                and divisions; custom tables can be loaded from JSON.
------------------------------------------------------------------------------
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from core.logger import get_logger

logger = get_logger("reference")

DEFAULT_TABLE_PATH = Path(__file__).resolve().parent / "data" / "ddc_reference.json"

MAIN_CLASS_PATTERN = re.compile(r"^\d00$")


class ReferenceEntry(BaseModel):
    """One notation of the reference table."""
    model_config = ConfigDict(frozen=True)

    notation: str
    label: str
    scope_note: Optional[str] = None

    @classmethod
    def from_concept(cls, concept: Dict[str, Any], lang: str = "en") -> "ReferenceEntry":
        """
        Reads a SKOS-like concept entry:
        {"notation": "500", "prefLabel": {"en": "Science"}, "scopeNote": {"en": ["..."]}}
        Plain {"notation": ..., "label": ...} entries are accepted as well.
        """
        label = concept.get("label")
        pref = concept.get("prefLabel")
        if isinstance(pref, dict):
            label = pref.get(lang) or next(iter(pref.values()), label)
        elif isinstance(pref, str):
            label = pref

        scope = concept.get("scope_note")
        notes = concept.get("scopeNote")
        if isinstance(notes, dict):
            parts = notes.get(lang) or []
            if isinstance(parts, str):
                parts = [parts]
            scope = " ".join(parts) or None

        return cls(notation=str(concept.get("notation", "")).strip(), label=str(label or "").strip(), scope_note=scope)


class ReferenceTable:
    """
    Lookup of DDC notations. Entries without notation or label are skipped.
    """

    _default: Optional["ReferenceTable"] = None

    def __init__(self, entries: Iterable[ReferenceEntry] = ()) -> None:
        self._entries: Dict[str, ReferenceEntry] = {}
        for entry in entries:
            if entry.notation and entry.label:
                self._entries[entry.notation] = entry

    @classmethod
    def from_concepts(cls, concepts: Iterable[Dict[str, Any]], lang: str = "en") -> "ReferenceTable":
        entries: List[ReferenceEntry] = []
        for concept in concepts:
            if not isinstance(concept, dict):
                continue
            try:
                entries.append(ReferenceEntry.from_concept(concept, lang))
            except ValidationError as e:
                logger.warning(f"Skipping invalid reference entry {concept!r}: {e}")
        return cls(entries)

    @classmethod
    def load(cls, path: Optional[Path] = None, lang: str = "en") -> "ReferenceTable":
        """
        Loads a reference table from a JSON list of concepts.
        Without a path, the packaged DDC summary table is used (cached).
        """
        if path is None and cls._default is not None:
            return cls._default

        source = Path(path) if path else DEFAULT_TABLE_PATH
        with open(source, "r", encoding="utf-8") as f:
            concepts = json.load(f)
        table = cls.from_concepts(concepts, lang)
        logger.debug(f"Loaded {len(table)} reference entries from {source}")

        if path is None:
            cls._default = table
        return table

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, notation: str) -> bool:
        return notation in self._entries

    def get(self, notation: str) -> Optional[ReferenceEntry]:
        return self._entries.get(notation)

    def label_for(self, notation: str) -> Optional[str]:
        entry = self._entries.get(notation)
        return entry.label if entry else None

    def main_classes(self) -> List[ReferenceEntry]:
        """Entries with a round-hundred notation (000, 100, ... 900), sorted by code."""
        mains = [e for e in self._entries.values() if MAIN_CLASS_PATTERN.match(e.notation)]
        return sorted(mains, key=lambda e: e.notation)
