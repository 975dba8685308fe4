from typing import Any, Dict, List, Optional
import json
from pathlib import Path

import requests
from pydantic import BaseModel, ValidationError

from core.errors import LibraryImportError
from core.logger import get_logger
from core.models.node import TaxonomyNode
from core.taxonomy import CLASS_CONTEXT

logger = get_logger("exchange")

LIBRARY_TREE = "library_tree"

class ExchangePayload(BaseModel):
    """Universal container for DeweyFlux portable data."""
    version: str = "1.0"
    type: str  # "library_tree"
    payload: Dict[str, Any]
    origin: str = "DeweyFlux"

class ExchangeService:
    """Reads and writes whole libraries as JSON documents."""

    TIMEOUT: int = 15

    @staticmethod
    def tree_to_json(tree: TaxonomyNode, envelope: bool = True) -> str:
        """Serializes the whole tree, by default wrapped in an exchange envelope."""
        if not envelope:
            return json.dumps(tree.to_dict(), indent=2, ensure_ascii=False)
        payload = ExchangePayload(type=LIBRARY_TREE, payload=tree.to_dict())
        return payload.model_dump_json(indent=2)

    @staticmethod
    def tree_from_data(data: Any) -> TaxonomyNode:
        """
        Validates a decoded document into a tree.
        Accepts an exchange envelope or a bare tree (older exports).
        Raises LibraryImportError on any structural problem.
        """
        if isinstance(data, dict) and "payload" in data and "type" in data:
            try:
                envelope = ExchangePayload.model_validate(data)
            except ValidationError as e:
                raise LibraryImportError(f"Invalid exchange envelope: {e.error_count()} error(s)") from e
            if envelope.type != LIBRARY_TREE:
                raise LibraryImportError(f"Unsupported document type '{envelope.type}'")
            data = envelope.payload

        if not isinstance(data, dict):
            raise LibraryImportError("Library document must be a JSON object")

        try:
            return TaxonomyNode.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ()))
            raise LibraryImportError(f"Invalid library structure at '{loc}': {first.get('msg')}") from e

    @staticmethod
    def tree_from_json(text: str) -> TaxonomyNode:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LibraryImportError(f"Not a JSON document: {e}") from e
        return ExchangeService.tree_from_data(data)

    @staticmethod
    def tree_to_json_ld(tree: TaxonomyNode) -> Dict[str, Any]:
        """
        Linked-data graph of the library: one CollectionPage per class
        (with schema:hasPart links) and one schema:Book per record.
        """
        graph: List[Dict[str, Any]] = []

        def _walk(node: TaxonomyNode) -> str:
            node_meta = dict(node.metadata)
            node_meta.pop("@context", None)
            node_id = node_meta.get("@id") or f"urn:library:class:{node.id}"
            node_meta["@id"] = node_id
            node_meta.setdefault("@type", "schema:CollectionPage")
            node_meta.setdefault("name", node.label)

            parts: List[Dict[str, str]] = []
            for rec in node.records:
                book = rec.to_json_ld()
                book.pop("@context", None)
                graph.append(book)
                parts.append({"@id": book["@id"]})
            for child in node.children:
                parts.append({"@id": _walk(child)})
            if parts:
                node_meta["schema:hasPart"] = parts
            graph.append(node_meta)
            return node_id

        _walk(tree)
        context = dict(CLASS_CONTEXT)
        context["myo"] = "https://zakdegarmo.github.io/MyOntology/docs/"
        return {"@context": context, "@graph": graph}

    @staticmethod
    def save_to_file(tree: TaxonomyNode, target_path: str) -> None:
        """Saves the library as a standalone JSON exchange file."""
        path = Path(target_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(ExchangeService.tree_to_json(tree))

    @staticmethod
    def load_from_file(path: str) -> TaxonomyNode:
        """Loads a library document. Missing or broken files raise LibraryImportError."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise LibraryImportError(f"Cannot read {path}: {e}") from e
        return ExchangeService.tree_from_json(text)

    @staticmethod
    def fetch_baseline(source: str) -> Optional[TaxonomyNode]:
        """
        Fetches a previously serialized library from a path or http(s) URL.

        Returns:
            The baseline tree, or None when the source does not exist or is
            unreachable. Malformed content raises LibraryImportError.
        """
        if not source:
            return None

        if source.startswith(("http://", "https://")):
            try:
                resp = requests.get(source, timeout=ExchangeService.TIMEOUT)
            except requests.RequestException as e:
                logger.warning(f"Baseline {source} unreachable: {e}")
                return None
            if resp.status_code == 404:
                logger.debug(f"No baseline at {source}")
                return None
            if resp.status_code != 200:
                logger.warning(f"Baseline {source} returned HTTP {resp.status_code}")
                return None
            return ExchangeService.tree_from_json(resp.text)

        path = Path(source)
        if not path.exists():
            logger.debug(f"No baseline at {source}")
            return None
        return ExchangeService.load_from_file(str(path))
