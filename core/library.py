"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/library.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Library controller. Owns the current taxonomy tree, the
                selected record and the last user-facing error. Every update
                computes a new tree and swaps the reference in one step.
------------------------------------------------------------------------------
"""

import datetime
import json
import random
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from core.classifier import DocumentClassifier
from core.config import AppConfig
from core.errors import ClassificationError, DeweyFluxError, LibraryImportError
from core.exchange import ExchangeService
from core.exporter import LibraryExporter
from core.logger import get_logger
from core.models.node import TaxonomyNode
from core.models.record import ClassificationRecord
from core.reconcile import reconcile
from core.reference import ReferenceTable
from core.taxonomy import (
    PlacementStrategy,
    build_initial_tree,
    contains_record,
    count_records,
    find_record,
    get_strategy,
    insert_record,
    search,
)

logger = get_logger("library")


class BatchReport(BaseModel):
    """Outcome of a sequential multi-document upload."""
    added: List[str] = Field(default_factory=list)
    failures: Dict[str, str] = Field(default_factory=dict)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


class LibraryController:
    """
    Top-level owner of the library state.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        classifier: Optional[DocumentClassifier] = None,
        reference: Optional[ReferenceTable] = None,
        strategy: Optional[PlacementStrategy] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.reference = reference if reference is not None else ReferenceTable.load()
        self.strategy = strategy or get_strategy(self.config.get_placement_strategy())
        self._classifier = classifier

        self.tree: TaxonomyNode = build_initial_tree(self.reference, self.strategy)
        self.selected_record_id: Optional[str] = None
        self.is_initialized: bool = False
        self.last_error: Optional[str] = None
        self._rejected_file: Optional[Path] = None

    @property
    def classifier(self) -> DocumentClassifier:
        if self._classifier is None:
            self._classifier = DocumentClassifier.from_config(self.config)
        return self._classifier

    @property
    def record_count(self) -> int:
        return count_records(self.tree)

    def _fail(self, error: Exception, context: str) -> None:
        self.last_error = str(error)
        logger.error(f"{context}: {error}")

    def _merge_in(self, other: TaxonomyNode) -> None:
        self.tree = reconcile(self.tree, other, strategy=self.strategy, reference=self.reference)

    # --- Lifecycle ---

    def initialize(self, baseline_source: Optional[str] = None, load_saved: bool = True) -> None:
        """
        Loads the locally saved library and the baseline, both re-shelved
        with the current placement strategy. Missing sources are ignored.
        """
        self.last_error = None

        if load_saved:
            saved = self.config.get_library_file()
            if saved.exists():
                try:
                    self._merge_in(ExchangeService.load_from_file(str(saved)))
                except LibraryImportError as e:
                    self._rejected_file = saved
                    self._fail(e, f"Saved library {saved} unreadable")
                    self.last_error = f"Saved library {saved} not loaded ({e}), it is moved to a .bak file on the next save"

        source = baseline_source if baseline_source is not None else self.config.get_baseline_source()
        if source:
            try:
                baseline = ExchangeService.fetch_baseline(source)
            except LibraryImportError as e:
                self._fail(e, f"Baseline {source} rejected")
            else:
                if baseline is not None:
                    self._merge_in(baseline)
                    logger.info(f"Baseline {source} merged, {self.record_count} records on shelf")

        self.is_initialized = True

    def save(self, path: Optional[str] = None) -> Path:
        """
        Writes the library. A saved file that failed to load is renamed to
        a .bak sibling first so its records are never overwritten.
        """
        target = Path(path) if path else self.config.get_library_file()
        if self._rejected_file is not None and target == self._rejected_file and target.exists():
            backup = self._set_aside(target)
            logger.warning(f"Unreadable library {target} moved to {backup}")
            self._rejected_file = None
        ExchangeService.save_to_file(self.tree, str(target))
        logger.debug(f"Library saved to {target}")
        return target

    @staticmethod
    def _set_aside(path: Path) -> Path:
        backup = path.with_name(path.name + ".bak")
        serial = 1
        while backup.exists():
            backup = path.with_name(f"{path.name}.bak{serial}")
            serial += 1
        shutil.move(str(path), str(backup))
        return backup

    # --- Adding documents ---

    def generate_call_number(self, code: str, today: Optional[datetime.date] = None) -> str:
        """'<code>-<YYYYMMDD>-<serial>' with a 3-digit serial unused in this library."""
        day = (today or datetime.date.today()).strftime("%Y%m%d")
        while True:
            candidate = f"{code}-{day}-{random.randint(100, 999)}"
            if not contains_record(self.tree, candidate):
                return candidate

    def add_record(self, record: ClassificationRecord) -> None:
        self.tree = insert_record(self.tree, record, strategy=self.strategy, reference=self.reference)

    def add_document(self, text: str, file_name: Optional[str] = None) -> Optional[ClassificationRecord]:
        """
        Classifies a document and shelves it.

        Returns:
            The new record, or None if classification failed (see last_error).
        """
        self.last_error = None
        try:
            response = self.classifier.classify(text)
        except ClassificationError as e:
            self._fail(e, f"Processing of {file_name or 'document'} failed")
            return None

        call_number = self.generate_call_number(response.ddc.number)
        record = ClassificationRecord.from_response(
            response,
            call_number=call_number,
            source_text=text,
            file_name=file_name,
            created_at=datetime.datetime.now().isoformat(timespec="seconds"),
        )
        self.add_record(record)
        logger.info(f"Shelved '{record.title}' as {record.call_number}")
        return record

    def process_file(self, path: str) -> Optional[ClassificationRecord]:
        self.last_error = None
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self._fail(e, f"Cannot read {path}")
            return None
        return self.add_document(text, file_name=Path(path).name)

    def process_files(self, paths: Iterable[str], stop_on_error: bool = False) -> BatchReport:
        """Processes documents strictly one after another."""
        report = BatchReport()
        for path in paths:
            record = self.process_file(path)
            if record is None:
                report.failures[str(path)] = self.last_error or "Unknown error"
                if stop_on_error:
                    report.aborted = True
                    break
            else:
                report.added.append(record.id)
        return report

    # --- Import / Export ---

    def import_file(self, path: str) -> bool:
        """
        Imports a serialized library. Invalid documents are rejected as a
        whole and leave the current tree untouched.
        """
        self.last_error = None
        try:
            incoming = ExchangeService.load_from_file(path)
        except LibraryImportError as e:
            self._fail(e, f"Import of {path} rejected")
            return False
        before = self.record_count
        self._merge_in(incoming)
        logger.info(f"Imported {self.record_count - before} new records from {path}")
        return True

    def export_json(self, path: str) -> bool:
        self.last_error = None
        try:
            ExchangeService.save_to_file(self.tree, path)
        except OSError as e:
            self._fail(e, f"JSON export to {path} failed")
            return False
        return True

    def export_json_ld(self, path: str) -> bool:
        self.last_error = None
        try:
            self._write_json(path, ExchangeService.tree_to_json_ld(self.tree))
        except OSError as e:
            self._fail(e, f"JSON-LD export to {path} failed")
            return False
        return True

    def export_record_json_ld(self, record_id: str, path: str) -> bool:
        """Writes the linked-data description of one record."""
        self.last_error = None
        record = find_record(self.tree, record_id)
        if record is None:
            self.last_error = f"No record with id '{record_id}'"
            return False
        try:
            self._write_json(path, record.to_json_ld())
        except OSError as e:
            self._fail(e, f"JSON-LD export of {record_id} failed")
            return False
        return True

    def export_record_text(self, record_id: str, path: str) -> bool:
        """Writes the original text of one record."""
        self.last_error = None
        record = find_record(self.tree, record_id)
        if record is None:
            self.last_error = f"No record with id '{record_id}'"
            return False
        try:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(record.source_text, encoding="utf-8")
        except OSError as e:
            self._fail(e, f"Text export of {record_id} failed")
            return False
        return True

    @staticmethod
    def _write_json(path: str, data: dict) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def export_archive(self, path: str) -> bool:
        self.last_error = None
        try:
            LibraryExporter.export_to_zip(self.tree, path)
        except (OSError, DeweyFluxError) as e:
            self._fail(e, f"Archive export to {path} failed")
            return False
        return True

    # --- Browsing ---

    def search(self, keyword: Optional[str] = None, code: Optional[str] = None) -> List[ClassificationRecord]:
        return search(self.tree, keyword=keyword, code=code)

    def select(self, record_id: Optional[str]) -> Optional[ClassificationRecord]:
        """Selects a record for display; unknown ids clear the selection."""
        record = find_record(self.tree, record_id) if record_id else None
        self.selected_record_id = record.id if record else None
        return record

    @property
    def selected_record(self) -> Optional[ClassificationRecord]:
        if not self.selected_record_id:
            return None
        return find_record(self.tree, self.selected_record_id)
