"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           main.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Application entry point. Sets up configuration and logging,
                loads the library and dispatches the command line
                subcommands (add, import, export, show, view, search,
                config).
------------------------------------------------------------------------------
"""

import argparse
import sys
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from core.config import AppConfig
from core.library import LibraryController
from core.logger import get_logger, setup_logging
from core.models.node import TaxonomyNode
from core.models.record import ClassificationRecord


def render_tree(node: TaxonomyNode, depth: int = 0, show_empty: bool = False) -> List[str]:
    """Indented text rendering of the library, one line per category and record."""
    lines = [f"{'  ' * depth}{node.label}"]
    for rec in node.records:
        lines.append(f"{'  ' * (depth + 1)}* {rec.call_number}  {rec.title}")
    for child in node.children:
        if show_empty or child.has_content():
            lines.extend(render_tree(child, depth + 1, show_empty))
    return lines


def format_record(record: ClassificationRecord) -> str:
    keywords = ", ".join(record.keywords)
    return f"{record.call_number}  [{record.code}] {record.title}" + (f"  ({keywords})" if keywords else "")


def format_details(record: ClassificationRecord) -> List[str]:
    """Full text view of one record including the ontological report."""
    lines = [
        record.title or record.id,
        f"Call number: {record.call_number}",
        "DDC:         " + (" > ".join(f"{p.number} {p.name}".strip() for p in record.path) or record.code or "-"),
        f"Keywords:    {', '.join(record.keywords) or '-'}",
    ]
    if record.file_name:
        lines.append(f"File:        {record.file_name}")
    lines += ["", record.summary or "(no summary)", "", "Ontological report"]
    for heading, text in record.ontology_report.sections():
        if text:
            lines.append(f"  {heading}: {text}")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DeweyFlux - AI-assisted Dewey Decimal library")
    parser.add_argument("-P", "--profile", type=str, help="Application profile for isolation (e.g. 'dev', 'test')")
    parser.add_argument("--no-baseline", action="store_true", help="Do not merge the configured baseline library")
    sub = parser.add_subparsers(dest="command", required=True)

    p_add = sub.add_parser("add", help="Classify and shelve text documents")
    p_add.add_argument("files", nargs="+")
    p_add.add_argument("--stop-on-error", action="store_true", help="Abort the batch at the first failure")

    p_import = sub.add_parser("import", help="Merge a serialized library into the current one")
    p_import.add_argument("file")

    p_export = sub.add_parser("export", help="Export the library")
    p_export.add_argument("format", choices=["json", "jsonld", "zip"])
    p_export.add_argument("path")

    p_show = sub.add_parser("show", help="Print the library tree")
    p_show.add_argument("--all", action="store_true", help="Include empty categories")

    p_view = sub.add_parser("view", help="Show one record in full")
    p_view.add_argument("record_id")
    p_view.add_argument("--jsonld", metavar="PATH", help="Also write the record as JSON-LD")
    p_view.add_argument("--text", metavar="PATH", help="Also write the original text")

    p_search = sub.add_parser("search", help="Search records")
    group = p_search.add_mutually_exclusive_group(required=True)
    group.add_argument("--keyword", "-k")
    group.add_argument("--code", "-c")

    p_config = sub.add_parser("config", help="Show or change settings")
    p_config.add_argument("--api-key")
    p_config.add_argument("--provider", choices=list(AppConfig.PROVIDER_CHOICES))
    p_config.add_argument("--model", help="Model name for the active provider")
    p_config.add_argument("--strategy", choices=list(AppConfig.PLACEMENT_CHOICES))
    p_config.add_argument("--baseline", help="Path or URL of the baseline library ('' to disable)")
    return parser


def run_config(args: argparse.Namespace, app_config: AppConfig) -> int:
    if args.provider:
        app_config.set_ai_provider(args.provider)
    if args.api_key is not None:
        app_config.set_api_key(args.api_key)
    if args.model:
        if app_config.get_ai_provider() == "ollama":
            app_config.set_ollama_model(args.model)
        else:
            app_config.set_gemini_model(args.model)
    if args.strategy:
        app_config.set_placement_strategy(args.strategy)
    if args.baseline is not None:
        app_config.set_baseline_source(args.baseline)

    model = app_config.get_ollama_model() if app_config.get_ai_provider() == "ollama" else app_config.get_gemini_model()
    print(f"Provider:  {app_config.get_ai_provider()} ({model})")
    print(f"API key:   {'set' if app_config.get_api_key() else 'missing'}")
    print(f"Strategy:  {app_config.get_placement_strategy()}")
    print(f"Baseline:  {app_config.get_baseline_source() or '-'}")
    print(f"Library:   {app_config.get_library_file()}")
    return 0


def run(args: argparse.Namespace, app_config: AppConfig) -> int:
    if args.command == "config":
        return run_config(args, app_config)

    controller = LibraryController(config=app_config)
    controller.initialize(baseline_source="" if args.no_baseline else None)
    if controller.last_error:
        print(f"Warning: {controller.last_error}", file=sys.stderr)

    try:
        return run_library_command(args, controller)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run_library_command(args: argparse.Namespace, controller: LibraryController) -> int:
    if args.command == "add":
        report = controller.process_files(args.files, stop_on_error=args.stop_on_error)
        for record_id in report.added:
            print(f"+ {record_id}")
        for path, message in report.failures.items():
            print(f"! {path}: {message}", file=sys.stderr)
        if report.added:
            controller.save()
        return 0 if report.ok else 1

    if args.command == "import":
        if not controller.import_file(args.file):
            print(f"Error: {controller.last_error}", file=sys.stderr)
            return 1
        controller.save()
        print(f"{controller.record_count} records on shelf")
        return 0

    if args.command == "export":
        if args.format == "json":
            ok = controller.export_json(args.path)
        elif args.format == "jsonld":
            ok = controller.export_json_ld(args.path)
        else:
            ok = controller.export_archive(args.path)
        if not ok:
            print(f"Error: {controller.last_error}", file=sys.stderr)
            return 1
        print(f"Exported to {args.path}")
        return 0

    if args.command == "show":
        print("\n".join(render_tree(controller.tree, show_empty=args.all)))
        return 0

    if args.command == "view":
        record = controller.select(args.record_id)
        if record is None:
            print(f"Error: No record with id '{args.record_id}'", file=sys.stderr)
            return 1
        print("\n".join(format_details(record)))
        failed = False
        for path, export in ((args.jsonld, controller.export_record_json_ld), (args.text, controller.export_record_text)):
            if not path:
                continue
            if export(record.id, path):
                print(f"Written {path}")
            else:
                print(f"Error: {controller.last_error}", file=sys.stderr)
                failed = True
        return 1 if failed else 0

    if args.command == "search":
        results = controller.search(keyword=args.keyword, code=args.code)
        for rec in results:
            print(format_record(rec))
        if not results:
            print("No matching records.")
        return 0

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    """
    DeweyFlux Entry Point.
    """
    args = build_parser().parse_args(argv)

    app_id = "deweyflux"
    if args.profile:
        app_id = f"deweyflux-{args.profile}"
    QCoreApplication.setApplicationName(app_id)

    app_config = AppConfig(profile=args.profile)

    setup_logging(
        level=app_config.get_log_level(),
        log_file=str(app_config.get_log_file_path()),
        component_levels=app_config.get_log_components()
    )
    logger = get_logger("core")
    logger.info(f"DeweyFlux started (Profile: {args.profile or 'default'}, command: {args.command})")

    try:
        return run(args, app_config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
