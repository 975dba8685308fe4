"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/exporter.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Export service for bundling the library into ZIP archives:
                one folder per category, one JSON-LD file per record and an
                Excel manifest listing every record.
------------------------------------------------------------------------------
"""

import io
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from core.logger import get_logger
from core.models.node import TaxonomyNode
from core.taxonomy import archive_layout, breadcrumb, flatten, record_filename

logger = get_logger("export")


class LibraryExporter:
    """
    Handles exporting the library tree to a ZIP archive mirroring the tree.
    """

    MANIFEST_NAME: str = "manifest.xlsx"

    @staticmethod
    def build_manifest(tree: TaxonomyNode, layout: Dict[str, Optional[str]]) -> pd.DataFrame:
        """
        Builds one manifest row per record.

        Args:
            tree: The library root.
            layout: Archive layout, used to resolve each record's file.

        Returns:
            DataFrame with call number, title, class, path, keywords and file.
        """
        rows: List[Dict[str, Any]] = []
        for rec in flatten(tree):
            trail = breadcrumb(tree, rec.id) or []
            filename = "/" + record_filename(rec)
            arcname = next((a for a in layout if a.endswith(filename)), "")
            rows.append({
                "Call Number": rec.call_number or rec.id,
                "Title": rec.title,
                "Class": rec.ddc.number,
                "Class Name": rec.ddc.name,
                "Shelf": " > ".join(n.label for n in trail[1:]),
                "Keywords": ", ".join(rec.keywords),
                "Added": rec.created_at or "",
                "File": arcname,
            })

        columns = ["Call Number", "Title", "Class", "Class Name", "Shelf", "Keywords", "Added", "File"]
        return pd.DataFrame(rows, columns=columns)

    @staticmethod
    def export_to_zip(
        tree: TaxonomyNode,
        output_path: str,
        include_manifest: bool = True,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        """
        Export the library to a ZIP file.

        Args:
            tree: The library root.
            output_path: Destination path for the .zip file.
            include_manifest: Whether to add an Excel manifest at the archive root.
            progress_callback: Optional callable(int) for percentage progress.
        """
        layout = archive_layout(tree)
        total = max(len(layout), 1)

        target = Path(output_path)
        target.parent.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zf:
            for i, (arcname, content) in enumerate(layout.items()):
                if content is None:
                    zf.writestr(zipfile.ZipInfo(arcname), b"")
                else:
                    zf.writestr(arcname, content.encode("utf-8"))

                if progress_callback and i % 10 == 0:
                    progress_callback(int((i / total) * 80))

            if include_manifest:
                df = LibraryExporter.build_manifest(tree, layout)
                buffer = io.BytesIO()
                with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
                    df.to_excel(writer, index=False, sheet_name="Records")
                    worksheet = writer.sheets["Records"]
                    for col_idx, col in enumerate(df.columns):
                        width = 50 if col in ("Title", "Shelf", "Keywords", "File") else 18
                        worksheet.set_column(col_idx, col_idx, width)
                zf.writestr(LibraryExporter.MANIFEST_NAME, buffer.getvalue())

        logger.info(f"Exported {len(flatten(tree))} records to {target}")
        if progress_callback:
            progress_callback(100)
