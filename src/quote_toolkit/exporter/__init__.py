"""
Module: exporter

Purpose:
    Export pipeline for quotations. Renders a document once and writes
    it as a PNG image, a single long PDF page, or an A4 PDF whose page
    breaks never cut through a row, the header or the totals/footer group.

Key Functions:
    - export_document(): Main entry point for an export
    - build_blocks(): Measurements -> atomic blocks
    - plan_page_breaks(): Page split offsets
    - slice_pages(): Full raster -> per-page rasters

Key Classes:
    - ExportJob: Mode, scale, background and physical width
    - ExportOptions: Region measurement and grouping configuration
    - ExportResult: Export summary
    - ExportError: Base exception for export failures

Dependencies:
    - PIL: Raster surfaces
    - reportlab: PDF writing
    - quote_toolkit.core.models: Block model

Used By:
    - quote_toolkit.cli: Command-line export
"""

from .config import (
    ExportJob,
    ExportMode,
    ExportOptions,
    background_for_template,
    default_filename,
)
from .layout import build_blocks, plan_page_breaks
from .output import slice_pages
from .controller import (
    EmptyPlanError,
    ExportError,
    ExportInProgressError,
    ExportResult,
    MissingRenderTargetError,
    RenderTimeoutError,
    RenderingError,
    WriterError,
    export_document,
    is_export_in_progress,
)

__all__ = [
    # Config
    "ExportJob",
    "ExportMode",
    "ExportOptions",
    "background_for_template",
    "default_filename",
    # Engine
    "build_blocks",
    "plan_page_breaks",
    "slice_pages",
    # Controller
    "export_document",
    "is_export_in_progress",
    "ExportResult",
    "ExportError",
    "MissingRenderTargetError",
    "RenderingError",
    "RenderTimeoutError",
    "EmptyPlanError",
    "WriterError",
    "ExportInProgressError",
]
