"""
Module: exporter.output

Purpose:
    Page compositing and artifact writing.
    Slices the single full-document raster into pages and hands them to
    a document writer, or saves the raster directly in image mode.

Key Functions:
    - slice_pages(): Full raster -> per-page rasters
    - write_image(): Save raster as PNG

Key Classes:
    - PageSlice: One page raster with its physical height
    - DocumentWriter: Abstract page-sequential writer
    - ReportLabDocumentWriter: PDF writer (ReportLab)

Dependencies:
    - reportlab: PDF generation
    - PIL: Image handling

Used By:
    - exporter.controller: Pipeline orchestration
"""

from .compositor import PageSlice, physical_height_for, slice_pages
from .image_writer import write_image
from .writer import DocumentWriter, ReportLabDocumentWriter, WriterHandle

__all__ = [
    "PageSlice",
    "physical_height_for",
    "slice_pages",
    "write_image",
    "DocumentWriter",
    "ReportLabDocumentWriter",
    "WriterHandle",
]
