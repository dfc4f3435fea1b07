"""
Module: exporter.output.writer

Purpose:
    Document writer interface and its ReportLab implementation.
    Pages are appended strictly in order; nothing reaches disk until
    save() is called after the last page has been placed.

Key Classes:
    - DocumentWriter: Abstract page-sequential writer
    - WriterHandle: Open document state
    - ReportLabDocumentWriter: PDF writer working in millimetres

Dependencies:
    - reportlab: PDF generation
    - PIL: Image encoding and colour parsing

Used By:
    - exporter.controller: Long-page and paginated export
"""

from __future__ import annotations

import io
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from PIL import Image, ImageColor
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)


@dataclass
class WriterHandle:
    """
    An open document being assembled.

    Attributes:
        canvas: ReportLab canvas drawing into buffer
        buffer: In-memory PDF bytes until save()
        page_width: Page width in physical units
        page_height: Page height in physical units
        page_count: Pages added so far
    """

    canvas: canvas.Canvas
    buffer: io.BytesIO
    page_width: float
    page_height: float
    page_count: int = 0


class DocumentWriter(ABC):
    """
    Abstract writer that assembles page-sized rasters into one artifact.

    Coordinates passed to place_image() use a top-left origin and the
    writer's physical unit.
    """

    @abstractmethod
    def new_document(self, page_size: Tuple[float, float]) -> WriterHandle:
        """
        Start a new document.

        Args:
            page_size: (width, height) of every page in physical units

        Returns:
            Handle used by the other calls
        """

    @abstractmethod
    def add_page(self, handle: WriterHandle) -> None:
        """Append a new, empty page and make it current."""

    @abstractmethod
    def fill_page(self, handle: WriterHandle, color: str) -> None:
        """Fill the whole current page with color."""

    @abstractmethod
    def place_image(
        self,
        handle: WriterHandle,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Draw image on the current page at (x, y) scaled to width x height."""

    @abstractmethod
    def save(self, handle: WriterHandle, path: Path) -> Path:
        """
        Finalize the document and write it to path.

        Returns:
            Path written
        """


class ReportLabDocumentWriter(DocumentWriter):
    """
    PDF writer backed by a ReportLab canvas.

    Physical units default to millimetres. The PDF is built in memory
    and written atomically on save(), so a failure mid-assembly never
    leaves a partial file.

    Example:
        >>> writer = ReportLabDocumentWriter()
        >>> handle = writer.new_document((210, 297))
        >>> writer.add_page(handle)
        >>> writer.fill_page(handle, "#ffffff")
        >>> writer.place_image(handle, page_image, 0, 0, 210, 280.5)
        >>> writer.save(handle, Path("quotation.pdf"))
    """

    def __init__(self, unit: float = mm):
        """
        Initialize writer.

        Args:
            unit: Size of one physical unit in PDF points (default mm)
        """
        self.unit = unit

    def new_document(self, page_size: Tuple[float, float]) -> WriterHandle:
        width, height = page_size
        if width <= 0 or height <= 0:
            raise ValueError(f"Page size must be positive: {page_size}")

        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(width * self.unit, height * self.unit))
        return WriterHandle(canvas=c, buffer=buffer, page_width=width, page_height=height)

    def add_page(self, handle: WriterHandle) -> None:
        # The canvas starts on page one; later pages begin after showPage()
        if handle.page_count > 0:
            handle.canvas.showPage()
        handle.page_count += 1

    def fill_page(self, handle: WriterHandle, color: str) -> None:
        _require_page(handle)
        r, g, b = ImageColor.getrgb(color)[:3]

        c = handle.canvas
        c.saveState()
        c.setFillColorRGB(r / 255.0, g / 255.0, b / 255.0)
        c.rect(
            0, 0,
            handle.page_width * self.unit,
            handle.page_height * self.unit,
            stroke=0,
            fill=1,
        )
        c.restoreState()

    def place_image(
        self,
        handle: WriterHandle,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        _require_page(handle)

        # Top-down physical Y to bottom-up PDF Y
        y_pt = (handle.page_height - y - height) * self.unit

        handle.canvas.drawImage(
            _pil_to_reader(image),
            x * self.unit,
            y_pt,
            width=width * self.unit,
            height=height * self.unit,
        )

    def save(self, handle: WriterHandle, path: Path) -> Path:
        if handle.page_count == 0:
            raise ValueError("Cannot save a document with no pages")

        handle.canvas.save()
        _atomic_write_bytes(handle.buffer.getvalue(), path)

        logger.info(f"Wrote {handle.page_count} page(s) to {path}")
        return path


def _require_page(handle: WriterHandle) -> None:
    """Raise if no page has been added yet."""
    if handle.page_count == 0:
        raise ValueError("No page added to document")


def _pil_to_reader(img: Image.Image) -> ImageReader:
    """
    Convert PIL image to ReportLab ImageReader.

    Args:
        img: PIL Image object

    Returns:
        ImageReader for use with ReportLab
    """
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return ImageReader(buf)


def _atomic_write_bytes(data: bytes, path: Path) -> None:
    """Write bytes atomically using temp file; no temp file survives a failure."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="wb",
        suffix=path.suffix,
        dir=path.parent,
        delete=False,
    ) as f:
        temp_path = Path(f.name)

    try:
        temp_path.write_bytes(data)
        # replace() overwrites existing files on all platforms
        temp_path.replace(path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise
