"""
Module: exporter.controller

Purpose:
    Orchestrate one export in one of three modes.
    image:     Render → Save PNG
    long_page: Render → One tall page → Save PDF
    paginated: Measure → Build blocks → Plan → Render → Slice → Write pages → Save PDF

Key Functions:
    - export_document(): Main entry point for an export
    - is_export_in_progress(): Whether an export currently holds the guard

Key Classes:
    - ExportResult: Summary of a finished export
    - ExportError: Base exception for export failures (and its subclasses)

Dependencies:
    - exporter.layout: Block model and page planning
    - exporter.output: Page slicing and artifact writers
    - exporter.rendering: Rendering backend interface

Used By:
    - quote_toolkit.cli: Command-line export
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Optional, Tuple

from PIL import Image

from quote_toolkit.core.models import Document, RegionMeasurement

from .config import ExportJob, ExportMode, ExportOptions
from .layout import PageGeometry, build_blocks, build_page_plan
from .layout.config import A4_HEIGHT_MM, A4_WIDTH_MM
from .output import DocumentWriter, PageSlice, ReportLabDocumentWriter, slice_pages, write_image
from .rendering import RenderingBackend

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Error during export pipeline."""
    pass


class MissingRenderTargetError(ExportError):
    """The document to render is absent."""
    pass


class RenderingError(ExportError):
    """Measurement or rendering failed or timed out."""
    pass


class RenderTimeoutError(RenderingError):
    """
    The render call did not finish within the timeout.

    Attributes:
        pending: Future of the abandoned render call
    """

    def __init__(self, message: str, pending: Future):
        super().__init__(message)
        self.pending = pending


class EmptyPlanError(ExportError):
    """Nothing to paginate: no height, no blocks, no split points or no slices."""
    pass


class WriterError(ExportError):
    """The artifact could not be assembled or saved."""
    pass


class ExportInProgressError(ExportError):
    """Another export already holds the export guard."""
    pass


# Only one export may touch the backend's measurement/paint state at a time
_export_guard = threading.Lock()


@dataclass(frozen=True)
class ExportResult:
    """
    Summary of a finished export (immutable).

    Attributes:
        output_path: Artifact written
        mode: Export mode used
        page_count: Pages in the artifact (1 for image and long page)
        raster_size: (width, height) of the single full render in pixels
        split_points: Page split offsets (paginated mode only)
        page_heights: Physical height of each placed page image
        elapsed_seconds: Wall time of the export
        warnings: Diagnostics collected during the export

    Example:
        >>> result = export_document(job, target, backend, Path("quotation.pdf"))
        >>> print(f"Wrote {result.page_count} pages to {result.output_path}")
    """
    output_path: Path
    mode: ExportMode
    page_count: int
    raster_size: Tuple[int, int]
    split_points: Tuple[float, ...] = ()
    page_heights: Tuple[float, ...] = ()
    elapsed_seconds: float = 0.0
    warnings: Tuple[str, ...] = ()


def is_export_in_progress() -> bool:
    """
    Check whether an export currently holds the guard.

    Stays True after a render timeout until the abandoned render returns.
    """
    return _export_guard.locked()


def export_document(
    job: ExportJob,
    target: Any,
    backend: RenderingBackend,
    output_path: Path,
    *,
    writer: Optional[DocumentWriter] = None,
    options: Optional[ExportOptions] = None,
) -> ExportResult:
    """
    Export a document in the job's mode.

    The rendering backend is called exactly once, whatever the page
    count. Pages are written strictly in order and the artifact is only
    saved after every page has been placed.

    A concurrent call is rejected rather than queued. The guard is
    released when the export succeeds or fails, except after a render
    timeout: it is then held until the abandoned render call returns.

    Args:
        job: Mode, scale, background and physical width
        target: Document tree understood by the backend
        backend: Rendering backend used for measurement and rendering
        output_path: Where to write the artifact
        writer: Document writer for PDF modes (default ReportLab)
        options: Block model and planning options

    Returns:
        ExportResult describing the artifact

    Raises:
        ExportInProgressError: If another export is running
        MissingRenderTargetError: If target is None
        RenderingError: If measurement or rendering fails
        RenderTimeoutError: If rendering exceeds options.render_timeout
        EmptyPlanError: If there is nothing to paginate
        WriterError: If the artifact cannot be written

    Example:
        >>> job = ExportJob.for_mode(ExportMode.PAGINATED)
        >>> result = export_document(job, target, CompositeRenderBackend(), Path("out.pdf"))
        >>> result.page_count
        3
    """
    if not _export_guard.acquire(blocking=False):
        raise ExportInProgressError("An export is already in progress")

    release_guard = True
    try:
        return _run_export(
            job,
            target,
            backend,
            Path(output_path),
            writer if writer is not None else ReportLabDocumentWriter(),
            options if options is not None else ExportOptions(),
        )
    except RenderTimeoutError as e:
        # The abandoned render still owns the backend until it returns
        release_guard = False
        e.pending.add_done_callback(lambda _: _export_guard.release())
        logger.warning("Render abandoned after timeout; export guard held until it finishes")
        raise
    finally:
        if release_guard:
            _export_guard.release()


def _run_export(
    job: ExportJob,
    target: Any,
    backend: RenderingBackend,
    output_path: Path,
    writer: DocumentWriter,
    options: ExportOptions,
) -> ExportResult:
    """Run one export while holding the guard."""
    start_time = time.perf_counter()

    if target is None:
        raise MissingRenderTargetError("No document to render")

    logger.info(f"Starting {job.mode.value} export to {output_path}")

    if job.mode is ExportMode.IMAGE:
        result = _export_image(job, target, backend, output_path, options)
    elif job.mode is ExportMode.LONG_PAGE:
        result = _export_long_page(job, target, backend, output_path, writer, options)
    else:
        result = _export_paginated(job, target, backend, output_path, writer, options)

    elapsed = time.perf_counter() - start_time
    logger.info(
        f"Export completed in {elapsed:.2f}s: {result.page_count} page(s) -> {output_path}"
    )

    return replace(result, elapsed_seconds=elapsed)


# ─────────────────────────────────────────────────────────────────────────────
# Modes
# ─────────────────────────────────────────────────────────────────────────────


def _export_image(
    job: ExportJob,
    target: Any,
    backend: RenderingBackend,
    output_path: Path,
    options: ExportOptions,
) -> ExportResult:
    """Render once and save the raster itself as the artifact."""
    _require_content(backend, target)
    raster = _render(backend, target, job.scale, job.background_color, options)

    try:
        write_image(raster, output_path)
    except Exception as e:
        raise WriterError(f"Failed to write image {output_path}: {e}") from e

    return ExportResult(
        output_path=output_path,
        mode=job.mode,
        page_count=1,
        raster_size=raster.size,
    )


def _export_long_page(
    job: ExportJob,
    target: Any,
    backend: RenderingBackend,
    output_path: Path,
    writer: DocumentWriter,
    options: ExportOptions,
) -> ExportResult:
    """Render once onto a single page as tall as the content's aspect ratio."""
    _require_content(backend, target)
    raster = _render(backend, target, job.scale, job.background_color, options)

    page_width = job.physical_width
    page_height = page_width * raster.height / raster.width

    try:
        handle = writer.new_document((page_width, page_height))
        writer.add_page(handle)
        writer.fill_page(handle, job.background_color)
        writer.place_image(handle, raster, 0, 0, page_width, page_height)
        writer.save(handle, output_path)
    except Exception as e:
        raise WriterError(f"Failed to write {output_path}: {e}") from e

    return ExportResult(
        output_path=output_path,
        mode=job.mode,
        page_count=1,
        raster_size=raster.size,
        page_heights=(page_height,),
    )


def _export_paginated(
    job: ExportJob,
    target: Any,
    backend: RenderingBackend,
    output_path: Path,
    writer: DocumentWriter,
    options: ExportOptions,
) -> ExportResult:
    """Plan page breaks around atomic blocks, render once, slice and write pages."""
    document = measure_document(backend, target, options)

    if document.is_empty:
        raise EmptyPlanError("Document has no height to paginate")
    if not document.blocks:
        raise EmptyPlanError("No measurable regions found for pagination")

    try:
        geometry = PageGeometry(
            physical_width=job.physical_width,
            physical_height=job.physical_width * A4_HEIGHT_MM / A4_WIDTH_MM,
            virtual_width=document.virtual_width,
            bottom_safety=options.bottom_safety,
        )
    except ValueError as e:
        raise EmptyPlanError(f"No usable page height: {e}") from e

    plan = build_page_plan(
        document,
        geometry.page_height,
        progress_threshold=options.progress_threshold,
    )
    if plan.is_empty:
        raise EmptyPlanError("Page plan has no split points")

    raster = _render(backend, target, job.scale, job.background_color, options)

    pages = slice_pages(
        raster,
        plan.split_points,
        job.scale,
        geometry.physical_width,
        job.background_color,
    )
    if not pages:
        raise EmptyPlanError("Slicing produced no pages")

    _write_pages(writer, pages, geometry, job.background_color, output_path)

    return ExportResult(
        output_path=output_path,
        mode=job.mode,
        page_count=len(pages),
        raster_size=raster.size,
        split_points=plan.split_points,
        page_heights=tuple(p.physical_height for p in pages),
        warnings=tuple(plan.warnings),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Steps
# ─────────────────────────────────────────────────────────────────────────────


def measure_document(
    backend: RenderingBackend,
    target: Any,
    options: ExportOptions,
) -> Document:
    """
    Measure the target and build its block model.

    Pure measurement pass: nothing about the target is changed.

    Args:
        backend: Rendering backend
        target: Document tree to measure
        options: Region names and groupings

    Returns:
        Document with blocks sorted by top

    Raises:
        RenderingError: If measurement fails or is inconsistent
    """
    try:
        virtual_width, total_height = backend.extent(target)
        measurements: List[RegionMeasurement] = []
        for name in options.measured_names:
            measurements.extend(backend.measure(target, name))
    except Exception as e:
        raise RenderingError(f"Measurement failed: {e}") from e

    blocks = build_blocks(
        measurements,
        options.groupings,
        safety_margin=options.safety_margin,
    )

    try:
        document = Document(
            virtual_width=virtual_width,
            total_height=total_height,
            blocks=tuple(blocks),
        )
    except ValueError as e:
        raise RenderingError(f"Inconsistent measurements: {e}") from e

    logger.info(
        f"Measured {len(measurements)} regions into {document.block_count} blocks "
        f"({document.virtual_width:g} x {document.total_height:g})"
    )
    return document


def _require_content(backend: RenderingBackend, target: Any) -> None:
    """Raise EmptyPlanError when the target has no height."""
    try:
        _, total_height = backend.extent(target)
    except Exception as e:
        raise RenderingError(f"Measurement failed: {e}") from e
    if total_height <= 0:
        raise EmptyPlanError("Document has no height to export")


def _render(
    backend: RenderingBackend,
    target: Any,
    scale: float,
    background: str,
    options: ExportOptions,
) -> Image.Image:
    """
    Make the single render call, bounded by options.render_timeout.

    The call runs on a daemon thread so a render abandoned after a
    timeout never keeps the process alive.

    Raises:
        RenderTimeoutError: If the backend does not return in time
        RenderingError: If the backend fails or returns nothing
    """
    future: Future = Future()

    def _work() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(backend.render(target, scale, background))
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=_work, name="quote-render", daemon=True).start()

    try:
        raster = future.result(timeout=options.render_timeout)
    except FutureTimeoutError as e:
        if future.done():
            # The backend raised TimeoutError itself
            raise RenderingError(f"Rendering failed: {e}") from e
        raise RenderTimeoutError(
            f"Rendering timed out after {options.render_timeout}s",
            pending=future,
        ) from e
    except Exception as e:
        raise RenderingError(f"Rendering failed: {e}") from e

    if raster is None or raster.width == 0 or raster.height == 0:
        raise RenderingError("Rendering produced an empty raster")

    logger.info(f"Rendered {raster.width}x{raster.height}px at {scale}x")
    return raster


def _write_pages(
    writer: DocumentWriter,
    pages: List[PageSlice],
    geometry: PageGeometry,
    background: str,
    output_path: Path,
) -> None:
    """
    Write page slices in order, then save.

    Each page is filled with the background before its image is placed,
    so rounding gaps between raster and physical size stay in colour.

    Raises:
        WriterError: If any writer call fails; nothing is saved
    """
    try:
        handle = writer.new_document(geometry.physical_page_size)
        for page in pages:
            writer.add_page(handle)
            writer.fill_page(handle, background)
            writer.place_image(
                handle,
                page.image,
                0,
                0,
                geometry.physical_width,
                page.physical_height,
            )
            logger.debug(f"Placed page {page.index + 1}/{len(pages)}")
        writer.save(handle, output_path)
    except Exception as e:
        raise WriterError(f"Failed to write {output_path}: {e}") from e
