"""
Tests for export orchestration.

Runs the three export modes end to end against the composite backend
and checks the error contract with mocked collaborators.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest
from PIL import Image
from pypdf import PdfReader

from quote_toolkit.core.models import RegionMeasurement
from quote_toolkit.exporter import (
    EmptyPlanError,
    ExportInProgressError,
    ExportJob,
    ExportMode,
    ExportOptions,
    MissingRenderTargetError,
    RenderTimeoutError,
    RenderingError,
    WriterError,
    export_document,
    is_export_in_progress,
)
from quote_toolkit.exporter import controller
from quote_toolkit.exporter.controller import measure_document
from quote_toolkit.exporter.rendering import CompositeRenderBackend, RenderTarget


# A4 dimensions in points (1/72 inch)
A4_WIDTH_PT = 595.276  # 210mm
A4_HEIGHT_PT = 841.890  # 297mm
TOLERANCE_PT = 1.0  # Allow 1 point tolerance


def _wait_for_guard_release(timeout: float = 5.0) -> bool:
    """Poll until no export holds the guard (abandoned renders release it late)."""
    deadline = time.monotonic() + timeout
    while is_export_in_progress():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


@pytest.fixture
def backend():
    """Composite backend wrapped so calls can be counted."""
    return MagicMock(wraps=CompositeRenderBackend())


@pytest.fixture
def failing_backend():
    """Backend whose measurement works but whose render call fails."""
    mock = MagicMock()
    mock.extent.return_value = (794, 2500)
    mock.measure.return_value = [RegionMeasurement("row", 100, 50)]
    mock.render.side_effect = RuntimeError("canvas lost")
    return mock


class TestPaginatedExport:
    """Paginated A4 export."""

    def test_export_when_quotation_then_a4_pages_without_torn_rows(self, tmp_path, quote_target, backend):
        # Arrange
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1)
        output = tmp_path / "quotation.pdf"

        # Act
        result = export_document(job, quote_target, backend, output)

        # Assert
        # Page height 794 * 297/210 - 40; rows 8 and 18 straddle the cuts
        assert result.split_points == (1010, 2010, 2500)
        assert result.page_count == 3
        assert result.raster_size == (794, 2500)
        assert result.output_path == output

        reader = PdfReader(str(output))
        assert len(reader.pages) == 3
        for page in reader.pages:
            assert abs(float(page.mediabox.width) - A4_WIDTH_PT) < TOLERANCE_PT
            assert abs(float(page.mediabox.height) - A4_HEIGHT_PT) < TOLERANCE_PT

    def test_export_when_paginated_then_render_called_once(self, tmp_path, quote_target, backend):
        """One render call regardless of page count."""
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1)

        export_document(job, quote_target, backend, tmp_path / "q.pdf")

        backend.render.assert_called_once_with(quote_target, 1, "#ffffff")

    def test_export_when_paginated_then_page_heights_cover_document(self, tmp_path, quote_target, backend):
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1)

        result = export_document(job, quote_target, backend, tmp_path / "q.pdf")

        assert sum(result.page_heights) == pytest.approx(2500 * 210 / 794)
        assert all(h <= 297 for h in result.page_heights)

    def test_export_when_pages_written_then_order_and_fill_before_place(self, tmp_path, quote_target, backend):
        """Each page is filled with the background before its image is placed."""
        # Arrange
        writer = MagicMock()
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1, background_color="#1a1a1a")

        # Act
        export_document(job, quote_target, backend, tmp_path / "q.pdf", writer=writer)

        # Assert
        names = [c[0] for c in writer.mock_calls]
        assert names == (
            ["new_document"]
            + ["add_page", "fill_page", "place_image"] * 3
            + ["save"]
        )
        writer.new_document.assert_called_once_with((210.0, 297.0))
        writer.fill_page.assert_called_with(writer.new_document.return_value, "#1a1a1a")

    def test_export_when_group_straddles_then_group_moves_together(self, tmp_path):
        """Totals, footer and closing bar land on one page."""
        # Arrange
        regions = (
            RegionMeasurement("header", 0, 100),
            RegionMeasurement("total", 1000, 50),
            RegionMeasurement("footer", 1050, 60),
            RegionMeasurement("bottom_bar", 1110, 30),
        )
        target = RenderTarget(
            image=Image.new("RGB", (794, 1500), "white"),
            virtual_width=794,
            regions=regions,
        )
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1)

        # Act
        result = export_document(job, target, CompositeRenderBackend(), tmp_path / "q.pdf")

        # Assert
        # Cut at 1082.97 would go through the footer; the whole group moves
        assert result.split_points == (1000, 1500)

    def test_export_when_no_regions_then_empty_plan_error(self, tmp_path, quote_image):
        target = RenderTarget(image=quote_image, virtual_width=794)
        job = ExportJob.for_mode(ExportMode.PAGINATED, scale=1)

        with pytest.raises(EmptyPlanError):
            export_document(job, target, CompositeRenderBackend(), tmp_path / "q.pdf")
        assert not (tmp_path / "q.pdf").exists()

    def test_export_when_zero_height_then_empty_plan_error(self, tmp_path):
        mock = MagicMock()
        mock.extent.return_value = (794, 0)
        mock.measure.return_value = []
        job = ExportJob.for_mode(ExportMode.PAGINATED)

        with pytest.raises(EmptyPlanError):
            export_document(job, object(), mock, tmp_path / "q.pdf")
        mock.render.assert_not_called()


class TestSinglePageExports:
    """Image and long-page export."""

    def test_export_when_image_mode_then_png_of_full_raster(self, tmp_path, quote_target, backend):
        job = ExportJob.for_mode(ExportMode.IMAGE, scale=1)
        output = tmp_path / "quotation.png"

        result = export_document(job, quote_target, backend, output)

        assert result.page_count == 1
        with Image.open(output) as img:
            assert img.size == (794, 2500)
        backend.render.assert_called_once()
        backend.measure.assert_not_called()

    def test_export_when_long_page_then_single_page_with_content_ratio(self, tmp_path, quote_target, backend):
        # Arrange
        job = ExportJob.for_mode(ExportMode.LONG_PAGE, scale=1)
        output = tmp_path / "quotation_long.pdf"

        # Act
        result = export_document(job, quote_target, backend, output)

        # Assert
        expected_mm = 210 * 2500 / 794
        assert result.page_heights == (pytest.approx(expected_mm),)

        reader = PdfReader(str(output))
        assert len(reader.pages) == 1
        page = reader.pages[0]
        assert abs(float(page.mediabox.width) - A4_WIDTH_PT) < TOLERANCE_PT
        assert abs(float(page.mediabox.height) - expected_mm * 72 / 25.4) < TOLERANCE_PT


class TestExportErrors:
    """Error contract of export_document()."""

    def test_export_when_target_missing_then_missing_target_error(self, tmp_path, backend):
        job = ExportJob.for_mode(ExportMode.PAGINATED)

        with pytest.raises(MissingRenderTargetError):
            export_document(job, None, backend, tmp_path / "q.pdf")
        backend.render.assert_not_called()

    def test_export_when_render_fails_then_rendering_error(self, tmp_path, failing_backend):
        job = ExportJob.for_mode(ExportMode.PAGINATED)
        output = tmp_path / "q.pdf"

        with pytest.raises(RenderingError, match="canvas lost"):
            export_document(job, object(), failing_backend, output)
        assert not output.exists()

    def test_export_when_measure_fails_then_rendering_error(self, tmp_path):
        mock = MagicMock()
        mock.extent.side_effect = RuntimeError("detached")

        with pytest.raises(RenderingError, match="Measurement failed"):
            export_document(ExportJob.for_mode(ExportMode.IMAGE), object(), mock, tmp_path / "q.png")

    def test_export_when_render_exceeds_timeout_then_rendering_error(self, tmp_path, quote_target):
        # Arrange
        release = threading.Event()
        slow = MagicMock(wraps=CompositeRenderBackend())
        slow.render.side_effect = lambda *args: release.wait(5)
        options = ExportOptions(render_timeout=0.05)

        # Act / Assert
        try:
            with pytest.raises(RenderTimeoutError, match="timed out"):
                export_document(
                    ExportJob.for_mode(ExportMode.IMAGE),
                    quote_target,
                    slow,
                    tmp_path / "q.png",
                    options=options,
                )
        finally:
            release.set()
        assert _wait_for_guard_release()
        assert not (tmp_path / "q.png").exists()

    def test_export_when_place_image_fails_mid_document_then_remaining_pages_aborted(
        self, tmp_path, quote_target
    ):
        """A writer failure on page 2 stops assembly; nothing is saved."""
        # Arrange
        writer = MagicMock()
        writer.place_image.side_effect = [None, OSError("out of memory")]
        output = tmp_path / "q.pdf"

        # Act
        with pytest.raises(WriterError, match="out of memory"):
            export_document(
                ExportJob.for_mode(ExportMode.PAGINATED, scale=1),
                quote_target,
                CompositeRenderBackend(),
                output,
                writer=writer,
            )

        # Assert
        assert writer.add_page.call_count == 2
        writer.save.assert_not_called()
        assert not output.exists()

    def test_export_when_virtual_width_too_narrow_then_empty_plan_error(self, tmp_path):
        """No usable page height surfaces as an ExportError, not a ValueError."""
        mock = MagicMock()
        mock.extent.return_value = (20, 2500)
        mock.measure.side_effect = lambda target, name: (
            [RegionMeasurement("row", 100, 50)] if name == "row" else []
        )

        with pytest.raises(EmptyPlanError, match="page height"):
            export_document(ExportJob.for_mode(ExportMode.PAGINATED), object(), mock, tmp_path / "q.pdf")
        mock.render.assert_not_called()

    def test_export_when_render_returns_nothing_then_rendering_error(self, tmp_path):
        mock = MagicMock()
        mock.extent.return_value = (794, 1000)
        mock.render.return_value = None

        with pytest.raises(RenderingError, match="empty raster"):
            export_document(ExportJob.for_mode(ExportMode.LONG_PAGE), object(), mock, tmp_path / "q.pdf")

    def test_export_when_save_fails_then_writer_error_and_no_file(self, tmp_path, quote_target):
        # Arrange
        writer = MagicMock()
        writer.save.side_effect = OSError("disk full")
        output = tmp_path / "q.pdf"

        # Act / Assert
        with pytest.raises(WriterError, match="disk full"):
            export_document(
                ExportJob.for_mode(ExportMode.PAGINATED, scale=1),
                quote_target,
                CompositeRenderBackend(),
                output,
                writer=writer,
            )
        assert not output.exists()


class TestExportGuard:
    """Single export at a time."""

    def test_export_when_guard_held_then_rejected(self, tmp_path, quote_target, backend):
        controller._export_guard.acquire()
        try:
            assert is_export_in_progress()
            with pytest.raises(ExportInProgressError):
                export_document(
                    ExportJob.for_mode(ExportMode.IMAGE), quote_target, backend, tmp_path / "q.png"
                )
        finally:
            controller._export_guard.release()
        backend.render.assert_not_called()

    def test_export_when_timed_out_render_still_running_then_guard_held(self, tmp_path, quote_target):
        """The guard stays held until the abandoned render returns."""
        # Arrange
        release = threading.Event()
        slow = MagicMock(wraps=CompositeRenderBackend())
        slow.render.side_effect = lambda *args: release.wait(5)
        options = ExportOptions(render_timeout=0.05)

        try:
            with pytest.raises(RenderTimeoutError):
                export_document(
                    ExportJob.for_mode(ExportMode.IMAGE),
                    quote_target,
                    slow,
                    tmp_path / "a.png",
                    options=options,
                )

            # Act / Assert: render still in flight
            assert is_export_in_progress()
            with pytest.raises(ExportInProgressError):
                export_document(
                    ExportJob.for_mode(ExportMode.IMAGE, scale=0.5),
                    quote_target,
                    CompositeRenderBackend(),
                    tmp_path / "b.png",
                )
        finally:
            release.set()

        # Render returned: guard released
        assert _wait_for_guard_release()
        result = export_document(
            ExportJob.for_mode(ExportMode.IMAGE, scale=0.5),
            quote_target,
            CompositeRenderBackend(),
            tmp_path / "b.png",
        )
        assert result.output_path.exists()

    def test_export_when_previous_export_failed_then_guard_released(self, tmp_path, quote_target, failing_backend):
        with pytest.raises(RenderingError):
            export_document(ExportJob.for_mode(ExportMode.IMAGE), object(), failing_backend, tmp_path / "a.png")

        assert not is_export_in_progress()
        result = export_document(
            ExportJob.for_mode(ExportMode.IMAGE, scale=0.5),
            quote_target,
            CompositeRenderBackend(),
            tmp_path / "b.png",
        )
        assert result.output_path.exists()


class TestMeasureDocument:
    """Tests for measure_document()."""

    def test_measure_when_quotation_then_blocks_with_super_block(self, quote_target):
        document = measure_document(CompositeRenderBackend(), quote_target, ExportOptions())

        assert document.virtual_width == 794
        assert document.block_count == 23
        assert document.blocks[-1].members == ("total", "footer", "bottom_bar")

    def test_measure_when_region_past_end_then_rendering_error(self):
        mock = MagicMock()
        mock.extent.return_value = (794, 500)
        mock.measure.side_effect = lambda target, name: (
            [RegionMeasurement("row", 450, 100)] if name == "row" else []
        )

        with pytest.raises(RenderingError, match="Inconsistent"):
            measure_document(mock, object(), ExportOptions())
