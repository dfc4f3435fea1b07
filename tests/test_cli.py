"""
Tests for the quote-export command line.
"""

import pytest
from PIL import Image
from pypdf import PdfReader

from quote_toolkit.cli import main


class TestMain:
    """Tests for main()."""

    def test_main_when_pdf_mode_then_writes_paginated_pdf(self, tmp_path, quote_files):
        # Arrange
        composite, regions = quote_files
        output = tmp_path / "out.pdf"

        # Act
        status = main(["pdf", str(composite), str(regions), "-o", str(output), "--scale", "1"])

        # Assert
        assert status == 0
        assert len(PdfReader(str(output)).pages) == 3

    def test_main_when_no_output_then_default_filename_in_cwd(self, tmp_path, quote_files, monkeypatch):
        composite, regions = quote_files
        monkeypatch.chdir(tmp_path)

        status = main([
            "image", str(composite), str(regions),
            "--customer", "ACME Ltd", "--scale", "0.5",
        ])

        assert status == 0
        with Image.open(tmp_path / "quotation_ACME_Ltd.png") as img:
            assert img.size == (397, 1250)

    def test_main_when_noir_template_then_dark_background(self, tmp_path, quote_files):
        """Transparent areas of the composite take the template background."""
        # Arrange
        _, regions = quote_files
        composite = tmp_path / "transparent.png"
        Image.new("RGBA", (397, 1250), (0, 0, 0, 0)).save(composite)
        output = tmp_path / "noir.png"

        # Act
        status = main([
            "image", str(composite), str(regions),
            "-o", str(output), "--template", "noir", "--scale", "0.5",
        ])

        # Assert
        assert status == 0
        with Image.open(output) as img:
            assert img.convert("RGB").getpixel((10, 10)) == (26, 26, 26)

    def test_main_when_long_mode_then_single_page(self, tmp_path, quote_files):
        composite, regions = quote_files
        output = tmp_path / "long.pdf"

        status = main(["long", str(composite), str(regions), "-o", str(output), "--scale", "0.5"])

        assert status == 0
        assert len(PdfReader(str(output)).pages) == 1

    def test_main_when_regions_missing_then_exit_status_1(self, tmp_path, quote_files, caplog):
        composite, _ = quote_files

        status = main(["pdf", str(composite), str(tmp_path / "missing.json"), "-o", str(tmp_path / "x.pdf")])

        assert status == 1
        assert "Export failed" in caplog.text
        assert not (tmp_path / "x.pdf").exists()

    def test_main_when_background_invalid_then_exit_status_1(self, tmp_path, quote_files):
        composite, regions = quote_files

        status = main(["image", str(composite), str(regions), "--background", "nonsense"])

        assert status == 1

    def test_main_when_template_and_background_then_usage_error(self, quote_files):
        composite, regions = quote_files

        with pytest.raises(SystemExit):
            main(["image", str(composite), str(regions), "--template", "noir", "--background", "#000"])
