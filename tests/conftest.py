import json
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import quote_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from quote_toolkit.core.models import RegionMeasurement  # noqa: E402
from quote_toolkit.exporter.rendering import RenderTarget  # noqa: E402


# A quotation 2500 virtual units tall, stored at half resolution
QUOTE_VIRTUAL_WIDTH = 794
QUOTE_VIRTUAL_HEIGHT = 2500

QUOTE_REGIONS = [
    {"name": "header", "top": 0, "height": 132},
    {"name": "info", "top": 140, "height": 60},
    *[{"name": "row", "top": 210 + i * 100, "height": 90} for i in range(20)],
    {"name": "total", "top": 2250, "height": 80},
    {"name": "footer", "top": 2330, "height": 90},
    {"name": "bottom_bar", "top": 2420, "height": 40},
]


# Common test fixtures
@pytest.fixture
def quote_regions():
    """Region measurements of the sample quotation."""
    return tuple(RegionMeasurement(**r) for r in QUOTE_REGIONS)


@pytest.fixture
def quote_image():
    """Composite image of the sample quotation (half resolution)."""
    return Image.new(
        "RGB",
        (QUOTE_VIRTUAL_WIDTH // 2, QUOTE_VIRTUAL_HEIGHT // 2),
        color="#f0f0f0",
    )


@pytest.fixture
def quote_target(quote_image, quote_regions):
    """RenderTarget for the sample quotation."""
    return RenderTarget(
        image=quote_image,
        virtual_width=QUOTE_VIRTUAL_WIDTH,
        regions=quote_regions,
        name="sample",
    )


@pytest.fixture
def quote_files(tmp_path: Path, quote_image):
    """Write the sample quotation to disk as composite + regions.json."""
    composite = tmp_path / "quote.png"
    quote_image.save(composite)

    regions = tmp_path / "regions.json"
    regions.write_text(
        json.dumps({"virtual_width": QUOTE_VIRTUAL_WIDTH, "regions": QUOTE_REGIONS}),
        encoding="utf-8",
    )
    return composite, regions
