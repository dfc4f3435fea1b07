"""
Module: exporter.output.compositor

Purpose:
    Cut one full-document raster into per-page rasters at planned split
    points. Each page gets its own freshly allocated, background-filled
    surface, so short last pages and transparent areas never show an
    unstyled background.

Key Functions:
    - slice_pages(): Full raster + split points -> PageSlices
    - physical_height_for(): Physical placement height of a band

Key Classes:
    - PageSlice: One page raster with its interval and physical height

Dependencies:
    - PIL.Image: Surface allocation, cropping, compositing

Used By:
    - exporter.controller: Paginated export
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageSlice:
    """
    Raster for a single output page.

    Attributes:
        index: Page number (0-indexed)
        image: Background-filled page raster
        start_y: Interval start in virtual units
        end_y: Interval end in virtual units
        physical_height: Placement height in physical units
    """

    index: int
    image: Image.Image
    start_y: float
    end_y: float
    physical_height: float

    @property
    def virtual_height(self) -> float:
        """Height of the page interval in virtual units."""
        return self.end_y - self.start_y


def physical_height_for(
    start_y: float,
    end_y: float,
    raster_scale: float,
    raster_width: int,
    physical_width: float,
) -> float:
    """
    Physical height that keeps a band's aspect ratio at physical_width.

    Args:
        start_y: Band start in virtual units
        end_y: Band end in virtual units
        raster_scale: Raster pixels per virtual unit
        raster_width: Width of the full raster in pixels
        physical_width: Target placement width

    Returns:
        (end_y - start_y) * raster_scale * physical_width / raster_width
    """
    return (end_y - start_y) * raster_scale * physical_width / raster_width


def slice_pages(
    full_raster: Image.Image,
    split_points: Sequence[float],
    raster_scale: float,
    physical_width: float,
    background: str,
) -> List[PageSlice]:
    """
    Slice a full-document raster into one background-filled raster per page.

    The full raster must cover the whole document at raster_scale times
    its virtual size. For every interval (start_y, end_y) of the split
    points (with an implicit leading 0), the band
    [start_y * scale, end_y * scale) is copied to offset 0 of a new
    surface of the same width.

    Args:
        full_raster: Single render of the whole document
        split_points: Page end offsets in virtual units
        raster_scale: Oversampling factor the raster was rendered at
        physical_width: Page placement width in physical units
        background: Fill colour for every page surface

    Returns:
        PageSlices in page order; empty when split_points is empty

    Example:
        >>> pages = slice_pages(raster, [950, 1950, 2500], 2, 210.0, "#ffffff")
        >>> pages[0].image.size
        (1588, 1900)
    """
    if not split_points:
        logger.warning("No split points, nothing to slice")
        return []

    width = full_raster.width
    slices: List[PageSlice] = []
    start_y: float = 0

    for index, end_y in enumerate(split_points):
        top_px = round(start_y * raster_scale)
        bottom_px = round(end_y * raster_scale)

        page = Image.new("RGB", (width, bottom_px - top_px), background)

        # The raster may be a pixel short of the last split point after rounding
        band_bottom = min(bottom_px, full_raster.height)
        if band_bottom > top_px:
            band = full_raster.crop((0, top_px, width, band_bottom))
            if band.mode == "RGB":
                page.paste(band, (0, 0))
            else:
                band = band.convert("RGBA")
                page.paste(band, (0, 0), band)

        slices.append(PageSlice(
            index=index,
            image=page,
            start_y=start_y,
            end_y=end_y,
            physical_height=physical_height_for(
                start_y, end_y, raster_scale, width, physical_width,
            ),
        ))
        logger.debug(
            f"Page {index + 1}: rows {top_px}-{bottom_px}px, "
            f"{slices[-1].physical_height:.2f} physical units"
        )

        start_y = end_y

    return slices
