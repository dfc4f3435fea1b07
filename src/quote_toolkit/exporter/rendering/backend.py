"""
Module: exporter.rendering.backend

Purpose:
    Abstract interface for the rendering backend, plus the standard
    composite implementation. A backend measures named regions of a
    render target in virtual space and renders the whole target to a
    single raster at a given scale.

Key Classes:
    - RenderingBackend: Abstract measurement + render interface
    - RenderTarget: Pre-rendered quotation image with its region map
    - CompositeRenderBackend: Renders a RenderTarget with Pillow

Dependencies:
    - PIL: Resampling and compositing
    - quote_toolkit.core.models: RegionMeasurement

Used By:
    - exporter.controller: Measurement pass and the single render call
    - exporter.rendering.loader: Builds RenderTargets from disk
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Tuple

from PIL import Image

from quote_toolkit.core.models import RegionMeasurement

logger = logging.getLogger(__name__)


class RenderingBackend(ABC):
    """
    Abstract interface for rendering a document tree.

    Measurement is side-effect free and may be called any number of
    times; render() is called once per export.
    """

    @abstractmethod
    def measure(self, target: Any, region_name: str) -> List[RegionMeasurement]:
        """
        Measure every region with the given name.

        Args:
            target: Document tree to measure
            region_name: Region name like "row"

        Returns:
            Measurements sorted by top (empty if the region is absent)
        """

    @abstractmethod
    def extent(self, target: Any) -> Tuple[float, float]:
        """
        Get (virtual_width, total_height) of the document.

        Returns:
            Tuple of (width, height) in virtual units
        """

    @abstractmethod
    def render(self, target: Any, scale: float, background: str) -> Image.Image:
        """
        Render the whole document to one raster.

        Args:
            target: Document tree to render
            scale: Raster pixels per virtual unit
            background: Colour behind transparent content

        Returns:
            Raster of size (virtual_width * scale, total_height * scale)
        """


@dataclass(frozen=True)
class RenderTarget:
    """
    A quotation that has already been drawn to an image.

    The image may be stored at any resolution; virtual_width says how
    many virtual units its width represents, and region offsets are in
    those units.

    Attributes:
        image: Full quotation image
        virtual_width: Width of the image in virtual units
        regions: Named region measurements in virtual units
        name: Identifier used in log messages

    Example:
        >>> target = RenderTarget(img, virtual_width=794, regions=(header, row))
        >>> target.virtual_height
        1430.0
    """

    image: Image.Image
    virtual_width: float
    regions: Tuple[RegionMeasurement, ...] = ()
    name: str = "quotation"

    def __post_init__(self) -> None:
        """Validate target on construction."""
        if self.virtual_width <= 0:
            raise ValueError(f"virtual_width must be positive: {self.virtual_width}")
        if self.image.width <= 0:
            raise ValueError("Render target image has zero width")

    @property
    def virtual_height(self) -> float:
        """Image height expressed in virtual units."""
        return self.image.height * self.virtual_width / self.image.width


class CompositeRenderBackend(RenderingBackend):
    """
    Backend that renders a pre-drawn RenderTarget.

    Measurement reads the target's region map. Rendering resamples the
    image to the requested scale and flattens it onto the background,
    so transparent areas come out in the background colour.

    Example:
        >>> backend = CompositeRenderBackend()
        >>> backend.measure(target, "row")
        [RegionMeasurement(name='row', top=210, height=48), ...]
        >>> backend.render(target, 2, "#ffffff").size
        (1588, 2860)
    """

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS):
        """
        Initialize backend.

        Args:
            resample: Pillow resampling filter used when scaling
        """
        self.resample = resample

    def measure(self, target: RenderTarget, region_name: str) -> List[RegionMeasurement]:
        matches = [r for r in target.regions if r.name == region_name]
        matches.sort(key=lambda r: r.top)
        return matches

    def extent(self, target: RenderTarget) -> Tuple[float, float]:
        return (target.virtual_width, target.virtual_height)

    def render(self, target: RenderTarget, scale: float, background: str) -> Image.Image:
        if scale <= 0:
            raise ValueError(f"scale must be positive: {scale}")

        size = (
            round(target.virtual_width * scale),
            round(target.virtual_height * scale),
        )

        source = target.image.convert("RGBA")
        if source.size != size:
            source = source.resize(size, self.resample)

        surface = Image.new("RGB", size, background)
        surface.paste(source, (0, 0), source)

        logger.debug(f"Rendered {target.name} at {scale}x: {size[0]}x{size[1]}px")
        return surface
