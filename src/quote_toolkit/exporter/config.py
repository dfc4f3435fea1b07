"""
Module: exporter.config

Purpose:
    Configuration dataclasses for an export request. Immutable
    configuration with validation on construction.

Key Classes:
    - ExportMode: image / long_page / paginated
    - ExportJob: Mode, raster scale, background and physical width
    - ExportOptions: Region measurement and grouping configuration

Key Functions:
    - background_for_template(): Page background for a quotation template
    - default_filename(): Artifact filename for a mode and customer

Dependencies:
    - dataclasses (std)
    - PIL.ImageColor: Colour validation

Used By:
    - exporter.controller: Export orchestration
    - quote_toolkit.cli: Command-line options
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from PIL import ImageColor

from quote_toolkit.core.models import SAFETY_MARGIN, GroupSpec

from .layout.config import A4_WIDTH_MM, DEFAULT_BOTTOM_SAFETY
from .layout.paginator import PROGRESS_THRESHOLD


class ExportMode(str, Enum):
    """Output artifact kind."""

    IMAGE = "image"
    LONG_PAGE = "long_page"
    PAGINATED = "paginated"


# Raster oversampling per mode (quality vs. memory)
DEFAULT_SCALES = {
    ExportMode.IMAGE: 3.0,
    ExportMode.LONG_PAGE: 2.0,
    ExportMode.PAGINATED: 2.0,
}

DEFAULT_BACKGROUND = "#ffffff"

# Page background per quotation template
THEME_BACKGROUNDS = {
    "classic": "#ffffff",
    "modern": "#ffffff",
    "minimal": "#ffffff",
    "noir": "#1a1a1a",
}

# Regions measured for the block model, top to bottom
DEFAULT_REGION_NAMES: Tuple[str, ...] = ("header", "info", "row")

# Totals, footer and closing bar always move to the next page together
DEFAULT_GROUPINGS: Tuple[GroupSpec, ...] = (
    GroupSpec(("total", "footer", "bottom_bar")),
)


def background_for_template(template: str) -> str:
    """
    Get the page background colour for a quotation template.

    Unknown templates get the default white background.

    Example:
        >>> background_for_template("noir")
        '#1a1a1a'
    """
    return THEME_BACKGROUNDS.get(template, DEFAULT_BACKGROUND)


def default_filename(mode: ExportMode, customer: str = "") -> str:
    """
    Build the artifact filename for an export.

    Args:
        mode: Export mode
        customer: Customer name (sanitized for the filesystem)

    Returns:
        quotation_<customer>.png, quotation_long_<customer>.pdf
        or quotation_<customer>.pdf

    Example:
        >>> default_filename(ExportMode.LONG_PAGE, "ACME Ltd")
        'quotation_long_ACME_Ltd.pdf'
    """
    slug = re.sub(r"[^\w\-]+", "_", customer.strip()).strip("_")
    stem = "quotation_long" if mode is ExportMode.LONG_PAGE else "quotation"
    if slug:
        stem = f"{stem}_{slug}"
    suffix = ".png" if mode is ExportMode.IMAGE else ".pdf"
    return stem + suffix


@dataclass(frozen=True)
class ExportJob:
    """
    A single export request (immutable).

    Attributes:
        mode: Output artifact kind
        scale: Raster pixels per virtual unit
        background_color: Page/raster background (any Pillow colour string)
        physical_width: Output page width in millimetres

    Example:
        >>> job = ExportJob.for_mode(ExportMode.PAGINATED, background_color="#1a1a1a")
        >>> job.scale
        2.0
    """

    mode: ExportMode
    scale: float
    background_color: str = DEFAULT_BACKGROUND
    physical_width: float = A4_WIDTH_MM

    def __post_init__(self) -> None:
        """Validate job on construction."""
        if not isinstance(self.mode, ExportMode):
            raise ValueError(f"Unknown export mode: {self.mode!r}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive: {self.scale}")
        if self.physical_width <= 0:
            raise ValueError(f"physical_width must be positive: {self.physical_width}")
        try:
            ImageColor.getrgb(self.background_color)
        except ValueError as e:
            raise ValueError(f"Invalid background_color: {self.background_color!r}") from e

    @classmethod
    def for_mode(
        cls,
        mode: ExportMode,
        *,
        scale: Optional[float] = None,
        background_color: str = DEFAULT_BACKGROUND,
        physical_width: float = A4_WIDTH_MM,
    ) -> ExportJob:
        """Create a job using the default scale for the mode."""
        return cls(
            mode=mode,
            scale=scale if scale is not None else DEFAULT_SCALES[mode],
            background_color=background_color,
            physical_width=physical_width,
        )


@dataclass(frozen=True)
class ExportOptions:
    """
    Block model and planning configuration (immutable).

    Attributes:
        region_names: Regions measured individually for the block model
        groupings: Regions merged into super-blocks
        safety_margin: Padding below each block (virtual units)
        progress_threshold: Minimum page advance (virtual units)
        bottom_safety: Free space at the bottom of each page (virtual units)
        render_timeout: Seconds to wait for the render call (None = no limit)
    """

    region_names: Tuple[str, ...] = DEFAULT_REGION_NAMES
    groupings: Tuple[GroupSpec, ...] = DEFAULT_GROUPINGS
    safety_margin: float = SAFETY_MARGIN
    progress_threshold: float = PROGRESS_THRESHOLD
    bottom_safety: float = DEFAULT_BOTTOM_SAFETY
    render_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate options on construction."""
        if self.safety_margin < 0:
            raise ValueError(f"safety_margin must be >= 0: {self.safety_margin}")
        if self.progress_threshold <= 0:
            raise ValueError(f"progress_threshold must be positive: {self.progress_threshold}")
        if self.bottom_safety < 0:
            raise ValueError(f"bottom_safety must be >= 0: {self.bottom_safety}")
        if self.render_timeout is not None and self.render_timeout <= 0:
            raise ValueError(f"render_timeout must be positive: {self.render_timeout}")

    @property
    def measured_names(self) -> Tuple[str, ...]:
        """Every region name to measure: individual regions then group members."""
        names = list(self.region_names)
        for spec in self.groupings:
            for name in spec.member_names:
                if name not in names:
                    names.append(name)
        return tuple(names)
