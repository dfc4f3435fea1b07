"""
Module: exporter.layout.config

Purpose:
    Page geometry for paginated export.
    Maps the fixed virtual rendering width onto physical A4 pages.

Key Classes:
    - PageGeometry: Immutable physical/virtual page configuration

Dependencies:
    - dataclasses (std)

Used By:
    - exporter.controller: Page height and physical page size
    - exporter.layout.paginator: Target page height
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# A4 in millimetres
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0

# Virtual width the document is measured and rendered at (A4 at 96 DPI)
DEFAULT_VIRTUAL_WIDTH = 794

# Reserved at the bottom of each page so content never touches the edge
DEFAULT_BOTTOM_SAFETY = 40


@dataclass(frozen=True)
class PageGeometry:
    """
    Physical page size and its virtual-space equivalent (immutable).

    Attributes:
        physical_width: Page width in millimetres
        physical_height: Page height in millimetres
        virtual_width: Rendering width in virtual units
        bottom_safety: Virtual units kept free at the bottom of each page

    Example:
        >>> geometry = PageGeometry()
        >>> round(geometry.page_height, 2)
        1082.97  # 794 * 297/210 - 40
    """

    physical_width: float = A4_WIDTH_MM
    physical_height: float = A4_HEIGHT_MM
    virtual_width: float = DEFAULT_VIRTUAL_WIDTH
    bottom_safety: float = DEFAULT_BOTTOM_SAFETY

    def __post_init__(self) -> None:
        """Validate geometry on construction."""
        if self.physical_width <= 0:
            raise ValueError(f"physical_width must be positive: {self.physical_width}")
        if self.physical_height <= 0:
            raise ValueError(f"physical_height must be positive: {self.physical_height}")
        if self.virtual_width <= 0:
            raise ValueError(f"virtual_width must be positive: {self.virtual_width}")
        if self.bottom_safety < 0:
            raise ValueError(f"bottom_safety must be >= 0: {self.bottom_safety}")
        if self.page_height <= 0:
            raise ValueError("bottom_safety exceeds page height")

    @property
    def aspect_ratio(self) -> float:
        """Physical height divided by physical width."""
        return self.physical_height / self.physical_width

    @property
    def page_height(self) -> float:
        """Usable page height in virtual units."""
        return self.virtual_width * self.aspect_ratio - self.bottom_safety

    @property
    def physical_page_size(self) -> Tuple[float, float]:
        """(width, height) of one page in millimetres."""
        return (self.physical_width, self.physical_height)
