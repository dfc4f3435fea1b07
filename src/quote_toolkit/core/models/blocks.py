"""
Module: blocks

Purpose:
    Provides the geometric document model used for pagination: measured
    regions, atomic blocks (including merged super-blocks), grouping specs
    and the Document that owns them. All coordinates are virtual units
    (the fixed-width space the document is measured and rendered in).

Key Classes:
    - RegionMeasurement: Named region offset/height from the render backend
    - GroupSpec: Names of regions that must merge into one atomic block
    - Block: Atomic region, bottom padded by a safety margin
    - Document: Virtual width, total height and the block set

Dependencies:
    - dataclasses (std)
    - typing (std)

Used By:
    - exporter.layout.block_builder: Builds blocks from measurements
    - exporter.layout.paginator: Plans page breaks around blocks
    - exporter.rendering.backend: Returns RegionMeasurements
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

# Padding added below every block so a page break never lands flush
# against the content edge
SAFETY_MARGIN = 10


@dataclass(frozen=True, slots=True)
class RegionMeasurement:
    """
    A named region measured in virtual space.

    Several measurements may share a name (one per line-item row).

    Attributes:
        name: Region name like "header", "row" or "footer"
        top: Offset of the region's top edge from the document top
        height: Region height

    Example:
        >>> m = RegionMeasurement("row", top=210, height=48)
        >>> m.bottom
        258
    """

    name: str
    top: float
    height: float

    def __post_init__(self) -> None:
        """Validate measurement on construction."""
        if not self.name:
            raise ValueError("Region name must not be empty")
        if self.top < 0:
            raise ValueError(f"top must be >= 0: {self.top}")
        if self.height < 0:
            raise ValueError(f"height must be >= 0: {self.height}")

    @property
    def bottom(self) -> float:
        """Content bottom (top + height), without any safety margin."""
        return self.top + self.height


@dataclass(frozen=True, slots=True)
class GroupSpec:
    """
    Regions that must be kept on the same page.

    All measurements whose name appears in member_names are merged into
    a single super-block when every member is present.

    Attributes:
        member_names: Region names forming the group

    Example:
        >>> GroupSpec(("total", "footer", "bottom_bar"))
    """

    member_names: Tuple[str, ...]

    def __post_init__(self) -> None:
        """Validate group on construction."""
        if not self.member_names:
            raise ValueError("GroupSpec needs at least one member name")
        if isinstance(self.member_names, str):
            raise ValueError(
                f"member_names must be a sequence of names, not {self.member_names!r}"
            )


@dataclass(frozen=True, slots=True)
class Block:
    """
    Atomic region that must not be split across two pages.

    The interval [top, bottom) is protected, where bottom includes the
    safety margin. A block built from several regions (a super-block)
    records their names in members.

    Attributes:
        top: Top edge in virtual units
        height: Content height in virtual units
        safety_margin: Padding added below the content
        members: Region names covered by this block

    Invariants:
        - top >= 0
        - height >= 0

    Example:
        >>> b = Block(top=950, height=100)
        >>> b.bottom
        1060
        >>> b.straddles(1000)
        True
    """

    top: float
    height: float
    safety_margin: float = SAFETY_MARGIN
    members: Tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        """Validate block on construction."""
        if self.top < 0:
            raise ValueError(f"top must be >= 0: {self.top}")
        if self.height < 0:
            raise ValueError(f"height must be >= 0: {self.height}")
        if self.safety_margin < 0:
            raise ValueError(f"safety_margin must be >= 0: {self.safety_margin}")

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def bottom(self) -> float:
        """Protected bottom edge (content bottom plus safety margin)."""
        return self.top + self.height + self.safety_margin

    @property
    def content_bottom(self) -> float:
        """Bottom edge of the content itself."""
        return self.top + self.height

    @property
    def is_super_block(self) -> bool:
        """True when this block merges more than one region."""
        return len(self.members) > 1

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def straddles(self, y: float) -> bool:
        """
        Check if a horizontal cut at y would tear this block.

        Args:
            y: Proposed cut offset

        Returns:
            True if top < y < bottom
        """
        return self.top < y < self.bottom

    def fits_within(self, start: float, end: float) -> bool:
        """
        Check if the whole protected span lies inside [start, end].

        Args:
            start: Interval start
            end: Interval end
        """
        return start <= self.top and self.bottom <= end

    # ─────────────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_measurement(
        cls,
        measurement: RegionMeasurement,
        safety_margin: float = SAFETY_MARGIN,
    ) -> Block:
        """Build a single-region block from a measurement."""
        return cls(
            top=measurement.top,
            height=measurement.height,
            safety_margin=safety_margin,
            members=(measurement.name,),
        )

    @classmethod
    def merge(
        cls,
        measurements: Iterable[RegionMeasurement],
        safety_margin: float = SAFETY_MARGIN,
    ) -> Block:
        """
        Merge measurements into one super-block.

        top is the smallest member top and bottom the largest member
        bottom, so the merged span covers every member plus the margin.

        Args:
            measurements: Regions to merge (at least one)
            safety_margin: Padding below the merged content

        Returns:
            Block spanning all members

        Raises:
            ValueError: If measurements is empty

        Example:
            >>> Block.merge([RegionMeasurement("total", 2800, 100),
            ...              RegionMeasurement("footer", 2900, 190)]).bottom
            3100
        """
        members = list(measurements)
        if not members:
            raise ValueError("Cannot merge an empty set of measurements")

        top = min(m.top for m in members)
        content_bottom = max(m.bottom for m in members)

        names: list[str] = []
        for m in members:
            if m.name not in names:
                names.append(m.name)

        return cls(
            top=top,
            height=content_bottom - top,
            safety_margin=safety_margin,
            members=tuple(names),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        label = "+".join(self.members) if self.members else "block"
        return f"Block({label}, {self.top}-{self.bottom})"


@dataclass(frozen=True)
class Document:
    """
    A measured document ready for page planning.

    Attributes:
        virtual_width: Fixed rendering width used for measurement
        total_height: Full rendered height before splitting
        blocks: Atomic blocks sorted by top

    Invariants:
        - virtual_width > 0
        - total_height >= 0
        - every block's top and content bottom lie within [0, total_height]
          (the safety margin may overhang the last content row)
    """

    virtual_width: float
    total_height: float
    blocks: Tuple[Block, ...] = ()

    def __post_init__(self) -> None:
        """Validate document on construction."""
        if self.virtual_width <= 0:
            raise ValueError(f"virtual_width must be positive: {self.virtual_width}")
        if self.total_height < 0:
            raise ValueError(f"total_height must be >= 0: {self.total_height}")
        for block in self.blocks:
            if block.content_bottom > self.total_height:
                raise ValueError(
                    f"{block!r} extends past document height {self.total_height}"
                )

    @property
    def block_count(self) -> int:
        """Number of atomic blocks."""
        return len(self.blocks)

    @property
    def is_empty(self) -> bool:
        """True when the document has no height to paginate."""
        return self.total_height <= 0
