"""
Module: exporter.layout.models

Purpose:
    Data model for a page plan: the ordered split offsets that partition
    a document into pages, plus diagnostics from planning.

Key Classes:
    - PagePlan: Split points and derived page intervals

Dependencies:
    - dataclasses (std)

Used By:
    - exporter.layout.paginator: Creates PagePlans
    - exporter.controller: Drives slicing from the plan
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class PagePlan:
    """
    Page boundaries for one document (immutable).

    Split points are strictly increasing and the last one always equals
    total_height, so the intervals [0, s1), [s1, s2), ... cover the whole
    document with no gap or overlap.

    Attributes:
        split_points: Page end offsets in virtual units
        total_height: Document height the plan covers
        page_height: Target page height used for planning
        warnings: Diagnostics (e.g. oversized blocks that had to be cut)

    Example:
        >>> plan = PagePlan(split_points=(950, 1950, 2500), total_height=2500, page_height=1000)
        >>> plan.intervals
        ((0, 950), (950, 1950), (1950, 2500))
    """

    split_points: Tuple[float, ...]
    total_height: float
    page_height: float
    warnings: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        """Number of pages in the plan."""
        return len(self.split_points)

    @property
    def intervals(self) -> Tuple[Tuple[float, float], ...]:
        """(start, end) virtual interval of every page."""
        starts = (0,) + tuple(self.split_points[:-1])
        return tuple(zip(starts, self.split_points))

    @property
    def is_empty(self) -> bool:
        """True when the plan has no pages."""
        return not self.split_points
