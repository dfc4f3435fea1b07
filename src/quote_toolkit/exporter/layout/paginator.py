"""
Module: exporter.layout.paginator

Purpose:
    Choose page-break offsets for a tall rendered document so that no
    atomic block is torn across two pages.
    Only rule: a cut that would land inside a block moves up to that
    block's top.

Key Functions:
    - plan_page_breaks(): Greedy forward scan producing split offsets
    - build_page_plan(): Plan for a Document, with diagnostics

Algorithm:
    Single forward pass:
    1. Propose a cut one page height below the previous cut
    2. If a block straddles the cut and starts below the previous cut,
       move the cut up to the block's top
    3. If the block started at or above the previous cut it is taller
       than a page: keep the proposed cut (overflow case)
    4. If the cut would not advance by at least the progress threshold,
       keep the proposed cut
    5. Finish with the document height as the last split point

    Pages may be shorter than the page height but never longer.

Dependencies:
    - quote_toolkit.core.models: Block, Document
    - exporter.layout.models: PagePlan

Used By:
    - exporter.controller: Paginated export
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from quote_toolkit.core.models import Block, Document

from .models import PagePlan

logger = logging.getLogger(__name__)

# Minimum advance per page, in virtual units
PROGRESS_THRESHOLD = 10


def plan_page_breaks(
    total_height: float,
    page_height: float,
    blocks: Sequence[Block],
    *,
    progress_threshold: float = PROGRESS_THRESHOLD,
    warnings: Optional[List[str]] = None,
) -> List[float]:
    """
    Compute page split offsets for a document.

    Pure function: identical inputs always give identical split points.
    Each iteration advances by more than progress_threshold, so the loop
    runs at most ceil(total_height / progress_threshold) times.

    Args:
        total_height: Full document height in virtual units
        page_height: Target page height in virtual units
        blocks: Atomic blocks sorted by top
        progress_threshold: Minimum advance before a moved cut is accepted
        warnings: Optional list that receives overflow diagnostics

    Returns:
        Strictly increasing split offsets; the last equals total_height

    Raises:
        ValueError: If page_height or progress_threshold is not positive

    Example:
        >>> plan_page_breaks(2500, 1000, [Block(top=950, height=100)])
        [950, 1950, 2500]
    """
    if page_height <= 0:
        raise ValueError(f"page_height must be positive: {page_height}")
    if progress_threshold <= 0:
        raise ValueError(f"progress_threshold must be positive: {progress_threshold}")

    split_points: List[float] = []
    current: float = 0

    while current + page_height < total_height:
        proposed = current + page_height
        candidate = proposed

        block = _find_straddling_block(blocks, proposed)
        if block is not None:
            if block.top > current:
                candidate = block.top
            else:
                message = (
                    f"{block!r} is taller than the page ({page_height:g}), "
                    f"cutting at {proposed:g}"
                )
                logger.warning(message)
                if warnings is not None:
                    warnings.append(message)

        if candidate <= current + progress_threshold:
            candidate = proposed

        split_points.append(candidate)
        current = candidate

    split_points.append(total_height)
    return split_points


def build_page_plan(
    document: Document,
    page_height: float,
    *,
    progress_threshold: float = PROGRESS_THRESHOLD,
) -> PagePlan:
    """
    Plan page breaks for a measured document.

    Args:
        document: Measured document with its blocks
        page_height: Target page height in virtual units
        progress_threshold: Minimum advance per page

    Returns:
        PagePlan with split points and overflow warnings
    """
    warnings: List[str] = []
    split_points = plan_page_breaks(
        document.total_height,
        page_height,
        document.blocks,
        progress_threshold=progress_threshold,
        warnings=warnings,
    )

    logger.info(
        f"Planned {len(split_points)} pages for {document.total_height:g} units "
        f"({document.block_count} blocks, page height {page_height:g})"
    )

    return PagePlan(
        split_points=tuple(split_points),
        total_height=document.total_height,
        page_height=page_height,
        warnings=warnings,
    )


def _find_straddling_block(blocks: Sequence[Block], y: float) -> Optional[Block]:
    """Return the first block (in top order) that a cut at y would tear."""
    for block in blocks:
        if block.straddles(y):
            return block
    return None
