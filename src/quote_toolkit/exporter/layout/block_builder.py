"""
Module: exporter.layout.block_builder

Purpose:
    Turn named region measurements into the atomic block set used for
    page planning. Grouped regions (e.g. totals + footer + closing bar)
    are merged into a single super-block so they always share a page.

Key Functions:
    - build_blocks(): Measurements + group specs -> sorted Blocks

Algorithm:
    1. For each GroupSpec, collect measurements whose name is a member
    2. If every member is present, merge them into one super-block
    3. Otherwise skip the group; its members stay individual blocks
    4. Every remaining measurement becomes its own block
    5. Sort by top

Dependencies:
    - quote_toolkit.core.models: Block, GroupSpec, RegionMeasurement

Used By:
    - exporter.controller: Paginated export
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Set

from quote_toolkit.core.models import SAFETY_MARGIN, Block, GroupSpec, RegionMeasurement

logger = logging.getLogger(__name__)


def build_blocks(
    measurements: Sequence[RegionMeasurement],
    groupings: Sequence[GroupSpec] = (),
    *,
    safety_margin: float = SAFETY_MARGIN,
) -> List[Block]:
    """
    Build the atomic block set from region measurements.

    Each measurement becomes one block, except measurements that belong
    to a complete group, which are merged into a single super-block.
    A group with a missing member is skipped and its members are added
    individually: no grouping guarantee, but no failure either.

    A region name can be claimed by only one merged group. A later group
    overlapping an earlier merged group is skipped the same way.

    Args:
        measurements: Measured regions (rows measured individually)
        groupings: Regions that must be merged into super-blocks
        safety_margin: Padding added below each block

    Returns:
        Blocks sorted by top (stable for equal tops)

    Example:
        >>> blocks = build_blocks(
        ...     [RegionMeasurement("row", 200, 40),
        ...      RegionMeasurement("total", 900, 60),
        ...      RegionMeasurement("footer", 960, 80)],
        ...     [GroupSpec(("total", "footer"))],
        ... )
        >>> [b.members for b in blocks]
        [('row',), ('total', 'footer')]
    """
    blocks: List[Block] = []
    claimed: Set[str] = set()
    present = {m.name for m in measurements}

    for spec in groupings:
        missing = [name for name in spec.member_names if name not in present]
        if missing:
            logger.warning(
                f"Group {'+'.join(spec.member_names)} skipped, missing regions: {missing}"
            )
            continue

        overlap = claimed.intersection(spec.member_names)
        if overlap:
            logger.warning(
                f"Group {'+'.join(spec.member_names)} skipped, "
                f"regions already grouped: {sorted(overlap)}"
            )
            continue

        members = [m for m in measurements if m.name in spec.member_names]
        super_block = Block.merge(members, safety_margin=safety_margin)
        blocks.append(super_block)
        claimed.update(spec.member_names)
        logger.debug(f"Merged {len(members)} regions into {super_block!r}")

    for measurement in measurements:
        if measurement.name in claimed:
            continue
        blocks.append(Block.from_measurement(measurement, safety_margin=safety_margin))

    blocks.sort(key=lambda b: b.top)

    logger.debug(f"Built {len(blocks)} blocks from {len(measurements)} measurements")
    return blocks
