"""
Module: exporter.layout

Purpose:
    Page planning for paginated export.
    Converts region measurements into atomic blocks and chooses page
    breaks that never tear a block.

Key Functions:
    - build_blocks(): Measurements -> atomic blocks
    - plan_page_breaks(): Split offsets for a document height
    - build_page_plan(): PagePlan for a Document

Key Classes:
    - PageGeometry: Physical page size and virtual page height
    - PagePlan: Split points with diagnostics

Dependencies:
    - quote_toolkit.core.models: Block, Document, GroupSpec

Used By:
    - exporter.controller: Paginated export
"""

from .config import PageGeometry
from .models import PagePlan
from .block_builder import build_blocks
from .paginator import PROGRESS_THRESHOLD, build_page_plan, plan_page_breaks

__all__ = [
    # Config
    "PageGeometry",
    "PROGRESS_THRESHOLD",
    # Models
    "PagePlan",
    # Functions
    "build_blocks",
    "build_page_plan",
    "plan_page_breaks",
]
