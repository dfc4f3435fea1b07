"""
Module: exporter.rendering.loader

Purpose:
    Load a render target from disk: a composite image of the quotation
    plus a regions.json map of named regions in virtual units.

Key Functions:
    - parse_regions(): Parse regions.json
    - load_render_target(): Composite + regions -> RenderTarget

Key Classes:
    - ParsedRegions: regions.json contents
    - ParseError: Exception for malformed input

regions.json format:
    {
      "virtual_width": 794,
      "regions": [
        {"name": "header", "top": 0, "height": 132},
        {"name": "row", "top": 210, "height": 48},
        ...
      ]
    }
    virtual_width is optional and defaults to the image width.

Dependencies:
    - json (std)
    - PIL.Image: Image loading

Used By:
    - quote_toolkit.cli: Command-line export
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from quote_toolkit.core.models import RegionMeasurement

from .backend import RenderTarget

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Error parsing a render target from disk."""
    pass


@dataclass(frozen=True)
class ParsedRegions:
    """
    Parsed regions.json contents.

    Attributes:
        virtual_width: Declared virtual width (None = use image width)
        regions: Region measurements sorted by top
    """
    virtual_width: Optional[float]
    regions: Tuple[RegionMeasurement, ...]


def parse_regions(path: Path) -> ParsedRegions:
    """
    Parse regions.json file.

    Args:
        path: Path to regions.json

    Returns:
        ParsedRegions object

    Raises:
        ParseError: If file missing, invalid JSON, or fields invalid

    Example:
        >>> parsed = parse_regions(Path("quote/regions.json"))
        >>> parsed.regions[0].name
        'header'
    """
    if not path.exists():
        raise ParseError(f"Regions file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in {path}: {e}") from e

    return parse_regions_from_dict(data, source=str(path))


def parse_regions_from_dict(data: Dict[str, Any], *, source: str = "dict") -> ParsedRegions:
    """
    Parse regions from an already-loaded dict.

    Args:
        data: Dict with "regions" and optional "virtual_width"
        source: Source identifier for error messages

    Returns:
        ParsedRegions object

    Raises:
        ParseError: If fields are missing or have invalid values
    """
    if not isinstance(data, dict) or "regions" not in data:
        raise ParseError(f"Missing 'regions' list in {source}")

    raw_width = data.get("virtual_width")
    try:
        virtual_width = float(raw_width) if raw_width is not None else None
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid virtual_width in {source}: {e}") from e
    if virtual_width is not None and virtual_width <= 0:
        raise ParseError(f"virtual_width must be positive in {source}: {virtual_width}")

    regions = []
    for i, entry in enumerate(data["regions"]):
        if not isinstance(entry, dict):
            raise ParseError(f"Region {i} in {source} is not an object: {entry!r}")
        missing = [key for key in ("name", "top", "height") if key not in entry]
        if missing:
            raise ParseError(f"Region {i} in {source} missing fields: {missing}")
        try:
            regions.append(RegionMeasurement(
                name=str(entry["name"]),
                top=float(entry["top"]),
                height=float(entry["height"]),
            ))
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid region {i} in {source}: {e}") from e

    regions.sort(key=lambda r: r.top)

    return ParsedRegions(virtual_width=virtual_width, regions=tuple(regions))


def load_render_target(
    composite_path: Path,
    regions_path: Path,
    *,
    name: Optional[str] = None,
) -> RenderTarget:
    """
    Load a composite image and its region map as a RenderTarget.

    Args:
        composite_path: Path to the quotation image
        regions_path: Path to regions.json
        name: Target name for logging (default: image file stem)

    Returns:
        RenderTarget ready for CompositeRenderBackend

    Raises:
        ParseError: If either file is missing or invalid
    """
    if not composite_path.exists():
        raise ParseError(f"Composite image not found: {composite_path}")

    parsed = parse_regions(regions_path)

    try:
        with Image.open(composite_path) as img:
            img.load()
            image = img.copy()
    except (UnidentifiedImageError, OSError) as e:
        raise ParseError(f"Cannot read image {composite_path}: {e}") from e

    virtual_width = parsed.virtual_width or float(image.width)

    target = RenderTarget(
        image=image,
        virtual_width=virtual_width,
        regions=parsed.regions,
        name=name or composite_path.stem,
    )

    logger.info(
        f"Loaded {target.name}: {image.width}x{image.height}px, "
        f"{len(parsed.regions)} regions, virtual width {virtual_width:g}"
    )
    return target
