"""
Module: exporter.output.image_writer

Purpose:
    Save a rendered raster directly as the export artifact (image mode).

Key Functions:
    - write_image(): Atomic PNG write

Dependencies:
    - PIL.Image: Image saving

Used By:
    - exporter.controller: Image export
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)


def write_image(image: Image.Image, path: Path) -> Path:
    """
    Write image as PNG atomically (temp file then rename).

    On failure the temp file is removed and path is left untouched.

    Args:
        image: Raster to save
        path: Target path

    Returns:
        Path written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="wb",
        suffix=".png",
        dir=path.parent,
        delete=False,
    ) as f:
        temp_path = Path(f.name)

    try:
        image.save(temp_path, format="PNG")
        temp_path.replace(path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise

    logger.info(f"Wrote {image.width}x{image.height} image to {path}")
    return path
