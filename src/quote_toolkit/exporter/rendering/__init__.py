"""
Module: exporter.rendering

Purpose:
    Rendering backend interface and the composite (pre-drawn image)
    implementation used by the command line.

Key Classes:
    - RenderingBackend: Abstract measure/render interface
    - CompositeRenderBackend: Pillow implementation
    - RenderTarget: Composite image + region map

Key Functions:
    - load_render_target(): Load a RenderTarget from disk
"""

from .backend import CompositeRenderBackend, RenderingBackend, RenderTarget
from .loader import ParseError, load_render_target, parse_regions

__all__ = [
    "CompositeRenderBackend",
    "RenderingBackend",
    "RenderTarget",
    "ParseError",
    "load_render_target",
    "parse_regions",
]
