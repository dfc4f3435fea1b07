"""
Quote Toolkit Core Package

Shared data models for the export pipeline. Everything here is purely
geometric: regions are described by a top offset and a height in virtual
units, never by what they look like.
"""

from .models import Block, Document, GroupSpec, RegionMeasurement

__all__ = [
    "Block",
    "Document",
    "GroupSpec",
    "RegionMeasurement",
]
