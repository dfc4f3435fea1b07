"""
Core Models Package

Immutable, validated data models describing a rendered document as a set of
rectangular regions in virtual space.

All models in this package are frozen dataclasses. Block data is measured
fresh for every export and never mutated afterwards.
"""

from .blocks import (
    SAFETY_MARGIN,
    Block,
    Document,
    GroupSpec,
    RegionMeasurement,
)

__all__ = [
    "SAFETY_MARGIN",
    "Block",
    "Document",
    "GroupSpec",
    "RegionMeasurement",
]
