# spatial/__init__.py

"""Spatial layer for GravityChat - positions, distance policy and proximity indexing."""

from .entities import (
    Position,
    adaptive_spawn_radius,
    calculate_distance,
    gravity_offset,
    mean_position,
    sample_spawn_position,
)
from .index import SpatialIndex

__all__ = [
    "SpatialIndex",
    "Position",
    "calculate_distance",
    "adaptive_spawn_radius",
    "sample_spawn_position",
    "gravity_offset",
    "mean_position",
]
