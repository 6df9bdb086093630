"""Shared utilities for surfcast providers and cache."""

from .geo import SPOTTER_REGION_BBOX, BoundingBox, degree_distance, within_tolerance
from .units import (
    degrees_to_compass,
    derive_range,
    meters_to_feet,
    round_half_up,
)

__all__ = [
    "BoundingBox",
    "SPOTTER_REGION_BBOX",
    "degree_distance",
    "within_tolerance",
    "degrees_to_compass",
    "derive_range",
    "meters_to_feet",
    "round_half_up",
]
