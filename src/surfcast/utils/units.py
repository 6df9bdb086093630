"""Unit conversions shared by the provider adapters.

All heights leaving this module are whole feet and all directions are
8-point compass labels.
"""

import math

FEET_PER_METER = 3.28084

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up.

    Builtin round() rounds half to even, which would put 22.5 degrees in N.
    """
    return int(math.floor(value + 0.5))


def meters_to_feet(meters: float) -> int:
    """Convert meters to whole feet (nearest integer).

    Example:
        >>> meters_to_feet(1.0)
        3
    """
    return round_half_up(meters * FEET_PER_METER)


def degrees_to_compass(degrees: float) -> str:
    """Map a bearing in degrees to an 8-point compass label.

    Bearings outside [0, 360) are wrapped first, so -45 maps to NW.

    Args:
        degrees: Bearing in degrees

    Returns:
        One of N, NE, E, SE, S, SW, W, NW
    """
    normalized = degrees % 360
    index = round_half_up(normalized / 45) % 8
    return COMPASS_POINTS[index]


def derive_range(point_height_ft: int) -> tuple[int, int]:
    """Derive a (min, max) height band from a single height estimate.

    min is one foot below the estimate but never below 1 ft; max is the
    estimate itself, raised to min for flat readings.

    Args:
        point_height_ft: Single wave height estimate in feet

    Returns:
        Tuple of (min_ft, max_ft)
    """
    low = max(1, point_height_ft - 1)
    high = max(low, point_height_ft)
    return low, high
