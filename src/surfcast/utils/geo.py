"""Geographic utilities and constants."""

from dataclasses import dataclass


@dataclass
class BoundingBox:
    """Geographic bounding box."""

    west: float
    south: float
    east: float
    north: float

    def contains(self, lat: float, lon: float) -> bool:
        """Check if a point is within this bounding box (edges inclusive)."""
        return (
            self.south <= lat <= self.north
            and self.west <= lon <= self.east
        )

    def to_dict(self) -> dict:
        """Return as dictionary."""
        return {
            "west": self.west,
            "south": self.south,
            "east": self.east,
            "north": self.north,
        }


def within_tolerance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    tolerance_deg: float = 0.5,
) -> bool:
    """Check whether two points differ by less than a tolerance on both axes.

    This is a per-axis box test in degrees, not a distance ranking.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)
        tolerance_deg: Strict upper bound for |dlat| and |dlon|

    Returns:
        True if |dlat| < tolerance and |dlon| < tolerance
    """
    return abs(lat1 - lat2) < tolerance_deg and abs(lon1 - lon2) < tolerance_deg


def degree_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Planar distance in degrees between two points."""
    return ((lat1 - lat2) ** 2 + (lon1 - lon2) ** 2) ** 0.5


# California coast box served by the regional spotter network
SPOTTER_REGION_BBOX = BoundingBox(
    west=-124.5,
    south=32.5,
    east=-114.0,
    north=42.0,
)
