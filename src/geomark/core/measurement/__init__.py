"""
Geodesic measurement of drawn shapes.
"""

from .formatting import (
    format_area,
    format_coordinate_label,
    format_distance,
    format_measurement,
)
from .geodesic import (
    WGS84,
    circle_area,
    measure,
    path_distance,
    rectangle_area,
    ring_area,
    segment_distance,
)

__all__ = [
    "WGS84",
    "circle_area",
    "measure",
    "path_distance",
    "rectangle_area",
    "ring_area",
    "segment_distance",
    "format_area",
    "format_coordinate_label",
    "format_distance",
    "format_measurement",
]
