"""
Coordinate parsing for search-box input.
"""

from .coordinates import (
    CoordinateParser,
    DMSValue,
    format_coordinate,
    parse_coordinates,
    parse_dms,
)

__all__ = [
    "CoordinateParser",
    "DMSValue",
    "format_coordinate",
    "parse_coordinates",
    "parse_dms",
]
