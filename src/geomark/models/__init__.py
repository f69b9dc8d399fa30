"""
Data models and schemas.
"""

from .coordinate import Coordinate
from .measurement import Measurement, MeasurementKind
from .search import GeocodeRecord, SearchResult
from .shapes import (
    AnyShape,
    Circle,
    Marker,
    Polygon,
    Polyline,
    Rectangle,
    Shape,
    ShapeKind,
    shape_from_dict,
)
from .tools import ToolConfig

__all__ = [
    "Coordinate",
    # Shapes
    "AnyShape",
    "Circle",
    "Marker",
    "Polygon",
    "Polyline",
    "Rectangle",
    "Shape",
    "ShapeKind",
    "shape_from_dict",
    # Measurement
    "Measurement",
    "MeasurementKind",
    # Search
    "GeocodeRecord",
    "SearchResult",
    # Tools
    "ToolConfig",
]
