"""
Geodesic distance and area of drawn shapes.

Distances and polygon areas are computed on the WGS84 ellipsoid with
pyproj's geodesic solver. Circles use the planar pi * r^2 unless the
geodesic approximation is requested, which is noticeably more accurate
only for radii of hundreds of kilometres.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np
from pyproj import Geod

from geomark.core.errors import InvalidShapeError
from geomark.models.coordinate import Coordinate
from geomark.models.measurement import Measurement, MeasurementKind
from geomark.models.shapes import (
    AnyShape,
    Circle,
    Marker,
    Polygon,
    Polyline,
    Rectangle,
    ShapeKind,
)

logger = logging.getLogger(__name__)

WGS84 = Geod(ellps="WGS84")

MIN_POLYLINE_POINTS = 2
MIN_POLYGON_POINTS = 3

# Vertex count of the ring approximating a circle in geodesic mode
CIRCLE_RING_VERTICES = 360


def segment_distance(start: Coordinate, end: Coordinate) -> float:
    """
    Geodesic distance between two points in metres.

    Args:
        start: First point
        end: Second point

    Returns:
        Distance along the ellipsoid in metres
    """
    _, _, distance = WGS84.inv(start.lng, start.lat, end.lng, end.lat)
    return float(distance)


def path_distance(points: Sequence[Coordinate]) -> float:
    """
    Length of a path, summed segment by segment in point order.

    Args:
        points: Ordered path vertices (at least 2)

    Returns:
        Total length in metres

    Raises:
        InvalidShapeError: If fewer than 2 points are given
    """
    if len(points) < MIN_POLYLINE_POINTS:
        raise InvalidShapeError(
            f"Polyline needs at least {MIN_POLYLINE_POINTS} points, got {len(points)}",
            shape_kind=ShapeKind.POLYLINE.value,
            details={"point_count": len(points)},
        )

    total = 0.0
    for start, end in zip(points, points[1:]):
        total += segment_distance(start, end)
    return total


def ring_area(points: Sequence[Coordinate]) -> float:
    """
    Geodesic area enclosed by a ring.

    The ring is implicitly closed. The result is non-negative for both
    clockwise and counter-clockwise winding.

    Args:
        points: Ring vertices (at least 3, closing vertex optional)

    Returns:
        Area in square metres

    Raises:
        InvalidShapeError: If fewer than 3 distinct ring vertices are given
    """
    ring = list(points)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()

    if len(ring) < MIN_POLYGON_POINTS:
        raise InvalidShapeError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(ring)}",
            shape_kind=ShapeKind.POLYGON.value,
            details={"point_count": len(ring)},
        )

    lons = [p.lng for p in ring]
    lats = [p.lat for p in ring]
    area, _ = WGS84.polygon_area_perimeter(lons, lats)
    return abs(float(area))


def circle_area(circle: Circle, geodesic: bool = False) -> float:
    """
    Area of a circle in square metres.

    Args:
        circle: Circle to measure
        geodesic: Approximate the circle with a geodesic ring instead of
            using the planar formula

    Returns:
        Area in square metres
    """
    if not geodesic:
        return math.pi * circle.radius_meters**2

    azimuths = np.linspace(0.0, 360.0, CIRCLE_RING_VERTICES, endpoint=False)
    lons, lats, _ = WGS84.fwd(
        np.full(CIRCLE_RING_VERTICES, circle.center.lng),
        np.full(CIRCLE_RING_VERTICES, circle.center.lat),
        azimuths,
        np.full(CIRCLE_RING_VERTICES, circle.radius_meters),
    )
    area, _ = WGS84.polygon_area_perimeter(lons, lats)
    return abs(float(area))


def rectangle_area(rectangle: Rectangle) -> float:
    """Area of the geodesic quadrilateral spanned by the rectangle's corners."""
    return ring_area(rectangle.corners())


def measure(
    shape: AnyShape,
    shape_id: Optional[int] = None,
    geodesic_circle_area: bool = False,
) -> Measurement:
    """
    Measure a shape: length for polylines, area for everything else.

    Args:
        shape: Shape to measure
        shape_id: Id stamped on the resulting measurement
        geodesic_circle_area: Measure circles with the geodesic ring approximation

    Returns:
        Measurement in metres or square metres

    Raises:
        InvalidShapeError: For degenerate geometry or shapes without a measure
    """
    if isinstance(shape, Polyline):
        kind = MeasurementKind.DISTANCE
        value = path_distance(shape.points)
    elif isinstance(shape, Polygon):
        kind = MeasurementKind.AREA
        value = ring_area(shape.points)
    elif isinstance(shape, Circle):
        kind = MeasurementKind.AREA
        value = circle_area(shape, geodesic=geodesic_circle_area)
    elif isinstance(shape, Rectangle):
        kind = MeasurementKind.AREA
        value = rectangle_area(shape)
    elif isinstance(shape, Marker):
        raise InvalidShapeError(
            "Markers have no length or area",
            shape_kind=ShapeKind.MARKER.value,
        )
    else:
        raise InvalidShapeError(f"Unsupported shape type: {type(shape).__name__}")

    logger.debug(f"Measured {shape.kind} (id={shape_id}): {kind.value}={value:.3f}")
    return Measurement(shape_id=shape_id, kind=kind, value=value)
