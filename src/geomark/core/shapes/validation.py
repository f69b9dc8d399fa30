"""
Commit-time geometry checks for drawn shapes.
"""

import logging

from shapely.validation import explain_validity

from geomark.core.errors import InvalidShapeError
from geomark.core.measurement.geodesic import MIN_POLYGON_POINTS, MIN_POLYLINE_POINTS
from geomark.models.shapes import AnyShape, Polygon, Polyline

logger = logging.getLogger(__name__)


def validate_shape(shape: AnyShape, allow_self_intersection: bool = True) -> None:
    """
    Reject geometry the draw tool must never commit.

    Args:
        shape: Draft or edited shape
        allow_self_intersection: Whether polygon rings may cross themselves

    Raises:
        InvalidShapeError: For too few vertices or a forbidden self-intersection
    """
    if isinstance(shape, Polyline):
        if len(shape.points) < MIN_POLYLINE_POINTS:
            raise InvalidShapeError(
                f"Polyline needs at least {MIN_POLYLINE_POINTS} points, "
                f"got {len(shape.points)}",
                shape_kind=shape.kind,
            )

    elif isinstance(shape, Polygon):
        ring = shape.ring()
        if len(ring) < MIN_POLYGON_POINTS:
            raise InvalidShapeError(
                f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(ring)}",
                shape_kind=shape.kind,
            )

        if not allow_self_intersection:
            geometry = shape.to_shapely()
            if not geometry.is_valid:
                reason = explain_validity(geometry)
                logger.debug(f"Rejected polygon ring: {reason}")
                raise InvalidShapeError(
                    "Polygon ring must not intersect itself",
                    shape_kind=shape.kind,
                    details={"reason": reason},
                )

    # Circles and rectangles are constrained by their models; markers always pass
