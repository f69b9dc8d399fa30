"""
Draw toolbar configuration.
"""

from typing import FrozenSet

from pydantic import BaseModel, ConfigDict, Field

from geomark.models.shapes import ShapeKind


class ToolConfig(BaseModel):
    """
    Immutable per-kind draw permissions and measurement switches.

    Attributes:
        polyline: Whether polylines may be drawn
        polygon: Whether polygons may be drawn
        circle: Whether circles may be drawn
        marker: Whether markers may be drawn
        rectangle: Whether rectangles may be drawn
        measurement_enabled: Whether drawn shapes get a measurement attached
        always_measure: Kinds measured even when measurement is disabled
        allow_polygon_self_intersection: Whether self-intersecting polygon rings may be committed
        geodesic_circle_area: Measure circle area on the ellipsoid instead of pi * r^2
    """

    model_config = ConfigDict(frozen=True)

    polyline: bool = True
    polygon: bool = True
    circle: bool = True
    marker: bool = True
    rectangle: bool = True
    measurement_enabled: bool = True
    always_measure: FrozenSet[ShapeKind] = Field(
        default=frozenset({ShapeKind.CIRCLE, ShapeKind.RECTANGLE})
    )
    allow_polygon_self_intersection: bool = True
    geodesic_circle_area: bool = False

    @classmethod
    def from_toggles(
        cls,
        enable_draw: bool = True,
        enable_measure: bool = True,
        geodesic_circle_area: bool = False,
    ) -> "ToolConfig":
        """
        Build the configuration from the two toolbar switches.

        Polylines and polygons are measuring tools and follow
        ``enable_measure``; circles, markers and rectangles follow
        ``enable_draw``.
        """
        return cls(
            polyline=enable_measure,
            polygon=enable_measure,
            circle=enable_draw,
            marker=enable_draw,
            rectangle=enable_draw,
            measurement_enabled=enable_measure,
            geodesic_circle_area=geodesic_circle_area,
        )

    def is_enabled(self, kind: ShapeKind) -> bool:
        """Whether drawing ``kind`` is permitted."""
        return bool(getattr(self, ShapeKind(kind).value))

    def measures(self, kind: ShapeKind) -> bool:
        """Whether a committed shape of ``kind`` gets a measurement."""
        kind = ShapeKind(kind)
        if kind == ShapeKind.MARKER:
            return False
        return self.measurement_enabled or kind in self.always_measure

    def enabled_kinds(self) -> FrozenSet[ShapeKind]:
        """All kinds the toolbar offers."""
        return frozenset(kind for kind in ShapeKind if self.is_enabled(kind))
