"""
Pydantic models for user-drawn map shapes.

Shapes are immutable values. A geometry edit replaces the whole shape value;
the lifecycle manager owns identity and state. Coordinates are stored as
lat/lng and converted to lon/lat (x/y) only when handed to shapely.
"""

from enum import Enum
from typing import Annotated, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError
from shapely.geometry import Polygon as ShapelyPolygon

from geomark.core.errors import ValidationError
from geomark.models.coordinate import Coordinate


class ShapeKind(str, Enum):
    """Draw tools offered by the toolbar."""

    POLYLINE = "polyline"
    POLYGON = "polygon"
    CIRCLE = "circle"
    MARKER = "marker"
    RECTANGLE = "rectangle"


class _ShapeBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Polyline(_ShapeBase):
    """Open path through an ordered sequence of points."""

    kind: Literal["polyline"] = "polyline"
    points: Tuple[Coordinate, ...]


class Polygon(_ShapeBase):
    """
    Implicitly closed ring.

    A trailing vertex equal to the first one is tolerated and ignored,
    so rings coming from GeoJSON-style sources measure the same as
    open ones.
    """

    kind: Literal["polygon"] = "polygon"
    points: Tuple[Coordinate, ...]

    def ring(self) -> List[Coordinate]:
        """Vertices without the duplicated closing vertex."""
        points = list(self.points)
        if len(points) > 1 and points[0] == points[-1]:
            points.pop()
        return points

    def to_shapely(self) -> ShapelyPolygon:
        """Shapely polygon in lon/lat axis order, used for validity checks."""
        return ShapelyPolygon([p.as_lon_lat() for p in self.ring()])


class Circle(_ShapeBase):
    """Circle given by a centre and a radius in metres."""

    kind: Literal["circle"] = "circle"
    center: Coordinate
    radius_meters: float = Field(..., gt=0, description="Radius in metres")


class Rectangle(_ShapeBase):
    """Lat/lng-aligned rectangle given by its north-east and south-west corners."""

    kind: Literal["rectangle"] = "rectangle"
    north_east: Coordinate
    south_west: Coordinate

    @model_validator(mode="after")
    def _check_corner_order(self) -> "Rectangle":
        if self.north_east.lat < self.south_west.lat:
            raise ValueError(
                f"north_east latitude ({self.north_east.lat}) must be >= "
                f"south_west latitude ({self.south_west.lat})"
            )
        return self

    @classmethod
    def from_corners(cls, a: Coordinate, b: Coordinate) -> "Rectangle":
        """Build a rectangle from any two opposite corners."""
        return cls(
            north_east=Coordinate(lat=max(a.lat, b.lat), lng=max(a.lng, b.lng)),
            south_west=Coordinate(lat=min(a.lat, b.lat), lng=min(a.lng, b.lng)),
        )

    def corners(self) -> List[Coordinate]:
        """NE, NW, SW, SE: the two given corners plus the two mixed ones."""
        ne, sw = self.north_east, self.south_west
        return [
            ne,
            Coordinate(lat=ne.lat, lng=sw.lng),
            sw,
            Coordinate(lat=sw.lat, lng=ne.lng),
        ]


class Marker(_ShapeBase):
    """Single placed point. Markers carry no measurement."""

    kind: Literal["marker"] = "marker"
    position: Coordinate


AnyShape = Union[Polyline, Polygon, Circle, Rectangle, Marker]

Shape = Annotated[
    Union[Polyline, Polygon, Circle, Rectangle, Marker],
    Field(discriminator="kind"),
]

_shape_adapter: TypeAdapter = TypeAdapter(Shape)


def shape_from_dict(data: dict) -> AnyShape:
    """
    Validate a plain mapping (e.g. a draw-tool payload) into a shape.

    Raises:
        ValidationError: If the payload is not a valid shape

    Example:
        >>> shape_from_dict({"kind": "circle", "center": {"lat": 0, "lng": 0},
        ...                  "radius_meters": 10}).kind
        'circle'
    """
    try:
        return _shape_adapter.validate_python(data)
    except PydanticValidationError as e:
        first = e.errors(include_url=False)[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid shape payload: {first['msg']}",
            field=field or None,
            details={"errors": e.errors(include_url=False)},
        ) from e
