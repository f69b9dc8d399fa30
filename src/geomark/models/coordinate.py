"""
Geographic coordinate value type.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """
    Immutable WGS84 latitude/longitude pair.

    Attributes:
        lat: Latitude in decimal degrees
        lng: Longitude in decimal degrees
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude (WGS84)")
    lng: float = Field(..., ge=-180, le=180, description="Longitude (WGS84)")

    def as_lon_lat(self) -> Tuple[float, float]:
        """Return (lng, lat), the x/y order used by shapely and pyproj."""
        return (self.lng, self.lat)

    def format(self, precision: int = 6) -> str:
        """Render as ``"lat, lng"`` with a fixed number of decimals."""
        return f"{self.lat:.{precision}f}, {self.lng:.{precision}f}"

    def __str__(self) -> str:
        return f"{self.lat}, {self.lng}"
