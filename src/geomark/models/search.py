"""
Location search models.
"""

from pydantic import BaseModel, ConfigDict, Field

from geomark.models.coordinate import Coordinate


class GeocodeRecord(BaseModel):
    """
    Raw candidate returned by a geocoding service.

    Nominatim sends ``lat``/``lon`` as decimal strings; they are coerced
    to floats on validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    display_name: str = Field(..., description="Human-readable place name")
    lat: float = Field(..., ge=-90, le=90, description="Latitude (WGS84)")
    lon: float = Field(..., ge=-180, le=180, description="Longitude (WGS84)")


class SearchResult(BaseModel):
    """
    A resolved search candidate ready to be shown in the search box.

    Attributes:
        label: Text shown to the user
        location: Where the map should fly to
    """

    model_config = ConfigDict(frozen=True)

    label: str
    location: Coordinate

    @classmethod
    def from_record(cls, record: GeocodeRecord) -> "SearchResult":
        """Map a geocoder record to a search result."""
        return cls(
            label=record.display_name,
            location=Coordinate(lat=record.lat, lng=record.lon),
        )
