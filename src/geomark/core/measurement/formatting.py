"""
Popup labels for measurements and coordinates.
"""

from geomark.models.coordinate import Coordinate
from geomark.models.measurement import Measurement, MeasurementKind

SQUARE_METERS_PER_HECTARE = 10_000.0
SQUARE_METERS_PER_SQUARE_KM = 1_000_000.0


def format_distance(meters: float, humanize: bool = False) -> str:
    """
    Format a length.

    Examples:
        >>> format_distance(1234.567)
        '1234.57 m'
        >>> format_distance(1234.567, humanize=True)
        '1.23 km'
    """
    if humanize and meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.2f} m"


def format_area(square_meters: float, humanize: bool = False) -> str:
    """
    Format an area.

    With ``humanize`` areas switch to hectares from 1 ha and to square
    kilometres from 1 km².
    """
    if humanize:
        if square_meters >= SQUARE_METERS_PER_SQUARE_KM:
            return f"{square_meters / SQUARE_METERS_PER_SQUARE_KM:.2f} km²"
        if square_meters >= SQUARE_METERS_PER_HECTARE:
            return f"{square_meters / SQUARE_METERS_PER_HECTARE:.2f} ha"
    return f"{square_meters:.2f} m²"


def format_measurement(measurement: Measurement, humanize: bool = False) -> str:
    """
    Label shown in the popup attached to a measured shape.

    Examples:
        >>> format_measurement(Measurement(kind="distance", value=12.5))
        'Distance: 12.50 m'
    """
    if measurement.kind == MeasurementKind.DISTANCE:
        return f"Distance: {format_distance(measurement.value, humanize)}"
    return f"Area: {format_area(measurement.value, humanize)}"


def format_coordinate_label(coordinate: Coordinate) -> str:
    """Label of a search result that came straight from typed coordinates."""
    return f"Coordinates: {coordinate}"
