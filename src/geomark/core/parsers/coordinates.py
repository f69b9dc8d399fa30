"""
Free-text coordinate parsing.

Recognizes the two notations users type into the map search box:

- decimal degrees, latitude first: ``30.355764, 120.024029``
- degrees-minutes-seconds pairs: ``30°21'20.75"N 120°1'26.5"E``

Anything else is reported as not recognized so the caller can fall back to
a geocoding lookup.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from geomark.core.errors import CoordinateNotRecognized
from geomark.models.coordinate import Coordinate

logger = logging.getLogger(__name__)

_NUMBER = r"\d+(?:\.\d+)?"
_MINUTE_MARKS = "'′’"
_SECOND_MARKS = "\"″”"

DECIMAL_PAIR_PATTERN = re.compile(
    r"^(?P<lat>[-+]?(?:\d+(?:\.\d*)?|\.\d+))\s*,\s*(?P<lng>[-+]?(?:\d+(?:\.\d*)?|\.\d+))$"
)


def _dms_token(prefix: str) -> str:
    """
    Regex source for one DMS token with group names prefixed by ``prefix``.

    Degrees require the degree sign. Minutes and seconds are optional; a
    single quote right before another quote belongs to the seconds mark
    (``''``), not to the minutes.
    """
    return (
        rf"(?P<{prefix}deg>{_NUMBER})\s*°\s*"
        rf"(?:(?P<{prefix}min>{_NUMBER})\s*(?:[{_MINUTE_MARKS}](?!'))?\s*)?"
        rf"(?:(?P<{prefix}sec>{_NUMBER})\s*(?:''|[{_SECOND_MARKS}])?\s*)?"
        rf"(?P<{prefix}hem>[NSEWnsew])"
    )


DMS_TOKEN_PATTERN = re.compile(rf"^{_dms_token('')}$")
DMS_PAIR_PATTERN = re.compile(rf"^{_dms_token('a_')}\s*,?\s*{_dms_token('b_')}$")

_LATITUDE_HEMISPHERES = frozenset("NS")
_NEGATIVE_HEMISPHERES = frozenset("SW")


@dataclass(frozen=True)
class DMSValue:
    """
    One parsed degrees-minutes-seconds token.

    Attributes:
        degrees: Whole or fractional degrees
        minutes: Minutes, 0 when omitted
        seconds: Seconds, 0 when omitted
        hemisphere: One of N, S, E, W
    """

    degrees: float
    minutes: float
    seconds: float
    hemisphere: str

    @property
    def is_latitude(self) -> bool:
        return self.hemisphere in _LATITUDE_HEMISPHERES

    def to_decimal(self) -> float:
        """Signed decimal degrees: deg + min/60 + sec/3600, negative for S and W."""
        value = self.degrees + self.minutes / 60 + self.seconds / 3600
        return -value if self.hemisphere in _NEGATIVE_HEMISPHERES else value


def _dms_from_groups(groups: dict, prefix: str, text: str) -> DMSValue:
    minutes = groups[f"{prefix}min"]
    seconds = groups[f"{prefix}sec"]
    value = DMSValue(
        degrees=float(groups[f"{prefix}deg"]),
        minutes=float(minutes) if minutes is not None else 0.0,
        seconds=float(seconds) if seconds is not None else 0.0,
        hemisphere=groups[f"{prefix}hem"].upper(),
    )

    if value.minutes >= 60:
        raise CoordinateNotRecognized(
            f"Minutes must be below 60, got {value.minutes:g}", text=text
        )
    if value.seconds >= 60:
        raise CoordinateNotRecognized(
            f"Seconds must be below 60, got {value.seconds:g}", text=text
        )

    return value


def parse_dms(token: str) -> float:
    """
    Convert a single DMS token to signed decimal degrees.

    Args:
        token: Text such as ``30°21'20"N`` or ``120°E``

    Returns:
        Decimal degrees, negative for S and W

    Raises:
        CoordinateNotRecognized: If the token is malformed or lacks a hemisphere

    Examples:
        >>> parse_dms("30°30'N")
        30.5
        >>> parse_dms("120°W")
        -120.0
    """
    text = token.strip()
    match = DMS_TOKEN_PATTERN.match(text)
    if not match:
        raise CoordinateNotRecognized(f"Not a DMS token: {token!r}", text=token)
    return _dms_from_groups(match.groupdict(), "", text).to_decimal()


class CoordinateParser:
    """
    Parser for user-entered coordinate strings.

    Grammars are tried in order: decimal pair first, then DMS pair. The
    parser is stateless; a module-level instance backs ``parse_coordinates``.
    """

    def parse(self, text: str) -> Coordinate:
        """
        Parse free text into a coordinate.

        Args:
            text: Raw search-box input

        Returns:
            The parsed coordinate

        Raises:
            CoordinateNotRecognized: If no grammar matches or the values are
                out of range
        """
        if text is None:
            raise CoordinateNotRecognized("No text to parse")

        stripped = text.strip()
        if not stripped:
            raise CoordinateNotRecognized("Empty coordinate string", text=text)

        coordinate = self._parse_decimal(stripped)
        if coordinate is None:
            coordinate = self._parse_dms_pair(stripped)
        if coordinate is None:
            raise CoordinateNotRecognized(
                f"Text is not a coordinate: {stripped!r}", text=text
            )

        logger.debug(f"Parsed {stripped!r} as ({coordinate})")
        return coordinate

    def _parse_decimal(self, text: str) -> Optional[Coordinate]:
        match = DECIMAL_PAIR_PATTERN.match(text)
        if not match:
            return None

        lat = float(match.group("lat"))
        lng = float(match.group("lng"))
        return self._build(lat, lng, text)

    def _parse_dms_pair(self, text: str) -> Optional[Coordinate]:
        match = DMS_PAIR_PATTERN.match(text)
        if not match:
            return None

        groups = match.groupdict()
        first = _dms_from_groups(groups, "a_", text)
        second = _dms_from_groups(groups, "b_", text)

        if first.is_latitude == second.is_latitude:
            axis = "latitude" if first.is_latitude else "longitude"
            raise CoordinateNotRecognized(
                f"Both DMS values are {axis}s ({first.hemisphere}, {second.hemisphere})",
                text=text,
            )

        # Longitude-first input is accepted; the hemisphere letter decides the axis
        lat_value, lng_value = (first, second) if first.is_latitude else (second, first)
        return self._build(lat_value.to_decimal(), lng_value.to_decimal(), text)

    @staticmethod
    def _build(lat: float, lng: float, text: str) -> Coordinate:
        try:
            return Coordinate(lat=lat, lng=lng)
        except PydanticValidationError as e:
            raise CoordinateNotRecognized(
                f"Coordinate out of range: ({lat}, {lng})",
                text=text,
                details={"lat": lat, "lng": lng, "errors": e.error_count()},
            ) from e


_default_parser = CoordinateParser()


def parse_coordinates(text: str) -> Optional[Coordinate]:
    """
    Parse free text into a coordinate, returning None when not recognized.

    Examples:
        >>> parse_coordinates("30.5, -120.25")
        Coordinate(lat=30.5, lng=-120.25)
        >>> parse_coordinates("Hangzhou") is None
        True
    """
    try:
        return _default_parser.parse(text)
    except CoordinateNotRecognized as e:
        logger.debug(f"Coordinate not recognized: {e.message}")
        return None


def format_coordinate(coordinate: Coordinate, precision: Optional[int] = None) -> str:
    """
    Render a coordinate as ``"lat, lng"``.

    Args:
        coordinate: Coordinate to render
        precision: Fixed number of decimals; None keeps the values as given

    Returns:
        Formatted text
    """
    if precision is None:
        return str(coordinate)
    return coordinate.format(precision)
