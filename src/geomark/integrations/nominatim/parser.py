"""
Nominatim search response parser.

Validates the JSON array returned by ``/search?format=json`` and turns each
entry into a GeocodeRecord.
"""

import logging
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from geomark.core.errors import GeocodingError
from geomark.models.search import GeocodeRecord

logger = logging.getLogger(__name__)

SERVICE_NAME = "nominatim"


class NominatimResponseParser:
    """
    Parser for Nominatim search responses.

    Expected response format:
    [
        {"display_name": "West Lake, Hangzhou, Zhejiang, China",
         "lat": "30.2463", "lon": "120.1432", ...},
        ...
    ]
    """

    def parse_search_response(self, data: Any) -> List[GeocodeRecord]:
        """
        Parse a search response into records, preserving service order.

        Args:
            data: Decoded JSON payload

        Returns:
            Records in the order the service ranked them

        Raises:
            GeocodingError: If the payload is an error object or any record
                is malformed
        """
        if isinstance(data, dict) and "error" in data:
            raise GeocodingError(
                f"Geocoder returned an error: {data['error']}",
                service_name=SERVICE_NAME,
                details={"response": data},
            )

        if not isinstance(data, list):
            raise GeocodingError(
                f"Expected a JSON array of places, got {type(data).__name__}",
                service_name=SERVICE_NAME,
            )

        records: List[GeocodeRecord] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                raise GeocodingError(
                    f"Place #{index} is not an object",
                    service_name=SERVICE_NAME,
                    details={"index": index},
                )
            try:
                records.append(GeocodeRecord.model_validate(item))
            except PydanticValidationError as e:
                logger.error(f"Malformed place #{index} in geocoder response: {item}")
                raise GeocodingError(
                    f"Place #{index} is malformed",
                    service_name=SERVICE_NAME,
                    details={"index": index, "errors": e.errors(include_url=False)},
                ) from e

        logger.debug(f"Parsed {len(records)} places from geocoder response")
        return records
