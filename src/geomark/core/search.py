"""
Location search for the map search box.

Typed coordinates are answered locally; anything else goes to a geocoding
service. Searches follow a last-query-wins policy: when a newer search has
started by the time a lookup returns, the older results are discarded.
"""

import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

from geomark.core.errors import SearchFailedError
from geomark.core.measurement.formatting import format_coordinate_label
from geomark.core.parsers.coordinates import parse_coordinates
from geomark.models.search import GeocodeRecord, SearchResult

logger = logging.getLogger(__name__)

ResultsListener = Callable[[str, List[SearchResult]], None]
FailureListener = Callable[[SearchFailedError], None]


class Geocoder(Protocol):
    """Anything that can turn free text into candidate places."""

    async def geocode(self, query: str) -> List[GeocodeRecord]:
        ...


class LocationSearchResolver:
    """
    Resolves search-box text to candidate locations.

    Attributes:
        geocoder: External geocoding collaborator
        current_query: Text of the search whose results are displayed
        current_results: Results of the latest applied search
        last_failure: Most recent failed search, cleared by the next success
    """

    def __init__(self, geocoder: Geocoder) -> None:
        self.geocoder = geocoder
        self.current_query: Optional[str] = None
        self.current_results: List[SearchResult] = []
        self.last_failure: Optional[SearchFailedError] = None

        self._generation = itertools.count(1)
        self._latest = 0
        self._results_listeners: List[ResultsListener] = []
        self._failure_listeners: List[FailureListener] = []

    def on_results(self, listener: ResultsListener) -> Callable[[], None]:
        """
        Register a listener for applied search results.

        Returns:
            Function that unregisters the listener
        """
        self._results_listeners.append(listener)
        return lambda: self._discard(self._results_listeners, listener)

    def on_failure(self, listener: FailureListener) -> Callable[[], None]:
        """
        Register a listener for failed searches.

        Returns:
            Function that unregisters the listener
        """
        self._failure_listeners.append(listener)
        return lambda: self._discard(self._failure_listeners, listener)

    @staticmethod
    def _discard(listeners: list, listener: object) -> None:
        if listener in listeners:
            listeners.remove(listener)

    async def resolve(self, text: str) -> List[SearchResult]:
        """
        Resolve text to search results.

        Coordinates typed in decimal or DMS notation yield a single result
        without any network call. Otherwise the geocoder is queried and its
        records are returned in the order it gave them. A failed lookup is
        recorded in ``last_failure`` and reported to the failure listeners.

        Args:
            text: Raw search-box input

        Returns:
            Candidate locations; empty when nothing matched or the lookup failed
        """
        results, failure = await self._lookup(text)
        self._apply_outcome(failure)
        return results

    async def search(self, text: str) -> Optional[List[SearchResult]]:
        """
        Resolve text and apply the outcome unless a newer search superseded it.

        A superseded search touches neither the displayed results nor
        ``last_failure``, whether its lookup succeeded or failed.

        Args:
            text: Raw search-box input

        Returns:
            The applied results, or None when they were discarded as stale
        """
        generation = next(self._generation)
        self._latest = generation

        results, failure = await self._lookup(text)

        if generation != self._latest:
            outcome = "failure" if failure is not None else f"{len(results)} results"
            logger.info(
                f"Discarded stale {outcome} for {text!r} "
                f"(query {generation}, latest {self._latest})",
                extra={"query_id": generation},
            )
            return None

        self._apply_outcome(failure)
        self.current_query = text
        self.current_results = results
        for listener in list(self._results_listeners):
            listener(text, results)

        return results

    async def _lookup(self, text: str) -> Tuple[List[SearchResult], Optional[SearchFailedError]]:
        """Resolve text without touching resolver state."""
        query = (text or "").strip()
        if not query:
            return [], None

        coordinate = parse_coordinates(query)
        if coordinate is not None:
            logger.debug(f"Search text {query!r} is a coordinate, skipping geocoder")
            return [SearchResult(label=format_coordinate_label(coordinate), location=coordinate)], None

        try:
            records = await self.geocoder.geocode(query)
            results = [SearchResult.from_record(record) for record in records]
        except Exception as e:
            # GeocodingError from our client, anything from third-party geocoders
            failure = SearchFailedError(
                f"Search for {query!r} failed: {e}",
                query=query,
                details={"cause": type(e).__name__},
            )
            logger.warning(str(failure))
            return [], failure

        return results, None

    def _apply_outcome(self, failure: Optional[SearchFailedError]) -> None:
        self.last_failure = failure
        if failure is None:
            return

        for listener in list(self._failure_listeners):
            try:
                listener(failure)
            except Exception as e:
                logger.error(f"Search failure listener raised: {e}", exc_info=True)
