"""
Demonstration of the map drawing, measurement and search engine.

This script shows how a map surface drives Geomark: parsing typed
coordinates, committing and editing drawn shapes with measurement labels,
and resolving search-box text. Pass ``--online`` to geocode a place name
against the public Nominatim service.
"""

import asyncio
import sys
from typing import List

from geomark.core.config import Settings
from geomark.core.logging_config import setup_logging
from geomark.core.measurement import format_measurement
from geomark.core.parsers import CoordinateParser
from geomark.core.search import LocationSearchResolver
from geomark.core.shapes import (
    EditCompleted,
    EditStarted,
    RemoveRequested,
    ShapeCreated,
    ShapeLifecycleManager,
    ShapeObserver,
    ShapeRecord,
)
from geomark.integrations.nominatim import NominatimClient, NominatimClientConfig
from geomark.models import (
    Circle,
    Coordinate,
    GeocodeRecord,
    Marker,
    Polygon,
    Polyline,
    Rectangle,
    ShapeKind,
)


class PopupPrinter(ShapeObserver):
    """Stands in for the map surface: prints the popup of each shape."""

    def on_shape_committed(self, record: ShapeRecord) -> None:
        self._show("drawn", record)

    def on_shape_updated(self, record: ShapeRecord) -> None:
        self._show("edited", record)

    def on_shape_removed(self, shape_id: int) -> None:
        print(f"  [#{shape_id}] popup closed, shape removed")

    def _show(self, action: str, record: ShapeRecord) -> None:
        label = format_measurement(record.measurement, humanize=True) if record.measurement else "-"
        print(f"  [#{record.shape_id}] {record.kind.value} {action}: {label}")


class OfflineGeocoder:
    """Tiny in-memory gazetteer for running the demo without network."""

    PLACES = {
        "west lake": [GeocodeRecord(display_name="West Lake, Hangzhou, China", lat=30.2463, lon=120.1432)],
    }

    async def geocode(self, query: str) -> List[GeocodeRecord]:
        return self.PLACES.get(query.lower(), [])


def demo_coordinate_parsing():
    """Demonstrate typed coordinate parsing."""
    print("=" * 60)
    print("DEMO 1: Coordinate Parsing")
    print("=" * 60)

    parser = CoordinateParser()
    for text in ["30.355764, 120.024029", "30°21'20.75\"N 120°1'26.5\"E", "-33.8688,151.2093"]:
        coordinate = parser.parse(text)
        print(f"  {text!r:36} -> {coordinate.format(6)}")


def demo_drawing_and_measuring():
    """Demonstrate the shape lifecycle with measurement labels."""
    print("\n" + "=" * 60)
    print("DEMO 2: Drawing and Measuring")
    print("=" * 60)

    manager = ShapeLifecycleManager(Settings().tool_config())

    with manager.subscribe(PopupPrinter()):
        path = Polyline(
            points=(
                Coordinate(lat=30.2463, lng=120.1432),
                Coordinate(lat=30.2590, lng=120.1480),
                Coordinate(lat=30.2700, lng=120.1600),
            )
        )
        path_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        field = Polygon(
            points=(
                Coordinate(lat=30.0, lng=120.0),
                Coordinate(lat=30.0, lng=120.01),
                Coordinate(lat=30.01, lng=120.01),
                Coordinate(lat=30.01, lng=120.0),
            )
        )
        manager.handle(ShapeCreated(field, ShapeKind.POLYGON))

        manager.handle(
            ShapeCreated(Circle(center=Coordinate(lat=0, lng=0), radius_meters=1000), ShapeKind.CIRCLE)
        )
        block_id = manager.handle(
            ShapeCreated(
                Rectangle.from_corners(Coordinate(lat=1, lng=1), Coordinate(lat=0, lng=0)),
                ShapeKind.RECTANGLE,
            )
        )
        manager.handle(ShapeCreated(Marker(position=Coordinate(lat=30.25, lng=120.15)), ShapeKind.MARKER))

        # Drag the last vertex further north-east
        manager.handle(EditStarted(path_id))
        manager.handle(
            EditCompleted(path_id, Polyline(points=path.points + (Coordinate(lat=30.30, lng=120.20),)))
        )

        manager.handle(RemoveRequested(block_id))

    print(f"\n  Shapes on map: {len(manager)}, measured: {len(manager.measurements())}")


async def demo_search(online: bool):
    """Demonstrate search-box resolution."""
    print("\n" + "=" * 60)
    print("DEMO 3: Location Search")
    print("=" * 60)

    if online:
        client = NominatimClient(NominatimClientConfig.from_settings(Settings()))
        geocoder = client
    else:
        client = None
        geocoder = OfflineGeocoder()

    try:
        resolver = LocationSearchResolver(geocoder)
        for text in ["30.355764, 120.024029", "West Lake", "Atlantis"]:
            results = await resolver.search(text)
            print(f"  {text!r}: {len(results)} result(s)")
            for result in results[:3]:
                print(f"    - {result.label} ({result.location.format(4)})")
    finally:
        if client is not None:
            await client.close()


def main():
    """Run all demos."""
    setup_logging(log_level="WARNING")

    demo_coordinate_parsing()
    demo_drawing_and_measuring()
    asyncio.run(demo_search(online="--online" in sys.argv))


if __name__ == "__main__":
    main()
