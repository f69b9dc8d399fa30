"""
Tests for the shape lifecycle manager.

Tests cover:
- Committing shapes and attaching measurements
- Disabled draw tools
- Editing and cancelling edits
- Removal and observer cleanup
- Event ordering for events submitted from observer callbacks
"""

import logging
import math
from typing import List, Optional, Tuple

import pytest

from geomark.core.errors import (
    InvalidShapeError,
    InvalidTransitionError,
    ShapeKindDisabledError,
    ShapeNotFoundError,
)
from geomark.core.shapes import (
    DrawCancelled,
    DrawStarted,
    EditCancelled,
    EditCompleted,
    EditStarted,
    RemoveRequested,
    ShapeCreated,
    ShapeLifecycleManager,
    ShapeObserver,
    ShapeRecord,
    ShapeState,
)
from geomark.models.coordinate import Coordinate
from geomark.models.measurement import MeasurementKind
from geomark.models.shapes import Circle, Marker, Polygon, Polyline, Rectangle, ShapeKind
from geomark.models.tools import ToolConfig


def c(lat: float, lng: float) -> Coordinate:
    return Coordinate(lat=lat, lng=lng)


class RecordingObserver(ShapeObserver):
    """Observer that records every callback."""

    def __init__(self, manager: Optional[ShapeLifecycleManager] = None):
        self.manager = manager
        self.calls: List[Tuple[str, int]] = []
        self.removed_states: List[ShapeState] = []

    def on_shape_committed(self, record: ShapeRecord) -> None:
        self.calls.append(("committed", record.shape_id))

    def on_shape_updated(self, record: ShapeRecord) -> None:
        self.calls.append(("updated", record.shape_id))

    def on_shape_removed(self, shape_id: int) -> None:
        self.calls.append(("removed", shape_id))
        if self.manager is not None:
            record = self.manager.get_record(shape_id)
            self.removed_states.append(record.state if record else None)


@pytest.fixture
def manager() -> ShapeLifecycleManager:
    """Create a manager with every tool enabled."""
    return ShapeLifecycleManager(ToolConfig())


@pytest.fixture
def triangle() -> Polygon:
    """Create a small triangle."""
    return Polygon(points=(c(0, 0), c(0, 1), c(1, 0)))


@pytest.fixture
def path() -> Polyline:
    """Create a two-segment path."""
    return Polyline(points=(c(0, 0), c(0, 1), c(1, 1)))


class TestCommit:
    """Tests for committing drafts."""

    def test_rectangle_measured_then_removed(self, manager: ShapeLifecycleManager) -> None:
        """Test a committed rectangle gets an area and removal drops both."""
        rectangle = Rectangle.from_corners(c(1, 1), c(0, 0))

        shape_id = manager.handle(ShapeCreated(rectangle, ShapeKind.RECTANGLE))

        measurement = manager.get_measurement(shape_id)
        assert measurement is not None
        assert measurement.kind == MeasurementKind.AREA
        assert measurement.value > 0
        assert measurement.shape_id == shape_id
        assert manager.state_of(shape_id) == ShapeState.COMMITTED

        manager.handle(RemoveRequested(shape_id))

        assert manager.get_shape(shape_id) is None
        assert manager.get_measurement(shape_id) is None
        assert shape_id not in manager
        assert len(manager) == 0

    def test_polyline_gets_distance(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test polylines are measured by length."""
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert manager.get_measurement(shape_id).kind == MeasurementKind.DISTANCE

    def test_marker_never_measured(self, manager: ShapeLifecycleManager) -> None:
        """Test markers are committed without a measurement."""
        shape_id = manager.handle(ShapeCreated(Marker(position=c(5, 5)), ShapeKind.MARKER))

        assert manager.get_shape(shape_id) == Marker(position=c(5, 5))
        assert manager.get_measurement(shape_id) is None

    def test_ids_are_unique_across_managers(self, path: Polyline) -> None:
        """Test shape ids never repeat, even across managers."""
        first = ShapeLifecycleManager()
        second = ShapeLifecycleManager()

        ids = [
            first.handle(ShapeCreated(path, ShapeKind.POLYLINE)),
            second.handle(ShapeCreated(path, ShapeKind.POLYLINE)),
            first.handle(ShapeCreated(path, ShapeKind.POLYLINE)),
        ]

        assert len(set(ids)) == 3

    def test_measurement_disabled(self, path: Polyline) -> None:
        """Test measuring tools stay unmeasured while circles are still measured."""
        manager = ShapeLifecycleManager(ToolConfig(measurement_enabled=False))

        line_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        circle_id = manager.handle(
            ShapeCreated(Circle(center=c(0, 0), radius_meters=1000), ShapeKind.CIRCLE)
        )

        assert manager.get_measurement(line_id) is None
        assert manager.get_measurement(circle_id).value == pytest.approx(math.pi * 1000**2)
        assert set(manager.measurements()) == {circle_id}

    def test_too_few_points_rejected(self, manager: ShapeLifecycleManager) -> None:
        """Test degenerate drafts are not committed."""
        with pytest.raises(InvalidShapeError):
            manager.handle(ShapeCreated(Polyline(points=(c(0, 0),)), ShapeKind.POLYLINE))

        assert len(manager) == 0

    def test_draft_kind_mismatch(self, manager: ShapeLifecycleManager, triangle: Polygon) -> None:
        """Test a draft must match the tool that created it."""
        with pytest.raises(InvalidShapeError):
            manager.handle(ShapeCreated(triangle, ShapeKind.POLYLINE))

    def test_self_intersection_allowed_by_default(self, manager: ShapeLifecycleManager) -> None:
        """Test bow-tie polygons are accepted unless forbidden."""
        bowtie = Polygon(points=(c(0, 0), c(1, 1), c(0, 1), c(1, 0)))

        shape_id = manager.handle(ShapeCreated(bowtie, ShapeKind.POLYGON))

        assert shape_id in manager

    def test_self_intersection_forbidden(self) -> None:
        """Test bow-tie polygons are rejected when forbidden."""
        manager = ShapeLifecycleManager(ToolConfig(allow_polygon_self_intersection=False))
        bowtie = Polygon(points=(c(0, 0), c(1, 1), c(0, 1), c(1, 0)))

        with pytest.raises(InvalidShapeError) as exc_info:
            manager.handle(ShapeCreated(bowtie, ShapeKind.POLYGON))

        assert "reason" in exc_info.value.details
        assert len(manager) == 0


class TestDisabledTools:
    """Tests for draw attempts with disabled kinds."""

    def test_disabled_polygon_leaves_set_unchanged(self, triangle: Polygon) -> None:
        """Test a disabled kind is rejected and nothing is stored."""
        manager = ShapeLifecycleManager(ToolConfig(polygon=False))

        with pytest.raises(ShapeKindDisabledError) as exc_info:
            manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))

        assert exc_info.value.recoverable is True
        assert len(manager) == 0

    def test_submit_absorbs_disabled_kind(self, triangle: Polygon) -> None:
        """Test submit reports the rejection instead of raising."""
        manager = ShapeLifecycleManager(ToolConfig(polygon=False))

        assert manager.submit(ShapeCreated(triangle, ShapeKind.POLYGON)) is False
        assert len(manager) == 0

    def test_submit_reraises_contract_violations(self, manager: ShapeLifecycleManager) -> None:
        """Test non-recoverable errors still propagate from submit."""
        with pytest.raises(InvalidShapeError):
            manager.submit(ShapeCreated(Polyline(points=(c(0, 0),)), ShapeKind.POLYLINE))

    def test_draw_started_for_disabled_kind(self) -> None:
        """Test the tool does not activate for a disabled kind."""
        manager = ShapeLifecycleManager(ToolConfig.from_toggles(enable_draw=False))

        with pytest.raises(ShapeKindDisabledError):
            manager.handle(DrawStarted(ShapeKind.CIRCLE))

        assert manager.drawing is None

    def test_measure_toggle_controls_measuring_tools(self, path: Polyline) -> None:
        """Test turning measurement off disables polylines and polygons."""
        manager = ShapeLifecycleManager(ToolConfig.from_toggles(enable_measure=False))

        assert manager.submit(ShapeCreated(path, ShapeKind.POLYLINE)) is False
        assert manager.submit(ShapeCreated(Marker(position=c(0, 0)), ShapeKind.MARKER)) is True


class TestDrawing:
    """Tests for the active draw tool."""

    def test_draw_started_and_committed(self, manager: ShapeLifecycleManager, triangle: Polygon) -> None:
        """Test committing clears the active tool."""
        manager.handle(DrawStarted(ShapeKind.POLYGON))
        assert manager.drawing == ShapeKind.POLYGON

        manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))

        assert manager.drawing is None

    def test_draw_cancelled(self, manager: ShapeLifecycleManager) -> None:
        """Test cancelling a draw leaves no shape behind."""
        manager.handle(DrawStarted(ShapeKind.CIRCLE))
        manager.handle(DrawCancelled(ShapeKind.CIRCLE))

        assert manager.drawing is None
        assert len(manager) == 0

    def test_created_with_other_tool_active(self, manager: ShapeLifecycleManager, triangle: Polygon) -> None:
        """Test a shape of another kind cannot be created mid-draw."""
        manager.handle(DrawStarted(ShapeKind.CIRCLE))

        with pytest.raises(InvalidTransitionError):
            manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))

        assert len(manager) == 0


class TestEditing:
    """Tests for edits of committed shapes."""

    def test_edit_recomputes_measurement(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test saving an edit swaps geometry and measurement together."""
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        before = manager.get_measurement(shape_id).value

        manager.handle(EditStarted(shape_id))
        assert manager.state_of(shape_id) == ShapeState.EDITING

        longer = Polyline(points=path.points + (c(2, 2),))
        manager.handle(EditCompleted(shape_id, longer))

        assert manager.state_of(shape_id) == ShapeState.COMMITTED
        assert manager.get_shape(shape_id) == longer
        assert manager.get_measurement(shape_id).value > before

    def test_edit_keeps_unmeasured_shape_unmeasured(self, path: Polyline) -> None:
        """Test an edit does not attach a measurement that was never there."""
        manager = ShapeLifecycleManager(ToolConfig(measurement_enabled=False))
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        manager.handle(EditCompleted(shape_id, Polyline(points=(c(0, 0), c(3, 3)))))

        assert manager.get_measurement(shape_id) is None

    def test_edit_cancelled_restores_committed(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test cancelling an edit keeps the old geometry."""
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        measurement = manager.get_measurement(shape_id)

        manager.handle(EditStarted(shape_id))
        manager.handle(EditCancelled(shape_id))

        assert manager.state_of(shape_id) == ShapeState.COMMITTED
        assert manager.get_shape(shape_id) == path
        assert manager.get_measurement(shape_id) == measurement

    def test_edit_must_keep_kind(self, manager: ShapeLifecycleManager, path: Polyline, triangle: Polygon) -> None:
        """Test an edit cannot turn a polyline into a polygon."""
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        with pytest.raises(InvalidShapeError):
            manager.handle(EditCompleted(shape_id, triangle))

        assert manager.get_shape(shape_id) == path

    def test_edit_of_unknown_shape(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test edits of removed shapes are rejected."""
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        manager.handle(RemoveRequested(shape_id))

        with pytest.raises(ShapeNotFoundError):
            manager.handle(EditCompleted(shape_id, path))

        assert manager.submit(EditStarted(shape_id)) is False

    def test_edit_notifies_observers(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test observers are told about updated geometry."""
        observer = RecordingObserver()
        manager.subscribe(observer)
        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        manager.handle(EditCompleted(shape_id, Polyline(points=(c(0, 0), c(5, 5)))))

        assert observer.calls == [("committed", shape_id), ("updated", shape_id)]


class TestRemoval:
    """Tests for shape removal and observer cleanup."""

    def test_observer_sees_record_during_removal(self, manager: ShapeLifecycleManager, triangle: Polygon) -> None:
        """Test removal callbacks run before the record is dropped."""
        observer = RecordingObserver(manager)
        manager.subscribe(observer)
        shape_id = manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))

        manager.handle(RemoveRequested(shape_id))

        assert observer.calls == [("committed", shape_id), ("removed", shape_id)]
        assert observer.removed_states == [ShapeState.REMOVED]
        assert manager.get_record(shape_id) is None

    def test_remove_twice(self, manager: ShapeLifecycleManager, triangle: Polygon) -> None:
        """Test a second removal of the same id is rejected."""
        shape_id = manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))
        manager.handle(RemoveRequested(shape_id))

        with pytest.raises(ShapeNotFoundError):
            manager.handle(RemoveRequested(shape_id))

    def test_clear(self, manager: ShapeLifecycleManager, triangle: Polygon, path: Polyline) -> None:
        """Test clear removes every shape through the removal path."""
        observer = RecordingObserver()
        manager.subscribe(observer)
        first = manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))
        second = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert manager.clear() == 2

        assert len(manager) == 0
        assert manager.measurements() == {}
        assert ("removed", first) in observer.calls
        assert ("removed", second) in observer.calls

    def test_state_of_unknown(self, manager: ShapeLifecycleManager) -> None:
        """Test querying an unknown id raises."""
        with pytest.raises(ShapeNotFoundError):
            manager.state_of(-1)


class TestObservers:
    """Tests for subscriptions and callback ordering."""

    def test_dispose_stops_callbacks(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test a disposed subscription receives nothing."""
        observer = RecordingObserver()
        subscription = manager.subscribe(observer)

        subscription.dispose()
        subscription.dispose()
        manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert subscription.active is False
        assert observer.calls == []

    def test_subscription_context_manager(self, manager: ShapeLifecycleManager, path: Polyline) -> None:
        """Test the subscription disposes itself on exit."""
        observer = RecordingObserver()

        with manager.subscribe(observer):
            first = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert observer.calls == [("committed", first)]

    def test_failing_observer_does_not_block_others(
        self,
        manager: ShapeLifecycleManager,
        path: Polyline,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test an observer exception is logged and delivery continues."""

        class Broken(ShapeObserver):
            def on_shape_committed(self, record: ShapeRecord) -> None:
                raise RuntimeError("render failed")

        observer = RecordingObserver()
        manager.subscribe(Broken())
        manager.subscribe(observer)

        with caplog.at_level(logging.ERROR):
            shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert observer.calls == [("committed", shape_id)]
        assert "render failed" in caplog.text

    def test_event_from_callback_runs_after_current_event(
        self, manager: ShapeLifecycleManager, path: Polyline
    ) -> None:
        """Test events submitted during a callback are queued in order."""
        recorder = RecordingObserver()

        seen_during_callback = []

        class RemoveOnCommit(ShapeObserver):
            def on_shape_committed(self, record: ShapeRecord) -> None:
                result = manager.handle(RemoveRequested(record.shape_id))
                seen_during_callback.append((result, record.shape_id in manager))

        manager.subscribe(RemoveOnCommit())
        manager.subscribe(recorder)

        shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        # The removal was queued, not applied inside the callback
        assert seen_during_callback == [(None, True)]
        assert recorder.calls == [("committed", shape_id), ("removed", shape_id)]
        assert len(manager) == 0

    def test_queued_edit_after_removal_is_rejected(
        self,
        manager: ShapeLifecycleManager,
        path: Polyline,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a stale edit queued behind a removal is dropped, not applied."""

        class RemoveThenEdit(ShapeObserver):
            def on_shape_committed(self, record: ShapeRecord) -> None:
                manager.handle(RemoveRequested(record.shape_id))
                manager.handle(EditCompleted(record.shape_id, path))

        manager.subscribe(RemoveThenEdit())

        with caplog.at_level(logging.WARNING):
            shape_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))

        assert shape_id not in manager
        assert "SHAPE_NOT_FOUND" in caplog.text


class TestQueries:
    """Tests for read access to the shape set."""

    def test_snapshots(self, manager: ShapeLifecycleManager, path: Polyline, triangle: Polygon) -> None:
        """Test shapes(), measurements() and iteration."""
        line_id = manager.handle(ShapeCreated(path, ShapeKind.POLYLINE))
        poly_id = manager.handle(ShapeCreated(triangle, ShapeKind.POLYGON))

        assert manager.shapes() == {line_id: path, poly_id: triangle}
        assert set(manager.measurements()) == {line_id, poly_id}
        assert [record.shape_id for record in manager] == [line_id, poly_id]
        assert [record.kind for record in manager] == [ShapeKind.POLYLINE, ShapeKind.POLYGON]
