"""
Lifecycle of user-drawn shapes.

The manager owns the set of committed shapes and their measurements and
moves each shape through DRAWING -> COMMITTED -> [EDITING <-> COMMITTED]
-> REMOVED in response to draw-tool events.

Everything runs on the UI event thread. Events are processed strictly in
arrival order: an event submitted from inside an observer callback is
queued and handled once the current event is finished, so an edit
completion for a shape can never be applied after that shape's removal.
"""

import itertools
import logging
from collections import deque
from typing import Deque, Dict, Iterator, List, Optional

from geomark.core.errors import (
    GeomarkException,
    InvalidShapeError,
    InvalidTransitionError,
    ShapeKindDisabledError,
    ShapeNotFoundError,
)
from geomark.core.logging_config import add_log_context
from geomark.core.measurement.geodesic import measure
from geomark.core.shapes.events import (
    DrawCancelled,
    DrawStarted,
    EditCancelled,
    EditCompleted,
    EditStarted,
    RemoveRequested,
    ShapeCreated,
    ShapeEvent,
)
from geomark.core.shapes.observers import ShapeObserver, Subscription
from geomark.core.shapes.state import ShapeRecord, ShapeState
from geomark.core.shapes.validation import validate_shape
from geomark.models.measurement import Measurement
from geomark.models.shapes import AnyShape, ShapeKind
from geomark.models.tools import ToolConfig
from geomark.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)

# Shape ids are unique for the lifetime of the process, across managers
_shape_ids = itertools.count(1)


class ShapeLifecycleManager:
    """
    State machine tracking the shapes drawn on one map.

    Attributes:
        config: Immutable draw-tool configuration
    """

    def __init__(self, config: Optional[ToolConfig] = None) -> None:
        """
        Initialize the manager.

        Args:
            config: Draw-tool configuration; all tools enabled when omitted
        """
        self.config = config or ToolConfig()
        self._records: Dict[int, ShapeRecord] = {}
        self._observers: List[ShapeObserver] = []
        self._pending: Deque[ShapeEvent] = deque()
        self._processing = False
        self._drawing: Optional[ShapeKind] = None

        logger.info(
            "Shape manager initialized with tools: "
            f"{sorted(k.value for k in self.config.enabled_kinds())}, "
            f"measurement={'on' if self.config.measurement_enabled else 'off'}"
        )

    # Observers

    def subscribe(self, observer: ShapeObserver) -> Subscription:
        """
        Register an observer for shape callbacks.

        Returns:
            Handle whose ``dispose()`` unregisters the observer
        """
        self._observers.append(observer)
        return Subscription(self, observer)

    def _unsubscribe(self, observer: ShapeObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, callback: str, *args: object) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, callback)(*args)
            except Exception as e:
                logger.error(
                    f"Observer {type(observer).__name__}.{callback} failed: {e}",
                    exc_info=True,
                )

    # Event processing

    def handle(self, event: ShapeEvent) -> Optional[int]:
        """
        Process one draw-tool event.

        Args:
            event: Event from the map surface

        Returns:
            Id of the shape the event applied to, or None for toolbar events
            and for events queued while another event is being processed

        Raises:
            ShapeKindDisabledError: Draw attempt for a disabled kind
            InvalidShapeError: Degenerate or mismatched geometry
            ShapeNotFoundError: Event for an unknown or removed shape
        """
        if self._processing:
            logger.debug(f"Queued {type(event).__name__} behind the current event")
            self._pending.append(event)
            return None

        self._processing = True
        try:
            return self._dispatch(event)
        finally:
            try:
                self._drain()
            finally:
                self._processing = False

    def submit(self, event: ShapeEvent) -> bool:
        """
        Process an event, absorbing recoverable errors.

        This is the entry point to wire to a UI event source: a disabled
        tool or a stale id is logged and ignored instead of raised.

        Returns:
            True if the event was applied or queued, False if it was rejected
        """
        try:
            self.handle(event)
        except GeomarkException as e:
            if not e.recoverable:
                raise
            logger.info(f"Ignored {type(event).__name__}: {e}")
            return False
        return True

    def _drain(self) -> None:
        while self._pending:
            event = self._pending.popleft()
            try:
                self._dispatch(event)
            except GeomarkException as e:
                logger.warning(f"Queued {type(event).__name__} rejected: {e}")

    def _dispatch(self, event: ShapeEvent) -> Optional[int]:
        if isinstance(event, DrawStarted):
            self._start_drawing(event.kind)
            return None
        if isinstance(event, DrawCancelled):
            self._cancel_drawing(event.kind)
            return None
        if isinstance(event, ShapeCreated):
            return self._commit(event.draft, event.kind)
        if isinstance(event, EditStarted):
            return self._start_edit(event.shape_id)
        if isinstance(event, EditCompleted):
            return self._complete_edit(event.shape_id, event.geometry)
        if isinstance(event, EditCancelled):
            return self._cancel_edit(event.shape_id)
        if isinstance(event, RemoveRequested):
            return self._remove(event.shape_id)
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    # Drawing

    def _require_enabled(self, kind: ShapeKind) -> None:
        if not self.config.is_enabled(kind):
            raise ShapeKindDisabledError(
                f"Drawing {kind.value} shapes is disabled",
                shape_kind=kind.value,
            )

    def _start_drawing(self, kind: ShapeKind) -> None:
        kind = ShapeKind(kind)
        self._require_enabled(kind)
        self._drawing = kind
        logger.debug(f"Drawing {kind.value}")

    def _cancel_drawing(self, kind: ShapeKind) -> None:
        if self._drawing == ShapeKind(kind):
            self._drawing = None

    def _commit(self, draft: AnyShape, kind: ShapeKind) -> int:
        kind = ShapeKind(kind)
        self._require_enabled(kind)

        if self._drawing is not None and self._drawing != kind:
            raise InvalidTransitionError(
                f"A {kind.value} was created while the {self._drawing.value} tool is active",
                state=ShapeState.DRAWING.value,
                event="ShapeCreated",
            )

        if draft.kind != kind.value:
            raise InvalidShapeError(
                f"Draft is a {draft.kind}, but was created with the {kind.value} tool",
                shape_kind=kind.value,
            )

        validate_shape(draft, self.config.allow_polygon_self_intersection)

        shape_id = next(_shape_ids)
        with add_log_context(shape_id=shape_id):
            measurement = self._measure(draft, shape_id) if self.config.measures(kind) else None
            record = ShapeRecord(
                shape_id=shape_id,
                shape=draft,
                state=ShapeState.COMMITTED,
                measurement=measurement,
            )
            self._records[shape_id] = record
            if self._drawing == kind:
                self._drawing = None

            logger.info(
                f"Committed {kind.value} #{shape_id}"
                + (f" ({measurement.kind.value}={measurement.value:.2f})" if measurement else "")
            )
            self._notify("on_shape_committed", record)

        return shape_id

    def _measure(self, shape: AnyShape, shape_id: int) -> Measurement:
        with PerformanceTimer(f"measure {shape.kind} #{shape_id}", threshold_ms=50):
            return measure(
                shape,
                shape_id=shape_id,
                geodesic_circle_area=self.config.geodesic_circle_area,
            )

    # Editing

    def _live_record(self, shape_id: int) -> ShapeRecord:
        record = self._records.get(shape_id)
        if record is None or record.state == ShapeState.REMOVED:
            raise ShapeNotFoundError(f"No live shape with id {shape_id}", shape_id=shape_id)
        return record

    def _start_edit(self, shape_id: int) -> int:
        record = self._live_record(shape_id)
        record.state = ShapeState.EDITING
        logger.debug(f"Editing shape #{shape_id}")
        return shape_id

    def _complete_edit(self, shape_id: int, geometry: AnyShape) -> int:
        record = self._live_record(shape_id)

        if geometry.kind != record.shape.kind:
            raise InvalidShapeError(
                f"Edit of {record.shape.kind} #{shape_id} produced a {geometry.kind}",
                shape_kind=record.shape.kind,
            )

        validate_shape(geometry, self.config.allow_polygon_self_intersection)

        with add_log_context(shape_id=shape_id):
            measurement = record.measurement
            if measurement is not None:
                measurement = self._measure(geometry, shape_id)

            # Geometry and measurement are swapped together
            record.shape = geometry
            record.measurement = measurement
            record.state = ShapeState.COMMITTED

            logger.info(f"Edited {record.kind.value} #{shape_id}")
            self._notify("on_shape_updated", record)

        return shape_id

    def _cancel_edit(self, shape_id: int) -> int:
        record = self._live_record(shape_id)
        if record.state != ShapeState.EDITING:
            logger.debug(f"Edit cancel for shape #{shape_id} outside an edit, ignored")
            return shape_id

        record.state = ShapeState.COMMITTED
        logger.debug(f"Edit of shape #{shape_id} cancelled")
        return shape_id

    # Removal

    def _remove(self, shape_id: int) -> int:
        record = self._live_record(shape_id)

        with add_log_context(shape_id=shape_id):
            record.state = ShapeState.REMOVED
            # Observers detach popups/labels while the record is still readable
            self._notify("on_shape_removed", shape_id)
            del self._records[shape_id]
            logger.info(f"Removed {record.kind.value} #{shape_id}")

        return shape_id

    def clear(self) -> int:
        """
        Remove every shape through the normal removal path.

        Returns:
            Number of shapes removed
        """
        shape_ids = list(self._records)
        for shape_id in shape_ids:
            self.handle(RemoveRequested(shape_id))
        return len(shape_ids)

    # Queries

    @property
    def drawing(self) -> Optional[ShapeKind]:
        """Kind of the draw tool currently active, if any."""
        return self._drawing

    def state_of(self, shape_id: int) -> ShapeState:
        """
        Lifecycle state of a shape.

        Raises:
            ShapeNotFoundError: If the id is unknown or already removed
        """
        record = self._records.get(shape_id)
        if record is None:
            raise ShapeNotFoundError(f"No shape with id {shape_id}", shape_id=shape_id)
        return record.state

    def get_record(self, shape_id: int) -> Optional[ShapeRecord]:
        return self._records.get(shape_id)

    def get_shape(self, shape_id: int) -> Optional[AnyShape]:
        record = self._records.get(shape_id)
        return record.shape if record else None

    def get_measurement(self, shape_id: int) -> Optional[Measurement]:
        record = self._records.get(shape_id)
        return record.measurement if record else None

    def shapes(self) -> Dict[int, AnyShape]:
        """Snapshot of the live shapes by id."""
        return {shape_id: record.shape for shape_id, record in self._records.items()}

    def measurements(self) -> Dict[int, Measurement]:
        """Snapshot of the attached measurements by shape id."""
        return {
            shape_id: record.measurement
            for shape_id, record in self._records.items()
            if record.measurement is not None
        }

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, shape_id: object) -> bool:
        return shape_id in self._records

    def __iter__(self) -> Iterator[ShapeRecord]:
        return iter(list(self._records.values()))
