"""
Observer interface through which the map surface follows shape changes.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from geomark.core.shapes.lifecycle import ShapeLifecycleManager
    from geomark.core.shapes.state import ShapeRecord



class ShapeObserver:
    """
    Receives rendering instructions from the lifecycle manager.

    Subclasses override the callbacks they care about. The default
    implementations do nothing.
    """

    def on_shape_committed(self, record: "ShapeRecord") -> None:
        """A new shape was added; draw it and its measurement label."""

    def on_shape_updated(self, record: "ShapeRecord") -> None:
        """An edit changed the geometry; redraw and refresh the label."""

    def on_shape_removed(self, shape_id: int) -> None:
        """
        The shape is about to be dropped.

        Close and detach any popup or label referencing ``shape_id``.
        The record is still readable from the manager during this call.
        """


class Subscription:
    """
    Disposable handle returned by ``ShapeLifecycleManager.subscribe``.

    Usage:
        with manager.subscribe(observer):
            manager.handle(event)
    """

    def __init__(self, manager: "ShapeLifecycleManager", observer: ShapeObserver):
        self._manager: Optional["ShapeLifecycleManager"] = manager
        self.observer = observer

    @property
    def active(self) -> bool:
        return self._manager is not None

    def dispose(self) -> None:
        """Stop delivering callbacks. Safe to call more than once."""
        if self._manager is not None:
            self._manager._unsubscribe(self.observer)
            self._manager = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.dispose()
