"""
Lifecycle management of user-drawn shapes.
"""

from .events import (
    DrawCancelled,
    DrawStarted,
    EditCancelled,
    EditCompleted,
    EditStarted,
    RemoveRequested,
    ShapeCreated,
    ShapeEvent,
)
from .lifecycle import ShapeLifecycleManager
from .observers import ShapeObserver, Subscription
from .state import ShapeRecord, ShapeState
from .validation import validate_shape

__all__ = [
    # Events
    "DrawCancelled",
    "DrawStarted",
    "EditCancelled",
    "EditCompleted",
    "EditStarted",
    "RemoveRequested",
    "ShapeCreated",
    "ShapeEvent",
    # Manager
    "ShapeLifecycleManager",
    "ShapeObserver",
    "Subscription",
    "ShapeRecord",
    "ShapeState",
    "validate_shape",
]
