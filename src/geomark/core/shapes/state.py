"""
Per-shape lifecycle state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from geomark.models.measurement import Measurement
from geomark.models.shapes import AnyShape, ShapeKind


class ShapeState(str, Enum):
    """Lifecycle states of a drawn shape."""

    DRAWING = "drawing"
    COMMITTED = "committed"
    EDITING = "editing"
    REMOVED = "removed"


@dataclass
class ShapeRecord:
    """
    A live shape owned by the lifecycle manager.

    Attributes:
        shape_id: Process-unique id assigned at commit
        shape: Current geometry
        state: Lifecycle state
        measurement: Attached measurement, None for plain annotations
    """

    shape_id: int
    shape: AnyShape
    state: ShapeState = ShapeState.COMMITTED
    measurement: Optional[Measurement] = None

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind(self.shape.kind)
