"""
Draw-tool events consumed by the shape lifecycle manager.

The map surface translates its pointer interactions into these values and
feeds them to ``ShapeLifecycleManager.handle``.
"""

from dataclasses import dataclass
from typing import Union

from geomark.models.shapes import AnyShape, ShapeKind


@dataclass(frozen=True)
class DrawStarted:
    """The user picked a draw tool from the toolbar."""

    kind: ShapeKind


@dataclass(frozen=True)
class DrawCancelled:
    """The user left a draw tool without finishing a shape."""

    kind: ShapeKind


@dataclass(frozen=True)
class ShapeCreated:
    """A draft shape was finished and should be committed."""

    draft: AnyShape
    kind: ShapeKind


@dataclass(frozen=True)
class EditStarted:
    """Vertex dragging or resizing began on a committed shape."""

    shape_id: int


@dataclass(frozen=True)
class EditCompleted:
    """An edit was saved; ``geometry`` replaces the shape's geometry."""

    shape_id: int
    geometry: AnyShape


@dataclass(frozen=True)
class EditCancelled:
    """An edit was abandoned; the geometry stays as it was."""

    shape_id: int


@dataclass(frozen=True)
class RemoveRequested:
    """The user deleted a shape."""

    shape_id: int


ShapeEvent = Union[
    DrawStarted,
    DrawCancelled,
    ShapeCreated,
    EditStarted,
    EditCompleted,
    EditCancelled,
    RemoveRequested,
]
