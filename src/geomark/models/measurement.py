"""
Measurement models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MeasurementKind(str, Enum):
    """What a measurement quantifies."""

    DISTANCE = "distance"
    AREA = "area"


class Measurement(BaseModel):
    """
    Derived length or area of a committed shape.

    Attributes:
        shape_id: Id of the shape this measurement belongs to, None when
            measured outside a shape set
        kind: Distance (metres) or area (square metres)
        value: Measured value in metres or square metres
    """

    model_config = ConfigDict(frozen=True)

    shape_id: Optional[int] = None
    kind: MeasurementKind
    value: float = Field(..., ge=0)

    @property
    def unit(self) -> str:
        """Unit symbol of ``value``."""
        return "m" if self.kind == MeasurementKind.DISTANCE else "m²"
