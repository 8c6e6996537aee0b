# =============================================================================
# Phenomenon Model
# =============================================================================
# A measured quantity: fixed (declared in the schema) or soft-typed
# (discovered from values of a discriminator column).
# =============================================================================

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .resource import ResourceField

__all__ = ["ObservationType", "Phenomenon"]


class ObservationType(str, Enum):
    """Observation type URI derived from the value field's data type."""
    MEASUREMENT = "http://www.opengis.net/def/observationType/OGC-OM/2.0/OM_Measurement"
    GEOMETRY = "http://www.opengis.net/def/observationType/OGC-OM/2.0/OM_GeometryObservation"
    TEXT = "http://www.opengis.net/def/observationType/OGC-OM/2.0/OM_TextObservation"


class Phenomenon(BaseModel):
    """
    Observed property of a dataset.

    Equality and hashing use (id, field_index, label, uom). The value and
    discriminator fields are carried for the sink but do not take part in
    identity.

    Attributes:
        id: Phenomenon identifier (an observed value for soft-typed phenomena)
        label: Human-readable label
        field_index: Index of the column carrying the values
        uom: Unit of measure (empty when unknown)
        observation_type: Observation type of the values
        soft_typed: Whether the phenomenon was discovered from data values
        value_field: Column carrying the values
        discriminator_field: Column whose values name soft-typed phenomena
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(..., description="Phenomenon identifier")
    label: str = Field(..., description="Human-readable label")
    field_index: int = Field(..., description="Index of the value column")
    uom: str = Field("", description="Unit of measure")
    observation_type: ObservationType = Field(ObservationType.TEXT, description="Observation type")
    soft_typed: bool = Field(False, description="Discovered from data values")
    value_field: Optional[ResourceField] = Field(None, description="Column carrying the values")
    discriminator_field: Optional[ResourceField] = Field(None, description="Discriminator column")

    def _identity(self):
        return (self.id, self.field_index, self.label, self.uom)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Phenomenon):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return (
            f"Phenomenon(id={self.id!r}, label={self.label!r}, field_index={self.field_index}, "
            f"uom={self.uom!r}, soft_typed={self.soft_typed})"
        )
