# =============================================================================
# Phenomenon Discovery
# =============================================================================
# Finds the observed properties of a table:
# - fixed phenomena declared on fields (phenomenon / uom on the value field)
# - soft-typed phenomena named by the values of a discriminator column
# =============================================================================

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from harvester.constants import (
    FIELD_VALUE,
    NUMERIC_TYPES,
    PROPERTY_PHENOMENON,
    PROPERTY_PHENOMENON_REF,
    PROPERTY_UOM,
    TYPE_GEOMETRY,
)
from harvester.models.phenomenon import ObservationType, Phenomenon
from harvester.models.resource import ResourceField
from harvester.table.data_table import DataTable

__all__ = ["PhenomenonParser", "observation_type_of"]

logger = logging.getLogger(__name__)


def observation_type_of(field: ResourceField) -> ObservationType:
    """Observation type of the values carried by a field."""
    if field.is_one_of_types(NUMERIC_TYPES):
        return ObservationType.MEASUREMENT
    if field.is_of_type(TYPE_GEOMETRY):
        return ObservationType.GEOMETRY
    return ObservationType.TEXT


class PhenomenonParser:
    """Discover phenomena from resource fields and table contents."""

    @staticmethod
    def is_phenomenon_field(field: ResourceField) -> bool:
        """A field declaring a phenomenon, or the value field declaring a uom."""
        if field.has_property(PROPERTY_PHENOMENON_REF):
            return False
        return field.has_property(PROPERTY_PHENOMENON) or (
            field.has_property(PROPERTY_UOM) and field.is_field(FIELD_VALUE)
        )

    @staticmethod
    def _phenomenon_id(field: ResourceField) -> str:
        if field.is_field(FIELD_VALUE):
            return field.long_name or field.field_id
        return field.field_id

    @staticmethod
    def _phenomenon_label(field: ResourceField) -> str:
        if field.long_name:
            return field.long_name
        phenomenon = field.get_property(PROPERTY_PHENOMENON)
        if phenomenon:
            return str(phenomenon)
        return field.short_name or field.field_id

    def parse_field(self, field: ResourceField) -> Phenomenon:
        return Phenomenon(
            id=self._phenomenon_id(field),
            label=self._phenomenon_label(field),
            field_index=field.index,
            uom=field.uom,
            observation_type=observation_type_of(field),
            value_field=field,
            discriminator_field=field,
        )

    def parse(self, fields: Iterable[ResourceField]) -> List[Phenomenon]:
        """
        Parse the fixed phenomena of a field list.

        Returns:
            Distinct phenomena in field order
        """
        phenomena: Dict[Phenomenon, None] = {}
        for field in fields:
            if self.is_phenomenon_field(field):
                phenomena.setdefault(self.parse_field(field), None)
        return list(phenomena)

    @staticmethod
    def _find_discriminator(reference: str, fields: Sequence[ResourceField]) -> Optional[ResourceField]:
        lowered = reference.lower()
        for field in fields:
            if field.lower_cased_field_id == lowered:
                return field
        for field in fields:
            if field.is_field(reference):
                return field
        return None

    def parse_soft_typed(self, table: DataTable) -> List[Phenomenon]:
        """
        Discover soft-typed phenomena.

        Every field with a ``phenomenon_ref`` names a discriminator column;
        each distinct non-empty value present in that column becomes one
        phenomenon (id and label = the value, unit = the discriminator's uom,
        falling back to the carrier field's uom).
        """
        fields = table.resource_fields
        phenomena: Dict[Phenomenon, None] = {}
        for carrier in fields:
            reference = carrier.get_property(PROPERTY_PHENOMENON_REF)
            if not reference:
                continue
            discriminator = self._find_discriminator(str(reference), fields)
            if discriminator is None:
                logger.warning(
                    f"Field '{carrier.field_id}' references unknown phenomenon column '{reference}'"
                )
                continue
            uom = discriminator.uom or carrier.uom
            observation_type = observation_type_of(carrier)
            for value in table.distinct_values(discriminator):
                if not value:
                    continue
                phenomenon = Phenomenon(
                    id=value,
                    label=value,
                    field_index=carrier.index,
                    uom=uom,
                    observation_type=observation_type,
                    soft_typed=True,
                    value_field=carrier,
                    discriminator_field=discriminator,
                )
                phenomena.setdefault(phenomenon, None)
        return list(phenomena)

    def discover(self, table: DataTable) -> List[Phenomenon]:
        """Fixed phenomena of the table's columns followed by soft-typed ones."""
        return self.parse(table.resource_fields) + self.parse_soft_typed(table)
