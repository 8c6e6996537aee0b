# =============================================================================
# Observation Records
# =============================================================================
# Turns the rows of a composed table into typed observation records for a
# sink: one record per row and phenomenon with a value.
# =============================================================================

import logging
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry.base import BaseGeometry

from harvester.collection import ComposedTable
from harvester.constants import DEFAULT_CRS
from harvester.interpreters.base import InterpreterKind
from harvester.interpreters.registry import InterpreterRegistry
from harvester.interpreters.time_parser import TimeFieldParser, TimePeriod
from harvester.models.phenomenon import ObservationType, Phenomenon
from harvester.models.resource import ResourceField

__all__ = ["ObservationRecord", "build_observations"]

logger = logging.getLogger(__name__)

ObservationValue = Union[float, str, BaseGeometry]


class ObservationRecord(BaseModel):
    """
    Typed observation of one row and phenomenon.

    Attributes:
        identifier: ``<row-key>_<phenomenon-id>``
        phenomenon: Observed property
        phenomenon_time: Time of the observation
        valid_time: Optional validity period
        value: Float (measurement), geometry, or text value
        uom: Unit of measure of the value
        sampling_geometry: Location of the observation, when buildable
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str = Field(..., description="Observation identifier")
    phenomenon: Phenomenon = Field(..., description="Observed property")
    phenomenon_time: datetime = Field(..., description="Phenomenon time")
    valid_time: Optional[TimePeriod] = Field(None, description="Validity period")
    value: ObservationValue = Field(..., description="Observation value")
    uom: str = Field("", description="Unit of measure")
    sampling_geometry: Optional[BaseGeometry] = Field(None, description="Sampling geometry")


def _typed_value(
    phenomenon: Phenomenon,
    raw: str,
    field: ResourceField,
    default_crs: str,
) -> Optional[ObservationValue]:
    if phenomenon.observation_type is ObservationType.MEASUREMENT:
        try:
            return float(field.normalize_value(raw))
        except ValueError as e:
            logger.warning(f"Dropping value of phenomenon '{phenomenon.id}': {e}")
            return None
    if phenomenon.observation_type is ObservationType.GEOMETRY:
        builder = InterpreterRegistry.create(InterpreterKind.GEOMETRY, default_crs=default_crs)
        if raw.lstrip().startswith("{"):
            builder.with_geojson(raw)
        else:
            builder.with_wkt(raw)
        return builder.build()
    return raw


def build_observations(composed: ComposedTable, default_crs: str = DEFAULT_CRS) -> List[ObservationRecord]:
    """
    Build observation records from a composed table.

    Rows without a phenomenon time are skipped. Soft-typed phenomena only
    apply to rows whose discriminator value names them. A row without a
    value but with a buildable geometry yields a geometry observation for
    geometry-typed phenomena.

    Args:
        composed: Composed table with its phenomena
        default_crs: CRS assumed for coordinates without a declared CRS

    Returns:
        Observation records in row order
    """
    parser = TimeFieldParser()
    time_builder = InterpreterRegistry.create(InterpreterKind.OBSERVATION_TIME, parser=parser)
    valid_time_builder = InterpreterRegistry.create(InterpreterKind.VALID_TIME, parser=parser)
    geometry_builder = InterpreterRegistry.create(InterpreterKind.GEOMETRY, default_crs=default_crs)

    records: List[ObservationRecord] = []
    for key, row in composed.table.rows.items():
        phenomenon_time = time_builder.visit_row(row).result()
        if phenomenon_time is None:
            logger.debug(f"Skipping row '{key.key_id}' without phenomenon time")
            continue
        valid_time = valid_time_builder.visit_row(row).result()
        geometry = geometry_builder.visit_row(row).result()

        for phenomenon in composed.phenomena:
            value_field = phenomenon.value_field
            if value_field is None:
                continue
            if phenomenon.soft_typed and row.get(phenomenon.discriminator_field) != phenomenon.id:
                continue
            raw = row.get(value_field)
            if raw is None or raw == "":
                if phenomenon.observation_type is not ObservationType.GEOMETRY or geometry is None:
                    continue
                value: Optional[ObservationValue] = geometry
            else:
                value = _typed_value(phenomenon, raw, value_field, default_crs)
            if value is None:
                continue
            records.append(
                ObservationRecord(
                    identifier=f"{key.key_id}_{phenomenon.id}",
                    phenomenon=phenomenon,
                    phenomenon_time=phenomenon_time,
                    valid_time=valid_time,
                    value=value,
                    uom=phenomenon.uom,
                    sampling_geometry=geometry,
                )
            )
    logger.debug(f"Built #{len(records)} observations from {composed.table!r}")
    return records
