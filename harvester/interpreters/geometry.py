# =============================================================================
# Geometry Builder
# =============================================================================
# Row-scoped accumulator of coordinates, CRS and location values. Points
# built from latitude/longitude/altitude follow the axis order of the CRS.
# =============================================================================

import functools
import json
import logging
import re
from typing import Optional

import pyproj
from pyproj.exceptions import CRSError
from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry

from harvester.constants import (
    DEFAULT_CRS,
    FIELD_ALTITUDE,
    FIELD_CRS,
    FIELD_LATITUDE,
    FIELD_LOCATION,
    FIELD_LONGITUDE,
    PROPERTY_CRS,
    ROLE_HEIGHT,
    ROLE_LATITUDE,
    ROLE_LOCATION,
    ROLE_LONGITUDE,
    TYPE_GEOMETRY,
    TYPE_JSON_OBJECT,
)
from harvester.models.resource import ResourceField
from harvester.models.spatial import FeatureType, srid_of, validate_crs
from .base import InterpreterKind, RowInterpreter

__all__ = ["GeometryBuilder", "is_north_first"]

logger = logging.getLogger(__name__)

_EWKT_PREFIX = re.compile(r"^\s*SRID=(\d+)\s*;\s*", re.IGNORECASE)

_FEATURE_TYPES = {
    "Point": FeatureType.SAMPLING_POINT,
    "LineString": FeatureType.SAMPLING_CURVE,
    "Polygon": FeatureType.SAMPLING_SURFACE,
}


@functools.lru_cache(maxsize=64)
def is_north_first(crs: str) -> bool:
    """
    Check whether the first axis of a CRS points north (or south).

    Unknown CRS definitions are treated as north-first.

    Examples:
        >>> is_north_first("EPSG:4326")
        True
        >>> is_north_first("EPSG:3857")
        False
    """
    try:
        axes = pyproj.CRS.from_user_input(crs).axis_info
    except CRSError as e:
        logger.debug(f"Unknown CRS '{crs}', assuming north-first axis order: {e}")
        return True
    if len(axes) < 2:
        return True
    return axes[0].direction.lower() in ("north", "south")


class GeometryBuilder(RowInterpreter):
    """
    Build a geometry from the location cells of a row.

    Feeds on latitude, longitude, altitude, CRS and location fields (by
    alias or role) and on fields of the ``geometry`` data type. Location
    values are decoded as GeoJSON for ``JsonObject`` fields and as WKT
    otherwise. Coordinate points are ordered (lat, lon[, alt]) for
    north-first CRSs and (lon, lat[, alt]) for east-first ones.

    Args:
        default_crs: CRS assumed until a CRS cell or property is seen

    Example:
        >>> builder = GeometryBuilder().with_latitude("52.7").with_longitude("7.5")
        >>> builder.build().coords[0]
        (52.7, 7.5)
    """

    kind = InterpreterKind.GEOMETRY

    def __init__(self, default_crs: str = DEFAULT_CRS):
        self.default_crs = validate_crs(default_crs)
        self.reset()

    def reset(self) -> None:
        self.crs = self.default_crs
        self.latitude: Optional[float] = None
        self.longitude: Optional[float] = None
        self.altitude: Optional[float] = None
        self.geometry: Optional[BaseGeometry] = None

    # -------------------------------------------------------------------------
    # Fluent setters
    # -------------------------------------------------------------------------
    def with_crs(self, crs: str) -> "GeometryBuilder":
        """
        Set the CRS (bare EPSG codes are accepted).

        Raises:
            ValueError: If the CRS string is invalid
        """
        self.crs = validate_crs(crs)
        return self

    @staticmethod
    def _coordinate(value: str, axis: str) -> Optional[float]:
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid {axis} value dropped: '{value}'")
            return None

    def with_latitude(self, value: str) -> "GeometryBuilder":
        self.latitude = self._coordinate(value, "latitude")
        return self

    def with_longitude(self, value: str) -> "GeometryBuilder":
        self.longitude = self._coordinate(value, "longitude")
        return self

    def with_altitude(self, value: str) -> "GeometryBuilder":
        self.altitude = self._coordinate(value, "altitude")
        return self

    def with_wkt(self, text: str) -> "GeometryBuilder":
        """Decode WKT (an ``SRID=<code>;`` prefix sets the CRS)."""
        match = _EWKT_PREFIX.match(text)
        if match:
            self.crs = validate_crs(match.group(1))
            text = text[match.end():]
        try:
            self.geometry = wkt.loads(text)
        except ShapelyError as e:
            logger.warning(f"Location value is not valid WKT, dropped: '{text[:100]}': {e}")
        return self

    def with_geojson(self, text: str) -> "GeometryBuilder":
        """Decode a GeoJSON geometry (single quotes are accepted)."""
        try:
            node = json.loads(text.replace("'", '"'))
            if isinstance(node, dict) and node.get("type") == "Feature":
                node = node.get("geometry")
            self.geometry = shape(node)
        except (ValueError, KeyError, TypeError, AttributeError, ShapelyError) as e:
            logger.warning(f"Location value is not a GeoJSON geometry, dropped: '{text[:100]}': {e}")
        return self

    # -------------------------------------------------------------------------
    # Row interpretation
    # -------------------------------------------------------------------------
    def visit(self, field: ResourceField, value: str) -> None:
        is_location = field.is_field(FIELD_LOCATION) or field.has_role(ROLE_LOCATION)
        is_coordinate = (
            field.is_field(FIELD_LATITUDE)
            or field.is_field(FIELD_LONGITUDE)
            or field.is_field(FIELD_ALTITUDE)
            or field.has_role(ROLE_LATITUDE)
            or field.has_role(ROLE_LONGITUDE)
            or field.has_role(ROLE_HEIGHT)
        )
        try:
            if (is_location or is_coordinate) and field.has_property(PROPERTY_CRS):
                self.with_crs(str(field.get_property(PROPERTY_CRS)))
            if field.is_field(FIELD_CRS):
                self.with_crs(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid CRS of field '{field.field_id}' ignored: {e}")

        if field.is_field(FIELD_LATITUDE) or field.has_role(ROLE_LATITUDE):
            self.with_latitude(value)
        elif field.is_field(FIELD_LONGITUDE) or field.has_role(ROLE_LONGITUDE):
            self.with_longitude(value)
        elif field.is_field(FIELD_ALTITUDE) or field.has_role(ROLE_HEIGHT):
            self.with_altitude(value)
        elif is_location:
            if field.is_of_type(TYPE_JSON_OBJECT):
                self.with_geojson(value)
            else:
                self.with_wkt(value)
        elif field.is_of_type(TYPE_GEOMETRY):
            if value.lstrip().startswith("{"):
                self.with_geojson(value)
            else:
                self.with_wkt(value)

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def can_build(self) -> bool:
        return self.geometry is not None or self.has_coordinates()

    def has_result(self) -> bool:
        return self.can_build()

    def build(self) -> Optional[BaseGeometry]:
        """Return the decoded geometry, or a point from the coordinates."""
        if self.geometry is not None:
            return self.geometry
        if not self.has_coordinates():
            return None
        if is_north_first(self.crs):
            x, y = self.latitude, self.longitude
        else:
            x, y = self.longitude, self.latitude
        if self.altitude is None:
            return Point(x, y)
        return Point(x, y, self.altitude)

    def result(self) -> Optional[BaseGeometry]:
        return self.build()

    @property
    def srid(self) -> Optional[int]:
        return srid_of(self.crs)

    @property
    def feature_type(self) -> FeatureType:
        geometry = self.build()
        if geometry is None:
            return FeatureType.UNKNOWN
        return _FEATURE_TYPES.get(geometry.geom_type, FeatureType.UNKNOWN)
