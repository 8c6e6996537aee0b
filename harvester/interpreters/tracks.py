# =============================================================================
# Track Point Clustering
# =============================================================================
# Mobile platform support: rows become track points, grouped into tracks by
# track id. Track ids come from a track_id column, from configured
# discriminator columns, or default to the point's timestamp.
# =============================================================================

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from shapely.geometry.base import BaseGeometry

from harvester.constants import DEFAULT_CRS, FIELD_OBSERVATION_TIME, FIELD_TRACK_ID, FIELD_TRACK_POINT
from harvester.mapping import AliasMapping
from harvester.models.resource import ResourceField
from harvester.models.spatial import FeatureType
from .base import InterpreterKind, RowInterpreter
from .geometry import GeometryBuilder
from .time_parser import EPOCH, TimeFieldParser

__all__ = ["TrackFeature", "TrackPoint", "TrackPointBuilder", "TrackPointCollector"]

logger = logging.getLogger(__name__)


class TrackPoint:
    """
    Cells of one row of a mobile platform table plus its geometry.

    Values are looked up by canonical field name (aliases apply).
    """

    def __init__(self, parser: Optional[TimeFieldParser] = None):
        self._parser = parser if parser is not None else TimeFieldParser()
        self._values: Dict[ResourceField, str] = {}
        self.geometry: Optional[BaseGeometry] = None

    def with_property(self, field: ResourceField, value: str) -> "TrackPoint":
        self._values[field] = value
        return self

    def with_geometry(self, geometry: Optional[BaseGeometry]) -> "TrackPoint":
        self.geometry = geometry
        return self

    def get_field(self, name: str) -> Optional[ResourceField]:
        for field in self._values:
            if field.is_field(name):
                return field
        return None

    def get_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        field = self.get_field(name)
        return default if field is None else self._values[field]

    @property
    def feature_name(self) -> Optional[str]:
        return self.get_value(FIELD_TRACK_POINT)

    @property
    def timestamp(self) -> datetime:
        """Parsed ``timestamp`` value; the epoch when absent or unparsable."""
        field = self.get_field(FIELD_OBSERVATION_TIME)
        if field is None:
            return EPOCH
        parsed = self._parser.parse_timestamp(self._values[field], field)
        return parsed if parsed is not None else EPOCH

    @property
    def timestamp_iso(self) -> str:
        return self.timestamp.isoformat()

    def has_track_id(self) -> bool:
        return self.get_field(FIELD_TRACK_ID) is not None

    @property
    def track_id(self) -> str:
        return self.get_value(FIELD_TRACK_ID, self.timestamp_iso)

    def is_valid(self) -> bool:
        return self.geometry is not None

    def is_later_than(self, other: "TrackPoint") -> bool:
        return self.timestamp > other.timestamp

    def __repr__(self) -> str:
        return f"TrackPoint(values={len(self._values)}, geometry={self.geometry})"


@dataclass(frozen=True)
class TrackFeature:
    """Representative feature of a track."""

    identifier: str
    name: Optional[str]
    geometry: Optional[BaseGeometry]
    feature_type: FeatureType


class TrackPointCollector:
    """
    Group track points into tracks.

    Track ids are resolved in this order: the point's ``track_id`` value,
    the configured ``strategy.mobile.track_discriminator`` columns, the
    point's timestamp. Trackless points sharing a timestamp (and no
    discriminator configuration) fall into the same track.

    Args:
        mapping: Alias mapping carrying the discriminator configuration
        parser: Time parser for point timestamps
    """

    def __init__(self, mapping: Optional[AliasMapping] = None, parser: Optional[TimeFieldParser] = None):
        self.mapping = mapping if mapping is not None else AliasMapping()
        self.parser = parser if parser is not None else TimeFieldParser()
        self._points_by_track: Dict[str, List[TrackPoint]] = {}
        self._features_by_track: Dict[str, TrackFeature] = {}

    def new_track_point(self) -> TrackPoint:
        return TrackPoint(self.parser)

    def generate_track_id(self, point: TrackPoint) -> str:
        """Synthesize a track id from the configured discriminator columns."""
        default = point.timestamp_iso
        discriminators = self.mapping.track_discriminators
        if not discriminators:
            return default
        track_id = ""
        for discriminator in discriminators:
            if track_id:
                track_id += discriminator.separator
            value = point.get_value(discriminator.column, default)
            if discriminator.pattern is not None:
                match = re.fullmatch(discriminator.pattern, value)
                # an optional group that took no part in the match keeps the raw value
                if match and match.group(1) is not None:
                    value = match.group(1)
            track_id += value
        return track_id or default

    def track_id_of(self, point: TrackPoint) -> str:
        if point.has_track_id():
            return point.track_id
        return self.generate_track_id(point)

    def create_feature(self, point: TrackPoint) -> TrackFeature:
        track_id = self.track_id_of(point)
        name = point.feature_name
        identifier = f"{track_id} - {name}" if name is not None else track_id
        geometry = point.geometry
        feature_type = FeatureType.UNKNOWN
        if geometry is not None and geometry.geom_type == "Point":
            feature_type = FeatureType.SAMPLING_POINT
        return TrackFeature(identifier=identifier, name=name, geometry=geometry, feature_type=feature_type)

    def add_to_track(self, point: TrackPoint) -> str:
        """
        Add a point to its track.

        The first point of a track seeds the track's feature.

        Returns:
            The point's track id
        """
        track_id = self.track_id_of(point)
        self._points_by_track.setdefault(track_id, []).append(point)
        if track_id not in self._features_by_track:
            self._features_by_track[track_id] = self.create_feature(point)
        return track_id

    @property
    def points_by_track(self) -> Dict[str, List[TrackPoint]]:
        return {track_id: list(points) for track_id, points in self._points_by_track.items()}

    @property
    def features(self) -> Dict[str, TrackFeature]:
        return dict(self._features_by_track)

    def start_of(self, track_id: str) -> Optional[TrackPoint]:
        """Earliest point of a track (the first one among equally early points)."""
        start: Optional[TrackPoint] = None
        for candidate in self._points_by_track.get(track_id, []):
            if start is None or start.is_later_than(candidate):
                start = candidate
        return start

    def feature_for(self, track_id: str) -> Optional[TrackFeature]:
        """Feature built from the earliest point of a track."""
        start = self.start_of(track_id)
        return self.create_feature(start) if start is not None else None


class TrackPointBuilder(RowInterpreter):
    """
    Turn a row into a track point and add it to the collector.

    A point is only kept when a geometry can be built from the row.
    """

    kind = InterpreterKind.TRACK_POINT

    def __init__(self, collector: TrackPointCollector, default_crs: str = DEFAULT_CRS):
        self.collector = collector
        self.geometry_builder = GeometryBuilder(default_crs)
        self.point = collector.new_track_point()

    def reset(self) -> None:
        self.point = self.collector.new_track_point()
        self.geometry_builder.reset()

    def visit(self, field: ResourceField, value: str) -> None:
        self.point.with_property(field, value)
        self.geometry_builder.visit(field, value)

    def has_result(self) -> bool:
        return self.geometry_builder.can_build()

    def result(self) -> Optional[str]:
        """Add the point to its track and return the track id (None if invalid)."""
        if not self.has_result():
            logger.debug("Skipping track point without geometry")
            return None
        self.point.with_geometry(self.geometry_builder.build())
        return self.collector.add_to_track(self.point)
