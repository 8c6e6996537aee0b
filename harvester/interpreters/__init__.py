# =============================================================================
# Field Value Interpreters Library
# =============================================================================
# Geometry, time, phenomenon and track interpretation of table rows.
# =============================================================================

"""
Field value interpreters.

This library provides:
- RowInterpreter / InterpreterKind: Closed set of row-scoped interpreters
- GeometryBuilder: Axis-order aware geometry construction
- TimeFieldParser / TimeBuilder / ValidTimeBuilder: Time parsing
- PhenomenonParser: Fixed and soft-typed phenomenon discovery
- TrackPointCollector / TrackPointBuilder: Mobile platform track clustering
- InterpreterRegistry: Interpreter lookup by kind
"""

from .base import InterpreterKind, ObservationFieldInterpreter, RowInterpreter
from .geometry import GeometryBuilder, is_north_first
from .time_parser import TimeBuilder, TimeFieldParser, TimePeriod, ValidTimeBuilder, java_to_strptime
from .phenomena import PhenomenonParser, observation_type_of
from .tracks import TrackFeature, TrackPoint, TrackPointBuilder, TrackPointCollector
from .registry import InterpreterRegistry

__all__ = [
    "InterpreterKind",
    "ObservationFieldInterpreter",
    "RowInterpreter",
    "GeometryBuilder",
    "is_north_first",
    "TimeBuilder",
    "TimeFieldParser",
    "TimePeriod",
    "ValidTimeBuilder",
    "java_to_strptime",
    "PhenomenonParser",
    "observation_type_of",
    "TrackFeature",
    "TrackPoint",
    "TrackPointBuilder",
    "TrackPointCollector",
    "InterpreterRegistry",
]
