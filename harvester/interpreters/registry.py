# =============================================================================
# Interpreter Registry
# =============================================================================
# Kind-based lookup of row interpreters.
# =============================================================================

from typing import Optional

from harvester.constants import DEFAULT_CRS
from .base import InterpreterKind, RowInterpreter
from .geometry import GeometryBuilder
from .time_parser import TimeBuilder, TimeFieldParser, ValidTimeBuilder
from .tracks import TrackPointBuilder, TrackPointCollector

__all__ = ["InterpreterRegistry"]


class InterpreterRegistry:
    """
    Registry of row interpreters by kind.

    Interpreters are instantiated fresh on every call (no shared state).
    """

    @staticmethod
    def create(
        kind: InterpreterKind,
        default_crs: str = DEFAULT_CRS,
        parser: Optional[TimeFieldParser] = None,
        collector: Optional[TrackPointCollector] = None,
    ) -> RowInterpreter:
        """
        Create an interpreter of the given kind.

        Args:
            kind: Interpreter kind
            default_crs: CRS for geometry building
            parser: Time parser shared by time interpreters
            collector: Track collector (required for TRACK_POINT)

        Returns:
            RowInterpreter instance

        Raises:
            ValueError: If a track point builder is requested without a collector
        """
        kind = InterpreterKind(kind)
        if kind is InterpreterKind.TRACK_POINT and collector is None:
            raise ValueError("A track point builder needs a TrackPointCollector")

        factories = {
            InterpreterKind.GEOMETRY: lambda: GeometryBuilder(default_crs),
            InterpreterKind.OBSERVATION_TIME: lambda: TimeBuilder(parser),
            InterpreterKind.VALID_TIME: lambda: ValidTimeBuilder(parser),
            InterpreterKind.TRACK_POINT: lambda: TrackPointBuilder(collector, default_crs),
        }
        return factories[kind]()
