# =============================================================================
# Base Classes for Row Interpreters
# =============================================================================
# Row-scoped interpreters turning the cells of one table row into typed
# values. The set of interpreters is closed (see InterpreterKind).
# =============================================================================

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping, Optional

from harvester.models.resource import ResourceField

__all__ = ["InterpreterKind", "ObservationFieldInterpreter", "RowInterpreter"]

logger = logging.getLogger(__name__)


class InterpreterKind(str, Enum):
    """Closed set of row interpreters."""
    GEOMETRY = "geometry"
    OBSERVATION_TIME = "observation_time"
    VALID_TIME = "valid_time"
    TRACK_POINT = "track_point"


class RowInterpreter(ABC):
    """
    Base class for all row interpreters.

    ``visit_row`` resets the interpreter and feeds it every non-empty cell of
    a row after type normalization. Cells that fail normalization are
    dropped with a warning; the rest of the row is still interpreted.
    """

    kind: InterpreterKind

    def reset(self) -> None:
        """Clear per-row state."""
        pass

    @abstractmethod
    def visit(self, field: ResourceField, value: str) -> None:
        """
        Consume one normalized cell.

        Args:
            field: Column of the cell
            value: Normalized cell value
        """
        pass

    @abstractmethod
    def has_result(self) -> bool:
        pass

    @abstractmethod
    def result(self) -> Optional[Any]:
        pass

    def visit_row(self, row: Mapping[ResourceField, str]) -> "RowInterpreter":
        self.reset()
        for field, value in row.items():
            if value is None or value == "":
                continue
            try:
                normalized = field.normalize_value(value)
            except ValueError as e:
                logger.warning(f"Dropping cell of field '{field.field_id}': {e}")
                continue
            self.visit(field, normalized)
        return self


class ObservationFieldInterpreter(RowInterpreter):
    """Interpreter restricted to fields of observation resources."""

    def visit(self, field: ResourceField, value: str) -> None:
        if field.is_observation_field():
            self.visit_observation_field(field, value)

    @abstractmethod
    def visit_observation_field(self, field: ResourceField, value: str) -> None:
        pass
