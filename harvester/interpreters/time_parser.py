# =============================================================================
# Time Field Parser
# =============================================================================
# Parses time cells into timezone-aware datetimes:
# - plain integers (without a declared date format) are epoch milliseconds
# - declared date formats use Java-style patterns ("yyyy-MM-dd'T'HH:mm")
# - otherwise ISO-8601 with UTC assumed when no offset is given
# =============================================================================

import functools
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict

from harvester.constants import (
    FIELD_OBSERVATION_TIME,
    FIELD_VALID_TIME_END,
    FIELD_VALID_TIME_START,
    PROPERTY_DATE_FORMAT,
)
from harvester.models.resource import ResourceField
from .base import InterpreterKind, ObservationFieldInterpreter

__all__ = [
    "TimeBuilder",
    "TimeFieldParser",
    "TimePeriod",
    "ValidTimeBuilder",
    "java_to_strptime",
]

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_OFFSET_PATTERN = re.compile(r"(?:[Zz]|[+-]\d{2}:\d{2}|:\d{2}(?:\.\d+)?\s?-\d{4})$")


# =============================================================================
# Java-style pattern translation
# =============================================================================

def _translate_run(letter: str, count: int) -> str:
    if letter in ("y", "Y", "u"):
        return "%y" if count == 2 else "%Y"
    if letter == "M":
        return {1: "%m", 2: "%m", 3: "%b"}.get(count, "%B")
    if letter == "E":
        return "%A" if count >= 4 else "%a"
    simple = {
        "d": "%d",
        "D": "%j",
        "H": "%H",
        "h": "%I",
        "m": "%M",
        "s": "%S",
        "S": "%f",
        "a": "%p",
        "Z": "%z",
        "z": "%z",
        "X": "%z",
        "x": "%z",
    }
    if letter not in simple:
        raise ValueError(f"Unsupported date pattern letter '{letter}'")
    return simple[letter]


@functools.lru_cache(maxsize=128)
def java_to_strptime(pattern: str) -> str:
    """
    Translate a Java date pattern into a ``strptime`` format.

    Quoted text is copied literally; ``''`` is a single quote both inside
    and outside quoted text.

    Raises:
        ValueError: If the pattern uses an unsupported letter or an
            unterminated quote

    Examples:
        >>> java_to_strptime("yyyy-MM-dd'T'HH:mm:ssZ")
        '%Y-%m-%dT%H:%M:%S%z'
    """
    result = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "'":
            if pattern.startswith("''", i):
                result.append("'")
                i += 2
                continue
            literal = []
            start = i + 1
            while True:
                end = pattern.find("'", start)
                if end == -1:
                    raise ValueError(f"Unterminated quote in date pattern '{pattern}'")
                literal.append(pattern[start:end])
                if not pattern.startswith("''", end):
                    break
                literal.append("'")
                start = end + 2
            result.append("".join(literal).replace("%", "%%"))
            i = end + 1
        elif char.isalpha():
            j = i
            while j < len(pattern) and pattern[j] == char:
                j += 1
            result.append(_translate_run(char, j - i))
            i = j
        else:
            result.append("%%" if char == "%" else char)
            i += 1
    return "".join(result)


# =============================================================================
# Parser
# =============================================================================

class TimeFieldParser:
    """
    Parse time cell values of a field.

    Unparsable values are logged and yield None.

    Example:
        >>> TimeFieldParser().parse_timestamp("0").isoformat()
        '1970-01-01T00:00:00+00:00'
    """

    @staticmethod
    def date_format(field: Optional[ResourceField]) -> Optional[str]:
        """
        Return the normalized date format of a field.

        A trailing offset token is appended when missing; ``DD`` and ``hh``
        are coerced to ``dd`` and ``HH``.
        """
        if field is None or not field.has_property(PROPERTY_DATE_FORMAT):
            return None
        pattern = str(field.get_property(PROPERTY_DATE_FORMAT))
        if not pattern.endswith(("Z", "z", "X", "x")):
            pattern += "Z"
        return pattern.replace("DD", "dd").replace("hh", "HH")

    @staticmethod
    def has_offset_info(value: str) -> bool:
        return "+" in value or bool(_OFFSET_PATTERN.search(value))

    def parse_timestamp(self, value: Optional[str], field: Optional[ResourceField] = None) -> Optional[datetime]:
        """
        Parse a time cell.

        Args:
            value: Cell value
            field: Column of the cell (provides the date format)

        Returns:
            Timezone-aware datetime, or None when the value is empty or
            cannot be parsed
        """
        if value is None or not value.strip():
            return None
        value = value.strip()
        pattern = self.date_format(field)
        if pattern is None and _INTEGER_PATTERN.match(value):
            try:
                return EPOCH + timedelta(milliseconds=int(value))
            except OverflowError:
                logger.warning(f"Epoch milliseconds out of range, dropped: '{value}'")
                return None
        if pattern is not None:
            return self._parse_with_pattern(value, pattern)
        return self._parse_iso(value)

    def _parse_with_pattern(self, value: str, pattern: str) -> Optional[datetime]:
        if not self.has_offset_info(value):
            value += "Z"
        try:
            parsed = datetime.strptime(value, java_to_strptime(pattern))
        except ValueError as e:
            logger.warning(f"Cannot parse date string '{value}' with format '{pattern}': {e}")
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)

    def _parse_iso(self, value: str) -> Optional[datetime]:
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError) as e:
            logger.warning(f"Cannot parse date string '{value}' as ISO-8601: {e}")
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


# =============================================================================
# Time Builders
# =============================================================================

class TimePeriod(BaseModel):
    """Time period; None marks an indeterminate (unknown) bound."""

    model_config = ConfigDict(frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None


class TimeBuilder(ObservationFieldInterpreter):
    """Phenomenon time of an observation row (``timestamp`` aliases)."""

    kind = InterpreterKind.OBSERVATION_TIME

    def __init__(self, parser: Optional[TimeFieldParser] = None):
        self.parser = parser if parser is not None else TimeFieldParser()
        self.time: Optional[datetime] = None

    def reset(self) -> None:
        self.time = None

    def visit_observation_field(self, field: ResourceField, value: str) -> None:
        if field.is_field(FIELD_OBSERVATION_TIME):
            self.time = self.parser.parse_timestamp(value, field)

    def has_result(self) -> bool:
        return self.time is not None

    def result(self) -> Optional[datetime]:
        return self.time


class ValidTimeBuilder(ObservationFieldInterpreter):
    """Valid time period of an observation row."""

    kind = InterpreterKind.VALID_TIME

    def __init__(self, parser: Optional[TimeFieldParser] = None):
        self.parser = parser if parser is not None else TimeFieldParser()
        self.start: Optional[datetime] = None
        self.end: Optional[datetime] = None

    def reset(self) -> None:
        self.start = None
        self.end = None

    def visit_observation_field(self, field: ResourceField, value: str) -> None:
        if field.is_field(FIELD_VALID_TIME_START):
            self.start = self.parser.parse_timestamp(value, field)
        elif field.is_field(FIELD_VALID_TIME_END):
            self.end = self.parser.parse_timestamp(value, field)

    def has_result(self) -> bool:
        return self.start is not None or self.end is not None

    def result(self) -> Optional[TimePeriod]:
        if not self.has_result():
            return None
        return TimePeriod(start=self.start, end=self.end)
