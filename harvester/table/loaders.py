# =============================================================================
# Table Loaders
# =============================================================================
# Format-specific readers populating a data table from a resource file:
# - CsvTableLoader: pyarrow CSV reader, header skip, inconsistent rows ignored
# - JsonTableLoader: array of objects / arrays (optionally wrapped)
# - NoopTableLoader: unsupported formats (empty table)
# - ResourceTable: data table bound to a member and its data file
# =============================================================================

import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import pyarrow as pa
import pyarrow.csv as csv

from harvester.constants import DEFAULT_ENCODING
from harvester.models.data_file import DataFile
from harvester.models.resource import ResourceField, ResourceMember
from .data_table import DataTable

__all__ = [
    "CsvTableLoader",
    "JsonTableLoader",
    "NoopTableLoader",
    "ResourceTable",
    "TableLoadError",
    "TableLoader",
    "create_table_loader",
]

logger = logging.getLogger(__name__)

JSON_WRAPPER_KEYS = ("records", "data", "rows")


class TableLoadError(RuntimeError):
    """Raised when a resource file cannot be read or decoded."""


# =============================================================================
# Loader Base
# =============================================================================

class TableLoader(ABC):
    """
    Base class for all table loaders.

    A loader reads one data file and writes its cells into the given table,
    keyed by ``member.create_resource_key(n)`` with ``n`` counting loaded rows
    from 0.

    Args:
        table: Table to populate (its member describes the columns)
        data_file: File to read
        default_encoding: Encoding for files that declare none
    """

    def __init__(self, table: DataTable, data_file: DataFile, default_encoding: str = DEFAULT_ENCODING):
        self.table = table
        self.data_file = data_file
        self.encoding = data_file.encoding or default_encoding
        self.ignored_row_count = 0

    @property
    def member(self) -> ResourceMember:
        return self.table.member

    @abstractmethod
    def load(self) -> int:
        """
        Read the data file into the table.

        Returns:
            Number of loaded rows

        Raises:
            TableLoadError: If the file cannot be read or decoded
        """
        pass

    def _read_text(self) -> str:
        """Read the file, replacing undecodable bytes with U+FFFD."""
        try:
            raw = Path(self.data_file.path).read_bytes()
        except OSError as e:
            raise TableLoadError(f"Could not read '{self.data_file.path}': {e}") from e
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            logger.warning(f"Replacing undecodable {self.encoding} bytes in '{self.data_file.path}': {e}")
            return raw.decode(self.encoding, errors="replace")

    def _add_row(self, line_number: int, values: Dict[ResourceField, str]) -> None:
        key = self.member.create_resource_key(line_number)
        for field, value in values.items():
            self.table.set_cell_value(key, field, value)

    def _report_ignored(self) -> None:
        if self.ignored_row_count > 0:
            logger.debug(
                f"#{self.ignored_row_count} rows of '{self.data_file.path}' ignored as not matching "
                f"the column headers of member '{self.member.id}'"
            )


# =============================================================================
# CSV
# =============================================================================

def _skip_records(text: str, count: int, quote_char: str = '"') -> str:
    """Drop the first ``count`` CSV records; newlines inside quotes do not end a record."""
    if count <= 0:
        return text
    in_quotes = False
    for position, char in enumerate(text):
        if char == quote_char:
            in_quotes = not in_quotes
        elif char == "\n" and not in_quotes:
            count -= 1
            if count == 0:
                return text[position + 1:]
    return ""


class CsvTableLoader(TableLoader):
    """
    Load delimited text with pyarrow.

    Exactly ``header_row_count`` records are skipped. Rows whose value count
    differs from the member's field count are skipped and counted in
    ``ignored_row_count``. Quoted values may contain newlines, in header
    records as well. Cells are kept as strings (empty cells as ``""``).
    Undecodable bytes are replaced, so the affected cells survive with
    U+FFFD in place of the bad bytes.
    """

    def __init__(
        self,
        table: DataTable,
        data_file: DataFile,
        delimiter: str = ",",
        default_encoding: str = DEFAULT_ENCODING,
    ):
        super().__init__(table, data_file, default_encoding)
        self.delimiter = delimiter

    def _on_invalid_row(self, row) -> str:
        self.ignored_row_count += 1
        logger.debug(
            f"Ignoring row #{row.number} of '{self.data_file.path}': "
            f"expected {row.expected_columns} values, got {row.actual_columns}"
        )
        return "skip"

    def load(self) -> int:
        fields = self.member.fields
        if not fields:
            logger.warning(f"Member '{self.member.id}' declares no fields, nothing to load")
            return 0

        data = _skip_records(self._read_text(), self.member.header_row_count)
        if not data.strip():
            logger.debug(f"No data rows in '{self.data_file.path}'")
            return 0

        column_names = [f"column_{i}" for i in range(len(fields))]
        try:
            arrow_table = csv.read_csv(
                pa.BufferReader(data.encode("utf-8")),
                read_options=csv.ReadOptions(column_names=column_names, use_threads=False),
                parse_options=csv.ParseOptions(
                    delimiter=self.delimiter,
                    newlines_in_values=True,
                    invalid_row_handler=self._on_invalid_row,
                ),
                convert_options=csv.ConvertOptions(
                    column_types={name: pa.string() for name in column_names},
                    null_values=[],
                    strings_can_be_null=False,
                    quoted_strings_can_be_null=False,
                ),
            )
        except pa.ArrowInvalid as e:
            raise TableLoadError(f"Could not parse CSV data of '{self.data_file.path}': {e}") from e

        columns = [arrow_table.column(name).to_pylist() for name in column_names]
        for line_number, values in enumerate(zip(*columns)):
            self._add_row(line_number, dict(zip(fields, values)))
        self._report_ignored()
        return arrow_table.num_rows


# =============================================================================
# JSON
# =============================================================================

def _to_cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


class JsonTableLoader(TableLoader):
    """
    Load JSON records.

    Accepts an array of objects (properties matched by column header, then
    field id, case-insensitively), an array of arrays (positional, header
    rows skipped, rows of a different width ignored and counted), or an
    object wrapping such an array under ``records``, ``data`` or ``rows``.
    """

    def _read_records(self) -> List[Any]:
        text = self._read_text()
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise TableLoadError(f"Could not parse JSON data of '{self.data_file.path}': {e}") from e

        if isinstance(document, dict):
            for key in JSON_WRAPPER_KEYS:
                if isinstance(document.get(key), list):
                    return document[key]
            raise TableLoadError(
                f"JSON object in '{self.data_file.path}' holds no record array under {list(JSON_WRAPPER_KEYS)}"
            )
        if isinstance(document, list):
            return document
        raise TableLoadError(f"Unsupported JSON document in '{self.data_file.path}'")

    def _from_object(self, record: Dict[str, Any]) -> Dict[ResourceField, str]:
        lowered = {str(name).lower(): value for name, value in record.items()}
        values: Dict[ResourceField, str] = {}
        for field in self.member.fields:
            for name in (field.column_header.lower(), field.lower_cased_field_id):
                if name in lowered:
                    cell = _to_cell(lowered[name])
                    if cell is not None:
                        values[field] = cell
                    break
        return values

    def load(self) -> int:
        records = self._read_records()
        fields = self.member.fields
        if records and all(isinstance(record, list) for record in records):
            records = records[self.member.header_row_count:]

        line_number = 0
        for record in records:
            if isinstance(record, dict):
                values = self._from_object(record)
            elif isinstance(record, list) and len(record) == len(fields):
                values = {
                    field: cell
                    for field, cell in ((f, _to_cell(v)) for f, v in zip(fields, record))
                    if cell is not None
                }
            else:
                self.ignored_row_count += 1
                continue
            if values:
                self._add_row(line_number, values)
                line_number += 1
        self._report_ignored()
        return line_number


# =============================================================================
# No-op
# =============================================================================

class NoopTableLoader(TableLoader):
    """Loader for unsupported formats; leaves the table empty."""

    def load(self) -> int:
        logger.warning(
            f"Unsupported format '{self.data_file.format}' of '{self.data_file.path}', "
            f"member '{self.member.id}' stays empty"
        )
        return 0


# =============================================================================
# Factory / Resource Table
# =============================================================================

def _format_name(declared: str) -> str:
    declared = (declared or "").strip().lower()
    if "/" in declared:
        declared = declared.rsplit("/", 1)[1]
    return declared.split(";", 1)[0].strip()


def create_table_loader(
    table: DataTable,
    data_file: DataFile,
    delimiter: str = ",",
    default_encoding: str = DEFAULT_ENCODING,
) -> TableLoader:
    """
    Select a loader for the declared file format.

    Formats are compared case-insensitively; MIME-like spellings
    (``text/csv``, ``application/json``) are accepted. Unknown formats get
    a NoopTableLoader. Files without a declared encoding are read as
    ``default_encoding``.
    """
    loaders = {
        "csv": lambda: CsvTableLoader(table, data_file, delimiter=delimiter, default_encoding=default_encoding),
        "json": lambda: JsonTableLoader(table, data_file, default_encoding),
    }
    factory = loaders.get(_format_name(data_file.format))
    return factory() if factory is not None else NoopTableLoader(table, data_file)


class ResourceTable(DataTable):
    """
    Data table bound to a member and its data file.

    Args:
        member: Member describing the columns
        data_file: File holding the member's data
        delimiter: CSV delimiter
        default_encoding: Encoding for files that declare none
    """

    def __init__(
        self,
        member: ResourceMember,
        data_file: DataFile,
        delimiter: str = ",",
        default_encoding: str = DEFAULT_ENCODING,
    ):
        super().__init__(member)
        self.data_file = data_file
        self.delimiter = delimiter
        self.default_encoding = default_encoding
        self.ignored_row_count = 0

    def read_into_memory(self) -> "ResourceTable":
        """
        (Re-)load the data file.

        Load failures are logged and leave the table empty.
        """
        start = time.perf_counter()
        logger.debug(f"Loading data file '{self.data_file.path}' of member '{self.member.id}'")
        self.clear()
        loader = create_table_loader(
            self, self.data_file, delimiter=self.delimiter, default_encoding=self.default_encoding
        )
        try:
            loader.load()
        except TableLoadError as e:
            logger.info(f"Could not load table data for resource '{self.member.id}': {e}")
            self.clear()
        self.ignored_row_count = loader.ignored_row_count
        logger.debug(
            f"Resource data '{self.member.id}' loaded into memory (#{self.row_count} rows and "
            f"#{self.column_count} columns), took {time.perf_counter() - start:.3f}s"
        )
        return self
