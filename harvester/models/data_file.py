# =============================================================================
# Data File Model
# =============================================================================
# A resource file handed over by the harvesting component: local path,
# declared format, text encoding and last-modified marker.
# =============================================================================

import codecs
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["DataFile"]


class DataFile(BaseModel):
    """
    Locally materialized resource file.

    Attributes:
        resource_id: Id of the schema member this file belongs to
        path: Local file path
        format: Declared format ("csv", "text/csv", "json", ...)
        encoding: Text encoding (validated codec name); None leaves the choice
            to the reader's configured default
        last_modified: Last-modified marker reported by the catalog

    Example:
        >>> f = DataFile(resource_id="r1", path="/tmp/r1.csv", format="CSV")
        >>> f.format
        'csv'
    """

    model_config = ConfigDict(frozen=True)

    resource_id: str = Field(..., min_length=1, description="Resource identifier")
    path: Path = Field(..., description="Local file path")
    format: str = Field("", description="Declared file format (lower-cased)")
    encoding: Optional[str] = Field(None, description="Declared text encoding")
    last_modified: Optional[datetime] = Field(None, description="Last-modified marker")

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: Optional[str]) -> str:
        return (v or "").strip().lower()

    @field_validator("encoding", mode="before")
    @classmethod
    def validate_encoding(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown text encoding: '{v}'") from e

    def is_newer_than(self, other: Optional["DataFile"]) -> bool:
        """
        Check whether this file was modified after ``other``.

        A missing ``other`` or a missing marker on either side counts as newer,
        so callers reload rather than keep stale data.
        """
        if other is None or self.last_modified is None or other.last_modified is None:
            return True
        return self.last_modified > other.last_modified
