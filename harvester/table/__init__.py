# =============================================================================
# Relational Table Library
# =============================================================================
# In-memory data tables, composition operators and table loaders.
# =============================================================================

"""
Relational table for harvested resources.

This library provides:
- DataTable: Sparse relation with extend_with / inner_join
- ResourceKey: Row identity
- ResourceTable: Data table loaded from a member's data file
- Loaders: CSV (pyarrow), JSON, no-op
"""

from .resource_key import ResourceKey
from .data_table import DataTable
from .loaders import (
    CsvTableLoader,
    JsonTableLoader,
    NoopTableLoader,
    ResourceTable,
    TableLoadError,
    TableLoader,
    create_table_loader,
)

__all__ = [
    "ResourceKey",
    "DataTable",
    "CsvTableLoader",
    "JsonTableLoader",
    "NoopTableLoader",
    "ResourceTable",
    "TableLoadError",
    "TableLoader",
    "create_table_loader",
]
