# =============================================================================
# Data Models Library
# =============================================================================
# Schema descriptor, resource, data file, phenomenon and settings models.
# =============================================================================

"""
Data models for the harvester core.

This library provides:
- SchemaDescriptor / DescriptorVersion: Parsed dataset schema
- ResourceMember / ResourceField: Table and column definitions
- DataFile: Locally materialized resource file
- Phenomenon: Fixed or soft-typed observed property
- Spatial helpers: CRS validation, feature types
- HarvesterSettings: Environment configuration
"""

from .spatial import (
    CRS,
    FeatureType,
    srid_of,
    validate_crs,
)

from .resource import (
    ResourceField,
    ResourceMember,
)

from .data_file import DataFile

from .descriptor import (
    DescriptorVersion,
    SchemaDescriptor,
)

from .phenomenon import (
    ObservationType,
    Phenomenon,
)

from .config import HarvesterSettings

__all__ = [
    # Spatial
    "CRS",
    "FeatureType",
    "srid_of",
    "validate_crs",
    # Resources
    "ResourceField",
    "ResourceMember",
    "DataFile",
    # Descriptor
    "DescriptorVersion",
    "SchemaDescriptor",
    # Phenomena
    "ObservationType",
    "Phenomenon",
    # Settings
    "HarvesterSettings",
]
