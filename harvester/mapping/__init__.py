# =============================================================================
# Alias Mapping Library
# =============================================================================
# Resolves raw JSON spellings to canonical identifiers.
# =============================================================================

"""
Alias mapping for schema descriptors.

This library provides:
- AliasMapping: Immutable alias lookup with dataset override and fallback
- AliasMappingDocument: Validated mapping document (incl. strategy section)
- MappingGroup: Named alias groups
"""

from .alias_mapping import (
    AliasMapping,
    AliasMappingDocument,
    MappingGroup,
    MobileStrategy,
    StrategyConfig,
    TrackDiscriminator,
)

__all__ = [
    "AliasMapping",
    "AliasMappingDocument",
    "MappingGroup",
    "MobileStrategy",
    "StrategyConfig",
    "TrackDiscriminator",
]
