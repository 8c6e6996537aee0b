# =============================================================================
# Alias Mapping Resolver
# =============================================================================
# Resolves raw JSON property/type/resource-type spellings to canonical names.
# A mapping is built from one document (bundled default or per-dataset
# override) and an optional fallback mapping queried for absent keys.
# =============================================================================

import json
import logging
import re
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from harvester.constants import (
    DATASET_MAPPING_FILE_PATTERN,
    DEFAULT_MAPPING_FILE,
    DEFAULT_TRACK_SEPARATOR,
)

__all__ = [
    "AliasMapping",
    "AliasMappingDocument",
    "MappingGroup",
    "MobileStrategy",
    "StrategyConfig",
    "TrackDiscriminator",
]

logger = logging.getLogger(__name__)


class MappingGroup(str, Enum):
    """Named alias groups of a mapping document."""

    FIELD = "field"
    PROPERTY = "property"
    RESOURCE_TYPE = "resource_type"
    DATATYPE = "datatype"
    ROLE = "role"
    SCHEMA_DESCRIPTOR = "schema_descriptor"


# =============================================================================
# Mapping Document Models
# =============================================================================


class TrackDiscriminator(BaseModel):
    """
    One column contributing to a synthesized track id.

    Attributes:
        column: Field id (or alias) whose value is used
        separator: Text placed before this part when the id built so far is not empty
        pattern: Optional regex; its first capture group replaces the raw value
    """

    model_config = ConfigDict(frozen=True)

    column: str = Field(..., description="Discriminating column (field id or alias)")
    separator: str = Field(DEFAULT_TRACK_SEPARATOR, description="Separator placed before this part")
    pattern: Optional[str] = Field(None, description="Regex whose first group is used")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Reject patterns that do not compile or lack a capture group."""
        if v is None:
            return v
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid track discriminator pattern '{v}': {e}")
        if compiled.groups < 1:
            raise ValueError(f"Track discriminator pattern needs a capture group: '{v}'")
        return v


class MobileStrategy(BaseModel):
    """Mobile platform settings of a mapping document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = False
    track_discriminator: Optional[List[TrackDiscriminator]] = None


class StrategyConfig(BaseModel):
    """Strategy section of a mapping document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    mobile: Optional[MobileStrategy] = None


def _lower_case_group(value: Any) -> Dict[str, List[str]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"alias group must be an object, got {type(value).__name__}")
    lowered: Dict[str, List[str]] = {}
    for name, aliases in value.items():
        if isinstance(aliases, str):
            aliases = [aliases]
        if not isinstance(aliases, list):
            raise TypeError(f"aliases of '{name}' must be a list, got {type(aliases).__name__}")
        lowered[str(name).lower()] = [str(alias).lower() for alias in aliases]
    return lowered


class AliasMappingDocument(BaseModel):
    """
    Validated content of an alias mapping JSON document.

    Group names and aliases are lower-cased on load. Unknown top-level keys
    are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    field_ids: Dict[str, List[str]] = Field(default_factory=dict, alias="field")
    properties: Dict[str, List[str]] = Field(default_factory=dict, alias="property")
    resource_types: Dict[str, List[str]] = Field(default_factory=dict, alias="resource_type")
    datatypes: Dict[str, List[str]] = Field(default_factory=dict, alias="datatype")
    roles: Dict[str, List[str]] = Field(default_factory=dict, alias="role")
    schema_descriptor: Dict[str, List[str]] = Field(default_factory=dict)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)

    @field_validator(
        "field_ids",
        "properties",
        "resource_types",
        "datatypes",
        "roles",
        "schema_descriptor",
        mode="before",
    )
    @classmethod
    def lower_case_groups(cls, v: Any) -> Dict[str, List[str]]:
        return _lower_case_group(v)

    def group(self, group: MappingGroup) -> Dict[str, List[str]]:
        return {
            MappingGroup.FIELD: self.field_ids,
            MappingGroup.PROPERTY: self.properties,
            MappingGroup.RESOURCE_TYPE: self.resource_types,
            MappingGroup.DATATYPE: self.datatypes,
            MappingGroup.ROLE: self.roles,
            MappingGroup.SCHEMA_DESCRIPTOR: self.schema_descriptor,
        }[group]


# =============================================================================
# Alias Mapping
# =============================================================================


class AliasMapping:
    """
    Immutable alias lookup over one mapping document plus a fallback.

    Lookups consult this mapping's document first; when a canonical name is
    absent, the fallback (typically the bundled default) is asked. A name
    without any configured aliases resolves to itself.

    Example:
        >>> mapping = AliasMapping.from_dict({"field": {"latitude": ["lat"]}})
        >>> sorted(mapping.get_mappings(MappingGroup.FIELD, "Latitude"))
        ['lat', 'latitude']
        >>> mapping.has_mapping("field", "latitude", "LAT")
        True
    """

    def __init__(
        self,
        document: Optional[AliasMappingDocument] = None,
        fallback: Optional["AliasMapping"] = None,
        source: str = "<inline>",
    ):
        self._document = document if document is not None else AliasMappingDocument()
        self._fallback = fallback
        self._source = source
        self._groups = MappingProxyType(
            {
                group: MappingProxyType(
                    {
                        name: frozenset(aliases) | {name}
                        for name, aliases in self._document.group(group).items()
                    }
                )
                for group in MappingGroup
            }
        )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------
    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        fallback: Optional["AliasMapping"] = None,
        source: str = "<inline>",
    ) -> "AliasMapping":
        """
        Create a mapping from an already parsed JSON document.

        Raises:
            ValueError: If the document does not validate
        """
        return cls(AliasMappingDocument.model_validate(dict(data)), fallback, source)

    @classmethod
    def from_file(cls, path: Union[str, Path], fallback: Optional["AliasMapping"] = None) -> "AliasMapping":
        """
        Load a mapping document from disk.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the content is not a valid mapping document
        """
        path = Path(path)
        logger.debug(f"Loading alias mapping from '{path}'")
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data, fallback=fallback, source=str(path))

    @classmethod
    def load_default(cls, config_dir: Optional[Path] = None) -> "AliasMapping":
        """
        Load the default mapping.

        A ``config-ckan-mapping.json`` inside ``config_dir`` replaces the bundled
        document when present and valid. The bundled document is read on every
        call; callers own the returned instance.
        """
        if config_dir is not None:
            candidate = Path(config_dir) / DEFAULT_MAPPING_FILE
            if candidate.is_file():
                try:
                    return cls.from_file(candidate)
                except (OSError, ValueError) as e:
                    logger.warning(f"Invalid default mapping '{candidate}', using bundled default: {e}")
        text = resources.files("harvester.mapping").joinpath(DEFAULT_MAPPING_FILE).read_text(encoding="utf-8")
        return cls.from_dict(json.loads(text), source=f"bundled:{DEFAULT_MAPPING_FILE}")

    @classmethod
    def for_dataset(
        cls,
        dataset_id: Optional[str],
        config_dir: Optional[Path] = None,
        default: Optional["AliasMapping"] = None,
    ) -> "AliasMapping":
        """
        Resolve the mapping for a dataset.

        Looks for ``config-ckan-mapping-<dataset_id>.json`` in ``config_dir``.
        When found, it is layered over the default mapping (custom values win,
        the default fills gaps). Otherwise the default mapping is returned
        directly.

        Args:
            dataset_id: Dataset identifier (None means no override lookup)
            config_dir: Directory holding override documents
            default: Default mapping to use (loaded when not given)

        Returns:
            AliasMapping for the dataset
        """
        default = default if default is not None else cls.load_default(config_dir)
        if not dataset_id or config_dir is None:
            return default
        candidate = Path(config_dir) / DATASET_MAPPING_FILE_PATTERN.format(dataset_id=dataset_id)
        if not candidate.is_file():
            logger.debug(f"No dataset specific mapping for '{dataset_id}', using default")
            return default
        try:
            return cls.from_file(candidate, fallback=default)
        except (OSError, ValueError) as e:
            logger.warning(f"Invalid mapping '{candidate}' for dataset '{dataset_id}', using default: {e}")
            return default

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    @property
    def source(self) -> str:
        return self._source

    @property
    def fallback(self) -> Optional["AliasMapping"]:
        return self._fallback

    def _lookup(self, group: MappingGroup, name: str) -> Optional[FrozenSet[str]]:
        aliases = self._groups[group].get(name)
        if aliases is not None:
            return aliases
        if self._fallback is not None:
            return self._fallback._lookup(group, name)
        return None

    def get_mappings(self, group: Union[MappingGroup, str], name: Optional[str]) -> FrozenSet[str]:
        """
        Return all known spellings of ``name`` within ``group``.

        The lower-cased name itself is always part of the result; this never
        fails for unknown groups members or an empty configuration.
        """
        group = MappingGroup(group)
        lowered = (name or "").lower()
        aliases = self._lookup(group, lowered)
        if aliases is None:
            return frozenset({lowered})
        return aliases

    def has_mapping(self, group: Union[MappingGroup, str], name: Optional[str], candidate: Optional[str]) -> bool:
        """Check whether ``candidate`` (case-insensitive) is a spelling of ``name``."""
        if candidate is None:
            return False
        return candidate.lower() in self.get_mappings(group, name)

    def canonical_name(self, group: Union[MappingGroup, str], spelling: Optional[str]) -> Optional[str]:
        """
        Reverse-resolve a raw spelling to its canonical name.

        Canonical names of this mapping are preferred over those of the
        fallback. Unknown spellings are returned lower-cased.
        """
        if spelling is None:
            return None
        group = MappingGroup(group)
        lowered = spelling.lower()
        mapping: Optional[AliasMapping] = self
        while mapping is not None:
            group_aliases = mapping._groups[group]
            if lowered in group_aliases:
                return lowered
            for name, aliases in group_aliases.items():
                if lowered in aliases:
                    return name
            mapping = mapping._fallback
        return lowered

    def find_value(self, node: Optional[Mapping[str, Any]], group: Union[MappingGroup, str], name: str) -> Any:
        """
        Look up a JSON object property under any spelling of ``name``.

        The canonical spelling is tried first, then the remaining aliases in
        sorted order; each is tried verbatim and then case-insensitively.

        Returns:
            The property value, or None when no spelling is present
        """
        if not node:
            return None
        canonical = (name or "").lower()
        candidates = [canonical] + sorted(self.get_mappings(group, name) - {canonical})
        lowered_keys = {str(key).lower(): key for key in node}
        for candidate in candidates:
            if candidate in node:
                return node[candidate]
            key = lowered_keys.get(candidate)
            if key is not None:
                return node[key]
        return None

    # -------------------------------------------------------------------------
    # Strategy configuration
    # -------------------------------------------------------------------------
    def _mobile_strategy(self) -> Optional[MobileStrategy]:
        mobile = self._document.strategy.mobile
        if mobile is not None:
            return mobile
        if self._fallback is not None:
            return self._fallback._mobile_strategy()
        return None

    @property
    def track_discriminators(self) -> Optional[List[TrackDiscriminator]]:
        """Configured track discriminators (``strategy.mobile.track_discriminator``)."""
        mapping: Optional[AliasMapping] = self
        while mapping is not None:
            mobile = mapping._document.strategy.mobile
            if mobile is not None and mobile.track_discriminator is not None:
                return list(mobile.track_discriminator)
            mapping = mapping._fallback
        return None

    @property
    def is_mobile(self) -> bool:
        """Whether datasets using this mapping are mobile platform datasets."""
        mobile = self._mobile_strategy()
        return bool(mobile and mobile.enabled) or self.track_discriminators is not None

    def __repr__(self) -> str:
        fallback = f", fallback={self._fallback.source}" if self._fallback is not None else ""
        return f"AliasMapping(source={self._source}{fallback})"
