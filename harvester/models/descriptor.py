# =============================================================================
# Schema Descriptor Module
# =============================================================================
# Parses a dataset's embedded schema JSON into resource members and fields:
# - DescriptorVersion: "major.minor[...]" version with ordering
# - SchemaDescriptor: members (one per resource id), data file relation
# =============================================================================

import functools
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from harvester.constants import (
    DEFAULT_HEADER_ROWS,
    DESCRIPTOR_DESCRIPTION,
    DESCRIPTOR_FIELDS,
    DESCRIPTOR_MEMBERS,
    DESCRIPTOR_RESOURCE_TYPE,
    DESCRIPTOR_VERSION,
    PROPERTY_HEADER_ROWS,
    PROPERTY_RESOURCE_NAME,
    PROPERTY_RESOURCE_TYPE,
)
from harvester.mapping import AliasMapping, MappingGroup
from .data_file import DataFile
from .resource import ResourceField, ResourceMember

__all__ = ["DescriptorVersion", "SchemaDescriptor"]

logger = logging.getLogger(__name__)

_VERSION_PART_PATTERN = re.compile(r"^[+-]?\d+$")


# =============================================================================
# Descriptor Version
# =============================================================================

@functools.total_ordering
class DescriptorVersion:
    """
    Version of a schema descriptor.

    Only major and minor take part in ordering and equality; further parts
    are kept verbatim. Empty parts count as 0.

    Raises:
        ValueError: If major or minor is not an integer or is negative

    Examples:
        >>> DescriptorVersion("1.2") > DescriptorVersion("1.1.9")
        True
        >>> DescriptorVersion("") == DescriptorVersion("0.0")
        True
    """

    def __init__(self, version: Optional[str] = None):
        parts = (version or "").split(".")
        for i in range(min(2, len(parts))):
            part = parts[i].strip() or "0"
            if not _VERSION_PART_PATTERN.match(part):
                raise ValueError(f"Unparsable version string: '{version}'")
            if int(part) < 0:
                raise ValueError(f"Negative versions not allowed: '{version}'")
            parts[i] = part
        self._parts = tuple(parts)

    @property
    def major(self) -> int:
        return int(self._parts[0])

    @property
    def minor(self) -> int:
        return int(self._parts[1]) if len(self._parts) > 1 else 0

    def is_greater_or_equal(self, other: Union["DescriptorVersion", str]) -> bool:
        if isinstance(other, str):
            other = DescriptorVersion(other)
        return self >= other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DescriptorVersion):
            return NotImplemented
        return (self.major, self.minor) == (other.major, other.minor)

    def __lt__(self, other: "DescriptorVersion") -> bool:
        if not isinstance(other, DescriptorVersion):
            return NotImplemented
        return (self.major, self.minor) < (other.major, other.minor)

    def __hash__(self) -> int:
        return hash((self.major, self.minor))

    def __str__(self) -> str:
        return ".".join(self._parts)

    def __repr__(self) -> str:
        return f"DescriptorVersion('{self}')"


# =============================================================================
# Schema Descriptor
# =============================================================================

def _parse_header_rows(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_HEADER_ROWS
    if isinstance(value, int):
        rows = value
    elif isinstance(value, str) and _VERSION_PART_PATTERN.match(value.strip()):
        rows = int(value.strip())
    else:
        return DEFAULT_HEADER_ROWS
    return rows if rows >= 0 else DEFAULT_HEADER_ROWS


def _as_resource_ids(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item)]
    text = str(value)
    return [text] if text else []


class SchemaDescriptor:
    """
    Parsed schema descriptor of one dataset.

    Each member node yields one ResourceMember per resource id listed under
    its ``resource_name`` property. Field order in the document is column
    order. The version is validated on construction.

    Args:
        node: Parsed schema descriptor JSON object
        dataset_id: Dataset identifier (selects a per-dataset alias mapping)
        dataset_name: Dataset name assigned to every member
        mapping: Alias mapping to use (resolved for ``dataset_id`` when None)
        config_dir: Directory searched for alias mapping documents

    Raises:
        ValueError: If the version string is malformed or negative
    """

    def __init__(
        self,
        node: Optional[Mapping[str, Any]] = None,
        dataset_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
        mapping: Optional[AliasMapping] = None,
        config_dir: Optional[Path] = None,
    ):
        self._node: Mapping[str, Any] = node or {}
        self._dataset_id = dataset_id
        self._dataset_name = dataset_name if dataset_name is not None else dataset_id
        self._mapping = mapping if mapping is not None else AliasMapping.for_dataset(dataset_id, config_dir)
        self._version = DescriptorVersion(self._string_value(self._node, DESCRIPTOR_VERSION))
        self._members = self._parse_members()

    @classmethod
    def from_json(cls, text: str, dataset_id: Optional[str] = None, **kwargs: Any) -> "SchemaDescriptor":
        """
        Parse a schema descriptor from JSON text.

        Raises:
            ValueError: If the text is not a JSON object or the version is invalid
        """
        node = json.loads(text)
        if not isinstance(node, dict):
            raise ValueError(f"Schema descriptor must be a JSON object, got {type(node).__name__}")
        return cls(node, dataset_id=dataset_id, **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], dataset_id: Optional[str] = None, **kwargs: Any) -> "SchemaDescriptor":
        return cls.from_json(Path(path).read_text(encoding="utf-8"), dataset_id=dataset_id, **kwargs)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------
    @property
    def version(self) -> DescriptorVersion:
        return self._version

    @property
    def description(self) -> str:
        return self._string_value(self._node, DESCRIPTOR_DESCRIPTION)

    @property
    def resource_type(self) -> str:
        return self._string_value(self._node, DESCRIPTOR_RESOURCE_TYPE)

    @property
    def members(self) -> List[ResourceMember]:
        return list(self._members)

    @property
    def mapping(self) -> AliasMapping:
        return self._mapping

    @property
    def dataset_id(self) -> Optional[str]:
        return self._dataset_id

    @property
    def node(self) -> Mapping[str, Any]:
        return self._node

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------
    def _string_value(self, node: Mapping[str, Any], name: str) -> str:
        value = self._mapping.find_value(node, MappingGroup.SCHEMA_DESCRIPTOR, name)
        return "" if value is None else str(value)

    def _member_resource_type(self, member_node: Mapping[str, Any]) -> Optional[str]:
        value = self._mapping.find_value(member_node, MappingGroup.SCHEMA_DESCRIPTOR, DESCRIPTOR_RESOURCE_TYPE)
        if value is None:
            value = self._mapping.find_value(member_node, MappingGroup.PROPERTY, PROPERTY_RESOURCE_TYPE)
        return None if value is None else str(value)

    def _parse_members(self) -> List[ResourceMember]:
        member_nodes = self._mapping.find_value(self._node, MappingGroup.SCHEMA_DESCRIPTOR, DESCRIPTOR_MEMBERS)
        if not isinstance(member_nodes, list):
            if member_nodes is not None:
                logger.warning(f"Ignoring members of dataset '{self._dataset_id}': expected a JSON array")
            return []

        members: List[ResourceMember] = []
        for member_node in member_nodes:
            if not isinstance(member_node, dict):
                logger.debug(f"Skipping non-object member node in dataset '{self._dataset_id}'")
                continue
            resource_ids = _as_resource_ids(
                self._mapping.find_value(member_node, MappingGroup.PROPERTY, PROPERTY_RESOURCE_NAME)
            )
            if not resource_ids:
                logger.debug(f"Skipping member without resource name in dataset '{self._dataset_id}'")
                continue
            resource_type = self._member_resource_type(member_node)
            header_rows = _parse_header_rows(
                self._mapping.find_value(member_node, MappingGroup.PROPERTY, PROPERTY_HEADER_ROWS)
            )
            for resource_id in resource_ids:
                member = ResourceMember(
                    resource_id,
                    resource_type,
                    mapping=self._mapping,
                    dataset_name=self._dataset_name,
                    header_row_count=header_rows,
                )
                member.assign_fields(self._parse_fields(member, member_node, resource_type))
                members.append(member)
        return members

    def _parse_fields(
        self,
        member: ResourceMember,
        member_node: Mapping[str, Any],
        resource_type: Optional[str],
    ) -> List[ResourceField]:
        field_nodes = self._mapping.find_value(member_node, MappingGroup.SCHEMA_DESCRIPTOR, DESCRIPTOR_FIELDS)
        if not isinstance(field_nodes, list):
            return []
        return [
            ResourceField(
                field_node if isinstance(field_node, dict) else {},
                index,
                self._mapping,
                resource_type=resource_type,
                qualifier=member,
            )
            for index, field_node in enumerate(field_nodes)
        ]

    # -------------------------------------------------------------------------
    # Data files
    # -------------------------------------------------------------------------
    def relate_with_data_files(self, files: Optional[Mapping[str, DataFile]]) -> Dict[ResourceMember, DataFile]:
        """
        Pair every member with its data file by resource id.

        Members without a data file are dropped with a warning.

        Args:
            files: Data files keyed by resource id

        Returns:
            Member to data file mapping, in member order
        """
        relations: Dict[ResourceMember, DataFile] = {}
        if files is None:
            return relations
        for member in self._members:
            data_file = files.get(member.id)
            if data_file is None:
                logger.warning(f"Ignoring member '{member.id}' of dataset '{self._dataset_id}': missing data file")
                continue
            relations[member] = data_file
        return relations

    def __repr__(self) -> str:
        return (
            f"SchemaDescriptor(dataset_id={self._dataset_id!r}, version='{self._version}', "
            f"members={len(self._members)})"
        )
