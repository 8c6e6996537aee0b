# =============================================================================
# Resource Member / Resource Field Models
# =============================================================================
# Column and table definitions parsed from a schema descriptor:
# - ResourceField: one column; identity is the lower-cased field id
# - ResourceMember: one logical table; ordered fields, extend/join eligibility
# =============================================================================

import logging
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from harvester.constants import (
    DEFAULT_HEADER_ROWS,
    OBSERVATION_RESOURCE_TYPES,
    PROPERTY_DATE_FORMAT,
    PROPERTY_DESCRIPTION,
    PROPERTY_FIELD_ID,
    PROPERTY_FIELD_ROLE,
    PROPERTY_FIELD_TYPE,
    PROPERTY_LONG_NAME,
    PROPERTY_SHORT_NAME,
    PROPERTY_UOM,
    TYPE_DOUBLE,
    TYPE_INTEGER,
)
from harvester.mapping import AliasMapping, MappingGroup

if TYPE_CHECKING:
    from harvester.table.resource_key import ResourceKey

__all__ = ["ResourceField", "ResourceMember"]

logger = logging.getLogger(__name__)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


# =============================================================================
# Resource Field
# =============================================================================

class ResourceField:
    """
    One column definition of a resource member.

    Equality and hashing use the lower-cased field id only. Qualifier, index
    and declared type are ignored, so equally named columns of different
    resources are the same logical column during joins.

    Args:
        node: JSON object describing the field
        index: 0-based column position
        mapping: Alias mapping used for property, type and role lookups
        resource_type: Explicit resource type (overrides the qualifier's)
        qualifier: Owning resource member

    Example:
        >>> a = ResourceField({"field_id": "Station_ID"}, 0)
        >>> b = ResourceField({"field_id": "station_id", "field_type": "String"}, 3)
        >>> a == b
        True
    """

    def __init__(
        self,
        node: Optional[Mapping[str, Any]] = None,
        index: int = -1,
        mapping: Optional[AliasMapping] = None,
        resource_type: Optional[str] = None,
        qualifier: Optional["ResourceMember"] = None,
    ):
        self._node = MappingProxyType(dict(node or {}))
        self._index = index
        self._mapping = mapping if mapping is not None else AliasMapping()
        self._resource_type = resource_type
        self.qualifier = qualifier
        field_id = self._mapping.find_value(self._node, MappingGroup.PROPERTY, PROPERTY_FIELD_ID)
        self._field_id = "" if field_id is None else str(field_id)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------
    @property
    def field_id(self) -> str:
        return self._field_id

    @property
    def lower_cased_field_id(self) -> str:
        return self._field_id.lower()

    @property
    def index(self) -> int:
        return self._index

    @property
    def mapping(self) -> AliasMapping:
        return self._mapping

    @property
    def node(self) -> Mapping[str, Any]:
        return self._node

    @property
    def short_name(self) -> str:
        return self._text(PROPERTY_SHORT_NAME)

    @property
    def long_name(self) -> str:
        return self._text(PROPERTY_LONG_NAME)

    @property
    def description(self) -> str:
        return self._text(PROPERTY_DESCRIPTION)

    @property
    def field_type(self) -> str:
        return self._text(PROPERTY_FIELD_TYPE)

    @property
    def field_role(self) -> str:
        return self._text(PROPERTY_FIELD_ROLE)

    @property
    def uom(self) -> str:
        return self._text(PROPERTY_UOM)

    @property
    def date_format(self) -> str:
        return self._text(PROPERTY_DATE_FORMAT)

    @property
    def column_header(self) -> str:
        """Short name, falling back to the field id."""
        return self.short_name or self._field_id

    def _text(self, name: str) -> str:
        value = self.get_property(name)
        return "" if value is None else str(value)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get_property(self, name: str) -> Any:
        """Return a JSON property under any alias of ``name`` (None if absent)."""
        return self._mapping.find_value(self._node, MappingGroup.PROPERTY, name)

    def has_property(self, name: str) -> bool:
        return self.get_property(name) is not None

    def is_field(self, canonical: str) -> bool:
        """Check whether this field's id is a spelling of the canonical field name."""
        if not self._field_id:
            return False
        return self._mapping.has_mapping(MappingGroup.FIELD, canonical, self._field_id)

    def has_role(self, role: str) -> bool:
        field_role = self.field_role
        return bool(field_role) and self._mapping.has_mapping(MappingGroup.ROLE, role, field_role)

    def is_of_type(self, datatype: str) -> bool:
        """Check the declared field type against the ``datatype`` alias group."""
        field_type = self.field_type
        return bool(field_type) and self._mapping.has_mapping(MappingGroup.DATATYPE, datatype, field_type)

    def is_one_of_types(self, datatypes: Iterable[str]) -> bool:
        return any(self.is_of_type(datatype) for datatype in datatypes)

    def is_of_resource_type(self, resource_type: str) -> bool:
        """
        Check the resource type of this field.

        An explicitly assigned resource type takes precedence over the
        qualifier's type.
        """
        known = self._mapping.get_mappings(MappingGroup.RESOURCE_TYPE, resource_type)
        if self._resource_type:
            return self._resource_type.lower() in known
        return (
            self.qualifier is not None
            and self.qualifier.resource_type is not None
            and self.qualifier.resource_type in known
        )

    def is_observation_field(self) -> bool:
        return any(self.is_of_resource_type(t) for t in OBSERVATION_RESOURCE_TYPES)

    # -------------------------------------------------------------------------
    # Typed values
    # -------------------------------------------------------------------------
    def join_key(self, value: Optional[str]) -> Union[int, str, None]:
        """
        Return the comparison key of a cell value.

        Integer-typed fields compare as parsed integers, everything else as
        the literal string. Unparsable integers and missing values yield None.
        """
        if value is None:
            return None
        if self.is_of_type(TYPE_INTEGER):
            stripped = value.strip()
            if not _INTEGER_PATTERN.match(stripped):
                logger.debug(f"Value '{value}' of integer field '{self._field_id}' is not comparable")
                return None
            return int(stripped)
        return value

    def equals_values(self, this_value: Optional[str], other_value: Optional[str]) -> bool:
        """
        Compare two cell values of this field with typed equality.

        Examples:
            >>> f = ResourceField({"field_id": "id", "field_type": "integer"}, 0)
            >>> f.equals_values("100", "0100")
            True
        """
        this_key = self.join_key(this_value)
        return this_key is not None and this_key == self.join_key(other_value)

    def normalize_value(self, value: Optional[str]) -> Optional[str]:
        """
        Canonicalize a numeric cell value before it is interpreted.

        Integer values are re-rendered as plain integers, double values as
        floats (``"10"`` -> ``"10.0"``). Other types pass through unchanged.

        Raises:
            ValueError: If a numeric value cannot be parsed
        """
        if value is None:
            return None
        if self.is_of_type(TYPE_INTEGER):
            stripped = value.strip()
            if not _INTEGER_PATTERN.match(stripped):
                raise ValueError(f"Invalid integer value '{value}' for field '{self._field_id}'")
            return str(int(stripped))
        if self.is_of_type(TYPE_DOUBLE):
            if "_" in value:
                raise ValueError(f"Invalid double value '{value}' for field '{self._field_id}'")
            try:
                return str(float(value))
            except ValueError as e:
                raise ValueError(f"Invalid double value '{value}' for field '{self._field_id}'") from e
        return value

    def copy(self, qualifier: Optional["ResourceMember"] = None) -> "ResourceField":
        """Copy this field, optionally re-qualified by another member."""
        return ResourceField(
            self._node,
            self._index,
            self._mapping,
            resource_type=self._resource_type,
            qualifier=qualifier if qualifier is not None else self.qualifier,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceField):
            return NotImplemented
        return self.lower_cased_field_id == other.lower_cased_field_id

    def __hash__(self) -> int:
        return hash(self.lower_cased_field_id)

    def __repr__(self) -> str:
        qualifier = self.qualifier.id if self.qualifier is not None else None
        return f"ResourceField(field_id={self._field_id!r}, qualifier={qualifier!r}, index={self._index})"


# =============================================================================
# Resource Member
# =============================================================================

class ResourceMember:
    """
    One logical table of a dataset.

    The resource type is stored in its canonical spelling. Fields are
    assigned once; field order is column order.

    Args:
        id: Resource identifier (None for the trivial member)
        resource_type: Raw resource type spelling
        mapping: Alias mapping of the owning descriptor
        dataset_name: Name of the owning dataset
        header_row_count: Number of header lines of the data file
    """

    def __init__(
        self,
        id: Optional[str] = None,
        resource_type: Optional[str] = None,
        mapping: Optional[AliasMapping] = None,
        dataset_name: Optional[str] = None,
        header_row_count: int = DEFAULT_HEADER_ROWS,
    ):
        self._mapping = mapping if mapping is not None else AliasMapping()
        self._id = id
        self._resource_type = self._mapping.canonical_name(MappingGroup.RESOURCE_TYPE, resource_type)
        self.dataset_name = dataset_name
        self.header_row_count = header_row_count
        self._fields: Tuple[ResourceField, ...] = ()
        self._fields_assigned = False

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def resource_type(self) -> Optional[str]:
        return self._resource_type

    @property
    def mapping(self) -> AliasMapping:
        return self._mapping

    @property
    def fields(self) -> Tuple[ResourceField, ...]:
        return self._fields

    @property
    def is_trivial(self) -> bool:
        """The trivial member (no id) is the identity of extend and join."""
        return self._id is None

    @property
    def is_valid(self) -> bool:
        return self._resource_type is not None

    def assign_fields(self, fields: Sequence[ResourceField]) -> None:
        """
        Assign the ordered field list (once).

        Fields without a qualifier are qualified by this member.

        Raises:
            RuntimeError: If fields were already assigned
        """
        if self._fields_assigned:
            raise RuntimeError(f"Fields of resource member '{self._id}' are already assigned")
        for field in fields:
            if field.qualifier is None:
                field.qualifier = self
        self._fields = tuple(fields)
        self._fields_assigned = True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    @property
    def column_headers(self) -> List[str]:
        return [field.column_header for field in self._fields]

    @property
    def field_ids(self) -> List[str]:
        return [field.field_id for field in self._fields]

    def get_field(self, key: Union[str, int]) -> Optional[ResourceField]:
        """Look up a field by (case-insensitive) id or by column index."""
        if isinstance(key, int):
            return self._fields[key] if 0 <= key < len(self._fields) else None
        lowered = key.lower()
        for field in self._fields:
            if field.lower_cased_field_id == lowered:
                return field
        return None

    def contains_field(self, canonical: str) -> bool:
        return any(field.is_field(canonical) for field in self._fields)

    def is_of_type(self, resource_type: str) -> bool:
        return (
            self._resource_type is not None
            and self._resource_type in self._mapping.get_mappings(MappingGroup.RESOURCE_TYPE, resource_type)
        )

    def joinable_fields(self, other: "ResourceMember") -> List[ResourceField]:
        """Fields present (by identity) in both members, ordered as in this member."""
        other_fields = set(other.fields)
        return [field for field in self._fields if field in other_fields]

    def _is_of_same_type(self, other: "ResourceMember") -> bool:
        return self._resource_type.lower() == other.resource_type.lower()

    def is_joinable(self, other: Optional["ResourceMember"]) -> bool:
        """Valid, distinct members of different types sharing at least one field."""
        if other is None or not self.is_valid or not other.is_valid:
            return False
        if self is other or self._is_of_same_type(other):
            return False
        return bool(self.joinable_fields(other))

    def is_extensible(self, other: Optional["ResourceMember"]) -> bool:
        """Valid, distinct members of the same type with identical column headers."""
        if other is None or not self.is_valid or not other.is_valid:
            return False
        if self is other or not self._is_of_same_type(other):
            return False
        return self.column_headers == other.column_headers

    def create_resource_key(self, line_number: int) -> "ResourceKey":
        from harvester.table.resource_key import ResourceKey

        return ResourceKey(f"{self._id}_{line_number}", self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceMember):
            return NotImplemented
        return self._id == other.id and self._resource_type == other.resource_type

    def __hash__(self) -> int:
        return hash((self._id, self._resource_type))

    def __repr__(self) -> str:
        return (
            f"ResourceMember(dataset_name={self.dataset_name!r}, id={self._id!r}, "
            f"resource_type={self._resource_type!r})"
        )
