# =============================================================================
# Data Table
# =============================================================================
# Sparse in-memory relation (ResourceKey, ResourceField) -> str with two
# composition operators:
# - extend_with: row-wise union of structurally identical tables
# - inner_join: first-match-wins hash join on shared field identities
# =============================================================================

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from harvester.models.resource import ResourceField, ResourceMember
from .resource_key import ResourceKey

__all__ = ["DataTable"]

logger = logging.getLogger(__name__)

Row = Dict[ResourceField, str]


class DataTable:
    """
    Sparse relation of string cells addressed by row key and field.

    Columns are compared by field identity (lower-cased field id), so equally
    named fields of different resources share a column once cells are copied
    during a join. Composition operators return new tables and never mutate
    their operands.

    Args:
        member: Designated member (the trivial member when None)
    """

    def __init__(self, member: Optional[ResourceMember] = None):
        self._member = member if member is not None else ResourceMember()
        self._rows: Dict[ResourceKey, Row] = {}
        self._columns: Dict[ResourceField, None] = {}
        self._joined_members: List[ResourceMember] = []

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------
    @property
    def member(self) -> ResourceMember:
        return self._member

    @property
    def joined_members(self) -> List[ResourceMember]:
        """Members folded into this table by extend or join."""
        return list(self._joined_members)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def resource_fields(self) -> List[ResourceField]:
        """Columns in insertion order."""
        return list(self._columns)

    @property
    def column_headers(self) -> List[str]:
        return [field.column_header for field in self._columns]

    @property
    def rows(self) -> Dict[ResourceKey, Row]:
        return {key: dict(row) for key, row in self._rows.items()}

    @property
    def row_keys(self) -> List[ResourceKey]:
        return list(self._rows)

    # -------------------------------------------------------------------------
    # Cell access
    # -------------------------------------------------------------------------
    def row(self, key: ResourceKey) -> Row:
        return dict(self._rows.get(key, {}))

    def column(self, field: ResourceField) -> Dict[ResourceKey, str]:
        return {key: row[field] for key, row in self._rows.items() if field in row}

    def cell(self, key: ResourceKey, field: ResourceField) -> Optional[str]:
        row = self._rows.get(key)
        return None if row is None else row.get(field)

    def set_cell_value(self, key: ResourceKey, field: ResourceField, value: str) -> None:
        self._rows.setdefault(key, {})[field] = value
        self._columns.setdefault(field, None)

    def distinct_values(self, field: ResourceField) -> List[str]:
        """Distinct values of a column in first-seen order."""
        seen: Dict[str, None] = {}
        for row in self._rows.values():
            value = row.get(field)
            if value is not None:
                seen.setdefault(value, None)
        return list(seen)

    def clear(self) -> None:
        self._rows.clear()
        self._columns.clear()

    def _put_row(self, key: ResourceKey, row: Row) -> None:
        target = self._rows.setdefault(key, {})
        for field, value in row.items():
            if field not in target:
                target[field] = value
            self._columns.setdefault(field, None)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------
    def extend_with(self, other: "DataTable") -> "DataTable":
        """
        Concatenate the rows of an extensible table.

        The trivial table yields ``other``; a table whose member is not
        extensible with ``other``'s member is returned unchanged.
        """
        if self._member.is_trivial:
            return other
        if not self._member.is_extensible(other.member):
            logger.debug(f"Table '{self._member.id}' is not extensible with '{other.member.id}'")
            return self

        logger.debug(
            f"Extending table {self._member.id} (#{self.row_count} rows, #{self.column_count} cols) "
            f"with table {other.member.id} (#{other.row_count} rows, #{other.column_count} cols)"
        )
        start = time.perf_counter()
        output = DataTable(self._member)
        output._joined_members = [*self._joined_members, other.member, *other.joined_members]
        for key, row in self._rows.items():
            output._put_row(key, row)
        for key, row in other._rows.items():
            output._put_row(key, row)
        logger.debug(
            f"Extended table has #{output.row_count} rows and #{output.column_count} columns, "
            f"took {time.perf_counter() - start:.3f}s"
        )
        return output

    def inner_join(self, other: "DataTable", join_fields: Optional[Sequence[ResourceField]] = None) -> "DataTable":
        """
        Join with a table of a different resource type.

        Each join field is joined independently and the outputs are united,
        so several join fields act as alternatives rather than a conjunction.
        Per join field, every left and right cell takes part in at most one
        output row (first match in row order wins). Output rows hold all
        cells of both source rows under new keys ``<right-key>_<n>`` owned by
        this table's member; for shared columns the left value is kept.

        Args:
            other: Table to join with
            join_fields: Fields to join on (defaults to the joinable fields)

        Returns:
            Joined table, ``other`` for a trivial table, or this table when
            the members are not joinable
        """
        if self._member.is_trivial:
            return other
        if not self._member.is_joinable(other.member):
            logger.debug(f"Table '{self._member.id}' is not joinable with '{other.member.id}'")
            return self

        fields = list(join_fields) if join_fields else self._member.joinable_fields(other.member)
        logger.debug(
            f"Joining table {self._member.id} (#{self.row_count} rows, #{self.column_count} cols) "
            f"with table {other.member.id} (#{other.row_count} rows, #{other.column_count} cols) "
            f"on {[field.field_id for field in fields]}"
        )
        start = time.perf_counter()
        output = DataTable(self._member)
        output._joined_members = [*self._joined_members, other.member, *other.joined_members]
        copies: Dict[Tuple[ResourceField, ResourceMember], ResourceField] = {}
        counter = 0
        for field in fields:
            for left_key, right_key in self._match(other, field):
                new_key = ResourceKey(f"{right_key.key_id}_{counter}", output.member)
                counter += 1
                output._put_row(new_key, self._rows[left_key])
                output._put_row(new_key, self._qualified_row(other._rows[right_key], right_key.member, copies))
        logger.debug(
            f"Joined table has #{output.row_count} rows and #{output.column_count} columns, "
            f"took {time.perf_counter() - start:.3f}s"
        )
        return output

    def _match(self, other: "DataTable", field: ResourceField) -> Iterable[Tuple[ResourceKey, ResourceKey]]:
        index: Dict[Hashable, Deque[ResourceKey]] = defaultdict(deque)
        for right_key, value in other.column(field).items():
            join_key = field.join_key(value)
            if join_key is not None:
                index[join_key].append(right_key)
        for left_key, value in self.column(field).items():
            join_key = field.join_key(value)
            candidates = index.get(join_key) if join_key is not None else None
            if candidates:
                yield left_key, candidates.popleft()

    @staticmethod
    def _qualified_row(
        row: Row,
        qualifier: ResourceMember,
        copies: Dict[Tuple[ResourceField, ResourceMember], ResourceField],
    ) -> Row:
        qualified: Row = {}
        for field, value in row.items():
            copy = copies.get((field, qualifier))
            if copy is None:
                copy = copies[(field, qualifier)] = field.copy(qualifier=qualifier)
            qualified[copy] = value
        return qualified

    def __repr__(self) -> str:
        joined = [member.id for member in self._joined_members]
        return (
            f"DataTable(#rows={self.row_count}, #columns={self.column_count}, "
            f"resource={self._member!r}, joined={joined})"
        )
