# =============================================================================
# Collection Assembly
# =============================================================================
# Ties a dataset's schema members to their data files, loads and composes
# them into joined tables and attaches discovered phenomena and tracks.
# =============================================================================

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from harvester.constants import PLATFORM_RESOURCE_TYPES, RESOURCE_OBSERVATIONS
from harvester.interpreters.base import InterpreterKind
from harvester.interpreters.phenomena import PhenomenonParser
from harvester.interpreters.registry import InterpreterRegistry
from harvester.interpreters.tracks import TrackPointCollector
from harvester.mapping import AliasMapping, MappingGroup
from harvester.models.config import HarvesterSettings
from harvester.models.data_file import DataFile
from harvester.models.descriptor import DescriptorVersion, SchemaDescriptor
from harvester.models.phenomenon import Phenomenon
from harvester.models.resource import ResourceField, ResourceMember
from harvester.table.data_table import DataTable
from harvester.table.loaders import ResourceTable

__all__ = ["ComposedTable", "DataCollection"]

logger = logging.getLogger(__name__)


@dataclass
class ComposedTable:
    """
    Result handed to a sink: joined rows, phenomena and track groupings.

    Attributes:
        table: Joined table of one observation member
        phenomena: Fixed and soft-typed phenomena of the table
        tracks: Track groupings (mobile datasets only)
    """

    table: DataTable
    phenomena: List[Phenomenon] = field(default_factory=list)
    tracks: Optional[TrackPointCollector] = None

    @property
    def is_mobile(self) -> bool:
        return self.tracks is not None


class DataCollection:
    """
    Schema members of one dataset paired with their data files.

    Members without a data file are dropped on construction.

    Args:
        descriptor: Parsed schema descriptor
        data_files: Data files keyed by resource id
        settings: Harvester settings (read from the environment when None)
    """

    def __init__(
        self,
        descriptor: SchemaDescriptor,
        data_files: Optional[Mapping[str, DataFile]] = None,
        settings: Optional[HarvesterSettings] = None,
    ):
        self.descriptor = descriptor
        self.settings = settings if settings is not None else HarvesterSettings()
        self._data_collection = descriptor.relate_with_data_files(data_files or {})

    @classmethod
    def from_descriptor(
        cls,
        node: Mapping[str, Any],
        dataset_id: Optional[str] = None,
        data_files: Optional[Mapping[str, DataFile]] = None,
        settings: Optional[HarvesterSettings] = None,
    ) -> "DataCollection":
        """
        Parse a schema descriptor and pair it with data files.

        The alias mapping is resolved for ``dataset_id`` in
        ``settings.mapping_config_dir``.

        Raises:
            ValueError: If the descriptor version is invalid
        """
        settings = settings if settings is not None else HarvesterSettings()
        descriptor = SchemaDescriptor(node, dataset_id=dataset_id, config_dir=settings.mapping_config_dir)
        return cls(descriptor, data_files, settings)

    @classmethod
    def from_descriptor_file(
        cls,
        path: Union[str, Path],
        dataset_id: Optional[str] = None,
        data_files: Optional[Mapping[str, DataFile]] = None,
        settings: Optional[HarvesterSettings] = None,
    ) -> "DataCollection":
        settings = settings if settings is not None else HarvesterSettings()
        descriptor = SchemaDescriptor.from_file(path, dataset_id=dataset_id, config_dir=settings.mapping_config_dir)
        return cls(descriptor, data_files, settings)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------
    @property
    def dataset_id(self) -> Optional[str]:
        return self.descriptor.dataset_id

    @property
    def mapping(self) -> AliasMapping:
        return self.descriptor.mapping

    @property
    def description(self) -> str:
        return self.descriptor.description

    @property
    def descriptor_version(self) -> DescriptorVersion:
        return self.descriptor.version

    @property
    def data_collection(self) -> Dict[ResourceMember, DataFile]:
        return dict(self._data_collection)

    @property
    def members(self) -> List[ResourceMember]:
        return list(self._data_collection)

    def data_file(self, member: ResourceMember) -> Optional[DataFile]:
        return self._data_collection.get(member)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def resource_members_by_type(self, types: Optional[Iterable[str]] = None) -> Dict[str, List[ResourceMember]]:
        """
        Group members by canonical resource type.

        Args:
            types: Resource types to keep (any spelling); all when empty

        Returns:
            Members per type, types in order of first appearance
        """
        wanted = {self.mapping.canonical_name(MappingGroup.RESOURCE_TYPE, t) for t in types or ()}
        grouped: Dict[str, List[ResourceMember]] = {}
        for member in self._data_collection:
            if member.resource_type is None:
                continue
            if wanted and member.resource_type not in wanted:
                continue
            grouped.setdefault(member.resource_type, []).append(member)
        return grouped

    @staticmethod
    def join_fields(members: Iterable[ResourceMember]) -> List[ResourceField]:
        """Fields occurring (by identity) in more than one of the members."""
        counts: Dict[ResourceField, int] = {}
        for member in members:
            for resource_field in set(member.fields):
                counts[resource_field] = counts.get(resource_field, 0) + 1
        return [resource_field for resource_field, count in counts.items() if count > 1]

    # -------------------------------------------------------------------------
    # Loading / composition
    # -------------------------------------------------------------------------
    def load_table(self, member: ResourceMember) -> DataTable:
        """Load a member's data file (an empty table when it has none)."""
        data_file = self._data_collection.get(member)
        if data_file is None:
            logger.warning(f"No data file for member '{member.id}', using an empty table")
            return DataTable(member)
        table = ResourceTable(
            member,
            data_file,
            delimiter=self.settings.csv_delimiter,
            default_encoding=self.settings.default_encoding,
        )
        return table.read_into_memory()

    def load_tables(self, members: Iterable[ResourceMember], table: Optional[DataTable] = None) -> DataTable:
        """Load members and extend them into one table."""
        result = table if table is not None else DataTable()
        for member in members:
            loaded = self.load_table(member)
            logger.debug(f"Extend table with: {loaded!r}")
            result = result.extend_with(loaded)
        return result

    def compose(self) -> List[DataTable]:
        """
        Compose the dataset into joined tables.

        Platform-like members (platforms, observed geometries, observations
        with geometry) are extended into one platform table. Every
        observation member is loaded on its own and inner-joined with it.

        Returns:
            One joined table per observation member
        """
        logger.debug(f"Composing data of dataset '{self.dataset_id}'")
        platform_table = DataTable()
        for members in self.resource_members_by_type(PLATFORM_RESOURCE_TYPES).values():
            platform_table = self.load_tables(members, platform_table)
        logger.debug(f"Loaded platform data: {platform_table!r}")

        joined_tables: List[DataTable] = []
        for members in self.resource_members_by_type([RESOURCE_OBSERVATIONS]).values():
            for member in members:
                observation_table = self.load_tables([member])
                joined = observation_table.inner_join(platform_table)
                logger.debug(f"Joined data table: {joined!r}")
                joined_tables.append(joined)
        logger.debug(f"#{len(joined_tables)} joined data tables")
        return joined_tables

    @property
    def is_mobile(self) -> bool:
        return self.mapping.is_mobile

    def collect_tracks(self, table: DataTable) -> TrackPointCollector:
        """Cluster the rows of a table into tracks."""
        collector = TrackPointCollector(self.mapping)
        builder = InterpreterRegistry.create(
            InterpreterKind.TRACK_POINT, default_crs=self.settings.default_crs, collector=collector
        )
        for row in table.rows.values():
            builder.visit_row(row)
            if builder.has_result():
                builder.result()
        return collector

    def assemble(self) -> List[ComposedTable]:
        """Compose the dataset and attach phenomena (and tracks for mobile datasets)."""
        parser = PhenomenonParser()
        composed: List[ComposedTable] = []
        for table in self.compose():
            tracks = self.collect_tracks(table) if self.is_mobile else None
            composed.append(ComposedTable(table=table, phenomena=parser.discover(table), tracks=tracks))
        return composed

    def __repr__(self) -> str:
        return f"DataCollection(dataset_id={self.dataset_id!r}, members={len(self._data_collection)})"
