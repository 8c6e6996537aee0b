"""
Unit tests for observation record building.

Tests measurement, text and geometry observations, soft-typed phenomena and
rows that cannot yield an observation.
"""

from datetime import datetime, timezone

import pytest
from shapely.geometry import Point

from harvester.collection import ComposedTable, DataCollection
from harvester.interpreters import InterpreterKind, InterpreterRegistry, PhenomenonParser
from harvester.models import HarvesterSettings, ObservationType
from harvester.observations import ObservationRecord, build_observations
from harvester.table import DataTable

UTC = timezone.utc


def fill(member, rows):
    """Build a table of ``member`` from positional row values."""
    table = DataTable(member)
    for line_number, values in enumerate(rows):
        key = member.create_resource_key(line_number)
        for field, value in zip(member.fields, values):
            if value is not None:
                table.set_cell_value(key, field, value)
    return table


def composed_of(table):
    return ComposedTable(table=table, phenomena=PhenomenonParser().discover(table))


class TestJoinedDataset:
    """Test observations of a composed dataset."""

    @pytest.fixture
    def records(self, descriptor, dataset_files):
        settings = HarvesterSettings(csv_delimiter=",", default_crs="EPSG:4326", default_encoding="utf-8")
        composed = DataCollection(descriptor, dataset_files, settings).assemble()[0]
        return build_observations(composed)

    def test_one_record_per_row_and_phenomenon(self, records):
        """Test record count and identifiers."""
        assert [r.identifier for r in records] == [
            "platforms-1_0_0_air_temperature",
            "platforms-1_1_1_air_temperature",
        ]

    def test_measurement_values(self, records):
        """Test typed measurement values with their unit."""
        assert [r.value for r in records] == [21.5, 19.0]
        assert all(r.uom == "degC" for r in records)
        assert all(r.phenomenon.observation_type is ObservationType.MEASUREMENT for r in records)

    def test_interpreters_come_from_registry(self, descriptor, dataset_files, monkeypatch):
        """Test that row interpreters are created by kind."""
        created = []
        create = InterpreterRegistry.create

        def recording_create(kind, **kwargs):
            created.append(InterpreterKind(kind))
            return create(kind, **kwargs)

        monkeypatch.setattr(InterpreterRegistry, "create", staticmethod(recording_create))
        settings = HarvesterSettings(csv_delimiter=",", default_crs="EPSG:4326", default_encoding="utf-8")
        composed = DataCollection(descriptor, dataset_files, settings).assemble()[0]

        build_observations(composed)

        assert {
            InterpreterKind.OBSERVATION_TIME,
            InterpreterKind.VALID_TIME,
            InterpreterKind.GEOMETRY,
        } <= set(created)

    def test_times_and_geometry(self, records):
        """Test phenomenon time and sampling geometry."""
        record = records[0]

        assert isinstance(record, ObservationRecord)
        assert record.phenomenon_time == datetime(2011, 7, 21, 12, tzinfo=UTC)
        assert record.valid_time is None
        assert record.sampling_geometry.equals(Point(51.96, 7.62))


class TestObservationTypes:
    """Test text, geometry and soft-typed observations."""

    def test_rows_without_time_are_skipped(self, observation_member):
        """Test that a phenomenon time is required."""
        table = fill(observation_member, [["1", None, "1.0"], ["1", "2012-01-01T00:00:00Z", "2.0"]])

        records = build_observations(composed_of(table))

        assert [r.value for r in records] == [2.0]

    def test_malformed_measurement_is_dropped(self, observation_member):
        """Test that unparsable measurement values yield no record."""
        table = fill(observation_member, [["1", "2012-01-01T00:00:00Z", "warm"]])

        assert build_observations(composed_of(table)) == []

    def test_empty_values_are_skipped(self, observation_member):
        """Test that rows without a value yield no record."""
        table = fill(observation_member, [["1", "2012-01-01T00:00:00Z", ""]])

        assert build_observations(composed_of(table)) == []

    def test_text_observation(self, make_member):
        """Test that text phenomena keep the raw value."""
        member = make_member(
            "observations-1",
            "observations",
            [{"field_id": "timestamp"}, {"field_id": "weather", "phenomenon": "weather", "field_type": "String"}],
        )
        table = fill(member, [["2012-01-01T00:00:00Z", "sunny"]])

        record = build_observations(composed_of(table))[0]

        assert record.value == "sunny"
        assert record.phenomenon.observation_type is ObservationType.TEXT
        assert record.sampling_geometry is None

    def test_geometry_observation(self, make_member):
        """Test that geometry phenomena decode their value."""
        member = make_member(
            "observations-1",
            "observations",
            [{"field_id": "timestamp"}, {"field_id": "footprint", "phenomenon": "footprint", "field_type": "Geometry"}],
        )
        table = fill(member, [["2012-01-01T00:00:00Z", "POINT (7 51)"]])

        record = build_observations(composed_of(table))[0]

        assert record.value.equals(Point(7, 51))
        assert record.phenomenon.observation_type is ObservationType.GEOMETRY

    def test_soft_typed_phenomena_match_discriminator(self, make_member):
        """Test that each row yields only its discriminated phenomenon."""
        member = make_member(
            "observations-1",
            "observations",
            [
                {"field_id": "timestamp"},
                {"field_id": "observed"},
                {"field_id": "value", "field_type": "Double", "phenomenon_ref": "observed", "uom": "mixed"},
            ],
        )
        table = fill(
            member,
            [["2012-01-01T00:00:00Z", "temp", "20.5"], ["2012-01-01T00:00:00Z", "wind", "3"]],
        )

        records = build_observations(composed_of(table))

        assert [(r.phenomenon.id, r.value) for r in records] == [("temp", 20.5), ("wind", 3.0)]
        assert [r.identifier for r in records] == ["observations-1_0_temp", "observations-1_1_wind"]

    def test_valid_time(self, make_member):
        """Test that a valid time period is attached."""
        member = make_member(
            "observations-1",
            "observations",
            [
                {"field_id": "timestamp"},
                {"field_id": "valid_until"},
                {"field_id": "value", "field_type": "Double", "uom": "K"},
            ],
        )
        table = fill(member, [["2012-01-01T00:00:00Z", "2012-01-02T00:00:00Z", "1"]])

        record = build_observations(composed_of(table))[0]

        assert record.valid_time.start is None
        assert record.valid_time.end == datetime(2012, 1, 2, tzinfo=UTC)
