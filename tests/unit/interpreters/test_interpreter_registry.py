"""
Unit tests for InterpreterRegistry.
"""

import pytest

from harvester.interpreters import (
    GeometryBuilder,
    InterpreterKind,
    InterpreterRegistry,
    TimeBuilder,
    TimeFieldParser,
    TrackPointBuilder,
    TrackPointCollector,
    ValidTimeBuilder,
)


class TestInterpreterRegistry:
    """Test interpreter creation by kind."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (InterpreterKind.GEOMETRY, GeometryBuilder),
            (InterpreterKind.OBSERVATION_TIME, TimeBuilder),
            (InterpreterKind.VALID_TIME, ValidTimeBuilder),
        ],
    )
    def test_create(self, kind, expected):
        """Test that each kind yields its interpreter."""
        interpreter = InterpreterRegistry.create(kind)

        assert isinstance(interpreter, expected)
        assert interpreter.kind is kind

    def test_create_by_value(self):
        """Test that kinds may be given by value."""
        assert isinstance(InterpreterRegistry.create("geometry"), GeometryBuilder)

    def test_fresh_instances(self):
        """Test that interpreters are not shared."""
        assert InterpreterRegistry.create(InterpreterKind.GEOMETRY) is not InterpreterRegistry.create(
            InterpreterKind.GEOMETRY
        )

    def test_default_crs_and_parser(self):
        """Test that options reach the interpreters."""
        parser = TimeFieldParser()

        assert InterpreterRegistry.create(InterpreterKind.GEOMETRY, default_crs="3857").crs == "EPSG:3857"
        assert InterpreterRegistry.create(InterpreterKind.OBSERVATION_TIME, parser=parser).parser is parser

    def test_track_point_builder(self):
        """Test that a track point builder is bound to its collector."""
        collector = TrackPointCollector()

        builder = InterpreterRegistry.create(InterpreterKind.TRACK_POINT, collector=collector)

        assert isinstance(builder, TrackPointBuilder)
        assert builder.collector is collector

    def test_track_point_builder_needs_collector(self):
        """Test that a collector is required."""
        with pytest.raises(ValueError, match="needs a TrackPointCollector"):
            InterpreterRegistry.create(InterpreterKind.TRACK_POINT)

    def test_unknown_kind(self):
        """Test that unknown kinds are rejected."""
        with pytest.raises(ValueError):
            InterpreterRegistry.create("heatmap")
