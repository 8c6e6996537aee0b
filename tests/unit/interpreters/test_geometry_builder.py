"""
Unit tests for GeometryBuilder.

Tests coordinate handling with CRS axis order, WKT and GeoJSON locations,
CRS cells and properties, and malformed input.
"""

import pytest
from shapely.geometry import LineString, Point

from harvester.interpreters import GeometryBuilder, is_north_first
from harvester.models import FeatureType, ResourceField


@pytest.fixture
def field(mapping):
    """Factory for fields using the default mapping."""

    def _field(field_id, field_type=None, index=0, **properties):
        node = {"field_id": field_id, **properties}
        if field_type is not None:
            node["field_type"] = field_type
        return ResourceField(node, index, mapping, resource_type="platforms")

    return _field


class TestAxisOrder:
    """Test CRS axis order detection."""

    @pytest.mark.parametrize("crs,expected", [("EPSG:4326", True), ("EPSG:3857", False), ("EPSG:25832", False)])
    def test_known_crs(self, crs, expected):
        """Test north-first and east-first definitions."""
        assert is_north_first(crs) is expected

    def test_unknown_crs_is_north_first(self):
        """Test that unparsable definitions default to north-first."""
        assert is_north_first("EPSG:999999")


class TestCoordinates:
    """Test points built from coordinate cells."""

    def test_north_first_point_with_altitude(self):
        """Test lat/lon/alt ordering for EPSG:4326."""
        point = GeometryBuilder().with_latitude("52.7").with_longitude("7.5").with_altitude("10").build()

        assert point.coords[0] == (52.7, 7.5, 10.0)

    def test_two_dimensional_without_altitude(self):
        """Test that points without altitude are 2D."""
        point = GeometryBuilder().with_latitude("52.7").with_longitude("7.5").build()

        assert not point.has_z
        assert point.coords[0] == (52.7, 7.5)

    def test_east_first_crs(self):
        """Test lon/lat ordering for an east-first CRS."""
        point = GeometryBuilder().with_crs("EPSG:3857").with_latitude("52.7").with_longitude("7.5").build()

        assert point.coords[0] == (7.5, 52.7)

    def test_default_crs_of_builder(self):
        """Test that the builder's default CRS applies after reset."""
        builder = GeometryBuilder("3857")
        builder.with_crs("EPSG:4326")
        builder.reset()

        assert builder.crs == "EPSG:3857"
        assert builder.srid == 3857

    def test_missing_coordinate(self):
        """Test that a single coordinate builds nothing."""
        builder = GeometryBuilder().with_latitude("52.7")

        assert not builder.can_build()
        assert builder.build() is None
        assert builder.feature_type is FeatureType.UNKNOWN

    def test_malformed_coordinate_is_dropped(self):
        """Test that malformed values are not replaced by zero."""
        builder = GeometryBuilder().with_latitude("north").with_longitude("7.5")

        assert builder.latitude is None
        assert not builder.has_coordinates()

    def test_invalid_crs_rejected(self):
        """Test that invalid CRS strings fail."""
        with pytest.raises(ValueError):
            GeometryBuilder().with_crs("nonsense")


class TestLocations:
    """Test WKT and GeoJSON decoding."""

    def test_wkt(self):
        """Test WKT decoding."""
        geometry = GeometryBuilder().with_wkt("LINESTRING (7 51, 8 52)").build()

        assert geometry.equals(LineString([(7, 51), (8, 52)]))

    def test_wkt_with_srid_prefix(self):
        """Test that an SRID prefix sets the CRS."""
        builder = GeometryBuilder().with_wkt("SRID=25832;POINT (400000 5700000)")

        assert builder.srid == 25832
        assert builder.build().equals(Point(400000, 5700000))

    def test_invalid_wkt_is_dropped(self):
        """Test that invalid WKT builds nothing."""
        assert GeometryBuilder().with_wkt("POINT (").build() is None

    def test_geojson_with_single_quotes(self):
        """Test GeoJSON decoding with single quotes."""
        geometry = GeometryBuilder().with_geojson("{'type': 'Point', 'coordinates': [7.5, 52.7]}").build()

        assert geometry.equals(Point(7.5, 52.7))

    def test_geojson_feature(self):
        """Test that a feature is unwrapped to its geometry."""
        text = '{"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": [1, 2]}}'

        assert GeometryBuilder().with_geojson(text).build().equals(Point(1, 2))

    @pytest.mark.parametrize("text", ["not json", '{"type": "Unknown"}', "[1, 2]", '{"type": "Feature"}'])
    def test_invalid_geojson_is_dropped(self, text):
        """Test that non-geometry documents build nothing."""
        assert GeometryBuilder().with_geojson(text).build() is None

    def test_decoded_geometry_wins_over_coordinates(self):
        """Test that a location value takes precedence."""
        builder = GeometryBuilder().with_latitude("1").with_longitude("2").with_wkt("POINT (5 6)")

        assert builder.build().equals(Point(5, 6))

    def test_feature_types(self):
        """Test feature types derived from geometries."""
        assert GeometryBuilder().with_wkt("POINT (1 2)").feature_type is FeatureType.SAMPLING_POINT
        assert GeometryBuilder().with_wkt("LINESTRING (1 2, 3 4)").feature_type is FeatureType.SAMPLING_CURVE
        polygon = "POLYGON ((0 0, 1 0, 1 1, 0 0))"
        assert GeometryBuilder().with_wkt(polygon).feature_type is FeatureType.SAMPLING_SURFACE


class TestVisitRow:
    """Test row interpretation."""

    def test_coordinate_aliases(self, field):
        """Test that aliased coordinate columns are recognized."""
        row = {
            field("lat", "Double"): "52.7",
            field("lon", "Double", 1): "7.5",
            field("height", "Double", 2): "10",
            field("station_name", "String", 3): "Muenster",
        }

        point = GeometryBuilder().visit_row(row).result()

        assert point.coords[0] == (52.7, 7.5, 10.0)

    def test_coordinate_roles(self, field):
        """Test that field roles identify coordinates."""
        row = {field("y", "Double", field_role="latitude"): "52.7", field("x", "Double", 1, role="lon"): "7.5"}

        assert GeometryBuilder().visit_row(row).result().coords[0] == (52.7, 7.5)

    def test_crs_property_of_coordinate_field(self, field):
        """Test that a crs property switches the axis order."""
        row = {field("latitude", "Double", crs="EPSG:3857"): "52.7", field("longitude", "Double", 1): "7.5"}

        assert GeometryBuilder().visit_row(row).result().coords[0] == (7.5, 52.7)

    def test_crs_cell(self, field):
        """Test that a crs column sets the CRS."""
        row = {field("crs"): "3857", field("latitude", "Double", 1): "52.7", field("longitude", "Double", 2): "7.5"}

        builder = GeometryBuilder().visit_row(row)

        assert builder.crs == "EPSG:3857"
        assert builder.result().coords[0] == (7.5, 52.7)

    def test_invalid_crs_cell_is_ignored(self, field):
        """Test that an invalid crs cell keeps the default CRS."""
        builder = GeometryBuilder().visit_row({field("crs"): "somewhere"})

        assert builder.crs == "EPSG:4326"

    def test_wkt_location(self, field):
        """Test a WKT location column."""
        row = {field("the_geom", "Geometry"): "POINT (7 51)"}

        assert GeometryBuilder().visit_row(row).result().equals(Point(7, 51))

    def test_json_location(self, field):
        """Test a JsonObject location column."""
        row = {field("location", "JsonObject"): '{"type": "Point", "coordinates": [7, 51]}'}

        assert GeometryBuilder().visit_row(row).result().equals(Point(7, 51))

    def test_geometry_typed_field(self, field):
        """Test a geometry typed column that is not a location alias."""
        row = {field("track_shape", "wkt"): "LINESTRING (1 2, 3 4)"}

        assert GeometryBuilder().visit_row(row).result().geom_type == "LineString"

    def test_malformed_double_cell_is_dropped(self, field):
        """Test that a cell failing normalization builds nothing."""
        row = {field("latitude", "Double"): "n/a", field("longitude", "Double", 1): "7.5"}

        builder = GeometryBuilder().visit_row(row)

        assert not builder.has_result()

    def test_empty_cells_are_skipped(self, field):
        """Test that empty cells are not interpreted."""
        row = {field("latitude", "Double"): "", field("longitude", "Double", 1): "7.5"}

        assert GeometryBuilder().visit_row(row).result() is None

    def test_state_is_reset_between_rows(self, field):
        """Test that visiting a row clears the previous row."""
        builder = GeometryBuilder()
        builder.visit_row({field("latitude", "Double"): "1", field("longitude", "Double", 1): "2"})

        builder.visit_row({field("station_name"): "x"})

        assert builder.result() is None
