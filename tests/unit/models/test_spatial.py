"""
Unit tests for spatial helpers.

Tests CRS validation and normalization and EPSG code extraction.
"""

import pytest
from pydantic import BaseModel, ValidationError

from harvester.models import CRS, FeatureType, srid_of, validate_crs


class TestValidateCrs:
    """Test CRS validation."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("EPSG:4326", "EPSG:4326"),
            ("epsg:25832", "EPSG:25832"),
            ("4326", "EPSG:4326"),
            (" 3857 ", "EPSG:3857"),
            (31467, "EPSG:31467"),
            ("+proj=utm +zone=32 +datum=WGS84", "+proj=utm +zone=32 +datum=WGS84"),
            ('GEOGCS["WGS 84",DATUM["WGS_1984"]]', 'GEOGCS["WGS 84",DATUM["WGS_1984"]]'),
        ],
    )
    def test_valid(self, value, expected):
        """Test accepted formats and their normalization."""
        assert validate_crs(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "WGS84", "EPSG:12", "GEOGCS[unbalanced", "+proj"])
    def test_invalid(self, value):
        """Test rejected strings."""
        with pytest.raises(ValueError):
            validate_crs(value)

    def test_non_string_rejected(self):
        """Test that other types fail."""
        with pytest.raises(TypeError, match="CRS must be a string"):
            validate_crs(["EPSG:4326"])

    def test_annotated_type(self):
        """Test the CRS type inside a model."""

        class Model(BaseModel):
            crs: CRS

        assert Model(crs="4258").crs == "EPSG:4258"
        with pytest.raises(ValidationError):
            Model(crs="nonsense")


class TestSridOf:
    """Test EPSG code extraction."""

    def test_epsg_code(self):
        """Test codes of EPSG identifiers."""
        assert srid_of("EPSG:25832") == 25832

    def test_no_code(self):
        """Test that WKT and PROJ strings have no code."""
        assert srid_of("+proj=longlat") is None
        assert srid_of('GEOGCS["x"]') is None


class TestFeatureType:
    """Test feature type values."""

    def test_uris(self):
        """Test that feature types are OGC URIs."""
        assert FeatureType.SAMPLING_POINT.value.endswith("SF_SamplingPoint")
        assert FeatureType.UNKNOWN.value == "http://www.opengis.net/def/nil/OGC/0/unknown"
