"""
Unit tests for the alias mapping resolver.

Tests self-inclusion of names, alias lookups, reverse resolution, dataset
overrides with fallback and the strategy section.
"""

import json

import pytest
from pydantic import ValidationError

from harvester.mapping import AliasMapping, AliasMappingDocument, MappingGroup


class TestGetMappings:
    """Test alias set lookups."""

    def test_name_is_always_included_without_configuration(self, empty_mapping):
        """Test that an empty mapping yields the lower-cased name itself."""
        assert empty_mapping.get_mappings(MappingGroup.FIELD, "Latitude") == {"latitude"}
        assert empty_mapping.get_mappings("resource_type", "x") == {"x"}

    def test_configured_aliases_include_canonical_name(self, mapping):
        """Test that configured aliases contain the canonical name."""
        aliases = mapping.get_mappings(MappingGroup.FIELD, "latitude")

        assert "latitude" in aliases
        assert "lat" in aliases

    def test_lookup_is_case_insensitive(self):
        """Test that group content and lookups are lower-cased."""
        custom = AliasMapping.from_dict({"field": {"Longitude": ["LON", "Lng"]}})

        assert custom.get_mappings("field", "LONGITUDE") == {"longitude", "lon", "lng"}

    def test_unknown_name_in_configured_group(self, mapping):
        """Test that unknown names still resolve to themselves."""
        assert mapping.get_mappings(MappingGroup.PROPERTY, "no_such_property") == {"no_such_property"}

    def test_none_name_yields_empty_spelling(self, empty_mapping):
        """Test that a missing name does not fail."""
        assert empty_mapping.get_mappings(MappingGroup.FIELD, None) == {""}

    def test_unknown_group_is_rejected(self, empty_mapping):
        """Test that group names are validated."""
        with pytest.raises(ValueError):
            empty_mapping.get_mappings("no_such_group", "x")


class TestHasMapping:
    """Test candidate membership checks."""

    def test_alias_candidate(self, mapping):
        """Test that an alias spelling matches its canonical name."""
        assert mapping.has_mapping(MappingGroup.FIELD, "latitude", "LAT")

    def test_self_candidate(self, empty_mapping):
        """Test that the name matches itself case-insensitively."""
        assert empty_mapping.has_mapping(MappingGroup.FIELD, "x", "X")

    def test_non_matching_candidate(self, mapping):
        """Test that unrelated spellings do not match."""
        assert not mapping.has_mapping(MappingGroup.FIELD, "latitude", "lon")
        assert not mapping.has_mapping(MappingGroup.FIELD, "latitude", None)


class TestCanonicalName:
    """Test reverse resolution of spellings."""

    def test_alias_resolves_to_canonical(self, mapping):
        """Test that an alias resolves to its canonical name."""
        assert mapping.canonical_name(MappingGroup.RESOURCE_TYPE, "Platform") == "platforms"
        assert mapping.canonical_name(MappingGroup.RESOURCE_TYPE, "observations") == "observations"

    def test_unknown_spelling_is_lower_cased(self, mapping):
        """Test that unknown spellings are returned lower-cased."""
        assert mapping.canonical_name(MappingGroup.RESOURCE_TYPE, "Satellites") == "satellites"

    def test_none_spelling(self, mapping):
        """Test that None stays None."""
        assert mapping.canonical_name(MappingGroup.RESOURCE_TYPE, None) is None


class TestFindValue:
    """Test JSON property lookups under alias spellings."""

    def test_canonical_spelling_first(self, mapping):
        """Test that the canonical spelling wins over aliases."""
        node = {"id": "alias-value", "field_id": "canonical-value"}

        assert mapping.find_value(node, MappingGroup.PROPERTY, "field_id") == "canonical-value"

    def test_alias_spelling(self, mapping):
        """Test that an alias spelling is found."""
        assert mapping.find_value({"fieldId": "temp"}, MappingGroup.PROPERTY, "field_id") == "temp"

    def test_missing_property(self, mapping):
        """Test that absent properties yield None."""
        assert mapping.find_value({"other": 1}, MappingGroup.PROPERTY, "field_id") is None
        assert mapping.find_value(None, MappingGroup.PROPERTY, "field_id") is None


class TestDatasetOverride:
    """Test per-dataset mapping documents and fallback."""

    def test_override_wins_and_default_fills_gaps(self, tmp_path, mapping):
        """Test that custom values win while the default fills gaps."""
        override = {"field": {"latitude": ["y_coord"]}}
        (tmp_path / "config-ckan-mapping-ds-1.json").write_text(json.dumps(override))

        custom = AliasMapping.for_dataset("ds-1", tmp_path, default=mapping)

        assert custom.get_mappings("field", "latitude") == {"latitude", "y_coord"}
        assert "lon" in custom.get_mappings("field", "longitude")
        assert custom.fallback is mapping

    def test_missing_override_uses_default_directly(self, tmp_path, mapping):
        """Test that the default is returned when no override exists."""
        assert AliasMapping.for_dataset("ds-unknown", tmp_path, default=mapping) is mapping

    def test_invalid_override_falls_back_to_default(self, tmp_path, mapping):
        """Test that an unreadable override document is not fatal."""
        (tmp_path / "config-ckan-mapping-broken.json").write_text("{not json")

        assert AliasMapping.for_dataset("broken", tmp_path, default=mapping) is mapping

    def test_config_dir_replaces_bundled_default(self, tmp_path):
        """Test that a default document in the config directory is used."""
        (tmp_path / "config-ckan-mapping.json").write_text(json.dumps({"field": {"value": ["messwert"]}}))

        default = AliasMapping.load_default(tmp_path)

        assert default.has_mapping("field", "value", "Messwert")
        assert not default.has_mapping("field", "latitude", "lat")

    def test_bundled_default_is_fresh_instance(self):
        """Test that no process-wide mapping instance is shared."""
        assert AliasMapping.load_default() is not AliasMapping.load_default()


class TestStrategy:
    """Test the mobile strategy section."""

    def test_bundled_default_is_not_mobile(self, mapping):
        """Test that the bundled default declares a stationary dataset."""
        assert not mapping.is_mobile
        assert mapping.track_discriminators is None

    def test_track_discriminators(self):
        """Test that discriminators are parsed with default separators."""
        custom = AliasMapping.from_dict(
            {
                "strategy": {
                    "mobile": {
                        "track_discriminator": [
                            {"column": "timestamp", "pattern": r"(\d{4}-\d{2}-\d{2}).*$"},
                            {"column": "ship", "separator": "_"},
                        ]
                    }
                }
            }
        )

        discriminators = custom.track_discriminators
        assert custom.is_mobile
        assert [d.column for d in discriminators] == ["timestamp", "ship"]
        assert discriminators[0].separator == "-"
        assert discriminators[1].separator == "_"

    def test_strategy_inherited_from_fallback(self):
        """Test that the strategy section falls back like alias groups."""
        default = AliasMapping.from_dict({"strategy": {"mobile": {"enabled": True}}})
        custom = AliasMapping.from_dict({"field": {}}, fallback=default)

        assert custom.is_mobile

    def test_invalid_pattern_rejected(self):
        """Test that an invalid regex fails validation."""
        with pytest.raises(ValidationError):
            AliasMappingDocument.model_validate(
                {"strategy": {"mobile": {"track_discriminator": [{"column": "t", "pattern": "(unclosed"}]}}}
            )

    def test_pattern_without_group_rejected(self):
        """Test that a pattern needs a capture group."""
        with pytest.raises(ValidationError):
            AliasMapping.from_dict({"strategy": {"mobile": {"track_discriminator": [{"column": "t", "pattern": ".*"}]}}})
