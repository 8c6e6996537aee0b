"""
Shared pytest fixtures for harvester tests.

Provides alias mappings, schema descriptor documents, resource members and
temporary data files.
"""

import json
from pathlib import Path

import pytest

from harvester.mapping import AliasMapping
from harvester.models import DataFile, ResourceField, ResourceMember, SchemaDescriptor


# =============================================================================
# Alias Mapping Fixtures
# =============================================================================

@pytest.fixture
def mapping():
    """Bundled default alias mapping."""
    return AliasMapping.load_default()


@pytest.fixture
def empty_mapping():
    """Mapping without any configured aliases."""
    return AliasMapping()


# =============================================================================
# Resource Fixtures
# =============================================================================

@pytest.fixture
def make_member(mapping):
    """Factory building a member with fields from plain dicts."""

    def _make(member_id, resource_type, fields, header_row_count=1, member_mapping=None):
        member_mapping = member_mapping if member_mapping is not None else mapping
        member = ResourceMember(
            member_id,
            resource_type,
            mapping=member_mapping,
            dataset_name="test-dataset",
            header_row_count=header_row_count,
        )
        member.assign_fields(
            [
                ResourceField(node, index, member_mapping, resource_type=resource_type)
                for index, node in enumerate(fields)
            ]
        )
        return member

    return _make


@pytest.fixture
def platform_fields():
    """Field nodes of a platform resource."""
    return [
        {"field_id": "station_id", "field_type": "Integer", "short_name": "Stations_ID"},
        {"field_id": "station_name", "field_type": "String"},
        {"field_id": "latitude", "field_type": "Double"},
        {"field_id": "longitude", "field_type": "Double"},
    ]


@pytest.fixture
def observation_fields():
    """Field nodes of an observation resource."""
    return [
        {"field_id": "station_id", "field_type": "Integer", "short_name": "Stations_ID"},
        {"field_id": "timestamp", "field_type": "Date"},
        {"field_id": "value", "field_type": "Double", "long_name": "air_temperature", "uom": "degC"},
    ]


@pytest.fixture
def platform_member(make_member, platform_fields):
    """Member of type platforms."""
    return make_member("platforms-1", "platforms", platform_fields)


@pytest.fixture
def observation_member(make_member, observation_fields):
    """Member of type observations."""
    return make_member("observations-1", "observations", observation_fields)


# =============================================================================
# Schema Descriptor Fixtures
# =============================================================================

@pytest.fixture
def descriptor_dict(platform_fields, observation_fields):
    """Schema descriptor with one platform and two observation resources."""
    return {
        "version": "0.3",
        "description": "Air temperature measurements",
        "resource_type": "csv-observations-collection",
        "members": [
            {
                "resource_name": "platforms-1",
                "resource_type": "platforms",
                "headerrows": 1,
                "fields": platform_fields,
            },
            {
                "resource_name": ["observations-2011", "observations-2012"],
                "resource_type": "observations",
                "headerrows": "1",
                "fields": observation_fields,
            },
        ],
    }


@pytest.fixture
def descriptor(descriptor_dict, mapping):
    """Parsed schema descriptor."""
    return SchemaDescriptor(descriptor_dict, dataset_id="air-temperature", mapping=mapping)


# =============================================================================
# Data File Fixtures
# =============================================================================

@pytest.fixture
def write_file(tmp_path):
    """Factory writing text content to a temporary file."""

    def _write(name, content, encoding="utf-8"):
        path = Path(tmp_path) / name
        path.write_text(content, encoding=encoding)
        return path

    return _write


@pytest.fixture
def csv_file(write_file):
    """Factory writing a CSV file and returning its DataFile."""

    def _csv(resource_id, lines, encoding="utf-8"):
        path = write_file(f"{resource_id}.csv", "\n".join(lines) + "\n", encoding=encoding)
        return DataFile(resource_id=resource_id, path=path, format="csv", encoding=encoding)

    return _csv


@pytest.fixture
def json_file(write_file):
    """Factory writing a JSON document and returning its DataFile."""

    def _json(resource_id, document):
        path = write_file(f"{resource_id}.json", json.dumps(document))
        return DataFile(resource_id=resource_id, path=path, format="application/json")

    return _json


@pytest.fixture
def dataset_files(csv_file):
    """Data files of the descriptor fixture (observations-2012 is missing)."""
    return {
        "platforms-1": csv_file(
            "platforms-1",
            [
                "Stations_ID,station_name,latitude,longitude",
                "1,Muenster,51.96,7.62",
                "2,Bremen,53.08,8.80",
                "3,Hamburg,53.55,9.99",
            ],
        ),
        "observations-2011": csv_file(
            "observations-2011",
            [
                "Stations_ID,timestamp,value",
                "1,2011-07-21T12:00:00Z,21.5",
                "02,2011-07-21T12:00:00Z,19",
                "7,2011-07-21T12:00:00Z,18.25",
            ],
        ),
    }
