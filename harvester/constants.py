# =============================================================================
# Canonical Names
# =============================================================================
# Canonical (lower-cased) names used for alias lookups. Raw spellings found in
# schema descriptors are resolved against these via the alias mapping groups.
# =============================================================================

"""Canonical identifiers shared across the harvester."""

# -----------------------------------------------------------------------------
# Schema descriptor properties (group: schema_descriptor)
# -----------------------------------------------------------------------------
DESCRIPTOR_VERSION = "version"
DESCRIPTOR_DESCRIPTION = "description"
DESCRIPTOR_RESOURCE_TYPE = "resource_type"
DESCRIPTOR_MEMBERS = "members"
DESCRIPTOR_FIELDS = "fields"

# -----------------------------------------------------------------------------
# Member and field properties (group: property)
# -----------------------------------------------------------------------------
PROPERTY_RESOURCE_NAME = "resource_name"
PROPERTY_RESOURCE_TYPE = "resource_type"
PROPERTY_HEADER_ROWS = "headerrows"
PROPERTY_FIELD_ID = "field_id"
PROPERTY_SHORT_NAME = "short_name"
PROPERTY_LONG_NAME = "long_name"
PROPERTY_DESCRIPTION = "description"
PROPERTY_FIELD_TYPE = "field_type"
PROPERTY_FIELD_ROLE = "field_role"
PROPERTY_NO_DATA = "no_data"
PROPERTY_PHENOMENON = "phenomenon"
PROPERTY_PHENOMENON_REF = "phenomenon_ref"
PROPERTY_UOM = "uom"
PROPERTY_CRS = "crs"
PROPERTY_DATE_FORMAT = "date_format"

# -----------------------------------------------------------------------------
# Known field ids (group: field)
# -----------------------------------------------------------------------------
FIELD_STATION_ID = "station_id"
FIELD_STATION_NAME = "station_name"
FIELD_CRS = "crs"
FIELD_LATITUDE = "latitude"
FIELD_LONGITUDE = "longitude"
FIELD_ALTITUDE = "altitude"
FIELD_LOCATION = "location"
FIELD_OBSERVATION_TIME = "timestamp"
FIELD_VALID_TIME_START = "valid_time_start"
FIELD_VALID_TIME_END = "valid_time_end"
FIELD_VALUE = "value"
FIELD_TRACK_ID = "track_id"
FIELD_TRACK_POINT = "track_point"

# -----------------------------------------------------------------------------
# Field roles (group: role)
# -----------------------------------------------------------------------------
ROLE_LATITUDE = "latitude"
ROLE_LONGITUDE = "longitude"
ROLE_HEIGHT = "height"
ROLE_TIMESTAMP = "timestamp"
ROLE_VALID_TIME_START = "valid_time_start"
ROLE_VALID_TIME_END = "valid_time_end"
ROLE_LOCATION = "location"

# -----------------------------------------------------------------------------
# Data types (group: datatype)
# -----------------------------------------------------------------------------
TYPE_INTEGER = "integer"
TYPE_DOUBLE = "double"
TYPE_STRING = "string"
TYPE_BOOLEAN = "boolean"
TYPE_DATE = "date"
TYPE_GEOMETRY = "geometry"
TYPE_JSON_OBJECT = "jsonobject"

NUMERIC_TYPES = (TYPE_INTEGER, TYPE_DOUBLE)

# -----------------------------------------------------------------------------
# Resource types (group: resource_type)
# -----------------------------------------------------------------------------
RESOURCE_CSV_OBSERVATIONS_COLLECTION = "csv-observations-collection"
RESOURCE_PLATFORMS = "platforms"
RESOURCE_OBSERVATIONS = "observations"
RESOURCE_OBSERVATIONS_WITH_GEOMETRY = "observations_with_geometry"
RESOURCE_OBSERVED_GEOMETRIES = "observed_geometries"

PLATFORM_RESOURCE_TYPES = (
    RESOURCE_PLATFORMS,
    RESOURCE_OBSERVED_GEOMETRIES,
    RESOURCE_OBSERVATIONS_WITH_GEOMETRY,
)
OBSERVATION_RESOURCE_TYPES = (
    RESOURCE_OBSERVATIONS,
    RESOURCE_OBSERVATIONS_WITH_GEOMETRY,
)

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------
DEFAULT_CRS = "EPSG:4326"
DEFAULT_ENCODING = "utf-8"
DEFAULT_HEADER_ROWS = 1
DEFAULT_TRACK_SEPARATOR = "-"
DEFAULT_MAPPING_FILE = "config-ckan-mapping.json"
DATASET_MAPPING_FILE_PATTERN = "config-ckan-mapping-{dataset_id}.json"
