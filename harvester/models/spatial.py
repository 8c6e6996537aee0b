# =============================================================================
# Spatial Types Module
# =============================================================================
# Provides reusable spatial helpers with validation:
# - CRS: Coordinate Reference System (EPSG, bare EPSG code, WKT, PROJ)
# - FeatureType: Sampling feature type URIs
# - srid_of: EPSG code extraction
# =============================================================================

import re
from enum import Enum
from typing import Annotated, Optional

from pydantic import BeforeValidator, Field

__all__ = ["CRS", "FeatureType", "srid_of", "validate_crs"]


# =============================================================================
# Enums
# =============================================================================

class FeatureType(str, Enum):
    """Sampling feature type derived from a geometry."""
    SAMPLING_POINT = "http://www.opengis.net/def/samplingFeatureType/OGC-OM/2.0/SF_SamplingPoint"
    SAMPLING_CURVE = "http://www.opengis.net/def/samplingFeatureType/OGC-OM/2.0/SF_SamplingCurve"
    SAMPLING_SURFACE = "http://www.opengis.net/def/samplingFeatureType/OGC-OM/2.0/SF_SamplingSurface"
    UNKNOWN = "http://www.opengis.net/def/nil/OGC/0/unknown"


# =============================================================================
# CRS (Coordinate Reference System)
# =============================================================================

_EPSG_PATTERN = re.compile(r"^EPSG:(\d{4,6})$", re.IGNORECASE)
_BARE_CODE_PATTERN = re.compile(r"^\d{3,6}$")


def validate_crs(value: str) -> str:
    """
    Validate and normalize a Coordinate Reference System string.

    Supports four formats:
    1. EPSG codes: "EPSG:4326", "epsg:25832" (normalized to uppercase)
    2. Bare EPSG codes: "4326" (normalized to "EPSG:4326")
    3. WKT strings: "PROJCS[...]", "GEOGCS[...]", "COMPD_CS[...]", "GEOCCS[...]"
    4. PROJ strings: "+proj=utm +zone=32 ..."

    Args:
        value: CRS string to validate

    Returns:
        Normalized CRS string

    Raises:
        TypeError: If the value is not a string
        ValueError: If the CRS format is invalid
    """
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise TypeError(f"CRS must be a string, got {type(value).__name__}")

    value = value.strip()
    if not value:
        raise ValueError("CRS cannot be empty or whitespace only")

    if _BARE_CODE_PATTERN.match(value):
        return f"EPSG:{value}"

    if _EPSG_PATTERN.match(value):
        return value.upper()

    wkt_starts = ("PROJCS[", "GEOGCS[", "COMPD_CS[", "GEOCCS[")
    if value.startswith(wkt_starts) and value.endswith("]"):
        if value.count("[") == value.count("]"):
            return value

    if value.startswith("+proj=") and "=" in value[6:]:
        return value

    raise ValueError(
        f"Invalid CRS format. Must be one of:\n"
        f"  - EPSG code: 'EPSG:4326' or '4326'\n"
        f"  - WKT string: 'PROJCS[...]' or 'GEOGCS[...]'\n"
        f"  - PROJ string: '+proj=utm +zone=32 ...'\n"
        f"Got: {value[:100]}{'...' if len(value) > 100 else ''}"
    )


def srid_of(crs: str) -> Optional[int]:
    """
    Return the EPSG code of a normalized CRS, or None for WKT/PROJ strings.

    Examples:
        >>> srid_of("EPSG:25832")
        25832
        >>> srid_of("+proj=longlat") is None
        True
    """
    match = _EPSG_PATTERN.match(crs)
    return int(match.group(1)) if match else None


CRS = Annotated[
    str,
    Field(..., description="Coordinate Reference System"),
    BeforeValidator(validate_crs)
]
"""
Coordinate Reference System type.

Examples:
    >>> crs: CRS = "EPSG:4326"  # Valid
    >>> crs: CRS = "4326"  # Valid, normalized to "EPSG:4326"
    >>> crs: CRS = "+proj=utm +zone=32"  # Valid PROJ string
"""
