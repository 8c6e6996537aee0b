# =============================================================================
# Configuration Models Module
# =============================================================================
# Provides the Pydantic Settings model of the harvester core:
# - HarvesterSettings: mapping lookup directory, CRS, CSV and encoding defaults
# =============================================================================

import codecs
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from harvester.constants import DEFAULT_CRS, DEFAULT_ENCODING
from .spatial import CRS

__all__ = ["HarvesterSettings"]


class HarvesterSettings(BaseSettings):
    """
    Configuration for the harvester core.

    Maps environment variables with prefix "HARVESTER_":
    - HARVESTER_MAPPING_CONFIG_DIR → mapping_config_dir
    - HARVESTER_DEFAULT_CRS → default_crs
    - HARVESTER_CSV_DELIMITER → csv_delimiter
    - HARVESTER_DEFAULT_ENCODING → default_encoding

    Attributes:
        mapping_config_dir: Directory searched for alias mapping overrides
        default_crs: CRS assumed for coordinates without a declared CRS
        csv_delimiter: Single-character CSV delimiter (default: ",")
        default_encoding: Text encoding for files that declare none
    """

    mapping_config_dir: Optional[Path] = Field(
        None,
        validation_alias="HARVESTER_MAPPING_CONFIG_DIR",
        description="Directory holding config-ckan-mapping[-<dataset>].json documents",
    )
    default_crs: CRS = Field(DEFAULT_CRS, validation_alias="HARVESTER_DEFAULT_CRS", description="Default CRS")
    csv_delimiter: str = Field(",", validation_alias="HARVESTER_CSV_DELIMITER", description="CSV delimiter")
    default_encoding: str = Field(DEFAULT_ENCODING, validation_alias="HARVESTER_DEFAULT_ENCODING", description="Default text encoding")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated env vars from shared .env files
        validate_default=True,
        populate_by_name=True,
    )

    @field_validator("csv_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError(f"CSV delimiter must be exactly one character, got '{v}'")
        return v

    @field_validator("default_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown text encoding: '{v}'") from e
