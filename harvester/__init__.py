# =============================================================================
# Open Data Harvester Core
# =============================================================================
# Schema-driven ETL core for open-data observation datasets.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Open data harvester core.

Sub-packages:
- mapping: Alias mapping resolver (raw spellings -> canonical identifiers)
- models: Schema descriptor, resource members/fields, data files, settings
- table: In-memory relational table, extend/join operators, table loaders
- interpreters: Geometry, time, phenomenon and track interpreters
"""

__version__ = "0.1.0"
