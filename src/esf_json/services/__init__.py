"""
Service layer for esf-json.

- ConversionService: XML file -> JSON file, atomic writes
- AggregationService: per-army JSON files -> one JSON array
"""

from esf_json.services.conversion_service import ConversionService, write_json_atomic
from esf_json.services.aggregation_service import AggregationService

__all__ = [
    'ConversionService',
    'AggregationService',
    'write_json_atomic',
]
