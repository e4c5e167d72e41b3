"""
Pydantic models for conversion results and batch statistics.
"""

from esf_json.models.results import ConversionResult, BatchStatistics

__all__ = [
    'ConversionResult',
    'BatchStatistics',
]
