"""
esf-json: ESF save dump XML to normalized JSON.

Main package exports for user-facing API.
"""

from esf_json.exceptions import MalformedInputError
from esf_json.parsers import EsfParser, convert, convert_generic
from esf_json.services import ConversionService, AggregationService
from esf_json.api import BatchPipeline

__all__ = [
    'MalformedInputError',
    'EsfParser',
    'convert',
    'convert_generic',
    'ConversionService',
    'AggregationService',
    'BatchPipeline',
]
