"""
XML parsing modules for ESF save dumps.

- esf_parser: structural normalization of rec/ary/typed records
- generic_parser: plain XML flattening for untyped documents
- scalars / merge: value coercion and multiplicity-merging helpers
"""

from .esf_parser import EsfParser, convert, parse_xml_bytes
from .generic_parser import convert_generic, element_to_value
from .scalars import coerce_scalar, project_attributes
from .merge import MultiValueDict

__all__ = [
    # Structural normalization
    'EsfParser',
    'convert',
    'parse_xml_bytes',
    # Generic flattening
    'convert_generic',
    'element_to_value',
    # Helpers
    'coerce_scalar',
    'project_attributes',
    'MultiValueDict',
]
