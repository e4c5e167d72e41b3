"""
Scalar coercion and attribute projection for ESF XML values.
"""

import re
from typing import Dict, List, Optional, Union
from lxml import etree


INTEGER_PATTERN = re.compile(r'-?[0-9]+')
LEADING_INTEGER_PATTERN = re.compile(r'\s*([-+]?[0-9]+)')


def coerce_scalar(text: str) -> Union[int, str]:
    """
    Convert text to int when it is an integer literal, otherwise keep it.

    Only an optional leading minus followed by decimal digits qualifies.
    No floats, no '+' sign, no locale-specific digits.

    Example:
        >>> coerce_scalar('042')
        42
        >>> coerce_scalar('-7')
        -7
        >>> coerce_scalar('4.2')
        '4.2'
        >>> coerce_scalar('+3')
        '+3'

    Digit strings beyond the interpreter's int conversion limit stay text.
    """
    if INTEGER_PATTERN.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            return text
    return text


def project_attributes(node: etree._Element) -> Dict[str, Union[int, str]]:
    """
    Convert an element's attributes to a flat mapping.

    Preserves attribute declaration order and coerces each value with
    coerce_scalar(). An element without attributes yields an empty dict.

    Args:
        node: Leaf unit record element (e.g., <land_unit .../>)

    Returns:
        Dictionary mapping attribute name to coerced value
    """
    return {
        etree.QName(name).localname: coerce_scalar(value)
        for name, value in node.attrib.items()
    }


def text_to_int(text: Optional[str]) -> int:
    """
    Read the leading integer of a scalar tag's text.

    Surrounding whitespace and a leading '+' are ignored. Text without a
    usable leading integer (including empty text, or more digits than the
    interpreter converts) reads as 0.

    Example:
        >>> text_to_int(' 12 ')
        12
        >>> text_to_int('+3')
        3
        >>> text_to_int('')
        0
    """
    if not text:
        return 0
    match = LEADING_INTEGER_PATTERN.match(text)
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        return 0


def direct_scalar_values(node: etree._Element, tag: str) -> List[int]:
    """
    Collect integer values of same-named direct children, in document order.

    Only the node's direct children are considered so that scalars of
    nested sub-records are never picked up.

    Args:
        node: Parent record element
        tag: Local tag name of the scalar children (e.g., 'u' or 'i')

    Returns:
        List of integers, one per matching child
    """
    return [
        text_to_int(child.text)
        for child in node
        if isinstance(child.tag, str) and etree.QName(child).localname == tag
    ]


def value_at(values: List[int], position: int, default: Optional[int] = None) -> Optional[int]:
    """Return values[position], or default when the position is absent."""
    return values[position] if position < len(values) else default
