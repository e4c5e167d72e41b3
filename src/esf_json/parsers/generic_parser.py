"""
Generic XML -> JSON flattener for subtrees without ESF record semantics.

Conventions:
- Attributes become keys with their raw string values
- Child elements are merged by tag name; repeated tags become lists
- Non-empty trimmed text is returned directly when the element has nothing
  else, otherwise it is stored under 'content'
- An element that yields nothing converts to None
"""

from typing import Any, Dict, List, Tuple, Union
from lxml import etree

from .esf_parser import element_children, local_name, parse_xml_bytes
from .merge import MultiValueDict


CONTENT_KEY = 'content'


def element_to_value(element: etree._Element) -> Any:
    """
    Convert an element to a dict, a string, or None.

    The subtree is walked with an explicit stack, so deeply nested
    documents convert without hitting the interpreter's recursion limit.

    Args:
        element: lxml element

    Returns:
        Dictionary of attributes and children, the element's text for
        text-only elements, or None for empty elements
    """
    stack = [(element, iter(element_children(element)), [])]
    while True:
        node, pending, converted = stack[-1]
        child = next(pending, None)
        if child is not None:
            stack.append((child, iter(element_children(child)), []))
            continue

        stack.pop()
        value = _assemble(node, converted)
        if not stack:
            return value
        stack[-1][2].append((local_name(node), value))


def _assemble(element: etree._Element, converted: List[Tuple[str, Any]]) -> Any:
    result = MultiValueDict()

    for name, value in element.attrib.items():
        result.add(etree.QName(name).localname, value)

    for name, value in converted:
        result.add(name, value)

    text = (element.text or '').strip()
    if text:
        if not len(result):
            return text
        result.add(CONTENT_KEY, text)

    return result.to_dict() if len(result) else None


def convert_generic(source_xml: Union[bytes, str]) -> Dict[str, Any]:
    """
    Convert an arbitrary XML document to {root_tag: value}.

    Raises:
        MalformedInputError: If the input is not well-formed XML
    """
    root = parse_xml_bytes(source_xml)
    return {local_name(root): element_to_value(root)}
