"""
Structural normalization of ESF XML into JSON-ready Python values.

ESF dumps encode structure in generic tags: <rec>/<ary> containers whose
meaning comes from a `type` attribute, and unnamed scalars (<u>, <i>, ...)
whose meaning comes from their position among siblings. The parser decides
per node whether to produce an object, a list or a scalar:

1. Known domain records (MILITARY_FORCE, ARMY) are decoded by hand-written
   positional extractors.
2. Generic containers become objects keyed by child `type` (lowercased) or
   tag name; repeated keys collapse into lists.
3. UNITS_ARRAY containers become a flat list of land_unit attribute maps,
   searched at any depth.
4. Text-only leaves become their trimmed text.

Positional fields are read from direct children only. A missing position
reads as None, except the army's escorting ship id which defaults to 0.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging
from lxml import etree

from esf_json.config import RecordMarkers, get_record_markers
from esf_json.exceptions import MalformedInputError
from .merge import MultiValueDict
from .scalars import project_attributes, direct_scalar_values, value_at

logger = logging.getLogger(__name__)

DATA_KEY = 'data'

Predicate = Callable[[etree._Element], bool]
Handler = Callable[[etree._Element], Any]
Builder = Callable[[List[Any]], Any]
Expansion = Tuple[List[Optional[etree._Element]], Builder]
Expander = Callable[[etree._Element], Expansion]


def local_name(node: etree._Element) -> str:
    """Tag name without namespace."""
    return etree.QName(node).localname


def is_element(node: Any) -> bool:
    """True for elements; False for comments and processing instructions."""
    return isinstance(node.tag, str)


def element_children(node: etree._Element) -> List[etree._Element]:
    """Direct child elements in document order."""
    return [child for child in node if is_element(child)]


def parse_xml_bytes(source_xml: Union[bytes, str]) -> etree._Element:
    """
    Parse XML bytes into an lxml root element.

    Args:
        source_xml: Raw document bytes (str is encoded as UTF-8)

    Returns:
        Root element of the parsed document

    Raises:
        MalformedInputError: If the input is not well-formed XML
    """
    if isinstance(source_xml, str):
        source_xml = source_xml.encode('utf-8')

    # No recovery: malformed input must fail instead of yielding a partial tree
    parser = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(source_xml, parser)
    except etree.XMLSyntaxError as e:
        raise MalformedInputError(f"Malformed XML: {e}") from e


def _leaf(handler: Handler) -> Expander:
    """Expander for rules that need no converted children."""
    return lambda node: ([], lambda values: handler(node))


class _Frame:
    """A node waiting for its child nodes to be converted."""

    __slots__ = ('pending', 'build', 'values')

    def __init__(self, children: List[Optional[etree._Element]], build: Builder):
        self.pending = iter(children)
        self.build = build
        self.values: List[Any] = []


_EXHAUSTED = object()


class EsfParser:
    """
    ESF node dispatcher.

    Dispatch is an ordered list of (predicate, expander) pairs; the first
    matching predicate wins and unmatched nodes are treated as generic
    containers. An expander names the child nodes a rule needs converted
    and a builder that assembles the result from their values, so the
    tree is walked with an explicit stack and nesting depth is bounded
    only by memory.

    Args:
        markers: Record markers to dispatch on. Defaults to the packaged
            records.yaml configuration.

    Example:
        >>> parser = EsfParser()
        >>> root = parse_xml_bytes(b'<rec type="MILITARY_FORCE"><u>7</u><u>12</u></rec>')
        >>> parser.parse_node(root)
        {'army_id': 7, 'character_id': 12}
    """

    def __init__(self, markers: Optional[RecordMarkers] = None):
        self.markers = markers if markers is not None else get_record_markers()
        self._rules: Tuple[Tuple[Predicate, Expander], ...] = (
            (self._is_military_force, _leaf(self.parse_military_force)),
            (self._is_army, self._expand_army),
            (self._is_container_tag, self._expand_container),
            (self._is_unit, _leaf(project_attributes)),
            (self._is_text_leaf, _leaf(self._parse_text)),
        )

    # === Dispatch ===

    def parse_document(self, root: etree._Element) -> Any:
        """
        Convert a document root element.

        Typed generic containers wrap themselves under their lowercased type
        at the root (see _assemble_container). An army record at the root
        gets the same treatment here and yields {"army": {...}}. Other
        domain records at the root are returned unwrapped.
        """
        declared = root.get('type')
        logger.debug(f"Converting document root <{local_name(root)}> type={declared}")

        result = self.parse_node(root)

        if declared == self.markers.army_type:
            return {declared.lower(): result}
        return result

    def parse_node(self, node: Optional[etree._Element]) -> Any:
        """
        Convert one node by the first matching dispatch rule.

        Args:
            node: Element to convert, or None for an absent optional sub-node

        Returns:
            Converted value; None when node is None or is an empty text leaf
        """
        if node is None:
            return None

        stack = [_Frame(*self._expand(node))]
        while True:
            frame = stack[-1]
            child = next(frame.pending, _EXHAUSTED)

            if child is _EXHAUSTED:
                stack.pop()
                value = frame.build(frame.values)
                if not stack:
                    return value
                stack[-1].values.append(value)
            elif child is None:
                frame.values.append(None)
            else:
                stack.append(_Frame(*self._expand(child)))

    def _expand(self, node: etree._Element) -> Expansion:
        for predicate, expander in self._rules:
            if predicate(node):
                return expander(node)

        return self._expand_container(node)

    def _is_military_force(self, node: etree._Element) -> bool:
        return node.get('type') == self.markers.military_force_type

    def _is_army(self, node: etree._Element) -> bool:
        return node.get('type') == self.markers.army_type

    def _is_container_tag(self, node: etree._Element) -> bool:
        return self.markers.is_container(local_name(node))

    def _is_unit(self, node: etree._Element) -> bool:
        return local_name(node) == self.markers.unit_tag

    def _is_text_leaf(self, node: etree._Element) -> bool:
        return node.text is not None and not element_children(node)

    def _parse_text(self, node: etree._Element) -> Optional[str]:
        text = node.text.strip()
        return text if text else None

    # === Generic containers ===

    def _expand_container(self, node: etree._Element) -> Expansion:
        if node.get('type') == self.markers.units_array_type:
            return [], lambda values: self.collect_units(node)

        children = element_children(node)
        return children, lambda values: self._assemble_container(node, children, values)

    def collect_units(self, node: etree._Element) -> List[Dict[str, Union[int, str]]]:
        """
        Project every land_unit in a UNITS_ARRAY subtree, in document order.

        Units may sit under intermediate wrappers, so the whole subtree is
        searched rather than direct children only.
        """
        return [
            project_attributes(unit)
            for unit in node.iterdescendants()
            if is_element(unit) and local_name(unit) == self.markers.unit_tag
        ]

    def _assemble_container(
        self,
        node: etree._Element,
        children: List[etree._Element],
        values: List[Any]
    ) -> Dict[str, Any]:
        """
        Merge converted children into an object.

        Each value is stored under its child's lowercased type, 'data' for
        untyped nested containers, or its tag name. Children converting to
        None are dropped. A typed container at the document root is
        wrapped as {type.lower(): object}.
        """
        data = MultiValueDict(always_many=(DATA_KEY,))

        for child, child_data in zip(children, values):
            if child_data is None:
                continue
            data.add(self._merge_key(child), child_data)

        result = data.to_dict()

        declared = node.get('type')
        if declared and node.getparent() is None:
            return {declared.lower(): result}
        return result

    def _merge_key(self, child: etree._Element) -> str:
        declared = child.get('type')
        if declared:
            return declared.lower()

        name = local_name(child)
        if self.markers.is_container(name):
            return DATA_KEY
        return name

    # === Domain records ===

    def parse_military_force(self, node: etree._Element) -> Dict[str, Optional[int]]:
        """
        Decode a MILITARY_FORCE record from its direct <u> children.

        Position 0 is the army id, position 1 the character id. A missing
        position reads as None.
        """
        values = direct_scalar_values(node, self.markers.unsigned_tag)
        return {
            'army_id': value_at(values, 0),
            'character_id': value_at(values, 1),
        }

    def _expand_army(self, node: etree._Element) -> Expansion:
        sub_records = [
            self._find_typed_child(node, self.markers.military_force_type),
            self._find_typed_child(node, self.markers.units_array_type),
        ]
        return sub_records, lambda values: self._assemble_army(node, *values)

    def _assemble_army(self, node: etree._Element, military_force: Any, units_array: Any) -> Dict[str, Any]:
        """
        Build an ARMY record from its converted sub-records.

        Sub-records are the first direct children declaring the military
        force and units array types (None when absent). The footer is read
        from the direct <i> and <u> scalars:

            i[0] -> army_id_check              (None when absent)
            u[0] -> army_in_building_slot_id   (None when absent)
            u[1] -> escorting_ship_id          (0 when absent)

        under_siege is False when a direct <no> child is present.
        """
        footer_i = direct_scalar_values(node, self.markers.signed_tag)
        footer_u = direct_scalar_values(node, self.markers.unsigned_tag)
        under_siege = not any(
            local_name(child) == self.markers.no_marker_tag
            for child in element_children(node)
        )

        return {
            'military_force': military_force,
            'units_array': units_array,
            'meta_data': {
                'army_id_check': value_at(footer_i, 0),
                'army_in_building_slot_id': value_at(footer_u, 0),
                'under_siege': under_siege,
                'escorting_ship_id': value_at(footer_u, 1, default=0),
            }
        }

    def _find_typed_child(self, node: etree._Element, declared: str) -> Optional[etree._Element]:
        for child in element_children(node):
            if child.get('type') == declared:
                return child
        return None


def convert(source_xml: Union[bytes, str], markers: Optional[RecordMarkers] = None) -> Any:
    """
    Convert an ESF XML document to a JSON-ready value.

    Args:
        source_xml: Raw XML document
        markers: Optional record markers (defaults to records.yaml)

    Returns:
        Converted document rooted at the document element

    Raises:
        MalformedInputError: If the input is not well-formed XML

    Example:
        >>> convert(b'<rec type="ARMY"><i>7</i><u>3</u></rec>')['army']['meta_data']
        {'army_id_check': 7, 'army_in_building_slot_id': 3, 'under_siege': True, 'escorting_ship_id': 0}
    """
    root = parse_xml_bytes(source_xml)
    return EsfParser(markers).parse_document(root)
