"""Node handles and structural primitives over lxml trees.

lxml does not model text as nodes. Character data lives on the element
before it: ``element.text`` holds the run before the first child and
``element.tail`` the run after the element's end tag. The helpers in this
module keep that text where a DOM would keep it when nodes are moved,
inserted or removed, and :class:`TextNode` gives the text slots a handle
so they can sit in a NodeSet next to elements.
"""

import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from lxml import etree

ELEMENT_NODE = 1
TEXT_NODE = 3
ENTITY_REFERENCE_NODE = 5
PROCESSING_INSTRUCTION_NODE = 7
COMMENT_NODE = 8

# Holds the text of a detached TextNode; never part of a document
TEXT_CARRIER_TAG = "lxquery-text"


class TextNode:
    """Handle for the ``text`` or ``tail`` slot of an lxml element."""

    __slots__ = ("owner", "is_tail")

    def __init__(self, owner: etree._Element, is_tail: bool = False) -> None:
        self.owner = owner
        self.is_tail = is_tail

    @property
    def value(self) -> str:
        text = self.owner.tail if self.is_tail else self.owner.text
        return text or ""

    @value.setter
    def value(self, text: Optional[str]) -> None:
        if self.is_tail:
            self.owner.tail = text
        else:
            self.owner.text = text

    @property
    def parent(self) -> Optional[etree._Element]:
        if self.is_tail:
            return self.owner.getparent()
        return None if self.is_detached else self.owner

    @property
    def is_detached(self) -> bool:
        return not self.is_tail and self.owner.tag == TEXT_CARRIER_TAG

    def detach(self) -> str:
        """Clear the slot and return the text it held."""
        text = self.value
        self.value = None
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextNode):
            return NotImplemented
        return self.owner is other.owner and self.is_tail == other.is_tail

    def __hash__(self) -> int:
        return hash((id(self.owner), self.is_tail))

    def __repr__(self) -> str:
        slot = "tail" if self.is_tail else "text"
        return f"<TextNode {slot} of {self.owner!r}: {self.value!r}>"


Node = Union[etree._Element, TextNode]
Item = Union[etree._Element, str]


def is_node(obj: Any) -> bool:
    """True for lxml nodes and text handles."""
    return isinstance(obj, (etree._Element, TextNode))


def is_element(obj: Any) -> bool:
    """True for lxml elements proper (not comments, PIs or entities)."""
    return isinstance(obj, etree._Element) and isinstance(obj.tag, str)


def node_type(node: Node) -> Optional[int]:
    """Return the DOM node category of a handle."""
    if isinstance(node, TextNode):
        return TEXT_NODE
    if isinstance(node, etree._Comment):
        return COMMENT_NODE
    if isinstance(node, etree._ProcessingInstruction):
        return PROCESSING_INSTRUCTION_NODE
    if isinstance(node, etree._Entity):
        return ENTITY_REFERENCE_NODE
    if isinstance(node, etree._Element):
        return ELEMENT_NODE
    return None


def tag_name(node: Any) -> str:
    """Qualified tag name of an element, or an empty string."""
    if not is_element(node):
        return ""
    qname = etree.QName(node)
    if node.prefix:
        return f"{node.prefix}:{qname.localname}"
    return qname.localname


def create_element(tag: str, attrib: Optional[Dict[str, str]] = None,
                   text: Optional[str] = None,
                   nsmap: Optional[Dict[Optional[str], str]] = None) -> etree._Element:
    """Create a detached element in a document of its own."""
    element = etree.Element(tag, attrib or {}, nsmap=nsmap)
    element.text = text
    return element


def create_text(value: Any) -> str:
    """Text is inserted as plain strings next to elements."""
    return value if isinstance(value, str) else str(value)


def detached_text(value: str) -> TextNode:
    """A text handle that belongs to no document tree."""
    carrier = etree.Element(TEXT_CARRIER_TAG)
    carrier.text = value
    return TextNode(carrier)


# Navigation

def owner_element(node: Node) -> etree._Element:
    return node.owner if isinstance(node, TextNode) else node


def parent_of(node: Node) -> Optional[etree._Element]:
    if isinstance(node, TextNode):
        return node.parent
    return node.getparent()


def ancestors(node: Node) -> Iterator[etree._Element]:
    parent = parent_of(node)
    while parent is not None:
        yield parent
        parent = parent.getparent()


def element_children(element: etree._Element) -> List[etree._Element]:
    return [child for child in element if is_element(child)]


def content_nodes(element: etree._Element) -> List[Node]:
    """All child nodes of ``element`` including text, in document order."""
    nodes: List[Node] = []
    if element.text:
        nodes.append(TextNode(element))
    for child in element:
        nodes.append(child)
        if child.tail:
            nodes.append(TextNode(child, is_tail=True))
    return nodes


def following_elements(node: etree._Element) -> Iterator[etree._Element]:
    for sibling in node.itersiblings():
        if is_element(sibling):
            yield sibling


def preceding_elements(node: etree._Element) -> Iterator[etree._Element]:
    """Preceding sibling elements, nearest first."""
    for sibling in node.itersiblings(preceding=True):
        if is_element(sibling):
            yield sibling


def innermost(element: etree._Element) -> etree._Element:
    """Follow first element children down to a leaf."""
    while True:
        children = element_children(element)
        if not children:
            return element
        element = children[0]


def top_ancestor(node: Node) -> etree._Element:
    element = owner_element(node)
    parent = element.getparent()
    while parent is not None:
        element = parent
        parent = element.getparent()
    return element


def document_root(node: Node) -> Optional[etree._Element]:
    """Root element of the lxml document owning ``node``.

    Detached nodes keep the document they were parsed or created in, so
    this is a stable document identity.
    """
    return owner_element(node).getroottree().getroot()


def same_document(a: Node, b: Node) -> bool:
    return document_root(a) is document_root(b)


def is_ancestor_or_self(candidate: etree._Element, node: Node) -> bool:
    element: Optional[etree._Element] = owner_element(node)
    while element is not None:
        if element is candidate:
            return True
        element = element.getparent()
    return False


# Text content and attributes

def text_content(node: Node) -> str:
    """String value of a node as XPath defines it."""
    if isinstance(node, TextNode):
        return node.value
    if is_element(node):
        return str(node.xpath("string()"))
    return node.text or ""


def get_attribute(node: Node, name: str) -> Optional[str]:
    if not is_element(node):
        return None
    return node.get(name)


def set_attribute(node: Node, name: str, value: Any) -> None:
    if not is_element(node):
        return
    if value is None:
        remove_attribute(node, name)
    else:
        node.set(name, str(value))


def remove_attribute(node: Node, name: str) -> None:
    if is_element(node) and name in node.attrib:
        del node.attrib[name]


def has_attribute(node: Node, name: str) -> bool:
    return is_element(node) and name in node.attrib


# Structural mutation

def _append_text(parent: etree._Element, anchor: Optional[etree._Element], text: str) -> None:
    if anchor is None:
        parent.text = (parent.text or "") + text
    else:
        anchor.tail = (anchor.tail or "") + text


def detach(node: etree._Element) -> etree._Element:
    """Remove ``node`` from its parent, leaving its tail text behind."""
    parent = node.getparent()
    tail = node.tail
    node.tail = None
    if parent is None:
        return node
    if tail:
        _append_text(parent, node.getprevious(), tail)
    parent.remove(node)
    return node


def detach_text(node: TextNode) -> TextNode:
    """Clear a text slot and return a detached handle holding its text."""
    return detached_text(node.detach())


def sibling_position(node: Node, after: bool = False
                     ) -> Optional[Tuple[etree._Element, int, bool]]:
    """Where items go to land just before or just after ``node``.

    Returns ``(parent, index, displace_text)`` arguments for
    :func:`insert_items`, or None when ``node`` has no parent. The text slot
    of an element sits before its first child and a tail slot right after
    its owner.
    """
    parent = parent_of(node)
    if parent is None:
        return None
    if isinstance(node, TextNode):
        index = parent.index(node.owner) + 1 if node.is_tail else 0
        return parent, index, not after
    index = parent.index(node)
    if after:
        return parent, index + 1, True
    return parent, index, False


def insert_items(parent: etree._Element, index: int, items: Sequence[Item],
                 displace_text: bool = False) -> None:
    """Splice nodes and strings into ``parent`` at child position ``index``.

    Items must already be detached. Strings join the text slot preceding
    their position. With ``displace_text`` the text that already followed
    the insertion point (``parent.text`` at index 0, otherwise the tail of
    the child before ``index``) is moved behind the inserted items.
    """
    anchor = parent[index - 1] if index > 0 else None
    displaced = None
    if displace_text:
        if anchor is None:
            displaced, parent.text = parent.text, None
        else:
            displaced, anchor.tail = anchor.tail, None

    for item in items:
        if isinstance(item, str):
            if item:
                _append_text(parent, anchor, item)
            continue
        item.tail = None
        parent.insert(index, item)
        index += 1
        anchor = item

    if displaced:
        _append_text(parent, anchor, displaced)


def replace_node(old: etree._Element, items: Sequence[Item]) -> bool:
    """Put ``items`` where ``old`` was; return False if ``old`` has no parent."""
    parent = old.getparent()
    if parent is None:
        return False
    tail = old.tail
    old.tail = None
    index = parent.index(old)
    parent.remove(old)
    insert_items(parent, index, list(items) + ([tail] if tail else []))
    return True


def remove_children(element: etree._Element) -> None:
    element.text = None
    for child in list(element):
        element.remove(child)


def clone_node(node: Node, deep: bool = True) -> Item:
    """Copy a node into a new document; text handles copy to strings."""
    if isinstance(node, TextNode):
        return node.value
    if deep or not is_element(node):
        clone = copy.deepcopy(node)
    else:
        clone = create_element(node.tag, dict(node.attrib), node.text, nsmap=node.nsmap)
    clone.tail = None
    return clone


def import_node(node: Node, target: Node) -> Item:
    """Return ``node`` ready for insertion next to or inside ``target``.

    The node is moved when both share a document, and cloned otherwise.
    """
    if isinstance(node, TextNode):
        if same_document(node, target):
            return node.detach()
        return node.value
    if same_document(node, target) and not is_ancestor_or_self(node, target):
        return detach(node)
    return clone_node(node)


# Document order

class _TreeIndex:
    """Positions of every node in one lxml tree."""

    def __init__(self, top: etree._Element) -> None:
        self.nodes = list(top.iter())
        self.position = {id(node): pos for pos, node in enumerate(self.nodes)}
        self._extent: Optional[Dict[int, Tuple[int, int]]] = None

    def _extents(self) -> Dict[int, Tuple[int, int]]:
        # (position of last descendant, depth) per node
        if self._extent is None:
            depth: Dict[int, int] = {}
            last: Dict[int, int] = {}
            for node in self.nodes:
                parent = node.getparent()
                depth[id(node)] = depth.get(id(parent), -1) + 1 if parent is not None else 0
            for pos in range(len(self.nodes) - 1, -1, -1):
                node = self.nodes[pos]
                last[id(node)] = last[id(node[-1])] if len(node) else pos
            self._extent = {key: (last[key], depth[key]) for key in last}
        return self._extent

    def key(self, node: Node) -> Tuple[int, int, int]:
        if isinstance(node, TextNode):
            owner_id = id(node.owner)
            if not node.is_tail:
                return (self.position[owner_id], 1, 0)
            last, depth = self._extents()[owner_id]
            return (last, 2, -depth)
        return (self.position[id(node)], 0, 0)


def document_order(nodes: Iterable[Any]) -> List[Any]:
    """Sort handles into document order.

    Nodes from separate trees are grouped by the order in which each tree
    is first seen. Values that are not nodes keep their relative order and
    go last.
    """
    indexes: Dict[int, Tuple[int, _TreeIndex, etree._Element]] = {}
    keyed = []
    extras = []
    for node in nodes:
        if not is_node(node):
            extras.append(node)
            continue
        top = top_ancestor(node)
        entry = indexes.get(id(top))
        if entry is None:
            entry = indexes[id(top)] = (len(indexes), _TreeIndex(top), top)
        keyed.append(((entry[0],) + entry[1].key(node), node))
    keyed.sort(key=lambda pair: pair[0])
    return [node for _, node in keyed] + extras
