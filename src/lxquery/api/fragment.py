"""Resolution of insertion arguments into fragments."""

from typing import Any, List, Optional, Sequence, Union

from lxml import etree

from ..shared.errors import InsertionError
from ..tree.document import Document, DocumentLoader
from ..tree.nodes import Item, Node, TextNode, clone_node, import_node, is_element, is_node
from .nodeset import NodeSet


class Fragment:
    """Nodes and strings to be spliced relative to one or more targets.

    ``owned`` marks content nobody else references (freshly parsed
    markup), which the first target may consume without copying. Content
    taken from existing nodes is moved to the first target when it lives in
    the same document and cloned otherwise; every further target gets
    clones.
    """

    def __init__(self, items: Optional[Sequence[Union[Node, str]]] = None,
                 owned: bool = False) -> None:
        self.items: List[Union[Node, str]] = list(items or [])
        self.owned = owned

    @property
    def is_empty(self) -> bool:
        return not self.items

    def first_element(self) -> Optional[etree._Element]:
        for item in self.items:
            if is_element(item):
                return item
        return None

    def materialize(self, target: Node, first: bool) -> List[Item]:
        """Produce detached items to insert at ``target``."""
        items: List[Item] = []
        for position, item in enumerate(self.items):
            if isinstance(item, str):
                items.append(item)
            elif isinstance(item, TextNode):
                text = item.value
                if first:
                    import_node(item, target)
                    self.items[position] = text
                items.append(text)
            elif not first:
                items.append(clone_node(item))
            elif self.owned:
                items.append(item)
            else:
                items.append(import_node(item, target))
        return items

    def __repr__(self) -> str:
        return f"<Fragment {len(self.items)} items owned={self.owned}>"


def _node_items(values: Any) -> List[Node]:
    items = []
    for value in values:
        if not is_node(value):
            raise InsertionError(f"Cannot insert object of type {type(value).__name__}")
        items.append(value)
    return items


def resolve_fragment(value: Any, loader: DocumentLoader, html: bool = False) -> Fragment:
    """Turn an insertion argument into a :class:`Fragment`.

    Args:
        value: Markup string, MatchSet, NodeSet, lxml node or tree, TextNode,
            Document, or a list/tuple of nodes
        loader: Loader used to parse markup
        html: Parse markup as HTML

    Raises:
        InsertionError: If ``value`` is of an unsupported type
        ParseError: If markup cannot be parsed
    """
    from .matchset import MatchSet

    if value is None:
        return Fragment()
    if isinstance(value, str):
        return Fragment(loader.parse_fragment(value, html=html), owned=True)
    if isinstance(value, MatchSet):
        return Fragment(_node_items(value.node_set.nodes))
    if isinstance(value, NodeSet):
        return Fragment(_node_items(value.nodes))
    if is_node(value):
        return Fragment([value])
    if isinstance(value, etree._ElementTree):
        root = value.getroot()
        return Fragment([root] if root is not None else [])
    if isinstance(value, Document):
        return Fragment([value.root] if value.root is not None else [])
    if isinstance(value, (list, tuple)):
        return Fragment(_node_items(value))
    raise InsertionError(f"Cannot insert object of type {type(value).__name__}")
