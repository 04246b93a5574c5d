"""Ordered, identity-deduplicated collections of node handles."""

from typing import Any, Callable, Iterable, Iterator, List, Optional, Union

from ..tree.nodes import TextNode, document_order, is_node


def _identity(value: Any) -> Any:
    # TextNode compares by slot; everything else by object identity
    return value if isinstance(value, TextNode) else id(value)


def _dedupe(values: Iterable[Any]) -> List[Any]:
    seen = set()
    unique = []
    for value in values:
        key = _identity(value)
        if key in seen:
            continue
        seen.add(key)
        unique.append(value)
    return unique


class NodeSet:
    """An ordered sequence of node handles that behaves as a set.

    Constructing a NodeSet drops repeated handles (by identity) and keeps the
    first occurrence. :meth:`ordered` additionally sorts into document order.
    Only :meth:`map` produces sets that may hold duplicates or non-node
    values.

    Examples:
        >>> from lxml import etree
        >>> root = etree.fromstring("<r><a/><b/></r>")
        >>> a, b = root
        >>> len(NodeSet([b, a, b]))
        2
        >>> NodeSet([b, a]).union([a]).index_of(a)
        0
    """

    __slots__ = ("_nodes",)

    def __init__(self, nodes: Optional[Iterable[Any]] = None) -> None:
        self._nodes: List[Any] = _dedupe(nodes) if nodes is not None else []

    @classmethod
    def ordered(cls, nodes: Iterable[Any]) -> "NodeSet":
        """Deduplicate ``nodes`` and sort them into document order."""
        return cls._raw(document_order(_dedupe(nodes)))

    @classmethod
    def _raw(cls, nodes: List[Any]) -> "NodeSet":
        node_set = cls()
        node_set._nodes = nodes
        return node_set

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._nodes))

    def __getitem__(self, index: Union[int, slice]) -> Any:
        if isinstance(index, slice):
            return NodeSet._raw(self._nodes[index])
        return self._nodes[index]

    def __contains__(self, node: Any) -> bool:
        key = _identity(node)
        return any(_identity(existing) == key for existing in self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeSet):
            return NotImplemented
        return [_identity(n) for n in self._nodes] == [_identity(n) for n in other._nodes]

    def __repr__(self) -> str:
        return f"NodeSet({self._nodes!r})"

    @property
    def nodes(self) -> List[Any]:
        return list(self._nodes)

    def union(self, other: Iterable[Any]) -> "NodeSet":
        """Combine with ``other``, dedupe by identity and sort into document order."""
        return NodeSet.ordered(list(self._nodes) + list(other))

    def slice(self, start: int, length: Optional[int] = None) -> "NodeSet":
        """Take ``length`` handles from ``start``; out-of-range bounds clamp."""
        if start < 0 or start >= len(self._nodes):
            return NodeSet()
        if length is None:
            return NodeSet._raw(self._nodes[start:])
        if length <= 0:
            return NodeSet()
        return NodeSet._raw(self._nodes[start:start + length])

    def filter(self, predicate: Callable[[int, Any], Any]) -> "NodeSet":
        """Keep handles for which ``predicate(index, node)`` is truthy."""
        return NodeSet._raw([
            node for index, node in enumerate(self._nodes) if predicate(index, node)
        ])

    def map(self, fn: Callable[[int, Any], Any]) -> "NodeSet":
        """Collect ``fn(index, node)`` results in call order.

        A single value is included as is, lists, tuples and NodeSets are
        flattened, and ``None``, ``False`` and other empty values contribute
        nothing. The result is neither deduplicated nor reordered.
        """
        produced: List[Any] = []
        for index, node in enumerate(list(self._nodes)):
            result = fn(index, node)
            if result is None or result is False:
                continue
            if is_node(result):
                produced.append(result)
            elif isinstance(result, (NodeSet, list, tuple)):
                produced.extend(item for item in result
                                if item is not None and item is not False)
            elif not result:
                continue
            else:
                produced.append(result)
        return NodeSet._raw(produced)

    def index_of(self, node: Any) -> Optional[int]:
        """Position of ``node``, or None when it is not in the set."""
        key = _identity(node)
        for index, existing in enumerate(self._nodes):
            if _identity(existing) == key:
                return index
        return None

    def without(self, nodes: Iterable[Any]) -> "NodeSet":
        """Drop the given handles, keeping the order of the rest."""
        excluded = {_identity(node) for node in nodes}
        return NodeSet._raw([n for n in self._nodes if _identity(n) not in excluded])

    def only_nodes(self) -> List[Any]:
        """The handles of the set, skipping values produced by :meth:`map`."""
        return [node for node in self._nodes if is_node(node)]
