"""The MatchSet cursor.

A :class:`MatchSet` holds a current :class:`NodeSet`, a history stack of
earlier NodeSets and the Document it was loaded from. Traversal methods
replace the current set, push the previous one onto the stack and return
the same MatchSet, so calls chain; :meth:`MatchSet.end` steps back.

Example:
    >>> from lxquery import query
    >>> doc = query("<root><a id='x'/><b/></root>")
    >>> doc.find("a, b").not_("#x").tag()
    'b'
    >>> doc.end().tag()
    'a'
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from lxml import etree

from ..selector.adapter import SelectorAdapter
from ..shared.config import QueryConfig
from ..shared.logging import get_logger
from ..tree.document import Document, DocumentLoader, is_xmlish
from ..tree.nodes import (
    TextNode,
    ancestors,
    content_nodes,
    element_children,
    following_elements,
    is_element,
    is_node,
    parent_of,
    preceding_elements,
    tag_name,
)
from .accessors import AccessorMixin
from .fragment import Fragment, resolve_fragment
from .invocation import compile_lambda, resolve_invocable
from .mutation import MutationMixin
from .nodeset import NodeSet
from .output import OutputMixin

Selector = str


class MatchSet(MutationMixin, AccessorMixin, OutputMixin):
    """Chainable cursor over nodes of one or more documents.

    Args:
        document: Owning document; an empty XML document when omitted
        nodes: Initial current set
        config: Configuration captured for the lifetime of the cursor
        correlation_id: Correlation ID attached to log records
        loader: Loader used to parse fragments
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        nodes: Optional[Any] = None,
        config: Optional[QueryConfig] = None,
        correlation_id: Optional[str] = None,
        loader: Optional[DocumentLoader] = None,
    ) -> None:
        self._config = config or QueryConfig()
        self._loader = loader or DocumentLoader(self._config, correlation_id)
        self._document = document if document is not None else self._loader.empty()
        if isinstance(nodes, NodeSet):
            self._current = nodes
        else:
            self._current = NodeSet(nodes or ())
        self._history: List[NodeSet] = []
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, type(self).__name__)
        self._selector = SelectorAdapter(html=self._document.is_html)

    # Internal helpers

    def _spawn(self, nodes: Any = None, history: Optional[List[NodeSet]] = None) -> "MatchSet":
        """Create a cursor of the same class sharing document and config."""
        spawned = type(self)(
            self._document, nodes, self._config, self.correlation_id, self._loader
        )
        if history:
            spawned._history = list(history)
        return spawned

    def _push(self, node_set: NodeSet) -> "MatchSet":
        self._history.append(self._current)
        self._current = node_set
        return self

    def _elements(self) -> List[etree._Element]:
        return [node for node in self._current if is_element(node)]

    def _narrow(self, nodes: List[Any], selector: Optional[Selector]) -> NodeSet:
        node_set = NodeSet.ordered(nodes)
        if selector is None:
            return node_set
        return NodeSet(self._selector.filter(node_set, selector))

    def _fragment(self, value: Any) -> Fragment:
        return resolve_fragment(value, self._loader, html=self._document.is_html)

    def _as_nodes(self, target: Any) -> List[Any]:
        if isinstance(target, MatchSet):
            return target.node_set.only_nodes()
        if isinstance(target, NodeSet):
            return target.only_nodes()
        if is_node(target):
            return [target]
        if isinstance(target, (list, tuple)):
            return [node for node in target if is_node(node)]
        return []

    def _lambda_namespace(self) -> Dict[str, Any]:
        from .factory import query

        return {"query": query, "MatchSet": type(self)}

    def _select(self, selector: Selector, include_self: bool = True) -> "MatchSet":
        """Replace the current set with matches below it, without history."""
        found: List[Any] = []
        for node in self._elements():
            found.extend(self._selector.select(node, selector, include_self=include_self))
        self._current = NodeSet.ordered(found)
        return self

    # Properties and read-only access

    @property
    def document(self) -> Document:
        return self._document

    @property
    def config(self) -> QueryConfig:
        return self._config

    @property
    def node_set(self) -> NodeSet:
        return self._current

    @property
    def is_html(self) -> bool:
        return self._document.is_html

    def size(self) -> int:
        """Number of handles in the current set."""
        return len(self._current)

    def __len__(self) -> int:
        return len(self._current)

    def __iter__(self) -> Iterator["MatchSet"]:
        for node in self._current:
            yield self._spawn([node])

    def __copy__(self) -> "MatchSet":
        return self.branch()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._current.nodes!r}>"

    def get(self, index: Optional[int] = None) -> Any:
        """Raw handle at ``index``, or a list of all handles.

        An out-of-range index returns None.
        """
        if index is None:
            return self._current.nodes
        try:
            return self._current[index]
        except IndexError:
            return None

    def index(self, subject: Any) -> Optional[int]:
        """Position of a node (or the first node of a MatchSet) in the current set."""
        nodes = self._as_nodes(subject)
        if not nodes:
            return None
        return self._current.index_of(nodes[0])

    def tag(self) -> str:
        """Tag name of the first node, or an empty string."""
        for node in self._current:
            return tag_name(node)
        return ""

    def is_(self, target: Any) -> bool:
        """Whether any node of the current set matches ``target``.

        Args:
            target: Selector, node, list of nodes or MatchSet
        """
        if isinstance(target, str):
            test = self._selector.matcher(target)
            return any(test(node) for node in self._current)
        wanted = NodeSet(self._as_nodes(target))
        return any(node in wanted for node in self._current)

    def eq(self, index: int) -> "MatchSet":
        """A new MatchSet holding only the node at ``index``.

        Negative indexes count from the end. Out of range gives an empty set.
        """
        size = len(self._current)
        if -size <= index < size:
            nodes = [self._current[index]]
        else:
            nodes = []
        return self._spawn(nodes, self._history + [self._current])

    def branch(self, selector: Optional[Selector] = None) -> "MatchSet":
        """An independent cursor over the current set, sharing the document.

        The branch starts with an empty history. With ``selector`` the
        branch immediately runs :meth:`find`.
        """
        branched = self._spawn(self._current)
        if selector is not None:
            branched.find(selector)
        return branched

    # History

    def end(self) -> "MatchSet":
        """Restore the previous current set; does nothing on empty history."""
        if self._history:
            self._current = self._history.pop()
        return self

    def and_self(self) -> "MatchSet":
        """Union the current set with the previous one."""
        if not self._history:
            return self
        return self._push(self._current.union(self._history[-1]))

    def top(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Clear history and select the document root, or matches of ``selector``."""
        self._history.clear()
        root = self._document.root
        if root is None:
            self._current = NodeSet()
        elif selector is None:
            self._current = NodeSet([root])
        else:
            self._current = NodeSet.ordered(
                self._selector.select(root, selector, include_self=True)
            )
        return self

    # Traversal

    def find(self, selector: Selector) -> "MatchSet":
        """Select descendants of the current nodes matching ``selector``."""
        found: List[Any] = []
        for node in self._elements():
            found.extend(self._selector.select(node, selector))
        self._logger.debug("find", extra={"selector": selector, "matches": len(found)})
        return self._push(NodeSet.ordered(found))

    def xpath(self, expression: str, namespaces: Optional[Dict[str, str]] = None,
              **variables: Any) -> "MatchSet":
        """Evaluate an XPath expression from each current node.

        Element results and text results become the new current set; other
        values (numbers, attribute strings) are ignored.
        """
        found: List[Any] = []
        for node in self._elements():
            result = node.xpath(expression, namespaces=namespaces, **variables)
            if not isinstance(result, list):
                continue
            for item in result:
                if isinstance(item, etree._Element):
                    found.append(item)
                elif getattr(item, "is_text", False) or getattr(item, "is_tail", False):
                    parent = item.getparent()
                    if parent is not None:
                        found.append(TextNode(parent, is_tail=item.is_tail))
        return self._push(NodeSet.ordered(found))

    def children(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select child elements, optionally only those matching ``selector``."""
        found = [child for node in self._elements() for child in element_children(node)]
        return self._push(self._narrow(found, selector))

    def contents(self) -> "MatchSet":
        """Select all child nodes including text and comments."""
        found = [child for node in self._elements() for child in content_nodes(node)]
        return self._push(NodeSet.ordered(found))

    def parent(self, selector: Optional[Selector] = None) -> "MatchSet":
        found = [parent_of(node) for node in self._current.only_nodes()]
        return self._push(self._narrow([p for p in found if p is not None], selector))

    def parents(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select all ancestors of the current nodes."""
        found = [ancestor for node in self._current.only_nodes() for ancestor in ancestors(node)]
        return self._push(self._narrow(found, selector))

    def siblings(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select sibling elements of each current element, excluding itself."""
        found = []
        for node in self._elements():
            parent = node.getparent()
            if parent is None:
                continue
            found.extend(child for child in element_children(parent) if child is not node)
        return self._push(self._narrow(found, selector))

    def peers(self, selector: Optional[Selector] = None) -> "MatchSet":
        return self.siblings(selector)

    def _nearest(self, walker: Callable, selector: Optional[Selector]) -> NodeSet:
        test = self._selector.matcher(selector) if selector is not None else None
        found = []
        for node in self._elements():
            for sibling in walker(node):
                if test is None or test(sibling):
                    found.append(sibling)
                    break
        return NodeSet.ordered(found)

    def _every(self, walker: Callable, selector: Optional[Selector]) -> NodeSet:
        found = [sibling for node in self._elements() for sibling in walker(node)]
        return self._narrow(found, selector)

    def next(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select the nearest following sibling element (matching ``selector``)."""
        return self._push(self._nearest(following_elements, selector))

    def prev(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select the nearest preceding sibling element (matching ``selector``)."""
        return self._push(self._nearest(preceding_elements, selector))

    def next_all(self, selector: Optional[Selector] = None) -> "MatchSet":
        return self._push(self._every(following_elements, selector))

    def prev_all(self, selector: Optional[Selector] = None) -> "MatchSet":
        return self._push(self._every(preceding_elements, selector))

    def closest(self, selector: Optional[Selector] = None) -> "MatchSet":
        """Select, per node, the nearest of itself and its ancestors matching ``selector``."""
        if selector is None:
            return self._push(NodeSet.ordered(self._current.only_nodes()))
        test = self._selector.matcher(selector)
        found = []
        for node in self._current.only_nodes():
            candidates = [node] if is_element(node) else []
            for candidate in candidates + list(ancestors(node)):
                if test(candidate):
                    found.append(candidate)
                    break
        return self._push(NodeSet.ordered(found))

    def deepest(self) -> "MatchSet":
        """Select the most deeply nested elements below the current nodes."""
        best = -1
        found: List[etree._Element] = []
        for node in self._elements():
            stack = [(node, 0)]
            while stack:
                element, depth = stack.pop()
                if depth > best:
                    best, found = depth, [element]
                elif depth == best:
                    found.append(element)
                stack.extend((child, depth + 1) for child in element_children(element))
        return self._push(NodeSet.ordered(found))

    # Set algebra

    def filter(self, selector: Union[Selector, Callable, Any]) -> "MatchSet":
        """Keep nodes matching a selector, or for which a callback is truthy."""
        if isinstance(selector, str):
            return self._push(NodeSet(self._selector.filter(self._current, selector)))
        return self.filter_callback(selector)

    def filter_callback(self, callback: Any) -> "MatchSet":
        """Keep nodes for which ``callback(index, node)`` is truthy."""
        function = resolve_invocable(callback)
        return self._push(self._current.filter(function))

    def filter_lambda(self, expression: str) -> "MatchSet":
        """Keep nodes for which a Python expression over ``index`` and ``item`` holds.

        Example:
            >>> query("<r><a/><b/><c/></r>", "r > *").filter_lambda("index != 1").size()
            2
        """
        function = compile_lambda(expression, namespace=self._lambda_namespace())
        return self._push(self._current.filter(function))

    def not_(self, target: Any) -> "MatchSet":
        """Drop nodes matching a selector, or the given nodes."""
        if isinstance(target, str):
            test = self._selector.matcher(target)
            kept = [node for node in self._current if not test(node)]
            return self._push(NodeSet(kept))
        return self._push(self._current.without(self._as_nodes(target)))

    def add(self, target: Any) -> "MatchSet":
        """Union more nodes into the current set without touching history.

        Args:
            target: Selector (matched over the whole document), markup,
                node, list of nodes or MatchSet
        """
        if isinstance(target, str):
            if is_xmlish(target):
                nodes = [item for item in self._fragment(target).items if is_node(item)]
            else:
                root = self._document.root
                nodes = self._selector.select(root, target, include_self=True) if root is not None else []
        else:
            nodes = self._as_nodes(target)
        self._current = self._current.union(nodes)
        return self

    def slice(self, start: int, length: Optional[int] = None) -> "MatchSet":
        return self._push(self._current.slice(start, length))

    def map(self, callback: Any) -> "MatchSet":
        """Replace the current set with the values ``callback(index, node)`` returns.

        Results are collected in call order without deduplication; MatchSet
        results contribute their nodes.
        """
        function = resolve_invocable(callback)

        def collect(index: int, node: Any) -> Any:
            result = function(index, node)
            if isinstance(result, MatchSet):
                return result.node_set
            return result

        return self._push(self._current.map(collect))

    def each(self, callback: Any) -> "MatchSet":
        """Call ``callback(index, node)`` for every node; returning False stops."""
        function = resolve_invocable(callback)
        for index, node in enumerate(self._current):
            if function(index, node) is False:
                break
        return self

    def each_lambda(self, expression: str) -> "MatchSet":
        """Evaluate a Python expression over ``index`` and ``item`` for every node."""
        function = compile_lambda(expression, namespace=self._lambda_namespace())
        for index, node in enumerate(self._current):
            if function(index, node) is False:
                break
        return self


_ACRONYMS = {"html": "HTML", "xml": "XML", "xhtml": "XHTML"}


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(_ACRONYMS.get(part, part.capitalize()) for part in rest)


def _make_alias(name: str) -> Callable:
    def alias(self: MatchSet, *args: Any, **kwargs: Any) -> Any:
        return getattr(self, name)(*args, **kwargs)

    alias.__name__ = _camel_case(name)
    alias.__doc__ = f"Alias of :meth:`{name}`."
    return alias


def _add_camel_case_aliases(cls: type) -> None:
    for name in dir(cls):
        if name.startswith("_") or name.endswith("_") or "_" not in name:
            continue
        if callable(getattr(cls, name)):
            setattr(cls, _camel_case(name), _make_alias(name))


_add_camel_case_aliases(MatchSet)
