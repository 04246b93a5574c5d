"""Structural mutation for MatchSet.

Every insertion method resolves its argument into a fragment first (see
:mod:`lxquery.api.fragment`) and then applies it once per target, in
current-set order. The first target may receive the original nodes; every
further target receives clones, so no node ends up in two places.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from lxml import etree

from ..tree.document import Document
from ..tree.nodes import (
    Item,
    TextNode,
    clone_node,
    detach,
    detach_text,
    detached_text,
    innermost,
    insert_items,
    is_node,
    parent_of,
    remove_children,
    replace_node,
    sibling_position,
)
from .fragment import Fragment
from .nodeset import NodeSet

if TYPE_CHECKING:
    from .matchset import MatchSet


class MutationMixin:
    """Insertion, wrapping, replacement and removal."""

    def _targets(self) -> List[etree._Element]:
        # comments and PIs can be siblings but never parents
        return [node for node in self._current if isinstance(node, etree._Element)]

    def _siblings(self) -> List[Any]:
        """Targets that only need a position among siblings, text included."""
        return [node for node in self._current if isinstance(node, (etree._Element, TextNode))]

    def _plan(self, fragment: Fragment) -> List[Tuple[Any, List[Item]]]:
        """Materialize ``fragment`` for every target that has a parent.

        Targets are visited in current-set order, so the first one receives
        the original nodes.
        """
        plans: List[Tuple[Any, List[Item]]] = []
        for target in self._siblings():
            parent = parent_of(target)
            if parent is None:
                continue
            plans.append((target, fragment.materialize(parent, not plans)))
        return plans

    def _insert(self, value: Any, operation: str) -> "MatchSet":
        fragment = self._fragment(value)
        if fragment.is_empty:
            return self

        if operation == "append" and not len(self._current) and self._document.is_empty:
            element = fragment.first_element()
            if element is not None:
                root = self._document.set_root(element)
                self._current = NodeSet([root])
                self._logger.debug("Installed document root", extra={"tag": root.tag})
            return self

        if operation in ("append", "prepend"):
            first = True
            for target in self._targets():
                if not isinstance(target.tag, str):
                    continue
                items = fragment.materialize(target, first)
                if operation == "append":
                    insert_items(target, len(target), items)
                else:
                    insert_items(target, 0, items, displace_text=True)
                first = False
        else:
            # back to front, so text handles of later targets stay valid
            for target, items in reversed(self._plan(fragment)):
                position = sibling_position(target, after=operation == "after")
                if position is None:
                    continue
                parent, index, displace = position
                insert_items(parent, index, items, displace_text=displace)

        self._logger.debug(
            "Inserted fragment",
            extra={"operation": operation, "items": len(fragment.items),
                   "targets": len(self._current)},
        )
        return self

    def append(self, value: Any) -> "MatchSet":
        """Insert ``value`` as the last child of every current element.

        On an empty MatchSet over a document without a root, the first
        element of ``value`` becomes the document root and is selected.
        """
        return self._insert(value, "append")

    def prepend(self, value: Any) -> "MatchSet":
        """Insert ``value`` as the first child of every current element."""
        return self._insert(value, "prepend")

    def before(self, value: Any) -> "MatchSet":
        """Insert ``value`` before every current node that has a parent."""
        return self._insert(value, "before")

    def after(self, value: Any) -> "MatchSet":
        """Insert ``value`` after every current node that has a parent."""
        return self._insert(value, "after")

    def _destination(self, destination: Any) -> "MatchSet":
        from .matchset import MatchSet

        if isinstance(destination, MatchSet):
            return destination
        if isinstance(destination, str):
            return self.branch().top(destination)
        if isinstance(destination, Document):
            return self._spawn_for(destination, [destination.root] if destination.root is not None else [])
        if isinstance(destination, etree._ElementTree):
            destination = destination.getroot()
        if is_node(destination):
            return self._spawn_for(Document.from_node(destination), [destination])
        if isinstance(destination, (list, tuple)) and destination:
            nodes = [node for node in destination if is_node(node)]
            if nodes:
                return self._spawn_for(Document.from_node(nodes[0]), nodes)
        raise TypeError(f"Cannot use {type(destination).__name__} as a destination")

    def _spawn_for(self, document: Document, nodes: List[Any]) -> "MatchSet":
        return type(self)(document, nodes, self._config, self.correlation_id)

    def append_to(self, destination: Any) -> "MatchSet":
        """Append the current nodes to ``destination``; returns self."""
        self._destination(destination).append(self)
        return self

    def prepend_to(self, destination: Any) -> "MatchSet":
        """Prepend the current nodes to ``destination``; returns self."""
        self._destination(destination).prepend(self)
        return self

    def insert_before(self, destination: Any) -> "MatchSet":
        """Insert the current nodes before ``destination``; returns self."""
        self._destination(destination).before(self)
        return self

    def insert_after(self, destination: Any) -> "MatchSet":
        """Insert the current nodes after ``destination``; returns self."""
        self._destination(destination).after(self)
        return self

    def replace_with(self, value: Any) -> "MatchSet":
        """Replace every current node with ``value``.

        The current set becomes the inserted replacement nodes. Nodes
        without a parent are left alone.
        """
        fragment = self._fragment(value)
        if fragment.is_empty:
            return self
        plans = self._plan(fragment)
        for target, items in reversed(plans):
            if isinstance(target, TextNode):
                position = sibling_position(target)
                target.detach()
                if position is not None:
                    insert_items(position[0], position[1], items)
            else:
                replace_node(target, items)
        self._current = NodeSet(
            [item for _, items in plans for item in items if is_node(item)]
        )
        return self

    def replace_all(self, selector: str, document: Any) -> "MatchSet":
        """Replace every match of ``selector`` in ``document`` with the current nodes.

        Args:
            selector: Selector evaluated over the whole destination document
            document: Document, MatchSet or lxml node of the destination

        Returns:
            self, with the current set unchanged
        """
        destination = self._destination(document)
        destination.branch().top(selector).replace_with(self)
        return self

    def _wrapper(self, value: Any) -> Optional[etree._Element]:
        fragment = self._fragment(value)
        return fragment.first_element()

    def wrap(self, value: Any) -> "MatchSet":
        """Wrap every current node in its own copy of ``value``.

        Document root elements are left unwrapped.
        """
        template = self._wrapper(value)
        if template is None:
            return self
        for target in self._targets():
            if target.getparent() is None and target.getroottree().getroot() is target:
                continue
            wrapper = clone_node(template)
            if target.getparent() is not None:
                replace_node(target, [wrapper])
            innermost(wrapper).append(target)
        return self

    def wrap_all(self, value: Any) -> "MatchSet":
        """Wrap all current nodes together in a single copy of ``value``.

        The wrapper takes the position of the first node and receives the
        nodes in their current order.
        """
        template = self._wrapper(value)
        targets = self._targets()
        if template is None or not targets:
            return self
        wrapper = clone_node(template)
        parent = targets[0].getparent()
        if parent is not None:
            insert_items(parent, parent.index(targets[0]), [wrapper])
        inner = innermost(wrapper)
        for target in targets:
            inner.append(detach(target))
        return self

    def wrap_inner(self, value: Any) -> "MatchSet":
        """Move the content of every current element into a copy of ``value``."""
        template = self._wrapper(value)
        if template is None:
            return self
        for target in self._targets():
            if not isinstance(target.tag, str):
                continue
            wrapper = clone_node(template)
            inner = innermost(wrapper)
            text, target.text = target.text, None
            children = list(target)
            if text:
                insert_items(inner, len(inner), [text])
            for child in children:
                inner.append(child)
            target.append(wrapper)
        return self

    def remove(self, selector: Optional[str] = None) -> "MatchSet":
        """Detach the current nodes (or those matching ``selector``).

        Text around removed nodes stays in place. Removed text comes back
        as parentless text handles.

        Returns:
            A new MatchSet over the detached nodes
        """
        nodes = self._current.only_nodes()
        if selector is not None:
            nodes = self._selector.filter(nodes, selector)
        # text slots go first; detaching an element hands its tail to a neighbour
        texts = {
            id(node): detach_text(node)
            for node in nodes
            if isinstance(node, TextNode) and not node.is_detached
        }
        removed = []
        for node in nodes:
            if isinstance(node, TextNode):
                if id(node) in texts:
                    removed.append(texts[id(node)])
            elif parent_of(node) is not None:
                removed.append(detach(node))
        self._logger.debug("Removed nodes", extra={"count": len(removed)})
        return self._spawn(removed)

    def remove_children(self) -> "MatchSet":
        """Remove all content from every current element."""
        for target in self._targets():
            remove_children(target)
        return self

    def clone_all(self) -> "MatchSet":
        """Replace the current set with deep copies of its nodes."""
        clones = [
            detached_text(node.value) if isinstance(node, TextNode) else clone_node(node)
            for node in self._current.only_nodes()
        ]
        return self._push(NodeSet(clones))
