"""Attribute and content accessors for MatchSet.

Getters read the first node of the current set and return None when the
set is empty. Setters apply to every node and return the MatchSet.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from ..tree.nodes import (
    create_text,
    get_attribute,
    has_attribute,
    is_element,
    node_type,
    remove_attribute,
    remove_children,
    set_attribute,
    text_content,
)

if TYPE_CHECKING:
    from .matchset import MatchSet

NODE_TYPE = "nodeType"


class _Missing:
    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _Missing()


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """Parse a ``style`` attribute into an ordered property mapping."""
    properties: Dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, colon, value = declaration.partition(":")
        if colon and name.strip():
            properties[name.strip()] = value.strip()
    return properties


def format_style(properties: Mapping[str, Any]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in properties.items())


class AccessorMixin:
    """Attribute, class, style and text access."""

    def _first(self) -> Any:
        for node in self._current:
            return node
        return None

    def attr(self, name: Union[str, Mapping[str, Any], None] = None,
             value: Any = NO_VALUE) -> Any:
        """Read or write attributes.

        ``attr()`` returns all attributes of the first node as a dict,
        ``attr(name)`` one attribute of the first node, ``attr(name, value)``
        and ``attr(mapping)`` set attributes on every node. A value of None
        removes the attribute. The name ``nodeType`` reads the node category.

        Example:
            >>> doc = query("<r><a id='x'/></r>", "a")
            >>> doc.attr("id"), doc.attr("nodeType")
            ('x', 1)
        """
        if isinstance(name, Mapping):
            for node in self._current:
                for key, item in name.items():
                    set_attribute(node, key, item)
            return self
        if name is None:
            first = self._first()
            return dict(first.attrib) if is_element(first) else None
        if value is NO_VALUE:
            first = self._first()
            if first is None:
                return None
            if name == NODE_TYPE:
                return node_type(first)
            return get_attribute(first, name)
        for node in self._current:
            set_attribute(node, name, value)
        return self

    def has_attr(self, name: str) -> bool:
        """Whether every current node has attribute ``name``; False when empty."""
        nodes = self._current.only_nodes()
        return bool(nodes) and all(has_attribute(node, name) for node in nodes)

    def remove_attr(self, name: str) -> "MatchSet":
        for node in self._current:
            remove_attribute(node, name)
        return self

    def val(self, value: Any = NO_VALUE) -> Any:
        """Read or write the ``value`` attribute."""
        return self.attr("value", value)

    def css(self, name: Union[str, Mapping[str, Any], None] = None,
            value: Any = NO_VALUE) -> Any:
        """Read or write inline style properties.

        ``css()`` returns the whole ``style`` attribute of the first node,
        ``css(name)`` one property, ``css(name, value)`` and
        ``css(mapping)`` set properties on every node.
        """
        if name is None:
            return self.attr("style")
        if isinstance(name, str) and value is NO_VALUE:
            return parse_style(self.attr("style")).get(name)
        updates = dict(name) if isinstance(name, Mapping) else {name: value}
        for node in self._current:
            if not is_element(node):
                continue
            properties = parse_style(node.get("style"))
            for key, item in updates.items():
                if item is None:
                    properties.pop(key, None)
                else:
                    properties[key] = item
            set_attribute(node, "style", format_style(properties) if properties else None)
        return self

    def _classes(self, node: Any) -> List[str]:
        return (get_attribute(node, "class") or "").split()

    def has_class(self, class_name: str) -> bool:
        """Whether any current element has ``class_name``."""
        return any(class_name in self._classes(node) for node in self._current)

    def add_class(self, class_name: str) -> "MatchSet":
        for node in self._current:
            if not is_element(node):
                continue
            classes = self._classes(node)
            for name in class_name.split():
                if name not in classes:
                    classes.append(name)
            node.set("class", " ".join(classes))
        return self

    def remove_class(self, class_name: str) -> "MatchSet":
        removed = set(class_name.split())
        for node in self._current:
            if not is_element(node) or not has_attribute(node, "class"):
                continue
            classes = [name for name in self._classes(node) if name not in removed]
            node.set("class", " ".join(classes))
        return self

    def toggle_class(self, class_name: str) -> "MatchSet":
        for node in self._current:
            if not is_element(node):
                continue
            classes = self._classes(node)
            for name in class_name.split():
                if name in classes:
                    classes.remove(name)
                else:
                    classes.append(name)
            node.set("class", " ".join(classes))
        return self

    def text(self, value: Any = NO_VALUE) -> Any:
        """Read the combined text of the current set, or replace each node's content.

        The getter returns None on an empty set.
        """
        if value is NO_VALUE:
            nodes = self._current.only_nodes()
            if not nodes:
                return None
            return "".join(text_content(node) for node in nodes)
        for node in self._current:
            if is_element(node):
                remove_children(node)
                node.text = create_text(value)
        return self

    def text_implode(self, separator: str = ", ", filter_empties: bool = True) -> str:
        """Join the text of each current node with ``separator``.

        With ``filter_empties`` nodes whose text is only whitespace are left
        out; the joined texts themselves are not stripped.

        Example:
            >>> query("<r><a>A </a><a> </a><a>B</a></r>", "a").text_implode()
            'A , B'
        """
        texts = [text_content(node) for node in self._current.only_nodes()]
        if filter_empties:
            texts = [text for text in texts if text.strip()]
        return separator.join(texts)
