"""Rendering nodes and documents as XML, HTML or XHTML text."""

import copy
import html
from typing import Any, Optional

from lxml import etree

from ..shared.config import OutputConfig
from .document import Document
from .nodes import TextNode, is_element

XML = "xml"
HTML = "html"
XHTML = "xhtml"
MODES = (XML, HTML, XHTML)

# Elements that must stay self-closing in XHTML
VOID_ELEMENTS = frozenset({
    "area", "base", "basefont", "br", "col", "embed", "frame", "hr", "img",
    "input", "isindex", "keygen", "link", "meta", "param", "source", "track",
    "wbr",
})


def _xhtml_copy(node: Any) -> Any:
    clone = copy.deepcopy(node)
    elements = clone.iter() if isinstance(clone, etree._Element) else clone.getroot().iter()
    for element in elements:
        if not is_element(element):
            continue
        if etree.QName(element).localname.lower() in VOID_ELEMENTS:
            continue
        if element.text is None and len(element) == 0:
            element.text = ""
    return clone


class Serializer:
    """Serializes nodes, element contents and whole documents."""

    def __init__(self, config: Optional[OutputConfig] = None) -> None:
        self.config = config or OutputConfig()

    def _check_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Serialization mode must be one of {list(MODES)}")

    def node(self, node: Any, mode: str = XML) -> str:
        """Serialize a single node without its tail text."""
        self._check_mode(mode)
        if isinstance(node, TextNode):
            return html.escape(node.value, quote=False)
        if not isinstance(node, etree._Element):
            return str(node)
        if mode == XHTML:
            node = _xhtml_copy(node)
        return etree.tostring(
            node,
            method="html" if mode == HTML else "xml",
            encoding=str,
            with_tail=False,
            pretty_print=self.config.pretty_print,
        )

    def inner(self, element: Any, mode: str = XML) -> str:
        """Serialize the content of an element without the element itself."""
        self._check_mode(mode)
        if not is_element(element):
            return ""
        if mode == XHTML:
            element = _xhtml_copy(element)
        method = "html" if mode == HTML else "xml"
        parts = [html.escape(element.text, quote=False)] if element.text else []
        for child in element:
            parts.append(etree.tostring(child, method=method, encoding=str, with_tail=True))
        return "".join(parts)

    def document(self, document: Document, mode: str = XML,
                 omit_declaration: Optional[bool] = None) -> str:
        """Serialize a whole document.

        XML and XHTML output starts with an XML declaration naming the
        document's encoding unless it is omitted. HTML output starts with
        the document's doctype, or the configured default doctype.

        Args:
            document: Document to serialize
            mode: ``xml``, ``html`` or ``xhtml``
            omit_declaration: Leave out the XML declaration; defaults to the config

        Returns:
            Serialized document text
        """
        self._check_mode(mode)
        tree = document.tree
        if tree is None or tree.getroot() is None:
            return ""
        if omit_declaration is None:
            omit_declaration = self.config.omit_xml_declaration

        if mode == HTML:
            doctype = None if document.doctype else self.config.default_doctype
            return etree.tostring(
                tree, method="html", encoding=str, doctype=doctype,
                pretty_print=self.config.pretty_print,
            )

        if mode == XHTML:
            tree = _xhtml_copy(tree)
        if omit_declaration:
            return etree.tostring(tree, encoding=str, pretty_print=self.config.pretty_print)
        data = etree.tostring(
            tree, xml_declaration=True, encoding=document.encoding,
            pretty_print=self.config.pretty_print,
        )
        return data.decode(document.encoding)
