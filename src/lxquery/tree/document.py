"""Documents and the loader that parses them.

A :class:`Document` wraps an lxml tree with the metadata lxquery needs later:
whether it is XML or HTML, which encoding to declare on output, and what
the parser complained about. :class:`DocumentLoader` turns markup strings,
files and fragments into Documents and insertable nodes using the settings
of a :class:`~lxquery.shared.config.QueryConfig`.
"""

import re
from pathlib import Path
from typing import Any, List, Optional, Union

import lxml.html
from lxml import etree

from ..shared.config import QueryConfig
from ..shared.errors import ParseError, SourceError
from ..shared.logging import get_logger
from ..shared.result import DiagnosticEntry, DiagnosticSeverity
from .entities import replace_entities, undefined_entities
from .nodes import Item, clone_node

XML = "xml"
HTML = "html"

HTML_EXTENSIONS = frozenset({".html", ".htm"})

FRAGMENT_TAG = "lxquery-fragment"

XML_DECLARATION_RE = re.compile(r"^\s*<\?xml\s[^>]*\?>", re.IGNORECASE)
_ENCODING_RE = re.compile(r"""\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")
_XMLISH_RE = re.compile(r"<(?:!--|[!?/]?[A-Za-z_:])[^>]*>")
_HTML_MARKER_RE = re.compile(r"<(?:!doctype\s+html|html[\s>])", re.IGNORECASE)


def declared_encoding(markup: str) -> Optional[str]:
    """Encoding named by a leading XML declaration, if any."""
    match = XML_DECLARATION_RE.match(markup)
    if match is None:
        return None
    encoding = _ENCODING_RE.search(match.group(0))
    return encoding.group(1) if encoding else None


# libxml2 reports every element outside HTML 4 as unknown
_IGNORED_HTML_ERRORS = frozenset({etree.ErrorTypes.HTML_UNKNOWN_TAG})

HTML_STUB = """<?xml version="1.0"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">
<html lang="en" xml:lang="en">
<head>
  <meta http-equiv="Content-Type" content="text/html; charset=utf-8"/>
  <title>Untitled</title>
</head>
<body></body>
</html>"""


def is_xmlish(text: str) -> bool:
    """Guess whether a string is markup rather than a file path.

    Examples:
        >>> is_xmlish("<html/>")
        True
        >>> is_xmlish("1 < 2")
        False
    """
    return bool(_XMLISH_RE.search(text))


class Document:
    """An lxml tree plus content type, encoding and parser diagnostics."""

    def __init__(
        self,
        tree: Optional[etree._ElementTree] = None,
        content_type: str = XML,
        encoding: str = "UTF-8",
        source_name: Optional[str] = None,
        diagnostics: Optional[List[DiagnosticEntry]] = None,
    ) -> None:
        self._tree = tree
        self.content_type = content_type
        self.encoding = encoding
        self.source_name = source_name
        self.diagnostics = diagnostics or []

    @property
    def tree(self) -> Optional[etree._ElementTree]:
        return self._tree

    @property
    def root(self) -> Optional[etree._Element]:
        if self._tree is None:
            return None
        return self._tree.getroot()

    @property
    def is_html(self) -> bool:
        return self.content_type == HTML

    @property
    def is_empty(self) -> bool:
        return self.root is None

    @property
    def doctype(self) -> str:
        if self._tree is None:
            return ""
        return self._tree.docinfo.doctype or ""

    def set_root(self, element: etree._Element) -> etree._Element:
        """Install a copy of ``element`` as the document root and return it."""
        root = clone_node(element)
        self._tree = root.getroottree()
        return root

    @classmethod
    def from_node(cls, node: Union[etree._Element, etree._ElementTree],
                  encoding: str = "UTF-8") -> "Document":
        """Wrap the document an existing lxml node or tree belongs to."""
        tree = node if isinstance(node, etree._ElementTree) else node.getroottree()
        root = tree.getroot()
        content_type = HTML if isinstance(root, lxml.html.HtmlElement) else XML
        declared = tree.docinfo.encoding if content_type == XML else None
        return cls(tree, content_type, declared or encoding)

    def __repr__(self) -> str:
        root = self.root
        name = root.tag if root is not None else None
        return f"<Document {self.content_type} root={name!r} source={self.source_name!r}>"


class DocumentLoader:
    """Parses documents and fragments according to a QueryConfig."""

    def __init__(self, config: Optional[QueryConfig] = None,
                 correlation_id: Optional[str] = None) -> None:
        self.config = config or QueryConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "DocumentLoader")

    # Parser construction

    def _xml_parser(self) -> etree.XMLParser:
        parsing = self.config.parsing
        return etree.XMLParser(
            recover=parsing.ignore_parser_warnings,
            strip_cdata=parsing.strip_cdata,
            remove_blank_text=parsing.remove_blank_text,
            **parsing.parser_options,
        )

    def _html_parser(self) -> lxml.html.HTMLParser:
        parsing = self.config.parsing
        return lxml.html.HTMLParser(
            recover=True,
            remove_blank_text=parsing.remove_blank_text,
            **parsing.parser_options,
        )

    def _diagnostics(self, error_log: Any) -> List[DiagnosticEntry]:
        return [
            DiagnosticEntry.from_log_entry(entry, "DocumentLoader", self.correlation_id)
            for entry in error_log
        ]

    def _check_html_errors(self, parser: etree.HTMLParser,
                           source_name: Optional[str]) -> List[DiagnosticEntry]:
        diagnostics = self._diagnostics(parser.error_log)
        failures = [
            entry for entry in parser.error_log
            if entry.level >= etree.ErrorLevels.ERROR
            and entry.type not in _IGNORED_HTML_ERRORS
        ]
        if failures and not self.config.parsing.ignore_parser_warnings:
            raise ParseError(
                f"HTML parser reported errors: {failures[0].message.strip()}",
                source=source_name,
                diagnostics=diagnostics,
            )
        return diagnostics

    def _check_entities(self, markup: Union[str, bytes],
                        source_name: Optional[str]) -> List[DiagnosticEntry]:
        """Reject undefined entity references the HTML parser would keep as text."""
        if self.config.parsing.replace_entities:
            return []
        if isinstance(markup, bytes):
            # entity names are ASCII in every encoding libxml2 accepts here
            markup = markup.decode("latin-1")
        names = undefined_entities(markup)
        if not names:
            return []
        if not self.config.parsing.ignore_parser_warnings:
            raise ParseError(
                f"Could not parse HTML: Entity '{names[0]}' not defined",
                source=source_name,
            )
        return [
            DiagnosticEntry(
                severity=DiagnosticSeverity.ERROR,
                message=f"Entity '{name}' not defined",
                component="DocumentLoader",
                details={"type": "UNDEFINED_ENTITY", "name": name},
                correlation_id=self.correlation_id,
            )
            for name in names
        ]

    def _report(self, diagnostics: List[DiagnosticEntry], source_name: Optional[str]) -> None:
        errors = [entry for entry in diagnostics if entry.is_error]
        if errors:
            self.logger.warning(
                "Recovered from parser errors",
                extra={"source": source_name, "error_count": len(errors),
                       "first_error": str(errors[0])},
            )

    # Documents

    def empty(self, content_type: Optional[str] = None) -> Document:
        """Create a document with no root element."""
        if content_type is None:
            content_type = HTML if self.config.parsing.content_type == HTML else XML
        return Document(None, content_type, self.config.output.encoding)

    def load(self, source: Any) -> Document:
        """Load a document from markup, bytes, a path or a readable object.

        Args:
            source: Markup string or bytes, file path, or object with ``read()``

        Returns:
            Parsed Document

        Raises:
            ParseError: If the source cannot be read or parsed
            SourceError: If the source type is not supported
        """
        if isinstance(source, Path):
            return self.parse_file(source)
        if isinstance(source, bytes):
            return self.parse_string(source)
        if isinstance(source, str):
            if is_xmlish(source):
                return self.parse_string(source)
            return self.parse_file(source)
        if hasattr(source, "read"):
            name = getattr(source, "name", None)
            return self.parse_string(source.read(), source_name=str(name) if name else None)
        raise SourceError(f"Cannot load a document from {type(source).__name__}")

    def parse_file(self, path: Union[str, Path]) -> Document:
        """Parse a file, choosing HTML for ``.html`` and ``.htm`` files."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Could not load file {path}: {e}", source=str(path)) from e
        content_type = self.config.parsing.content_type
        if content_type == "auto":
            content_type = HTML if path.suffix.lower() in HTML_EXTENSIONS else XML
        return self.parse_string(data, content_type=content_type, source_name=str(path))

    def parse_string(self, markup: Union[str, bytes], content_type: Optional[str] = None,
                     source_name: Optional[str] = None) -> Document:
        """Parse a complete document.

        With content type ``auto``, markup that starts with an XML declaration
        is XML, markup that looks like an HTML page is HTML, and anything else
        is tried as XML first and as HTML if the XML parse fails.

        Args:
            markup: Document markup
            content_type: ``xml``, ``html`` or ``auto``; defaults to the config
            source_name: Name used in diagnostics and errors

        Returns:
            Parsed Document

        Raises:
            ParseError: If the markup cannot be parsed
        """
        content_type = content_type or self.config.parsing.content_type
        if not markup or not markup.strip():
            raise ParseError("Document is empty", source=source_name)

        if content_type == "auto":
            head = markup[:512].decode("latin-1") if isinstance(markup, bytes) else markup[:512]
            if XML_DECLARATION_RE.match(head):
                content_type = XML
            elif _HTML_MARKER_RE.search(head):
                content_type = HTML
            else:
                try:
                    return self._parse_xml(markup, source_name)
                except ParseError as e:
                    self.logger.debug(
                        "XML parse failed, retrying as HTML",
                        extra={"source": source_name, "error": str(e)},
                    )
                    return self._parse_html(markup, source_name)

        if content_type == HTML:
            return self._parse_html(markup, source_name)
        return self._parse_xml(markup, source_name)

    def _to_bytes(self, markup: str) -> bytes:
        encoding = declared_encoding(markup) or "UTF-8"
        try:
            return markup.encode(encoding, "xmlcharrefreplace")
        except LookupError:
            return markup.encode("UTF-8")

    def _parse_xml(self, markup: Union[str, bytes], source_name: Optional[str]) -> Document:
        if isinstance(markup, str):
            if self.config.parsing.replace_entities:
                markup = replace_entities(markup)
            data = self._to_bytes(markup)
        else:
            data = markup
        parser = self._xml_parser()
        try:
            root = etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            raise ParseError(
                f"Could not parse XML: {e}", source=source_name,
                diagnostics=self._diagnostics(e.error_log),
            ) from e
        if root is None:
            raise ParseError("Could not parse XML: no root element", source=source_name)

        diagnostics = self._diagnostics(parser.error_log)
        self._report(diagnostics, source_name)
        tree = root.getroottree()
        declared = declared_encoding(data[:512].decode("latin-1"))
        encoding = tree.docinfo.encoding if declared else self.config.output.encoding
        self.logger.info(
            "Loaded XML document",
            extra={"source": source_name, "root": root.tag, "encoding": encoding},
        )
        return Document(tree, XML, encoding, source_name, diagnostics)

    def _parse_html(self, markup: Union[str, bytes], source_name: Optional[str]) -> Document:
        parser = self._html_parser()
        if isinstance(markup, str):
            markup = XML_DECLARATION_RE.sub("", markup, count=1)
        entity_diagnostics = self._check_entities(markup, source_name)
        try:
            root = lxml.html.document_fromstring(markup, parser=parser)
        except (etree.ParserError, ValueError) as e:
            raise ParseError(f"Could not parse HTML: {e}", source=source_name) from e

        diagnostics = entity_diagnostics + self._check_html_errors(parser, source_name)
        self._report(diagnostics, source_name)
        self.logger.info(
            "Loaded HTML document",
            extra={"source": source_name, "root": root.tag},
        )
        return Document(root.getroottree(), HTML, self.config.output.encoding,
                        source_name, diagnostics)

    # Fragments

    def parse_fragment(self, markup: str, html: bool = False) -> List[Item]:
        """Parse markup into detached nodes and strings ready for insertion.

        Args:
            markup: Fragment markup, possibly several sibling nodes with text
            html: Parse with the HTML parser instead of the XML parser

        Returns:
            Items in fragment order; elements carry no tail text

        Raises:
            ParseError: If the fragment is malformed
        """
        if not markup:
            return []
        if html:
            entity_diagnostics = self._check_entities(markup, None)
            parser = self._html_parser()
            try:
                wrapper = lxml.html.fragment_fromstring(
                    markup, create_parent="div", parser=parser
                )
            except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
                raise ParseError(f"Could not parse HTML fragment: {e}") from e
            self._report(entity_diagnostics + self._check_html_errors(parser, None), None)
        else:
            if self.config.parsing.replace_entities:
                markup = replace_entities(markup)
            body = XML_DECLARATION_RE.sub("", markup, count=1)
            data = f"<{FRAGMENT_TAG}>{body}</{FRAGMENT_TAG}>".encode("UTF-8")
            parser = self._xml_parser()
            try:
                wrapper = etree.fromstring(data, parser)
            except etree.XMLSyntaxError as e:
                raise ParseError(f"Could not parse XML fragment: {e}") from e
            if wrapper is None:
                raise ParseError("Could not parse XML fragment")
            self._report(self._diagnostics(parser.error_log), None)

        items: List[Item] = []
        if wrapper.text:
            items.append(wrapper.text)
        for child in list(wrapper):
            tail = child.tail
            child.tail = None
            wrapper.remove(child)
            items.append(child)
            if tail:
                items.append(tail)
        return items
