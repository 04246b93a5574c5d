"""Tests for lxquery.tree.document loading and fragments."""

import io

import lxml.html
import pytest
from lxml import etree

from lxquery.shared.config import QueryConfig
from lxquery.shared.errors import ParseError, SourceError
from lxquery.tree.document import (
    HTML_STUB,
    Document,
    DocumentLoader,
    declared_encoding,
    is_xmlish,
)


class TestIsXmlish:
    """Test the markup-versus-path heuristic."""

    @pytest.mark.parametrize("text", [
        "<root/>",
        "<a>text</a>",
        "leading text <b>bold</b>",
        "<!-- comment -->",
        '<?xml version="1.0"?><r/>',
    ])
    def test_markup(self, text):
        """Test strings containing tags are markup."""
        assert is_xmlish(text)

    @pytest.mark.parametrize("text", [
        "data/file.xml",
        "/tmp/page.html",
        "1 < 2",
        "",
    ])
    def test_not_markup(self, text):
        """Test paths and plain text are not markup."""
        assert not is_xmlish(text)


class TestDeclaredEncoding:
    """Test encoding detection in XML declarations."""

    def test_encoding_present(self):
        """Test the declared encoding is returned."""
        assert declared_encoding('<?xml version="1.0" encoding="ISO-8859-1"?><r/>') == "ISO-8859-1"

    def test_no_encoding(self):
        """Test declarations without encoding and missing declarations."""
        assert declared_encoding('<?xml version="1.0"?><r/>') is None
        assert declared_encoding("<r/>") is None


class TestDocument:
    """Test the Document wrapper."""

    def test_empty_document(self):
        """Test a document without a tree."""
        document = Document()
        assert document.is_empty
        assert document.root is None
        assert document.doctype == ""
        assert not document.is_html

    def test_from_node_xml(self):
        """Test wrapping an existing XML tree."""
        root = etree.fromstring("<r><a/></r>")
        document = Document.from_node(root[0])
        assert document.root is root
        assert not document.is_html

    def test_from_node_html(self):
        """Test lxml.html elements produce HTML documents."""
        root = lxml.html.document_fromstring("<p>x</p>")
        assert Document.from_node(root).is_html

    def test_set_root_installs_copy(self):
        """Test set_root clones the element into the document."""
        document = Document()
        element = etree.Element("test")
        root = document.set_root(element)
        assert root is not element
        assert document.root is root
        assert root.tag == "test"


class TestDocumentLoader:
    """Test parsing of whole documents."""

    def test_parse_xml(self):
        """Test a plain XML string."""
        document = DocumentLoader().parse_string("<r><a/></r>")
        assert document.root.tag == "r"
        assert document.content_type == "xml"
        assert document.encoding == "UTF-8"

    def test_declared_encoding_is_kept(self):
        """Test the encoding from the declaration is remembered."""
        document = DocumentLoader().parse_string(
            '<?xml version="1.0" encoding="ISO-8859-1"?><r>café</r>'
        )
        assert document.encoding == "ISO-8859-1"
        assert document.root.text == "café"

    def test_configured_encoding_without_declaration(self):
        """Test the configured output encoding is used when none is declared."""
        loader = DocumentLoader(QueryConfig().override(encoding="ISO-8859-1"))
        assert loader.parse_string("<r/>").encoding == "ISO-8859-1"

    def test_html_marker(self):
        """Test markup that looks like a page is parsed as HTML."""
        document = DocumentLoader().parse_string("<html><body><p>hi</p></body></html>")
        assert document.is_html
        assert document.root.tag == "html"

    def test_falls_back_to_html(self):
        """Test malformed XML without a declaration is retried as HTML."""
        document = DocumentLoader().parse_string("<p>one<br></p>")
        assert document.is_html

    def test_declared_xml_errors(self):
        """Test XML with a declaration is never retried as HTML."""
        with pytest.raises(ParseError, match="Could not parse XML"):
            DocumentLoader().parse_string('<?xml version="1.0"?><r><a></r>')

    def test_undefined_entity(self):
        """Test undefined entities are parse errors."""
        with pytest.raises(ParseError):
            DocumentLoader().parse_string("<?xml version='1.0'?><foo>&foonator;</foo>")

    def test_undefined_entity_without_declaration(self):
        """Test undefined entities fail even when the HTML fallback is taken."""
        with pytest.raises(ParseError, match="foonator"):
            DocumentLoader().parse_string("<foo>&foonator;</foo>")

    def test_undefined_entity_in_html(self):
        """Test undefined entities in HTML pages are parse errors."""
        with pytest.raises(ParseError, match="Entity 'foonator' not defined"):
            DocumentLoader().parse_string("<html><body><p>&foonator;</p></body></html>")

    def test_undefined_entity_in_html_fragment(self):
        """Test HTML fragments reject undefined entities too."""
        with pytest.raises(ParseError):
            DocumentLoader().parse_fragment("<p>&foonator;</p>", html=True)

    def test_undefined_entity_recovered(self):
        """Test ignoring parser warnings keeps undefined entities as diagnostics."""
        loader = DocumentLoader(QueryConfig().override(ignore_parser_warnings=True))
        document = loader.parse_string("<html><body><p>&foonator;</p></body></html>")
        assert document.is_html
        messages = [entry.message for entry in document.diagnostics if entry.is_error]
        assert "Entity 'foonator' not defined" in messages

    def test_known_html_entity(self):
        """Test HTML 4 entities parse in HTML documents."""
        document = DocumentLoader().parse_string("<html><body><p>&copy;</p></body></html>")
        assert document.root.findtext(".//p") == "\u00a9"

    def test_recover_keeps_diagnostics(self):
        """Test recovered errors are collected rather than raised."""
        loader = DocumentLoader(QueryConfig().override(ignore_parser_warnings=True))
        document = loader.parse_string('<?xml version="1.0"?><r><a></r>')
        assert document.root.tag == "r"
        assert document.diagnostics
        assert any(entry.is_error for entry in document.diagnostics)

    def test_replace_entities(self):
        """Test HTML entities are accepted when replacement is enabled."""
        loader = DocumentLoader(QueryConfig().override(replace_entities=True))
        document = loader.parse_string("<?xml version='1.0'?><r>&copy; Tom & Jerry</r>")
        assert document.root.text == "© Tom & Jerry"

    def test_empty_markup(self):
        """Test empty input is rejected."""
        with pytest.raises(ParseError, match="Document is empty"):
            DocumentLoader().parse_string("   ")

    def test_forced_content_type(self):
        """Test a configured content type skips detection."""
        loader = DocumentLoader(QueryConfig().override(content_type="html"))
        assert loader.parse_string("<r/>").is_html

    def test_parse_file_by_extension(self, tmp_path):
        """Test .html files are parsed as HTML and others as XML."""
        page = tmp_path / "page.html"
        page.write_text("<p>hello</p>", encoding="utf-8")
        data = tmp_path / "data.xml"
        data.write_text("<r/>", encoding="utf-8")

        loader = DocumentLoader()
        assert loader.parse_file(page).is_html
        xml_document = loader.parse_file(str(data))
        assert not xml_document.is_html
        assert xml_document.source_name == str(data)

    def test_missing_file(self, tmp_path):
        """Test unreadable files raise ParseError."""
        with pytest.raises(ParseError, match="Could not load file"):
            DocumentLoader().parse_file(tmp_path / "missing.xml")

    def test_load_dispatch(self, tmp_path):
        """Test load accepts markup, bytes, paths and readers."""
        path = tmp_path / "doc.xml"
        path.write_text("<fromfile/>", encoding="utf-8")
        loader = DocumentLoader()

        assert loader.load("<markup/>").root.tag == "markup"
        assert loader.load(b"<bytes/>").root.tag == "bytes"
        assert loader.load(path).root.tag == "fromfile"
        assert loader.load(str(path)).root.tag == "fromfile"
        assert loader.load(io.StringIO("<reader/>")).root.tag == "reader"

    def test_load_unsupported(self):
        """Test unsupported source types raise SourceError."""
        with pytest.raises(SourceError):
            DocumentLoader().load(42)

    def test_html_stub(self):
        """Test the XHTML stub parses as XML with a doctype."""
        document = DocumentLoader().parse_string(HTML_STUB)
        assert not document.is_html
        assert "XHTML 1.0 Strict" in document.doctype
        assert document.root.find("head/title").text == "Untitled"

    def test_empty(self):
        """Test empty documents follow the configured content type."""
        assert not DocumentLoader().empty().is_html
        assert DocumentLoader(QueryConfig.html_documents()).empty().is_html


class TestParseFragment:
    """Test parsing of insertable fragments."""

    def test_mixed_content(self):
        """Test text and elements come back in order without tails."""
        items = DocumentLoader().parse_fragment("a<b/>c<d>x</d>")
        assert items[0] == "a"
        assert items[1].tag == "b"
        assert items[2] == "c"
        assert items[3].tag == "d"
        assert items[1].tail is None
        assert items[1].getparent() is None

    def test_text_only(self):
        """Test a fragment of plain text."""
        assert DocumentLoader().parse_fragment("just text") == ["just text"]

    def test_empty(self):
        """Test an empty fragment has no items."""
        assert DocumentLoader().parse_fragment("") == []

    def test_declaration_is_dropped(self):
        """Test a leading XML declaration is ignored."""
        items = DocumentLoader().parse_fragment('<?xml version="1.0"?><a/>')
        assert [item.tag for item in items] == ["a"]

    def test_malformed(self):
        """Test malformed fragments raise ParseError."""
        with pytest.raises(ParseError):
            DocumentLoader().parse_fragment("<foo><bar></foo>")

    def test_html_fragment(self):
        """Test HTML fragments use the HTML parser."""
        items = DocumentLoader().parse_fragment("<p>one</p>tail", html=True)
        assert items[0].tag == "p"
        assert items[1] == "tail"
