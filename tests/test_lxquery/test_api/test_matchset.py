"""Tests for MatchSet reading, traversal, history and set algebra."""

import copy

import pytest

from lxquery import MatchSet, query
from lxquery.shared.errors import InvocationError, SelectorSyntaxError
from lxquery.tree.nodes import TextNode


def ids(matches):
    return [node.get("id") for node in matches.get()]


class Collector:
    """Callback target used for (object, method) pairs."""

    def __init__(self):
        self.seen = []

    def keep_odd(self, index, node):
        return "odd" in (node.get("class") or "")

    def record(self, index, node):
        self.seen.append(node.get("id"))


class TestReading:
    """Test read-only access to the current set."""

    def test_initial_selection(self, sample_xml):
        """Test the selector given to query()."""
        assert query(sample_xml, "li").size() == 5
        assert len(query(sample_xml, "li")) == 5

    def test_document_without_selector(self, sample_xml):
        """Test a loaded document starts at its root."""
        matches = query(sample_xml)
        assert matches.size() == 1
        assert matches.tag() == "root"

    def test_root_matches_itself(self, sample_xml):
        """Test the document root can be selected directly."""
        assert query(sample_xml, "root").size() == 1

    def test_find_ids(self):
        """Test finding by id and filtering out."""
        doc = query("<root><a id='x'/><b/></root>")
        assert doc.find("#x").tag() == "a"
        assert doc.end().find("a, b").not_("#x").tag() == "b"

    def test_get(self, sample_xml):
        """Test raw handle access."""
        matches = query(sample_xml, "li")
        assert matches.get(0).get("id") == "one"
        assert matches.get(-1).get("id") == "five"
        assert matches.get(10) is None
        assert len(matches.get()) == 5

    def test_index(self, sample_xml):
        """Test positions of nodes in the current set."""
        matches = query(sample_xml, "li")
        assert matches.index(matches.get(2)) == 2
        assert matches.index(matches.branch().eq(3)) == 3
        assert matches.index(matches.branch().top().get(0)) is None

    def test_tag(self, sample_xml):
        """Test the tag of the first node."""
        assert query(sample_xml, ".innerClass").tag() == "inner"
        assert query(sample_xml, "nothing").tag() == ""

    def test_is(self, sample_xml):
        """Test matching against selectors and nodes."""
        matches = query(sample_xml, "li")
        assert matches.is_("#three")
        assert not matches.is_("inner")
        assert matches.is_(matches.get(1))
        assert matches.is_([matches.get(4)])

    def test_iteration_yields_single_node_cursors(self, sample_xml):
        """Test iteration wraps each node."""
        items = list(query(sample_xml, "li"))
        assert all(isinstance(item, MatchSet) for item in items)
        assert [item.attr("id") for item in items] == ["one", "two", "three", "four", "five"]

    def test_eq(self, sample_xml):
        """Test selecting one node by index."""
        matches = query(sample_xml, "li")
        assert matches.eq(3).attr("id") == "four"
        assert matches.eq(-1).attr("id") == "five"
        assert matches.eq(10).size() == 0
        assert matches.size() == 5
        assert matches.eq(0).end().size() == 5

    def test_branch(self, sample_xml):
        """Test branches are independent of the original."""
        matches = query(sample_xml, "inner")
        branch = matches.branch("li")
        assert branch.size() == 5
        assert matches.size() == 2
        assert matches.branch().end().size() == 2

    def test_copy_is_a_branch(self, sample_xml):
        """Test copy.copy produces an independent cursor."""
        matches = query(sample_xml, "inner")
        copied = copy.copy(matches)
        copied.find("li")
        assert copied.size() == 5
        assert matches.size() == 2

    def test_invalid_selector(self, sample_xml):
        """Test selector errors propagate."""
        with pytest.raises(SelectorSyntaxError):
            query(sample_xml).find("li[")


class TestHistory:
    """Test end, and_self and top."""

    def test_end(self, sample_xml):
        """Test end restores the previous set."""
        matches = query(sample_xml, "inner").find("li")
        assert matches.size() == 5
        assert matches.end().size() == 2

    def test_end_on_empty_history(self, sample_xml):
        """Test end without history changes nothing."""
        matches = query(sample_xml, "li")
        assert matches.end().size() == 5

    def test_and_self(self, sample_xml):
        """Test union with the previous set."""
        matches = query(sample_xml, "inner").find("li").and_self()
        assert matches.size() == 7
        assert matches.end().size() == 5

    def test_top(self, sample_xml):
        """Test returning to the root."""
        matches = query(sample_xml).find("li").find("nothing")
        assert matches.top().tag() == "root"
        assert matches.end().tag() == "root"
        assert matches.top("li").size() == 5


class TestTraversal:
    """Test tree navigation."""

    def test_find(self, sample_xml):
        """Test descendant selection."""
        assert query(sample_xml, "inner").find("li").size() == 5
        assert query(sample_xml, "li").find("li").size() == 0

    def test_children(self, sample_xml):
        """Test child element selection."""
        assert query(sample_xml, "root").children().size() == 5
        assert query(sample_xml, "inner").children().size() == 5
        assert query(sample_xml, "inner").children(".odd").size() == 2

    def test_contents(self, sample_xml):
        """Test children including text."""
        contents = query(sample_xml, "#inner-two").contents()
        assert contents.size() == 3
        assert isinstance(contents.get(0), TextNode)
        assert contents.get(0).value == "first"
        assert contents.get(1).get("id") == "five"
        assert contents.get(2).value == "last"

    def test_parent(self, sample_xml):
        """Test parents are deduplicated."""
        assert query(sample_xml, "li").parent().size() == 2
        assert query(sample_xml, "li").parent("#inner-two").size() == 1
        assert query(sample_xml, "root").parent().size() == 0

    def test_parents(self, sample_xml):
        """Test all ancestors."""
        assert query(sample_xml, "#two").parents().size() == 2
        assert query(sample_xml, "#two").parents("root").size() == 1

    def test_siblings(self, sample_xml):
        """Test siblings exclude the node itself."""
        assert ids(query(sample_xml, "#one").siblings()) == ["two", "three", "four"]
        assert query(sample_xml, "#one").peers(".odd").size() == 2

    def test_next_and_prev(self, sample_xml):
        """Test nearest sibling navigation."""
        assert query(sample_xml, "#one").next().attr("id") == "two"
        assert query(sample_xml, "unary").next().tag() == "inner"
        assert query(sample_xml, "unary").next("foot").tag() == "foot"
        assert query(sample_xml, "#four").prev().attr("id") == "three"
        assert query(sample_xml, "#four").next().size() == 0

    def test_next_over_several_nodes(self, sample_xml):
        """Test results are merged in document order."""
        assert [node.tag for node in query(sample_xml, "inner").next().get()] == ["inner", "foot"]
        assert [node.tag for node in query(sample_xml, "inner").prev().get()] == ["unary", "inner"]

    def test_next_all_and_prev_all(self, sample_xml):
        """Test every following or preceding sibling."""
        assert ids(query(sample_xml, "#one").next_all()) == ["two", "three", "four"]
        assert ids(query(sample_xml, "#four").prev_all()) == ["one", "two", "three"]
        assert ids(query(sample_xml, "#one").next_all(".odd")) == ["two", "four"]

    def test_closest(self, sample_xml):
        """Test nearest matching ancestor or self."""
        assert query(sample_xml, "li").closest("inner").size() == 2
        assert query(sample_xml, "#two").closest(".item").attr("id") == "two"
        assert query(sample_xml, "li").closest(".nonexistent").size() == 0

    def test_deepest(self, sample_xml):
        """Test the most deeply nested elements."""
        doc = query("<root><a><b><c/></b></a><d><e><f/></e></d><g/></root>")
        assert [node.tag for node in doc.deepest().get()] == ["c", "f"]
        assert query(sample_xml).deepest().size() == 6

    def test_xpath(self, sample_xml):
        """Test XPath selection of elements and text."""
        doc = query(sample_xml)
        assert doc.xpath("//li[@class='item odd']").size() == 2
        texts = doc.end().xpath("//li/text()")
        assert texts.size() == 5
        assert texts.text() == "HelloWorldAgainDoneFive"

    def test_xpath_variables(self, sample_xml):
        """Test XPath variables are passed through."""
        assert query(sample_xml).xpath("//li[@id=$wanted]", wanted="three").size() == 1


class TestSetAlgebra:
    """Test filtering and combining sets."""

    def test_filter_selector(self, sample_xml):
        """Test filtering by selector."""
        assert query(sample_xml, "li").filter(".odd").size() == 2

    def test_filter_callable(self, sample_xml):
        """Test filtering by callback."""
        assert query(sample_xml, "li").filter(lambda index, node: index % 2 == 0).size() == 3

    def test_filter_callback_method_pair(self, sample_xml):
        """Test (object, method) callbacks."""
        assert query(sample_xml, "li").filter_callback((Collector(), "keep_odd")).size() == 2

    def test_filter_callback_errors(self, sample_xml):
        """Test unresolvable callbacks."""
        matches = query(sample_xml, "li")
        with pytest.raises(InvocationError):
            matches.filter_callback((Collector(), "missing"))
        with pytest.raises(InvocationError):
            matches.filter_callback("no_such_module_for_lxquery:func")
        with pytest.raises(InvocationError):
            matches.filter_callback(lambda: True)

    def test_filter_lambda(self, sample_xml):
        """Test filtering by expression."""
        matches = query(sample_xml, "li")
        assert matches.filter_lambda("index < 2").size() == 2
        assert matches.end().filter_lambda("item.get('id') == 'five'").size() == 1

    def test_filter_lambda_syntax_error(self, sample_xml):
        """Test invalid expressions."""
        with pytest.raises(InvocationError):
            query(sample_xml, "li").filter_lambda("index <")

    def test_not(self, sample_xml):
        """Test exclusion by selector and by node."""
        matches = query(sample_xml, "li")
        first, second = matches.get(0), matches.get(1)
        assert matches.not_("#one").size() == 4
        assert matches.end().not_(first).size() == 4
        assert matches.end().not_([first, second]).size() == 3
        assert query(sample_xml, "li:odd").not_("#two").size() == 1

    def test_add(self, sample_xml):
        """Test add unions without recording history."""
        matches = query(sample_xml, "li").add("inner")
        assert matches.size() == 7
        assert matches.end().size() == 7

    def test_add_nodes(self, sample_xml):
        """Test adding nodes keeps document order."""
        matches = query(sample_xml, "#four")
        matches.add(matches.branch().top("#one"))
        assert ids(matches) == ["one", "four"]

    def test_add_markup(self, sample_xml):
        """Test markup is parsed into new nodes."""
        matches = query(sample_xml, "foot").add("<extra/>")
        assert matches.size() == 2
        assert [node.tag for node in matches.get()] == ["foot", "extra"]

    def test_slice(self, sample_xml):
        """Test slicing by start and length."""
        matches = query(sample_xml, "li")
        assert matches.slice(1).size() == 4
        assert ids(matches.end().slice(1, 2)) == ["two", "three"]
        assert matches.end().slice(9).size() == 0
        assert matches.end().slice(1, 0).size() == 0

    def test_map(self, sample_xml):
        """Test map collects results without deduplication."""
        matches = query(sample_xml, "li")
        assert matches.map(lambda i, n: n.get("id")).get() == ["one", "two", "three", "four", "five"]
        assert matches.end().map(lambda i, n: n.getparent()).size() == 5
        assert matches.end().map(lambda i, n: [n, n] if i == 0 else None).size() == 2

    def test_map_matchset_results(self, sample_xml):
        """Test MatchSet results contribute their nodes."""
        matches = query(sample_xml, "#inner-two")
        assert matches.map(lambda i, n: query(n, "li")).attr("id") == "five"

    def test_each(self, sample_xml):
        """Test each visits nodes in order and can stop early."""
        collector = Collector()
        matches = query(sample_xml, "li").each((collector, "record"))
        assert collector.seen == ["one", "two", "three", "four", "five"]
        assert matches.size() == 5

        seen = []
        query(sample_xml, "li").each(lambda i, n: seen.append(i) or i < 1)
        assert seen == [0, 1]

    def test_each_lambda(self, sample_xml):
        """Test each with an expression."""
        query(sample_xml, "li").each_lambda("item.set('seen', str(index))")
        matches = query(sample_xml, "li")
        assert matches.attr("seen") is None
        marked = query(sample_xml, "li").each_lambda("item.set('seen', 'yes')")
        assert marked.attr("seen") == "yes"


class TestCamelCaseAliases:
    """Test camelCase spellings of method names."""

    def test_aliases_exist(self):
        """Test a sample of generated aliases."""
        for name in ("andSelf", "nextAll", "prevAll", "filterLambda", "innerHTML",
                     "innerXML", "writeXML", "textImplode", "removeChildren",
                     "appendTo", "insertAfter", "replaceWith", "wrapAll"):
            assert hasattr(MatchSet, name), name

    def test_alias_calls_through(self, sample_xml):
        """Test aliases behave like the original methods."""
        matches = query(sample_xml, "inner").find("li").andSelf()
        assert matches.size() == 7
        assert query(sample_xml, "#one").nextAll().size() == 3
