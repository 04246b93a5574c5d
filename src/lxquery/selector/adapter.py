"""CSS selector matching through cssselect.

cssselect translates a selector into XPath, which lxml evaluates. On top of
that the adapter understands the jQuery positional pseudo-classes
(``:first``, ``:last``, ``:even``, ``:odd``, ``:eq(n)``, ``:gt(n)``,
``:lt(n)``) at the end of a selector group; they filter the group's result
list by position.
"""

import re
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from cssselect import GenericTranslator, HTMLTranslator
from lxml import etree

from ..tree.nodes import document_root, is_element, top_ancestor

_POSITIONAL_RE = re.compile(
    r"^(?P<base>.*?):(?P<name>first|last|even|odd|eq|gt|lt)"
    r"(?:\(\s*(?P<arg>-?\d+)\s*\))?\s*$",
    re.DOTALL,
)
_ROOT_RE = re.compile(r"^\s*:root(?![\w-])")

DESCENDANT = "descendant::"
DESCENDANT_OR_SELF = "descendant-or-self::"

_TRANSLATORS = {False: GenericTranslator(), True: HTMLTranslator()}


def split_groups(selector: str) -> List[str]:
    """Split a selector list on top-level commas."""
    groups = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    for index, char in enumerate(selector):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "," and depth == 0:
            groups.append(selector[start:index])
            start = index + 1
    groups.append(selector[start:])
    return [group.strip() for group in groups]


def _positional_filter(name: str, arg: Optional[str]) -> Callable[[List], List]:
    if name == "first":
        return lambda nodes: nodes[:1]
    if name == "last":
        return lambda nodes: nodes[-1:]
    if name == "even":
        return lambda nodes: nodes[0::2]
    if name == "odd":
        return lambda nodes: nodes[1::2]
    if arg is None:
        raise ValueError(f":{name} requires an index")
    index = int(arg)
    if name == "eq":
        return lambda nodes: nodes[index:index + 1] if 0 <= index < len(nodes) else []
    if name == "gt":
        return lambda nodes: nodes[max(index + 1, 0):]
    return lambda nodes: nodes[:max(index, 0)]


@lru_cache(maxsize=512)
def _compile(html: bool, group: str, prefix: str) -> etree.XPath:
    return etree.XPath(_TRANSLATORS[html].css_to_xpath(group, prefix=prefix))


class _Group:
    """One comma-separated selector group."""

    def __init__(self, text: str) -> None:
        self.anchored = bool(_ROOT_RE.match(text))
        self.position: Optional[Callable[[List], List]] = None
        match = _POSITIONAL_RE.match(text)
        if match and (match.group("name") in ("first", "last", "even", "odd")) == (match.group("arg") is None):
            self.position = _positional_filter(match.group("name"), match.group("arg"))
            base = match.group("base")
            text = base.strip()
            if not text:
                text = "*"
            elif base[-1].isspace() or text.endswith((">", "+", "~")):
                # a dangling combinator applies to any element
                text += " *"
        self.text = text

    def evaluate(self, html: bool, root: etree._Element, prefix: str) -> List[etree._Element]:
        if self.anchored:
            root, prefix = document_root(root), DESCENDANT_OR_SELF
        results = [node for node in _compile(html, self.text, prefix)(root)
                   if isinstance(node, etree._Element)]
        if self.position is not None:
            results = self.position(results)
        return results


class SelectorAdapter:
    """Matches CSS selectors against lxml trees.

    Args:
        html: Translate with cssselect's HTML rules (lower-cased names, HTML pseudo-classes)
    """

    def __init__(self, html: bool = False) -> None:
        self.html = html

    def _groups(self, selector: str) -> List[_Group]:
        return [_Group(text) for text in split_groups(selector)]

    def select(self, root: etree._Element, selector: str,
               include_self: bool = False) -> List[etree._Element]:
        """Find the elements under ``root`` matching ``selector``.

        Groups starting with ``:root`` are evaluated against the whole
        document instead of ``root``. Results may contain duplicates when
        groups overlap; callers order and dedupe them.

        Raises:
            SelectorSyntaxError: If the selector cannot be parsed
        """
        prefix = DESCENDANT_OR_SELF if include_self else DESCENDANT
        results: List[etree._Element] = []
        for group in self._groups(selector):
            results.extend(group.evaluate(self.html, root, prefix))
        return results

    def document_matches(self, node: etree._Element, selector: str) -> Dict[int, etree._Element]:
        """All matches of ``selector`` in the document of ``node``, keyed by id."""
        root = document_root(node)
        if root is None:
            return {}
        found = {id(match): match for match in self.select(root, selector, include_self=True)}
        # Detached subtrees are not reachable from the document root
        top = top_ancestor(node)
        if top is not root:
            for match in self.select(top, selector, include_self=True):
                found[id(match)] = match
        return found

    def matcher(self, selector: str) -> Callable[[object], bool]:
        """Build a predicate testing nodes against ``selector``.

        Document-wide matches are computed once per tree and reused.
        """
        cache: Dict[int, Tuple[etree._Element, Dict[int, etree._Element]]] = {}

        def test(node: object) -> bool:
            return is_element(node) and id(node) in self._matches_for(node, selector, cache)

        return test

    def filter(self, nodes: Iterable, selector: str) -> List:
        """Keep the elements of ``nodes`` that match ``selector``."""
        test = self.matcher(selector)
        return [node for node in nodes if test(node)]

    def matches(self, node, selector: str) -> bool:
        return bool(self.filter([node], selector))

    def _matches_for(self, node: etree._Element, selector: str,
                     cache: Dict[int, Tuple[etree._Element, Dict[int, etree._Element]]]
                     ) -> Dict[int, etree._Element]:
        top = top_ancestor(node)
        entry = cache.get(id(top))
        if entry is None:
            # the entry holds ``top`` so its id stays unique
            entry = cache[id(top)] = (top, self.document_matches(node, selector))
        return entry[1]
