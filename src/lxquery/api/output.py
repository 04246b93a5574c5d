"""Serialization facade for MatchSet."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from ..shared.errors import OutputError
from ..tree.nodes import is_element, is_node, remove_children
from ..tree.serializer import HTML, XHTML, XML, Serializer

if TYPE_CHECKING:
    from .matchset import MatchSet

_UNSET: Any = object()


class OutputMixin:
    """Markup getters and setters, and writing documents out."""

    @property
    def serializer(self) -> Serializer:
        return Serializer(self._config.output)

    def _render(self, mode: str, omit_declaration: Optional[bool]) -> Optional[str]:
        first = None
        for node in self._current:
            first = node
            break
        if not is_node(first):
            return None
        if first is self._document.root:
            return self.serializer.document(self._document, mode, omit_declaration)
        return self.serializer.node(first, mode)

    def _set_markup(self, markup: Any) -> "MatchSet":
        fragment = self._fragment(markup)
        first = True
        for target in self._current:
            if not is_element(target):
                continue
            remove_children(target)
            if fragment.is_empty:
                continue
            items = fragment.materialize(target, first)
            for item in items:
                if isinstance(item, str):
                    if len(target):
                        target[-1].tail = (target[-1].tail or "") + item
                    else:
                        target.text = (target.text or "") + item
                else:
                    target.append(item)
            first = False
        return self

    def xml(self, markup: Any = _UNSET, omit_declaration: Optional[bool] = None) -> Any:
        """Serialize the first node as XML, or replace each node's content.

        For the document root the output is the whole document, starting
        with an XML declaration unless ``omit_declaration`` (or the
        ``omit_xml_declaration`` option) says otherwise. Returns None on an
        empty set.
        """
        if markup is not _UNSET:
            return self._set_markup(markup)
        return self._render(XML, omit_declaration)

    def html(self, markup: Any = _UNSET) -> Any:
        """Serialize the first node as HTML, or replace each node's content.

        For the document root the output starts with the document's doctype
        or the configured default doctype.
        """
        if markup is not _UNSET:
            return self._set_markup(markup)
        return self._render(HTML, None)

    def xhtml(self, markup: Any = _UNSET, omit_declaration: Optional[bool] = None) -> Any:
        """Like :meth:`xml`, writing empty non-void elements as start/end tag pairs."""
        if markup is not _UNSET:
            return self._set_markup(markup)
        return self._render(XHTML, omit_declaration)

    def _inner(self, mode: str) -> Optional[str]:
        for node in self._current:
            return self.serializer.inner(node, mode) if is_element(node) else None
        return None

    def inner_xml(self) -> Optional[str]:
        """Serialized content of the first element, without the element."""
        return self._inner(XML)

    def inner_html(self) -> Optional[str]:
        return self._inner(HTML)

    def inner_xhtml(self) -> Optional[str]:
        return self._inner(XHTML)

    def _write(self, mode: str, path: Optional[Union[str, Path]],
               omit_declaration: Optional[bool] = None) -> "MatchSet":
        text = self.serializer.document(self._document, mode, omit_declaration)
        if path is None:
            sys.stdout.write(text)
            return self
        try:
            with open(path, "w", encoding=self._document.encoding,
                      errors="xmlcharrefreplace") as handle:
                handle.write(text)
        except OSError as e:
            raise OutputError(f"Could not write {path}: {e}") from e
        self._logger.info("Wrote document", extra={"path": str(path), "mode": mode})
        return self

    def write_xml(self, path: Optional[Union[str, Path]] = None,
                  omit_declaration: Optional[bool] = None) -> "MatchSet":
        """Write the owning document as XML to ``path``, or to stdout.

        Raises:
            OutputError: If the file cannot be written
        """
        return self._write(XML, path, omit_declaration)

    def write_html(self, path: Optional[Union[str, Path]] = None) -> "MatchSet":
        """Write the owning document as HTML to ``path``, or to stdout."""
        return self._write(HTML, path)

    def write_xhtml(self, path: Optional[Union[str, Path]] = None) -> "MatchSet":
        """Write the owning document as XHTML to ``path``, or to stdout."""
        return self._write(XHTML, path)
