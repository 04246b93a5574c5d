"""The ``query()`` entrypoint.

Progressive use:
- ``query(markup_or_path, selector)`` loads a document and selects from it
- keyword options (``encoding="ISO-8859-1"``) override configuration per call
- ``config=QueryConfig(...)`` passes a complete configuration
- ``cursor=...`` picks a registered MatchSet variant
"""

from pathlib import Path
from typing import Any, List, Optional, Type, Union

from lxml import etree

from ..shared.config import QueryConfig
from ..shared.errors import SourceError
from ..shared.logging import get_logger, new_correlation_id
from ..shared.options import resolve_config
from ..tree.document import Document, DocumentLoader
from ..tree.nodes import is_node
from .matchset import MatchSet
from .nodeset import NodeSet
from .registry import get_cursor_class


def query(
    source: Any = None,
    selector: Optional[str] = None,
    config: Optional[QueryConfig] = None,
    *,
    cursor: Optional[Union[str, Type[MatchSet]]] = None,
    correlation_id: Optional[str] = None,
    **options: Any,
) -> MatchSet:
    """Create a MatchSet.

    Args:
        source: Markup (str or bytes), a file path, a readable file object,
            an lxml element or tree, a Document, a list of nodes, a MatchSet,
            or None for an empty document
        selector: Optional selector applied to the source. Documents are
            searched including their root element; nodes are searched below
            themselves.
        config: Complete configuration replacing the process defaults
        cursor: Registered cursor name or MatchSet subclass
        correlation_id: Correlation ID for log records
        **options: Configuration options overriding ``config`` or the defaults

    Returns:
        A MatchSet of the requested cursor class

    Raises:
        ParseError: If the source cannot be parsed
        SourceError: If the source type is not supported
        SelectorSyntaxError: If the selector is invalid

    Examples:
        >>> query("<root><a id='x'/><b/></root>", "#x").tag()
        'a'
        >>> query(encoding="ISO-8859-1").append("<test/>").xml()[:38]
        "<?xml version='1.0' encoding='ISO-8859"
    """
    resolved = resolve_config(config, options)
    cursor_class = get_cursor_class(cursor or resolved.global_.cursor)
    if correlation_id is None and resolved.global_.enable_correlation_tracking:
        correlation_id = new_correlation_id()
    logger = get_logger(__name__, correlation_id, "query")
    loader = DocumentLoader(resolved, correlation_id)

    document, nodes, is_document = _load(source, loader, resolved)
    logger.debug(
        "Created cursor",
        extra={"source_type": type(source).__name__, "cursor": cursor_class.__name__,
               "nodes": len(nodes)},
    )
    matches = cursor_class(document, NodeSet(nodes), resolved, correlation_id, loader)
    if selector is not None:
        matches._select(selector, include_self=is_document)
    return matches


def _load(source: Any, loader: DocumentLoader, config: QueryConfig):
    if source is None:
        return loader.empty(), [], True
    if isinstance(source, MatchSet):
        return source.document, source.node_set.nodes, False
    if isinstance(source, Document):
        return source, [source.root] if source.root is not None else [], True
    if isinstance(source, (str, bytes, Path)) or hasattr(source, "read"):
        document = loader.load(source)
        return document, [document.root], True
    if isinstance(source, etree._ElementTree):
        document = Document.from_node(source, config.output.encoding)
        return document, [document.root] if document.root is not None else [], True
    if is_node(source):
        return _wrap_nodes([source], config), [source], False
    if isinstance(source, (list, tuple, NodeSet)):
        nodes: List[Any] = list(source)
        if not all(is_node(node) for node in nodes):
            raise SourceError("Node lists may only contain lxml nodes and TextNodes")
        if not nodes:
            return loader.empty(), [], True
        return _wrap_nodes(nodes, config), nodes, False
    raise SourceError(f"Cannot create a MatchSet from {type(source).__name__}")


def _wrap_nodes(nodes: List[Any], config: QueryConfig) -> Document:
    first = nodes[0]
    element = first.owner if not isinstance(first, etree._Element) else first
    return Document.from_node(element, config.output.encoding)
