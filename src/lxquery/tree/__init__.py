"""Tree adapter over lxml.

Documents, node handles, structural primitives and serialization. Everything
that touches lxml's object model directly lives in this package.
"""

from .document import (
    HTML_STUB,
    Document,
    DocumentLoader,
    is_xmlish,
)
from .entities import replace_entities
from .nodes import (
    COMMENT_NODE,
    ELEMENT_NODE,
    ENTITY_REFERENCE_NODE,
    PROCESSING_INSTRUCTION_NODE,
    TEXT_NODE,
    TextNode,
    create_element,
    create_text,
    document_order,
    is_element,
    is_node,
    node_type,
)
from .serializer import Serializer

__all__ = [
    "HTML_STUB",
    "Document",
    "DocumentLoader",
    "is_xmlish",
    "replace_entities",
    "create_element",
    "create_text",
    "COMMENT_NODE",
    "ELEMENT_NODE",
    "ENTITY_REFERENCE_NODE",
    "PROCESSING_INSTRUCTION_NODE",
    "TEXT_NODE",
    "TextNode",
    "document_order",
    "is_element",
    "is_node",
    "node_type",
    "Serializer",
]
