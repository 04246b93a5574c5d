"""lxquery.

A jQuery-style fluent API for querying and changing XML and HTML documents,
built on lxml and cssselect.

Progressive API Disclosure:
- Level 1: ``query(source, selector)`` and chained MatchSet methods
- Level 2: Configuration - QueryConfig and the process-wide default options
- Level 3: Cursor variants - MatchSet subclasses registered by name
"""

__version__ = "0.1.0"
__author__ = "lxquery Team"

# Level 1: entrypoint and cursor
from .api import MatchSet, NodeSet, query

# Level 2: configuration
from .shared.config import ConfigError, ConfigValidationError, QueryConfig
from .shared.options import (
    get_default_options,
    merge_default_options,
    reset_default_options,
    set_default_options,
)

# Level 3: cursor variants
from .api.registry import get_cursor_class, register_cursor, unregister_cursor

# Errors
from .shared.errors import (
    InsertionError,
    InvocationError,
    LxqueryError,
    OutputError,
    ParseError,
    SelectorSyntaxError,
    SourceError,
)

# Documents and node handles
from .tree import HTML_STUB, Document, TextNode, is_xmlish

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Entrypoint and cursor
    "query",
    "MatchSet",
    "NodeSet",

    # Configuration
    "QueryConfig",
    "ConfigError",
    "ConfigValidationError",
    "get_default_options",
    "merge_default_options",
    "reset_default_options",
    "set_default_options",

    # Cursor variants
    "get_cursor_class",
    "register_cursor",
    "unregister_cursor",

    # Errors
    "InsertionError",
    "InvocationError",
    "LxqueryError",
    "OutputError",
    "ParseError",
    "SelectorSyntaxError",
    "SourceError",

    # Documents and node handles
    "HTML_STUB",
    "Document",
    "TextNode",
    "is_xmlish",
]
