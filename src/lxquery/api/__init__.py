"""Public API: the query() entrypoint, MatchSet and NodeSet."""

from .factory import query
from .fragment import Fragment
from .invocation import compile_lambda, resolve_invocable
from .matchset import MatchSet
from .nodeset import NodeSet
from .registry import (
    CursorRegistry,
    get_cursor_class,
    get_cursor_registry,
    register_cursor,
    unregister_cursor,
)

__all__ = [
    "query",
    "Fragment",
    "compile_lambda",
    "resolve_invocable",
    "MatchSet",
    "NodeSet",
    "CursorRegistry",
    "get_cursor_class",
    "get_cursor_registry",
    "register_cursor",
    "unregister_cursor",
]
