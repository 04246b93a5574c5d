"""Exception hierarchy for lxquery.

Every error raised by the library derives from :class:`LxqueryError`, except
selector syntax errors, which come straight from cssselect so callers can
catch them the same way they would when using cssselect directly.
"""

from typing import List, Optional

from cssselect import SelectorError, SelectorSyntaxError

from .result import DiagnosticEntry


class LxqueryError(Exception):
    """Base exception for lxquery."""


class ParseError(LxqueryError):
    """Raised when markup cannot be turned into a document or fragment."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        diagnostics: Optional[List[DiagnosticEntry]] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.diagnostics = diagnostics or []


class InvocationError(LxqueryError):
    """Raised when a callback cannot be resolved or invoked."""


class InsertionError(LxqueryError, TypeError):
    """Raised when an object cannot be used as an insertion fragment."""


class SourceError(LxqueryError, TypeError):
    """Raised when an object cannot be loaded as a document source."""


class OutputError(LxqueryError, OSError):
    """Raised when serialized output cannot be written."""


__all__ = [
    "InsertionError",
    "InvocationError",
    "LxqueryError",
    "OutputError",
    "ParseError",
    "SelectorError",
    "SelectorSyntaxError",
    "SourceError",
]
