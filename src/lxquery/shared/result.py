"""Diagnostic types collected while loading documents.

lxml keeps a log of every problem libxml2 reported during a parse. When a
parse is allowed to recover, those problems are kept on the resulting
:class:`~lxquery.tree.document.Document` as :class:`DiagnosticEntry`
objects instead of being thrown away.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional

from lxml import etree


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    WARNING = auto()    # Parser warnings
    ERROR = auto()      # Recoverable parser errors
    CRITICAL = auto()   # Fatal parser errors that were recovered from


_LEVEL_SEVERITY = {
    etree.ErrorLevels.WARNING: DiagnosticSeverity.WARNING,
    etree.ErrorLevels.ERROR: DiagnosticSeverity.ERROR,
    etree.ErrorLevels.FATAL: DiagnosticSeverity.CRITICAL,
}


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    @classmethod
    def from_log_entry(
        cls,
        entry: "etree._LogEntry",
        component: str,
        correlation_id: Optional[str] = None,
    ) -> "DiagnosticEntry":
        """Build a diagnostic from an lxml error log entry.

        Args:
            entry: Entry taken from a parser's ``error_log``
            component: Component that ran the parse
            correlation_id: Optional correlation ID for request tracking

        Returns:
            DiagnosticEntry describing the parser message
        """
        return cls(
            severity=_LEVEL_SEVERITY.get(entry.level, DiagnosticSeverity.WARNING),
            message=(entry.message or "").strip() or entry.type_name,
            component=component,
            position={"line": entry.line, "column": entry.column},
            details={"domain": entry.domain_name, "type": entry.type_name},
            correlation_id=correlation_id,
        )

    @property
    def is_error(self) -> bool:
        """Whether the entry describes an error rather than a warning."""
        return self.severity is not DiagnosticSeverity.WARNING

    def __str__(self) -> str:
        if self.position:
            return f"{self.message} (line {self.position['line']}, column {self.position['column']})"
        return self.message
