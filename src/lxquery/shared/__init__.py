"""Shared utilities for lxquery.

This package provides the error hierarchy, configuration objects, the
process-wide options registry, diagnostics and logging helpers used by the
tree, selector and api layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    OutputConfig,
    ParsingConfig,
    QueryConfig,
)
from .errors import (
    InsertionError,
    InvocationError,
    LxqueryError,
    OutputError,
    ParseError,
    SelectorSyntaxError,
    SourceError,
)
from .logging import CorrelationLogger, get_logger, new_correlation_id
from .options import (
    get_default_options,
    merge_default_options,
    reset_default_options,
    resolve_config,
    set_default_options,
)
from .result import DiagnosticEntry, DiagnosticSeverity

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "OutputConfig",
    "ParsingConfig",
    "QueryConfig",
    "InsertionError",
    "InvocationError",
    "LxqueryError",
    "OutputError",
    "ParseError",
    "SelectorSyntaxError",
    "SourceError",
    "CorrelationLogger",
    "get_logger",
    "new_correlation_id",
    "get_default_options",
    "merge_default_options",
    "reset_default_options",
    "resolve_config",
    "set_default_options",
    "DiagnosticEntry",
    "DiagnosticSeverity",
]
