"""Process-wide default options.

Defaults are kept as a flat mapping of option names (see
:data:`lxquery.shared.config.OPTION_FIELDS`). They are read when a new
top-level MatchSet is created and copied into its :class:`QueryConfig`;
changing them later never affects existing MatchSets.
"""

import copy
import threading
from typing import Any, Dict, Mapping, Optional

from .config import QueryConfig

_lock = threading.RLock()
_defaults: Dict[str, Any] = {}


def _validated(options: Mapping[str, Any]) -> Dict[str, Any]:
    for name in options:
        QueryConfig.locate(name)
    return copy.deepcopy(dict(options))


def get_default_options() -> Dict[str, Any]:
    """Return a copy of the current process-wide defaults."""
    with _lock:
        return copy.deepcopy(_defaults)


def set_default_options(options: Optional[Mapping[str, Any]] = None) -> None:
    """Replace the process-wide defaults.

    Args:
        options: New defaults; ``None`` clears them

    Raises:
        ConfigValidationError: If an option name is unknown
    """
    new_defaults = _validated(options or {})
    with _lock:
        _defaults.clear()
        _defaults.update(new_defaults)


def merge_default_options(options: Mapping[str, Any]) -> None:
    """Merge ``options`` into the process-wide defaults, overwriting same names."""
    new_defaults = _validated(options)
    with _lock:
        _defaults.update(new_defaults)


def reset_default_options() -> None:
    """Drop every process-wide default."""
    with _lock:
        _defaults.clear()


def resolve_config(
    config: Optional[QueryConfig] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> QueryConfig:
    """Build the configuration captured by a new MatchSet.

    An explicit ``config`` is used as-is as the base; otherwise the base is
    ``QueryConfig()`` with the process-wide defaults applied. Call-site
    ``options`` are applied last and take precedence.

    Args:
        config: Explicit configuration supplied by the caller
        options: Call-site option overrides

    Returns:
        The resolved, immutable configuration
    """
    if config is None:
        config = QueryConfig().override(**get_default_options())
    if options:
        config = config.override(**options)
    return config
