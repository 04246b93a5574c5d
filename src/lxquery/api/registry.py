"""Registry of MatchSet variants.

A cursor variant is a :class:`~lxquery.api.matchset.MatchSet` subclass that
adds or changes methods. Variants are registered under a name and selected
with the ``cursor`` argument of :func:`~lxquery.api.factory.query` or the
``cursor`` configuration option.
"""

import difflib
import threading
from typing import Dict, List, Optional, Type, Union

from ..shared.config import ConfigValidationError
from ..shared.logging import get_logger
from .matchset import MatchSet

DEFAULT_CURSOR = "default"


class CursorRegistry:
    """Thread-safe mapping of cursor names to MatchSet classes."""

    def __init__(self) -> None:
        self._cursors: Dict[str, Type[MatchSet]] = {DEFAULT_CURSOR: MatchSet}
        self._lock = threading.RLock()
        self.logger = get_logger(__name__, None, "CursorRegistry")

    def register(self, name: str, cursor_class: Type[MatchSet]) -> None:
        """Register a cursor variant.

        Args:
            name: Name used to select the variant
            cursor_class: MatchSet subclass implementing it

        Raises:
            TypeError: If ``cursor_class`` is not a MatchSet subclass
        """
        if not (isinstance(cursor_class, type) and issubclass(cursor_class, MatchSet)):
            raise TypeError(f"{cursor_class!r} is not a MatchSet subclass")
        with self._lock:
            self._cursors[name] = cursor_class
        self.logger.debug("Registered cursor", extra={"cursor": name,
                                                      "class": cursor_class.__name__})

    def unregister(self, name: str) -> bool:
        """Remove a cursor variant; the default cursor cannot be removed."""
        if name == DEFAULT_CURSOR:
            return False
        with self._lock:
            return self._cursors.pop(name, None) is not None

    def get(self, name: str) -> Type[MatchSet]:
        """Look up a cursor class by name.

        Raises:
            ConfigValidationError: If no cursor is registered under ``name``
        """
        with self._lock:
            cursor_class = self._cursors.get(name)
            known = list(self._cursors)
        if cursor_class is None:
            raise ConfigValidationError(
                f"Unknown cursor: {name}",
                field_name="cursor",
                suggestions=difflib.get_close_matches(name, known, n=3),
            )
        return cursor_class

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._cursors)


_registry = CursorRegistry()


def get_cursor_registry() -> CursorRegistry:
    return _registry


def register_cursor(name: str, cursor_class: Type[MatchSet]) -> None:
    """Register a cursor variant in the global registry."""
    _registry.register(name, cursor_class)


def unregister_cursor(name: str) -> bool:
    return _registry.unregister(name)


def get_cursor_class(cursor: Optional[Union[str, Type[MatchSet]]] = None) -> Type[MatchSet]:
    """Resolve a cursor name or class to a MatchSet class."""
    if cursor is None:
        return _registry.get(DEFAULT_CURSOR)
    if isinstance(cursor, str):
        return _registry.get(cursor)
    if isinstance(cursor, type) and issubclass(cursor, MatchSet):
        return cursor
    raise TypeError(f"{cursor!r} is not a cursor name or MatchSet subclass")
