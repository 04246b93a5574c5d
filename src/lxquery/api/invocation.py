"""Resolution of user-supplied callbacks.

``map``, ``each`` and the filter methods accept a callable, an
``(object, "method_name")`` pair, or an import path such as
``"package.module:function"``. The callback is resolved once, before the
first call, and anything that cannot be called with ``(index, item)``
raises :class:`~lxquery.shared.errors.InvocationError`.
"""

import importlib
import inspect
from typing import Any, Callable, Dict, Optional, Sequence

from ..shared.errors import InvocationError

LAMBDA_PARAMETERS = ("index", "item")


def _import_path(path: str) -> Any:
    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")
    if not module_name or not attribute:
        raise InvocationError(f"Cannot resolve callback {path!r}")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise InvocationError(f"Cannot import {module_name!r} for callback {path!r}") from e
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise InvocationError(f"Callback {path!r} not found") from e
    return target


def resolve_invocable(candidate: Any, arity: int = 2) -> Callable:
    """Turn a callback description into a callable.

    Args:
        candidate: Callable, ``(object, "method")`` pair or import path string
        arity: Number of positional arguments the callback will receive

    Returns:
        The resolved callable

    Raises:
        InvocationError: If the callback cannot be found or does not accept
            ``arity`` positional arguments
    """
    if isinstance(candidate, (tuple, list)):
        if len(candidate) != 2 or not isinstance(candidate[1], str):
            raise InvocationError("Callback pairs must be (object, 'method_name')")
        owner, name = candidate
        try:
            function = getattr(owner, name)
        except AttributeError as e:
            raise InvocationError(
                f"{type(owner).__name__} has no method {name!r}"
            ) from e
    elif isinstance(candidate, str):
        function = _import_path(candidate)
    else:
        function = candidate

    if not callable(function):
        raise InvocationError(f"Callback {candidate!r} is not callable")

    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return function
    try:
        signature.bind(*([None] * arity))
    except TypeError as e:
        raise InvocationError(
            f"Callback {candidate!r} cannot be called with {arity} arguments: {e}"
        ) from e
    return function


def compile_lambda(expression: str, parameters: Sequence[str] = LAMBDA_PARAMETERS,
                   namespace: Optional[Dict[str, Any]] = None) -> Callable:
    """Compile a Python expression into a function of ``parameters``.

    The expression runs with full interpreter privileges. Only pass
    expressions from trusted code, never markup or other user input.

    Examples:
        >>> compile_lambda("index % 2 == 0")(2, None)
        True
    """
    source = f"lambda {', '.join(parameters)}: ({expression})"
    try:
        code = compile(source, "<lxquery lambda>", "eval")
    except SyntaxError as e:
        raise InvocationError(f"Invalid expression {expression!r}: {e.msg}") from e
    return eval(code, dict(namespace or {}))
