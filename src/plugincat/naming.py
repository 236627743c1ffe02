# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Type-name rendering and marker conventions shared by scanner and engine."""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Mapping
from typing import Any, Final, TypeVar

ANY_TYPE_NAME: Final[str] = "typing.Any"
NONE_TYPE_NAME: Final[str] = "None"
SYNTHETIC_MARKER: Final[str] = "__synthetic__"
COROUTINE_WRAPPER: Final[str] = "collections.abc.Coroutine"

ASYNC_WRAPPER_PREFIXES: Final[tuple[str, ...]] = (
    "collections.abc.Coroutine",
    "collections.abc.Awaitable",
    "typing.Coroutine",
    "typing.Awaitable",
    "asyncio.Future",
    "asyncio.Task",
    "asyncio.futures.Future",
    "asyncio.tasks.Task",
    "_asyncio.Future",
    "_asyncio.Task",
)

_NAME_TOKEN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_][\w.]*")
_QUOTED: Final[re.Pattern[str]] = re.compile(r"'[^']*'|\"[^\"]*\"")

_T = TypeVar("_T")


def synthetic(obj: _T) -> _T:
    """Mark ``obj`` as generated plumbing so scanners skip it.

    Works on functions, static/class methods, and classes.

    Args:
        obj: Object to mark.

    Returns:
        _T: ``obj`` unchanged apart from the marker attribute.
    """

    target = obj.__func__ if isinstance(obj, staticmethod | classmethod) else obj
    setattr(target, SYNTHETIC_MARKER, True)
    return obj


def is_synthetic(name: str, obj: object) -> bool:
    """Return whether ``obj`` (bound to ``name``) is hidden from the catalog.

    Private and dunder names, lambdas and locally defined objects, and
    anything carrying the synthetic marker are skipped.

    Args:
        name: Attribute name the object is bound to.
        obj: Function, descriptor, or class under inspection.

    Returns:
        bool: ``True`` when the object must not be cataloged.
    """

    if name.startswith("_"):
        return True
    target = obj.__func__ if isinstance(obj, staticmethod | classmethod) else obj
    qualname = getattr(target, "__qualname__", "")
    if "<" in qualname:
        return True
    if inspect.isclass(target):
        return bool(vars(target).get(SYNTHETIC_MARKER, False))
    return bool(getattr(target, SYNTHETIC_MARKER, False))


def _apply_aliases(text: str, aliases: Mapping[str, str]) -> str:
    for module_name, alias in aliases.items():
        if module_name != alias:
            text = text.replace(f"{module_name}.", f"{alias}.")
    return text


def type_name_of(annotation: object, aliases: Mapping[str, str] | None = None) -> str:
    """Render ``annotation`` as the type name stored in the catalog.

    Builtins render bare (``str``), other classes render as
    ``module.QualName``, typing constructs use their ``repr``. ``aliases``
    rewrites private module names (isolated loads) to artifact names.

    Args:
        annotation: Annotation object or string taken from a signature.
        aliases: Optional mapping of live module names to artifact names.

    Returns:
        str: Normalised type name.
    """

    alias_map = aliases or {}
    if annotation is inspect.Parameter.empty or annotation is inspect.Signature.empty:
        return ANY_TYPE_NAME
    if annotation is None or annotation is type(None):
        return NONE_TYPE_NAME
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, type) and not hasattr(annotation, "__origin__"):
        module_name = annotation.__module__
        if module_name == "builtins":
            return annotation.__qualname__
        return f"{alias_map.get(module_name, module_name)}.{annotation.__qualname__}"
    return _apply_aliases(repr(annotation), alias_map)


def return_type_name_of(func: Callable[..., Any], signature: inspect.Signature, aliases: Mapping[str, str]) -> str:
    """Render the declared return type, wrapping coroutine functions.

    Args:
        func: Underlying function object.
        signature: Signature previously computed for ``func``.
        aliases: Mapping of live module names to artifact names.

    Returns:
        str: Return type name; ``async def`` functions yield a
        ``collections.abc.Coroutine[...]`` wrapper name.
    """

    declared = type_name_of(signature.return_annotation, aliases)
    if inspect.iscoroutinefunction(func):
        return f"{COROUTINE_WRAPPER}[{ANY_TYPE_NAME}, {ANY_TYPE_NAME}, {declared}]"
    return declared


def is_async_type_name(type_name: str) -> bool:
    """Return whether ``type_name`` names an awaitable result wrapper."""

    return type_name.startswith(ASYNC_WRAPPER_PREFIXES)


def name_tokens(type_name: str) -> tuple[str, ...]:
    """Split a rendered type name into its atomic dotted names.

    ``"list[Sample.Widget] | None"`` yields ``("list", "Sample.Widget", "None")``.
    Quoted literal values are ignored.

    Args:
        type_name: Rendered type name.

    Returns:
        tuple[str, ...]: Dotted names in order of appearance.
    """

    return tuple(_NAME_TOKEN.findall(_QUOTED.sub("", type_name)))


def safe_signature(func: Callable[..., Any]) -> inspect.Signature:
    """Return ``func``'s signature, evaluating string annotations when possible.

    Args:
        func: Callable to inspect.

    Returns:
        inspect.Signature: Signature with evaluated annotations, or raw
        string annotations when evaluation fails.
    """

    try:
        return inspect.signature(func, eval_str=True)
    except (NameError, SyntaxError, TypeError, AttributeError):
        return inspect.signature(func)


__all__ = [
    "ANY_TYPE_NAME",
    "ASYNC_WRAPPER_PREFIXES",
    "NONE_TYPE_NAME",
    "SYNTHETIC_MARKER",
    "is_async_type_name",
    "is_synthetic",
    "name_tokens",
    "return_type_name_of",
    "safe_signature",
    "synthetic",
    "type_name_of",
]
