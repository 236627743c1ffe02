# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Resolution of artifacts to loaded module handles and of type names to objects."""

from __future__ import annotations

import builtins
import logging
import sys
import threading
from collections.abc import Iterable
from types import ModuleType
from typing import Final

from .loading import ModuleLoadContext, handle_key, qualified_module_name
from .naming import NONE_TYPE_NAME, name_tokens

LOGGER = logging.getLogger(__name__)

_MISSING: Final = object()


class HostModuleResolver:
    """Find loaded modules by ``(module_id, artifact)`` identity.

    Registered load contexts are searched first, then the module-qualified
    name a default scan registers in ``sys.modules``.
    """

    def __init__(self, load_contexts: Iterable[ModuleLoadContext] = ()) -> None:
        self._contexts: list[ModuleLoadContext] = list(load_contexts)
        self._lock = threading.Lock()

    def register_context(self, context: ModuleLoadContext) -> None:
        with self._lock:
            if context in self._contexts:
                return
            self._contexts.append(context)
        LOGGER.debug("Registered load context %s", context.name)

    def contexts(self) -> tuple[ModuleLoadContext, ...]:
        with self._lock:
            return tuple(self._contexts)

    def resolve(self, module_id: str, artifact: str) -> ModuleType | None:
        """Return the loaded module for ``artifact`` of ``module_id``, or ``None``.

        Args:
            module_id: Identifier of the module that ships the artifact.
            artifact: Artifact name recorded in the catalog.

        Returns:
            ModuleType | None: Matching handle when the artifact is loaded.
        """

        for context in self.contexts():
            if context.is_unloaded:
                continue
            handle = context.resolve(module_id, artifact)
            if handle is not None:
                return handle
        loaded = sys.modules.get(qualified_module_name(module_id, artifact))
        return loaded if isinstance(loaded, ModuleType) else None


class HandleCache:
    """Thread-safe ``(module_id, artifact)`` → handle cache where the first resolution wins."""

    def __init__(self) -> None:
        self._handles: dict[tuple[str, str], ModuleType] = {}
        self._lock = threading.Lock()

    def get(self, module_id: str, artifact: str) -> ModuleType | None:
        with self._lock:
            return self._handles.get(handle_key(module_id, artifact))

    def publish(self, module_id: str, artifact: str, handle: ModuleType) -> ModuleType:
        """Store ``handle`` unless another caller already did; return the winner.

        Args:
            module_id: Module the handle was resolved for.
            artifact: Artifact name the handle was resolved for.
            handle: Freshly resolved handle.

        Returns:
            ModuleType: The cached handle, which may differ from ``handle``
            when a concurrent resolution finished first.
        """

        with self._lock:
            return self._handles.setdefault(handle_key(module_id, artifact), handle)

    def evict(self, module_id: str, artifact: str | None = None) -> int:
        """Drop cached handles of ``module_id``; all of them when ``artifact`` is omitted.

        Returns:
            int: Number of handles removed.
        """

        with self._lock:
            if artifact is not None:
                return int(self._handles.pop(handle_key(module_id, artifact), None) is not None)
            doomed = [key for key in self._handles if key[0] == module_id]
            for key in doomed:
                del self._handles[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._handles.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)


def walk_attributes(root: object, dotted: str) -> object:
    """Follow a dotted attribute path from ``root``.

    Returns:
        object: The resolved attribute, or a private sentinel when any step
        is missing (use :func:`is_missing` to test).
    """

    current = root
    for part in dotted.split("."):
        current = getattr(current, part, _MISSING)
        if current is _MISSING:
            return _MISSING
    return current


def is_missing(value: object) -> bool:
    return value is _MISSING


class TypeNameResolver:
    """Resolve rendered type names against a module handle and the host process."""

    def __init__(self, handle: ModuleType, artifact: str) -> None:
        """Bind the resolver to the module a member lives in.

        Args:
            handle: Module handle searched first.
            artifact: Artifact name used as the namespace prefix of that module's types.
        """

        self._handle = handle
        self._artifact = artifact

    def _resolve_token(self, token: str) -> object:
        if token == NONE_TYPE_NAME:
            return type(None)
        local_name = token
        for prefix in (f"{self._artifact}.", f"{self._handle.__name__}."):
            if token.startswith(prefix):
                local_name = token[len(prefix) :]
                break
        found = walk_attributes(self._handle, local_name)
        if not is_missing(found):
            return found
        found = getattr(builtins, token, _MISSING)
        if not is_missing(found):
            return found
        parts = token.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module = sys.modules.get(".".join(parts[:split]))
            if module is None:
                continue
            found = walk_attributes(module, ".".join(parts[split:]))
            if not is_missing(found):
                return found
        return _MISSING

    def resolve(self, type_name: str) -> object:
        """Resolve ``type_name`` to a live object.

        Compound names (``list[Sample.Widget]``, ``int | None``) resolve to
        a tuple of their atomic parts so two names compare equal exactly when
        every part resolves to the same object.

        Args:
            type_name: Rendered type name from a parameter record.

        Returns:
            object: Resolved class/object, or a tuple of them for compound names.

        Raises:
            LookupError: If any atomic part cannot be resolved.
        """

        tokens = name_tokens(type_name)
        if not tokens:
            raise LookupError(type_name)
        resolved: list[object] = []
        for token in tokens:
            found = self._resolve_token(token)
            if is_missing(found):
                raise LookupError(token)
            resolved.append(found)
        if len(resolved) == 1:
            return resolved[0]
        return tuple(resolved)


__all__ = [
    "HandleCache",
    "HostModuleResolver",
    "TypeNameResolver",
    "is_missing",
    "walk_attributes",
]
