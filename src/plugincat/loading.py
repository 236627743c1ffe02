# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Loading module artifacts from disk, shared or isolated."""

from __future__ import annotations

import hashlib
import importlib.util
import itertools
import logging
import re
import sys
import threading
from pathlib import Path
from types import ModuleType, TracebackType
from typing import Final

from .errors import ValidationError
from .utils import normalize_artifact_name, require_text

LOGGER = logging.getLogger(__name__)

PACKAGE_INIT: Final[str] = "__init__.py"
SOURCE_SUFFIX: Final[str] = ".py"

DEFAULT_NAMESPACE: Final[str] = "_plugincat_mod"

_CONTEXT_IDS = itertools.count(1)
_UNSAFE_CHARS: Final[re.Pattern[str]] = re.compile(r"\W")


def _identifier(text: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", text)
    if safe == text and "__" not in text:
        return safe
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:8]
    return f"{safe}_{digest}"


def handle_key(module_id: str, artifact: str) -> tuple[str, str]:
    """Return the identity of one artifact of one module."""

    return module_id, normalize_artifact_name(artifact)


def qualified_module_name(module_id: str, artifact: str, *, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return the ``sys.modules`` name an artifact of ``module_id`` is loaded under.

    Names live under a private namespace and include the module id, so
    equal artifact names from different modules map to different names.

    Args:
        module_id: Identifier of the owning module.
        artifact: Artifact name inside that module.
        namespace: Private prefix of the generated name.

    Returns:
        str: A valid, collision-free module name.
    """

    module_id, normalized = handle_key(module_id, artifact)
    return f"{namespace}__{_identifier(module_id)}__{_identifier(normalized)}"


def artifact_name(path: Path) -> str:
    """Return the artifact name for a module file or package directory."""

    return path.name if path.is_dir() else path.stem


def discover_artifacts(target_dir: Path) -> tuple[Path, ...]:
    """Return the loadable artifacts inside a platform-target folder.

    Module files (``*.py``) and package directories (containing
    ``__init__.py``) qualify; names starting with ``_`` or ``.`` are skipped.

    Args:
        target_dir: Platform-target folder to enumerate.

    Returns:
        tuple[Path, ...]: Artifact paths sorted by name.
    """

    artifacts: list[Path] = []
    for entry in target_dir.iterdir():
        if entry.name.startswith(("_", ".")):
            continue
        if entry.is_file() and entry.suffix == SOURCE_SUFFIX:
            artifacts.append(entry)
        elif entry.is_dir() and (entry / PACKAGE_INIT).is_file():
            artifacts.append(entry)
    return tuple(sorted(artifacts, key=lambda path: path.name))


def load_artifact(path: Path, module_name: str) -> ModuleType:
    """Import the artifact at ``path`` and register it as ``module_name``.

    Any module previously registered under the same name is replaced; on
    failure the previous registration is restored and the error propagates.

    Args:
        path: Module file or package directory.
        module_name: Name under which the module is registered in ``sys.modules``.

    Returns:
        ModuleType: Executed module object.

    Raises:
        ImportError: If no import spec can be built for ``path``.
    """

    if path.is_dir():
        location = path / PACKAGE_INIT
        search_locations: list[str] | None = [str(path)]
    else:
        location = path
        search_locations = None
    spec = importlib.util.spec_from_file_location(
        module_name,
        location,
        submodule_search_locations=search_locations,
    )
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot build an import spec for '{path}'")
    module = importlib.util.module_from_spec(spec)
    previous = sys.modules.get(module_name)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        if previous is None:
            sys.modules.pop(module_name, None)
        else:
            sys.modules[module_name] = previous
        raise
    LOGGER.debug("Loaded artifact %s from %s", module_name, path)
    return module


class ModuleLoadContext:
    """Disposable load context holding artifacts under private module names.

    Artifacts loaded through a context are registered in ``sys.modules``
    under a context-private name so they never shadow host modules, and are
    removed again by :meth:`unload`. Unloading only reclaims memory when no
    live reference to the artifacts (instances, functions, cached handles)
    escapes the context; callers must drop engine handle caches first.
    """

    def __init__(self, name: str) -> None:
        """Create an empty, active context.

        Args:
            name: Human-readable context name used in module prefixes and logs.
        """

        self.name = require_text(name, key="name", context="load context")
        safe_name = _UNSAFE_CHARS.sub("_", self.name)
        self._prefix = f"_plugincat_ctx{next(_CONTEXT_IDS)}_{safe_name}"
        self._handles: dict[tuple[str, str], ModuleType] = {}
        self._lock = threading.Lock()
        self._unloaded = False

    @property
    def is_unloaded(self) -> bool:
        return self._unloaded

    def _ensure_active(self) -> None:
        if self._unloaded:
            raise ValidationError(f"load context '{self.name}' has been unloaded")

    def module_name_for(self, module_id: str, artifact: str) -> str:
        return qualified_module_name(module_id, artifact, namespace=self._prefix)

    def load(self, path: Path, module_id: str, artifact: str) -> ModuleType:
        """Load ``path`` into this context as ``artifact`` of ``module_id``.

        Args:
            path: Module file or package directory.
            module_id: Identifier of the module shipping the artifact.
            artifact: Artifact name used for later handle lookups.

        Returns:
            ModuleType: Loaded module.

        Raises:
            ValidationError: If the context has been unloaded.
        """

        with self._lock:
            self._ensure_active()
            module = load_artifact(path, self.module_name_for(module_id, artifact))
            self._handles[handle_key(module_id, artifact)] = module
        return module

    def resolve(self, module_id: str, artifact: str) -> ModuleType | None:
        """Return the handle loaded for ``artifact`` of ``module_id``, if any."""

        with self._lock:
            self._ensure_active()
            return self._handles.get(handle_key(module_id, artifact))

    def artifacts(self) -> tuple[tuple[str, str], ...]:
        """Return the ``(module_id, normalised artifact)`` pairs loaded so far."""

        with self._lock:
            return tuple(self._handles)

    def unload(self) -> None:
        """Remove every artifact of this context from ``sys.modules``.

        Calling ``unload`` twice is a no-op.
        """

        with self._lock:
            if self._unloaded:
                return
            for module in self._handles.values():
                sys.modules.pop(module.__name__, None)
            count = len(self._handles)
            self._handles.clear()
            self._unloaded = True
        LOGGER.info("Unloaded load context %s (%d artifact(s))", self.name, count)

    def __enter__(self) -> ModuleLoadContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.unload()

    def __repr__(self) -> str:
        state = "unloaded" if self._unloaded else f"{len(self._handles)} artifact(s)"
        return f"ModuleLoadContext(name={self.name!r}, {state})"


__all__ = [
    "DEFAULT_NAMESPACE",
    "ModuleLoadContext",
    "artifact_name",
    "discover_artifacts",
    "handle_key",
    "load_artifact",
    "qualified_module_name",
]
