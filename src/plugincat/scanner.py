# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Introspect plugin modules into catalog metadata."""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from .config import CatalogSettings
from .diagnostics import DiagnosticLevel, DiagnosticSink, ScanDiagnostic, log_diagnostic, timed_operation
from .loading import ModuleLoadContext, artifact_name, discover_artifacts, load_artifact, qualified_module_name
from .models import MemberRecord, ModuleRecord, ParameterKind, ParameterRecord, TypeRecord
from .naming import is_async_type_name, is_synthetic, return_type_name_of, safe_signature, type_name_of
from .targets import PlatformTarget, parse_target, resolve_host_target, select_best_target
from .utils import require_text

LOGGER = logging.getLogger(__name__)

_CATALOGED_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True, slots=True)
class _Callable:
    """A member found on a type before it is converted into records."""

    name: str
    func: Callable[..., Any]
    is_static: bool
    drops_first: bool


def callable_variants(func: Callable[..., Any]) -> tuple[Callable[..., Any], ...]:
    """Return the ``typing.overload`` variants of ``func``, or ``func`` itself.

    Args:
        func: Implementation function.

    Returns:
        tuple[Callable[..., Any], ...]: Overload stubs in declaration order, or
        a one-element tuple holding ``func`` when it declares no overloads.
    """

    overloads = typing.get_overloads(func)
    if not overloads:
        return (func,)
    return tuple(getattr(variant, "__func__", variant) for variant in overloads)


def build_parameters(
    signature: inspect.Signature,
    aliases: Mapping[str, str],
    *,
    drop_first: bool,
) -> tuple[ParameterRecord, ...]:
    """Convert a signature into ordered parameter records.

    ``self``/``cls`` is dropped when ``drop_first`` is set; ``*args`` and
    ``**kwargs`` are never cataloged.

    Args:
        signature: Signature of the underlying function.
        aliases: Mapping of live module names to artifact names.
        drop_first: Whether the first parameter is the bound receiver.

    Returns:
        tuple[ParameterRecord, ...]: Parameters in declaration order.
    """

    params = list(signature.parameters.values())
    if drop_first and params:
        params = params[1:]
    records: list[ParameterRecord] = []
    for param in params:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        has_default = param.default is not inspect.Parameter.empty
        records.append(
            ParameterRecord(
                name=param.name,
                type_name=type_name_of(param.annotation, aliases),
                is_optional=has_default,
                default=param.default if has_default else None,
                kind=ParameterKind.POSITIONAL if param.kind in _CATALOGED_KINDS else ParameterKind.KEYWORD_ONLY,
            ),
        )
    return tuple(records)


def _class_callables(cls: type) -> Iterator[_Callable]:
    for name, raw in vars(cls).items():
        if is_synthetic(name, raw):
            continue
        if isinstance(raw, staticmethod):
            yield _Callable(name, raw.__func__, is_static=True, drops_first=False)
        elif isinstance(raw, classmethod):
            yield _Callable(name, raw.__func__, is_static=True, drops_first=True)
        elif inspect.isfunction(raw):
            yield _Callable(name, raw, is_static=False, drops_first=True)


def _type_flags(cls: type) -> dict[str, bool]:
    is_interface = bool(getattr(cls, "_is_protocol", False))
    callables = list(_class_callables(cls))
    return {
        "is_class": not is_interface,
        "is_interface": is_interface,
        "is_abstract": is_interface or inspect.isabstract(cls),
        "is_static": bool(callables) and all(entry.is_static for entry in callables),
    }


def _member_records(
    owner: str,
    entry: _Callable,
    *,
    module_id: str,
    artifact: str,
    aliases: Mapping[str, str],
) -> Iterator[MemberRecord]:
    for variant in callable_variants(entry.func):
        signature = safe_signature(variant)
        return_type = return_type_name_of(entry.func, signature, aliases)
        yield MemberRecord(
            owner_type=owner,
            name=entry.name,
            return_type=return_type,
            module_id=module_id,
            artifact=artifact,
            parameters=build_parameters(signature, aliases, drop_first=entry.drops_first),
            is_static=entry.is_static,
            is_public=True,
            is_async=is_async_type_name(return_type),
        )


def introspect_module(
    module: ModuleType,
    module_id: str,
    artifact: str,
) -> tuple[tuple[TypeRecord, ...], tuple[MemberRecord, ...]]:
    """Describe the public classes and functions defined by ``module``.

    Objects imported from elsewhere are ignored; only names whose
    ``__module__`` is ``module`` itself are cataloged. Module-level functions
    are static members owned by the artifact namespace.

    Args:
        module: Loaded module object.
        module_id: Identifier of the module record being built.
        artifact: Artifact name used as the namespace of every type.

    Returns:
        tuple[tuple[TypeRecord, ...], tuple[MemberRecord, ...]]: Types and
        members in declaration order.
    """

    aliases = {module.__name__: artifact}
    types: list[TypeRecord] = []
    members: list[MemberRecord] = []
    for name, obj in vars(module).items():
        if getattr(obj, "__module__", None) != module.__name__ or is_synthetic(name, obj):
            continue
        if inspect.isclass(obj):
            full_name = f"{artifact}.{obj.__qualname__}"
            types.append(
                TypeRecord(
                    full_name=full_name,
                    namespace=artifact,
                    name=obj.__name__,
                    module_id=module_id,
                    artifact=artifact,
                    **_type_flags(obj),
                ),
            )
            for entry in _class_callables(obj):
                members.extend(
                    _member_records(full_name, entry, module_id=module_id, artifact=artifact, aliases=aliases),
                )
        elif inspect.isfunction(obj):
            entry = _Callable(name, obj, is_static=True, drops_first=False)
            members.extend(_member_records(artifact, entry, module_id=module_id, artifact=artifact, aliases=aliases))
    return tuple(types), tuple(members)


def _unrecognised_folders(lib_path: Path) -> list[Path]:
    if not lib_path.is_dir():
        return []
    return sorted(
        (entry for entry in lib_path.iterdir() if entry.is_dir() and parse_target(entry.name) is None),
        key=lambda entry: entry.name,
    )


@dataclass(slots=True)
class _ScanState:
    artifacts: list[str] = field(default_factory=list)
    types: list[TypeRecord] = field(default_factory=list)
    members: list[MemberRecord] = field(default_factory=list)


class ModuleScanner:
    """Scan a module folder on disk and build its :class:`ModuleRecord`."""

    def __init__(self, settings: CatalogSettings | None = None) -> None:
        """Create a scanner.

        Args:
            settings: Scanner settings; defaults to :class:`CatalogSettings`.
        """

        self._settings = settings or CatalogSettings()
        self._host = resolve_host_target(self._settings.host_target)
        self._load_context: ModuleLoadContext | None = None

    @property
    def settings(self) -> CatalogSettings:
        return self._settings

    @property
    def host(self) -> PlatformTarget:
        return self._host

    @property
    def load_context(self) -> ModuleLoadContext | None:
        """Return the shared isolated context, created on first isolated scan."""

        return self._load_context

    def _default_context(self) -> ModuleLoadContext | None:
        if not self._settings.use_isolation:
            return None
        if self._load_context is None or self._load_context.is_unloaded:
            self._load_context = ModuleLoadContext("plugincat")
        return self._load_context

    def select_target(
        self,
        lib_path: Path,
        allowed_targets: Sequence[str] | None = None,
    ) -> tuple[PlatformTarget, Path] | None:
        """Return the best platform-target folder beneath ``lib_path``.

        Args:
            lib_path: Library folder of a module.
            allowed_targets: Optional case-insensitive whitelist.

        Returns:
            tuple[PlatformTarget, Path] | None: Selected target and its folder,
            or ``None`` when nothing qualifies.
        """

        if not lib_path.is_dir():
            return None
        folders = {entry.name: entry for entry in lib_path.iterdir() if entry.is_dir()}
        allowed = allowed_targets if allowed_targets else self._settings.allowed_targets
        target = select_best_target(folders, self._host, allowed)
        if target is None:
            return None
        return target, folders[target.tag]

    def scan(
        self,
        module_path: str | Path,
        module_id: str,
        version: str,
        allowed_targets: Sequence[str] | None = None,
        *,
        load_context: ModuleLoadContext | None = None,
        on_diagnostic: DiagnosticSink | None = None,
    ) -> ModuleRecord:
        """Scan ``module_path`` and return the metadata of its selected target.

        Artifacts that fail to load or introspect are reported through
        ``on_diagnostic`` and the module logger; the remaining artifacts are
        still scanned. A folder without a recognised layout yields an empty
        record.

        Args:
            module_path: Module root containing the library folder.
            module_id: Catalog identifier of the module.
            version: Module version.
            allowed_targets: Optional case-insensitive platform-target whitelist;
                falls back to the configured whitelist when empty.
            load_context: Optional isolated context receiving the artifacts.
            on_diagnostic: Optional callback receiving scan diagnostics.

        Returns:
            ModuleRecord: Metadata describing every artifact that was scanned.

        Raises:
            ValidationError: If ``module_path``, ``module_id`` or ``version`` is blank.
        """

        if isinstance(module_path, Path):
            root = module_path
        else:
            root = Path(require_text(module_path, key="module_path", context="scan"))
        require_text(module_id, key="module_id", context="scan")
        require_text(version, key="version", context="scan")
        context = load_context or self._default_context()

        def emit(diagnostic: ScanDiagnostic) -> None:
            log_diagnostic(LOGGER, diagnostic)
            if on_diagnostic is not None:
                on_diagnostic(diagnostic)

        state = _ScanState()
        selected: PlatformTarget | None = None
        with timed_operation(LOGGER, f"scan {module_id} v{version}"):
            lib_path = root / self._settings.lib_folder
            for folder in _unrecognised_folders(lib_path):
                emit(
                    ScanDiagnostic(
                        f"Skipping unrecognised platform target folder {folder.name}",
                        level=DiagnosticLevel.WARNING,
                        path=folder,
                    ),
                )
            selection = self.select_target(lib_path, allowed_targets)
            if selection is None:
                emit(
                    ScanDiagnostic(
                        f"No compatible platform target under {lib_path} for host {self._host}",
                        level=DiagnosticLevel.DEBUG,
                        path=lib_path,
                    ),
                )
            else:
                selected, target_dir = selection
                for path in discover_artifacts(target_dir):
                    self._scan_artifact(path, module_id, context, state, emit)
        return ModuleRecord(
            module_id=module_id,
            version=version,
            source_path=root,
            artifacts=tuple(state.artifacts),
            types=tuple(state.types),
            members=tuple(state.members),
            platform_target=selected.tag if selected else None,
        )

    @staticmethod
    def _scan_artifact(
        path: Path,
        module_id: str,
        context: ModuleLoadContext | None,
        state: _ScanState,
        emit: DiagnosticSink,
    ) -> None:
        name = artifact_name(path)
        try:
            if context is not None:
                module = context.load(path, module_id, name)
            else:
                module = load_artifact(path, qualified_module_name(module_id, name))
        except (Exception, SystemExit) as exc:
            emit(
                ScanDiagnostic(
                    f"Failed to load artifact {path}: {exc}",
                    level=DiagnosticLevel.ERROR,
                    path=path,
                    artifact=name,
                    error=exc,
                ),
            )
            return
        state.artifacts.append(name)
        try:
            types, members = introspect_module(module, module_id, name)
        except Exception as exc:
            emit(
                ScanDiagnostic(
                    f"Error scanning artifact {name}: {exc}",
                    level=DiagnosticLevel.ERROR,
                    path=path,
                    artifact=name,
                    error=exc,
                ),
            )
            return
        state.types.extend(types)
        state.members.extend(members)


__all__ = [
    "ModuleScanner",
    "build_parameters",
    "callable_variants",
    "introspect_module",
]
