# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Name-based dynamic invocation of cataloged members.

The engine turns a textual member name plus an argument list into a call on
a live module handle:

1. look the name up in the catalog (suggesting nearby names on a miss);
2. keep the candidates whose arity equals the argument count and take the
   first in catalog order;
3. resolve the candidate's artifact to a loaded module handle (cached);
4. resolve the owning type, every parameter type, and the exact member;
5. check the static/instance calling convention and execute.

Every failure surfaces as a typed :class:`~plugincat.errors.PluginCatalogError`
carrying enough context for a caller to correct the request. Nothing is
retried: invoked code is assumed not to be idempotent.
"""

from __future__ import annotations

import inspect
import logging
import types
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from types import ModuleType
from typing import Any

from .config import CatalogSettings
from .errors import (
    ConstructionFailedError,
    InstanceRequiredError,
    InvocationFailedError,
    MemberNotFoundError,
    ModuleNotResolvedError,
    NotAsyncError,
    OverloadMismatchError,
    ParameterTypeNotFoundError,
    TypeNotFoundError,
    UnexpectedInstanceError,
    ValidationError,
)
from .handles import HandleCache, HostModuleResolver, TypeNameResolver, is_missing, walk_attributes
from .interfaces import CatalogReader, HandleResolver
from .loading import ModuleLoadContext
from .models import MemberRecord, ParameterKind, TypeRecord
from .naming import safe_signature, type_name_of
from .scanner import build_parameters, callable_variants
from .suggestions import fallback_hints, suggest_names
from .utils import dedupe_preserving_order, require_text

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _BoundMember:
    """A catalog member matched to the live callable it describes."""

    member: MemberRecord
    owner: object
    func: Callable[..., Any]


def _local_name(full_name: str, artifact: str) -> str:
    prefix = f"{artifact}."
    return full_name[len(prefix) :] if full_name.startswith(prefix) else full_name


def _split_arguments(member: MemberRecord, arguments: tuple[object, ...]) -> tuple[list[object], dict[str, object]]:
    positional: list[object] = []
    keywords: dict[str, object] = {}
    for parameter, value in zip(member.parameters, arguments, strict=True):
        if parameter.kind is ParameterKind.KEYWORD_ONLY:
            keywords[parameter.name] = value
        else:
            positional.append(value)
    return positional, keywords


def _argument_type_names(arguments: Sequence[object]) -> tuple[str, ...]:
    return tuple(type_name_of(type(argument)) for argument in arguments)


def _drop_receiver(signature: inspect.Signature) -> inspect.Signature:
    params = list(signature.parameters.values())
    return signature.replace(parameters=params[1:])


def declared_constructors(cls: type) -> tuple[inspect.Signature, ...]:
    """Return the public constructor signatures of ``cls``.

    ``typing.overload`` variants of ``__init__`` count as separate
    constructors; otherwise the class has exactly one.

    Args:
        cls: Class to inspect.

    Returns:
        tuple[inspect.Signature, ...]: Constructor signatures without the
        receiver parameter; empty when none can be determined.
    """

    init = cls.__init__
    if init is object.__init__:
        return (inspect.Signature(),)
    if inspect.isfunction(init):
        return tuple(_drop_receiver(safe_signature(variant)) for variant in callable_variants(init))
    try:
        return (inspect.signature(cls),)
    except (TypeError, ValueError):
        return ()


def _is_assignable(value: object, annotation: object) -> bool:
    if annotation is inspect.Parameter.empty or annotation is Any:
        return True
    if not isinstance(annotation, type) or hasattr(annotation, "__origin__"):
        return True
    try:
        return isinstance(value, annotation)
    except TypeError:
        return True


def _accepts(signature: inspect.Signature, arguments: tuple[object, ...]) -> bool:
    try:
        bound = signature.bind(*arguments)
    except TypeError:
        return False
    for name, value in bound.arguments.items():
        parameter = signature.parameters[name]
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if not _is_assignable(value, parameter.annotation):
            return False
    return True


class InvocationEngine:
    """Invoke cataloged members and construct cataloged types by name."""

    def __init__(
        self,
        catalog: CatalogReader,
        *,
        settings: CatalogSettings | None = None,
        resolver: HandleResolver | None = None,
        load_contexts: Sequence[ModuleLoadContext] = (),
    ) -> None:
        """Create an engine bound to ``catalog``.

        Args:
            catalog: Catalog queried for member and type metadata.
            settings: Suggestion limits; defaults to :class:`CatalogSettings`.
            resolver: Custom handle resolver; defaults to searching
                ``load_contexts`` and then ``sys.modules``.
            load_contexts: Isolated load contexts searched by the default resolver.

        Raises:
            ValidationError: If ``catalog`` is ``None``.
        """

        if catalog is None:
            raise ValidationError("InvocationEngine: 'catalog' is required")
        self._catalog = catalog
        self._settings = settings or CatalogSettings()
        self._resolver: HandleResolver = resolver or HostModuleResolver(load_contexts)
        self._handles = HandleCache()

    @property
    def catalog(self) -> CatalogReader:
        return self._catalog

    def register_context(self, context: ModuleLoadContext) -> None:
        """Make artifacts of an isolated load context resolvable.

        Raises:
            ValidationError: If a custom resolver without context support is in use.
        """

        if not isinstance(self._resolver, HostModuleResolver):
            raise ValidationError("register_context requires the default HostModuleResolver")
        self._resolver.register_context(context)

    def evict(self, module_id: str, artifact: str | None = None) -> int:
        """Drop cached handles of ``module_id``, or only the one for ``artifact``.

        Returns:
            int: Number of handles removed.
        """

        return self._handles.evict(module_id, artifact)

    def clear_handle_cache(self) -> None:
        self._handles.clear()

    # Name resolution ---------------------------------------------------------

    def select_member(self, name: str, argument_count: int) -> MemberRecord:
        """Pick the member ``name`` that accepts ``argument_count`` arguments.

        Args:
            name: Member name, matched case-insensitively.
            argument_count: Number of arguments the caller will pass.

        Returns:
            MemberRecord: First same-arity candidate in catalog order.

        Raises:
            ValidationError: If ``name`` is blank.
            MemberNotFoundError: If no member has that name.
            OverloadMismatchError: If no candidate has the requested arity.
        """

        require_text(name, key="name", context="invoke")
        candidates = list(self._catalog.find_members_by_name(name))
        if not candidates:
            raise self._member_not_found(name)
        for candidate in candidates:
            if candidate.arity == argument_count:
                return candidate
        raise OverloadMismatchError(
            name,
            argument_count,
            tuple(candidate.signature() for candidate in candidates),
            tuple(sorted({candidate.arity for candidate in candidates})),
        )

    def _member_not_found(self, name: str) -> MemberNotFoundError:
        known = dedupe_preserving_order(
            member.name for record in self._catalog.get_all() for member in record.members
        )
        suggestions = suggest_names(
            name,
            known,
            limit=self._settings.suggestion_limit,
            max_distance=self._settings.max_edit_distance,
        )
        hints = () if suggestions else fallback_hints(known, self._settings.fallback_hint_limit)
        return MemberNotFoundError(name, suggestions=suggestions, hints=hints)

    def resolve_handle(self, module_id: str, artifact: str) -> ModuleType:
        """Return the loaded module for ``artifact`` of ``module_id``, consulting the cache first.

        Concurrent first resolutions may race; the first one published to the
        cache wins and every caller receives that handle.

        Args:
            module_id: Module that ships the artifact.
            artifact: Artifact name recorded in the catalog.

        Returns:
            ModuleType: Loaded module handle.

        Raises:
            ModuleNotResolvedError: If the artifact is not loaded in the host process.
        """

        cached = self._handles.get(module_id, artifact)
        if cached is not None:
            return cached
        handle = self._resolver.resolve(module_id, artifact)
        if handle is None:
            known = tuple((record.module_id, record.artifacts) for record in self._catalog.get_all())
            raise ModuleNotResolvedError(artifact, known, module_id=module_id)
        winner = self._handles.publish(module_id, artifact, handle)
        if winner is not handle:
            LOGGER.debug("Discarded concurrent resolution of artifact %s of module %s", artifact, module_id)
        return winner

    def _resolve_owner(self, handle: ModuleType, owner_type: str, artifact: str) -> object:
        if owner_type == artifact:
            return handle
        owner = walk_attributes(handle, _local_name(owner_type, artifact))
        if is_missing(owner) or not inspect.isclass(owner):
            raise TypeNotFoundError(owner_type, artifact=artifact)
        return owner

    def _bind(self, member: MemberRecord, handle: ModuleType) -> _BoundMember:
        owner = self._resolve_owner(handle, member.owner_type, member.artifact)
        resolver = TypeNameResolver(handle, member.artifact)
        expected: list[object] = []
        for parameter in member.parameters:
            try:
                expected.append(resolver.resolve(parameter.type_name))
            except LookupError:
                raise ParameterTypeNotFoundError(
                    parameter.type_name,
                    member=member.qualified_name,
                    parameter=parameter.name,
                ) from None

        raw = vars(owner).get(member.name)
        if isinstance(raw, staticmethod):
            func, live_static, drops_first = raw.__func__, True, False
        elif isinstance(raw, classmethod):
            func, live_static, drops_first = raw.__func__, True, True
        elif inspect.isfunction(raw):
            owner_is_module = isinstance(owner, ModuleType)
            func, live_static, drops_first = raw, owner_is_module, not owner_is_module
        else:
            raise MemberNotFoundError(member.name, type_name=member.owner_type)
        if live_static != member.is_static:
            kind = "static" if member.is_static else "instance"
            raise MemberNotFoundError(
                member.name,
                type_name=member.owner_type,
                detail=f"The type no longer declares it as an {kind} member.",
            )

        aliases = {handle.__name__: member.artifact}
        for variant in callable_variants(func):
            parameters = build_parameters(safe_signature(variant), aliases, drop_first=drops_first)
            if len(parameters) != member.arity:
                continue
            try:
                live = [resolver.resolve(parameter.type_name) for parameter in parameters]
            except LookupError:
                continue
            if live == expected:
                return _BoundMember(member=member, owner=owner, func=func)
        rendered = ", ".join(parameter.type_name for parameter in member.parameters)
        raise MemberNotFoundError(
            member.name,
            type_name=member.owner_type,
            detail=f"No variant takes parameter types ({rendered}).",
        )

    # Invocation ----------------------------------------------------------------

    def _dispatch(self, member: MemberRecord, arguments: tuple[object, ...], instance: object | None) -> object:
        handle = self.resolve_handle(member.module_id, member.artifact)
        bound = self._bind(member, handle)
        if not member.is_static and instance is None:
            raise InstanceRequiredError(member.qualified_name)
        if member.is_static and instance is not None:
            raise UnexpectedInstanceError(member.qualified_name)

        if member.is_static:
            target = getattr(bound.owner, member.name)
        else:
            target = types.MethodType(bound.func, instance)
        positional, keywords = _split_arguments(member, arguments)
        LOGGER.debug("Invoking %s with %d argument(s)", member.signature(), len(arguments))
        try:
            return target(*positional, **keywords)
        except Exception as exc:
            raise InvocationFailedError(member.qualified_name, exc) from exc

    def invoke_by_name(
        self,
        name: str,
        args: Sequence[object] | None = None,
        instance: object | None = None,
    ) -> object:
        """Invoke the member ``name`` with ``args``.

        Args:
            name: Member name, matched case-insensitively.
            args: Positional argument values, one per declared parameter.
            instance: Receiver for instance members; must be ``None`` for static ones.

        Returns:
            object: Whatever the invoked member returns.

        Raises:
            PluginCatalogError: A typed subclass describing the failure.
        """

        arguments = tuple(args or ())
        member = self.select_member(name, len(arguments))
        return self._dispatch(member, arguments, instance)

    def invoke_by_name_with_descriptor(
        self,
        member: MemberRecord,
        args: Sequence[object] | None = None,
        instance: object | None = None,
    ) -> object:
        """Invoke a member already chosen by the caller.

        Args:
            member: Catalog member to invoke.
            args: Argument values, one per declared parameter.
            instance: Receiver for instance members.

        Returns:
            object: Whatever the invoked member returns.

        Raises:
            ValidationError: If ``member`` is not a :class:`MemberRecord`.
            OverloadMismatchError: If ``args`` does not match the member's arity.
        """

        if not isinstance(member, MemberRecord):
            raise ValidationError("invoke_by_name_with_descriptor: 'member' must be a MemberRecord")
        arguments = tuple(args or ())
        if len(arguments) != member.arity:
            raise OverloadMismatchError(member.name, len(arguments), (member.signature(),), (member.arity,))
        return self._dispatch(member, arguments, instance)

    async def invoke_by_name_async(
        self,
        name: str,
        args: Sequence[object] | None = None,
        instance: object | None = None,
    ) -> object:
        """Invoke an awaitable member and return its awaited result.

        No timeout is applied; cancelling the calling task cancels the await
        and the :class:`asyncio.CancelledError` propagates unchanged.

        Args:
            name: Member name, matched case-insensitively.
            args: Argument values, one per declared parameter.
            instance: Receiver for instance members.

        Returns:
            object: The value the awaitable resolves to.

        Raises:
            NotAsyncError: If the selected member does not return an awaitable.
            InvocationFailedError: If the call or the awaited operation raises.
        """

        arguments = tuple(args or ())
        member = self.select_member(name, len(arguments))
        if not member.is_async:
            raise NotAsyncError(member.qualified_name, member.return_type)
        result = self._dispatch(member, arguments, instance)
        if not inspect.isawaitable(result):
            return result
        try:
            return await result
        except Exception as exc:
            raise InvocationFailedError(member.qualified_name, exc) from exc

    # Construction --------------------------------------------------------------

    def create_instance(self, type_full_name: str, *ctor_args: object) -> object:
        """Construct an instance of a cataloged type.

        Args:
            type_full_name: Simple or full type name, matched case-insensitively.
            *ctor_args: Constructor arguments.

        Returns:
            object: The new instance.

        Raises:
            TypeNotFoundError: If the catalog or the module handle lacks the type.
            ModuleNotResolvedError: If the type's artifact is not loaded.
            ConstructionFailedError: If zero or several constructors accept the
                arguments, the type is abstract, or the constructor raises.
        """

        require_text(type_full_name, key="type_full_name", context="create_instance")
        matches = list(self._catalog.find_types_by_name(type_full_name))
        if not matches:
            known = dedupe_preserving_order(
                type_record.full_name for record in self._catalog.get_all() for type_record in record.types
            )
            raise TypeNotFoundError(
                type_full_name,
                suggestions=suggest_names(
                    type_full_name,
                    known,
                    limit=self._settings.suggestion_limit,
                    max_distance=self._settings.max_edit_distance,
                ),
            )
        type_record: TypeRecord = matches[0]
        handle = self.resolve_handle(type_record.module_id, type_record.artifact)
        cls = self._resolve_owner(handle, type_record.full_name, type_record.artifact)
        if not isinstance(cls, type):
            raise TypeNotFoundError(type_record.full_name, artifact=type_record.artifact)

        arguments = tuple(ctor_args)
        argument_types = _argument_type_names(arguments)
        constructors = declared_constructors(cls)
        rendered = tuple(f"{type_record.full_name}{signature}" for signature in constructors)

        def failure(reason: str) -> ConstructionFailedError:
            return ConstructionFailedError(
                type_record.full_name,
                argument_types=argument_types,
                constructors=rendered,
                reason=reason,
            )

        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            raise failure("the type is abstract")
        matching = [signature for signature in constructors if _accepts(signature, arguments)]
        if not matching:
            raise failure(f"no constructor accepts {len(arguments)} argument(s) of these types")
        if len(matching) > 1:
            raise failure(f"{len(matching)} constructors match ambiguously")
        try:
            return cls(*arguments)
        except Exception as exc:
            raise failure(f"the constructor raised {type(exc).__name__}: {exc}") from exc


__all__ = ["InvocationEngine", "declared_constructors"]
