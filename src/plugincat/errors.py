# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Exception hierarchy raised by the scanner, catalog, and invocation engine."""

from __future__ import annotations

from collections.abc import Iterable


def _bullet_list(items: Iterable[str]) -> str:
    lines = [f"  - {item}" for item in items]
    return "\n".join(lines)


class PluginCatalogError(RuntimeError):
    """Base class for every error raised by :mod:`plugincat`."""


class ValidationError(PluginCatalogError, ValueError):
    """Raised when a required argument is missing, blank, or inconsistent."""


class ConfigError(PluginCatalogError):
    """Raised when configuration input is invalid."""


class MemberNotFoundError(PluginCatalogError):
    """Raised when no catalog member matches the requested name.

    When ``type_name`` is set the lookup was scoped to a resolved type and
    failed because the live type no longer exposes a matching member.
    """

    def __init__(
        self,
        name: str,
        *,
        suggestions: tuple[str, ...] = (),
        hints: tuple[str, ...] = (),
        type_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        """Build the error message from the lookup context.

        Args:
            name: Member name that could not be found.
            suggestions: Nearby member names ranked by similarity.
            hints: Arbitrary catalog member names offered when no suggestion matched.
            type_name: Full name of the type the lookup was scoped to, if any.
            detail: Optional extra sentence appended to the message.
        """

        self.name = name
        self.suggestions = suggestions
        self.hints = hints
        self.type_name = type_name
        if type_name is not None:
            message = f"Member '{name}' not found on type '{type_name}'."
        else:
            message = f"Member '{name}' not found in any cataloged module."
        if detail:
            message = f"{message} {detail}"
        if suggestions:
            message = f"{message} Did you mean: {', '.join(suggestions)}?"
        elif hints:
            message = f"{message} Available members include: {', '.join(hints)}."
        super().__init__(message)


class TypeNotFoundError(PluginCatalogError):
    """Raised when a type cannot be found in the catalog or in a module handle."""

    def __init__(
        self,
        type_name: str,
        *,
        artifact: str | None = None,
        suggestions: tuple[str, ...] = (),
    ) -> None:
        self.type_name = type_name
        self.artifact = artifact
        self.suggestions = suggestions
        if artifact is None:
            message = f"Type '{type_name}' not found in any cataloged module."
        else:
            message = f"Type '{type_name}' not found in module artifact '{artifact}'."
        if suggestions:
            message = f"{message} Did you mean: {', '.join(suggestions)}?"
        super().__init__(message)


class OverloadMismatchError(PluginCatalogError):
    """Raised when no candidate accepts the supplied number of arguments."""

    def __init__(self, name: str, argument_count: int, candidates: tuple[str, ...], arities: tuple[int, ...]) -> None:
        """Record the failed arity along with every candidate signature.

        Args:
            name: Member name that was requested.
            argument_count: Number of arguments the caller supplied.
            candidates: Rendered signatures of every same-named member.
            arities: Distinct arities available across the candidates.
        """

        self.name = name
        self.argument_count = argument_count
        self.candidates = candidates
        self.arities = arities
        available = ", ".join(str(arity) for arity in arities)
        message = (
            f"No overload of '{name}' accepts {argument_count} argument(s). "
            f"Available arities: {available}.\nCandidates:\n{_bullet_list(candidates)}"
        )
        super().__init__(message)


class ModuleNotResolvedError(PluginCatalogError):
    """Raised when a member's artifact is not loaded in the host process."""

    def __init__(
        self,
        artifact: str,
        known_modules: tuple[tuple[str, tuple[str, ...]], ...],
        *,
        module_id: str | None = None,
    ) -> None:
        """Describe the missing artifact and list what the catalog knows about.

        Args:
            artifact: Artifact name that could not be resolved to a handle.
            known_modules: ``(module_id, artifacts)`` pairs currently cataloged.
            module_id: Module expected to ship the artifact, when known.
        """

        self.artifact = artifact
        self.module_id = module_id
        self.known_modules = known_modules
        if known_modules:
            listing = _bullet_list(
                f"{known_id}: {', '.join(artifacts) or '(no artifacts)'}" for known_id, artifacts in known_modules
            )
        else:
            listing = "  (catalog is empty)"
        owner = f" of module '{module_id}'" if module_id else ""
        message = (
            f"Module artifact '{artifact}'{owner} not found in the host process. "
            f"Ensure the module is loaded.\nKnown modules:\n{listing}"
        )
        super().__init__(message)


class ParameterTypeNotFoundError(PluginCatalogError):
    """Raised when a parameter's declared type name cannot be resolved."""

    def __init__(self, type_name: str, *, member: str, parameter: str) -> None:
        self.type_name = type_name
        self.member = member
        self.parameter = parameter
        super().__init__(f"Parameter type '{type_name}' of '{member}' (parameter '{parameter}') not found.")


class InstanceRequiredError(PluginCatalogError):
    """Raised when an instance member is invoked without an instance."""

    def __init__(self, member: str) -> None:
        self.member = member
        super().__init__(f"Member '{member}' is not static and requires an instance.")


class UnexpectedInstanceError(PluginCatalogError):
    """Raised when a static member is invoked with an instance."""

    def __init__(self, member: str) -> None:
        self.member = member
        super().__init__(f"Member '{member}' is static and must not be given an instance.")


class NotAsyncError(PluginCatalogError):
    """Raised when the async invocation path resolves a synchronous member."""

    def __init__(self, member: str, return_type: str) -> None:
        self.member = member
        self.return_type = return_type
        super().__init__(
            f"Member '{member}' returns '{return_type}', which is not awaitable; use invoke_by_name instead.",
        )


class InvocationFailedError(PluginCatalogError):
    """Raised when the invoked code itself raises; the cause is chained."""

    def __init__(self, member: str, cause: BaseException) -> None:
        self.member = member
        self.cause = cause
        super().__init__(f"Error invoking '{member}': {type(cause).__name__}: {cause}")


class ConstructionFailedError(PluginCatalogError):
    """Raised when an instance of a cataloged type cannot be created."""

    def __init__(
        self,
        type_name: str,
        *,
        argument_types: tuple[str, ...],
        constructors: tuple[str, ...],
        reason: str,
    ) -> None:
        """Describe why construction failed.

        Args:
            type_name: Full name of the type being constructed.
            argument_types: Type names of the arguments the caller supplied.
            constructors: Rendered signatures of the type's declared constructors.
            reason: Short explanation of the failure.
        """

        self.type_name = type_name
        self.argument_types = argument_types
        self.constructors = constructors
        self.reason = reason
        declared = _bullet_list(constructors) if constructors else "  (no public constructors)"
        message = (
            f"Cannot create instance of '{type_name}': {reason}. "
            f"Attempted argument types: ({', '.join(argument_types)}).\nDeclared constructors:\n{declared}"
        )
        super().__init__(message)


__all__ = [
    "ConfigError",
    "ConstructionFailedError",
    "InstanceRequiredError",
    "InvocationFailedError",
    "MemberNotFoundError",
    "ModuleNotResolvedError",
    "NotAsyncError",
    "OverloadMismatchError",
    "ParameterTypeNotFoundError",
    "PluginCatalogError",
    "TypeNotFoundError",
    "UnexpectedInstanceError",
    "ValidationError",
]
