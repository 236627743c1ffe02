# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Immutable metadata describing the public surface of a scanned module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path


class ParameterKind(str, Enum):
    """Enumerate how an argument is passed to the underlying callable."""

    POSITIONAL = "positional"
    KEYWORD_ONLY = "keyword_only"


@dataclass(frozen=True, slots=True)
class ParameterRecord:
    """Describe a single parameter of a cataloged member."""

    name: str
    type_name: str
    is_optional: bool = False
    default: object | None = None
    kind: ParameterKind = ParameterKind.POSITIONAL

    def render(self) -> str:
        """Return ``name: type`` with a default suffix for optional parameters.

        Returns:
            str: Human-readable rendering used in diagnostics.
        """

        rendered = f"{self.name}: {self.type_name}"
        if self.is_optional:
            rendered = f"{rendered} = {self.default!r}"
        if self.kind is ParameterKind.KEYWORD_ONLY:
            rendered = f"*, {rendered}"
        return rendered


@dataclass(frozen=True, slots=True)
class TypeRecord:
    """Describe a public type exposed by a module artifact."""

    full_name: str
    namespace: str
    name: str
    module_id: str
    artifact: str
    is_class: bool = True
    is_interface: bool = False
    is_abstract: bool = False
    is_static: bool = False


@dataclass(frozen=True, slots=True)
class MemberRecord:
    """Describe a public callable member available for dynamic invocation."""

    owner_type: str
    name: str
    return_type: str
    module_id: str
    artifact: str
    parameters: tuple[ParameterRecord, ...] = ()
    is_static: bool = False
    is_public: bool = True
    is_async: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def arity(self) -> int:
        """Return the number of declared parameters."""

        return len(self.parameters)

    @property
    def qualified_name(self) -> str:
        return f"{self.owner_type}.{self.name}"

    def signature(self) -> str:
        """Return the member signature rendered for diagnostics.

        Returns:
            str: Text such as ``Sample.Greeter.Greet(name: str) -> str``.
        """

        params = ", ".join(parameter.render() for parameter in self.parameters)
        prefix = "static " if self.is_static else ""
        return f"{prefix}{self.qualified_name}({params}) -> {self.return_type}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ModuleRecord:
    """Aggregate metadata for one scanned module version.

    Records are replaced wholesale in the catalog; none of the nested
    sequences can be mutated once the record is built.
    """

    module_id: str
    version: str
    source_path: Path | None = None
    artifacts: tuple[str, ...] = ()
    types: tuple[TypeRecord, ...] = ()
    members: tuple[MemberRecord, ...] = ()
    platform_target: str | None = None
    loaded_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Coerce list inputs into tuples so the record stays immutable."""

        object.__setattr__(self, "artifacts", tuple(self.artifacts))
        object.__setattr__(self, "types", tuple(self.types))
        object.__setattr__(self, "members", tuple(self.members))

    @property
    def key(self) -> tuple[str, str]:
        return self.module_id, self.version

    def is_empty(self) -> bool:
        """Return ``True`` when the scan recognised no artifacts, types, or members."""

        return not (self.artifacts or self.types or self.members)


__all__ = [
    "MemberRecord",
    "ModuleRecord",
    "ParameterKind",
    "ParameterRecord",
    "TypeRecord",
]
