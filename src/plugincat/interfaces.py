# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Structural contracts between the catalog, the engine, and collaborators."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterator
from types import ModuleType
from typing import Protocol, runtime_checkable

from .models import MemberRecord, ModuleRecord, TypeRecord


@runtime_checkable
class CatalogReader(Protocol):
    """Read-only catalog surface consumed by the invocation engine."""

    @abstractmethod
    def get_all(self) -> tuple[ModuleRecord, ...]:
        """Return a snapshot of every stored record."""

    @abstractmethod
    def find_members_by_name(self, name: str) -> Iterator[MemberRecord]:
        """Yield members whose name matches ``name`` case-insensitively."""

    @abstractmethod
    def find_types_by_name(self, name: str) -> Iterator[TypeRecord]:
        """Yield types whose simple or full name matches ``name``."""


@runtime_checkable
class CatalogStore(CatalogReader, Protocol):
    """Full catalog surface used by installer, loader, and watcher collaborators."""

    @abstractmethod
    def add_or_update(self, record: ModuleRecord) -> None:
        """Insert or wholly replace ``record``."""

    @abstractmethod
    def get_by_id(self, module_id: str) -> ModuleRecord | None:
        """Return the record stored under ``module_id``."""

    @abstractmethod
    def get_by_id_and_version(self, module_id: str, version: str) -> ModuleRecord | None:
        """Return the record matching ``module_id`` and ``version``."""

    @abstractmethod
    def find_members_by_owner_type(self, type_full_name: str) -> Iterator[MemberRecord]:
        """Yield members declared on ``type_full_name``."""

    @abstractmethod
    def remove(self, module_id: str) -> bool:
        """Remove the record stored under ``module_id``."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records."""


@runtime_checkable
class HandleResolver(Protocol):
    """Locate an already-loaded module handle for one artifact of one module."""

    @abstractmethod
    def resolve(self, module_id: str, artifact: str) -> ModuleType | None:
        """Return the handle for ``artifact`` of ``module_id`` or ``None`` when it is not loaded."""


__all__ = ["CatalogReader", "CatalogStore", "HandleResolver"]
