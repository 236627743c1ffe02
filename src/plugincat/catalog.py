# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Thread-safe in-memory catalog of scanned module records."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from .errors import ValidationError
from .models import MemberRecord, ModuleRecord, TypeRecord
from .utils import require_text

LOGGER = logging.getLogger(__name__)


def _validate_record(record: ModuleRecord) -> None:
    """Ensure ``record`` is internally consistent before it is stored.

    Args:
        record: Candidate record.

    Raises:
        ValidationError: If identifiers are blank or a type/member references
            another module or an undeclared artifact.
    """

    if not isinstance(record, ModuleRecord):
        raise ValidationError(f"add_or_update: expected a ModuleRecord, got {type(record).__name__}")
    require_text(record.module_id, key="module_id", context="add_or_update")
    require_text(record.version, key="version", context="add_or_update")
    declared = set(record.artifacts)
    entries: tuple[TypeRecord | MemberRecord, ...] = (*record.types, *record.members)
    for entry in entries:
        label = entry.full_name if isinstance(entry, TypeRecord) else entry.qualified_name
        if entry.module_id != record.module_id:
            raise ValidationError(
                f"add_or_update: '{label}' belongs to module '{entry.module_id}', not '{record.module_id}'",
            )
        if entry.artifact not in declared:
            raise ValidationError(f"add_or_update: '{label}' references undeclared artifact '{entry.artifact}'")


class ModuleCatalog:
    """Store module records keyed by module id.

    Writers replace whole records under a single lock. Readers copy the
    current records under the same lock and then work on that snapshot, so a
    query never observes a half-applied write and never blocks writers while
    it is being consumed.
    """

    def __init__(self) -> None:
        """Initialise an empty catalog."""

        self._records: dict[str, ModuleRecord] = {}
        self._lock = threading.Lock()

    def _snapshot(self) -> tuple[ModuleRecord, ...]:
        with self._lock:
            return tuple(self._records.values())

    def add_or_update(self, record: ModuleRecord) -> None:
        """Insert ``record`` or replace the record stored under its module id.

        Args:
            record: Complete record produced by a scan.

        Raises:
            ValidationError: If the record is malformed.
        """

        _validate_record(record)
        with self._lock:
            replaced = record.module_id in self._records
            self._records[record.module_id] = record
        LOGGER.debug(
            "%s module %s v%s (%d type(s), %d member(s))",
            "Replaced" if replaced else "Added",
            record.module_id,
            record.version,
            len(record.types),
            len(record.members),
        )

    def get_by_id(self, module_id: str) -> ModuleRecord | None:
        """Return the record stored under ``module_id`` (case-sensitive)."""

        require_text(module_id, key="module_id", context="get_by_id")
        with self._lock:
            return self._records.get(module_id)

    def get_by_id_and_version(self, module_id: str, version: str) -> ModuleRecord | None:
        """Return the record matching both identifiers, compared case-insensitively.

        Args:
            module_id: Module identifier.
            version: Module version.

        Returns:
            ModuleRecord | None: Matching record, if any.
        """

        require_text(module_id, key="module_id", context="get_by_id_and_version")
        require_text(version, key="version", context="get_by_id_and_version")
        wanted_id = module_id.casefold()
        wanted_version = version.casefold()
        for record in self._snapshot():
            if record.module_id.casefold() == wanted_id and record.version.casefold() == wanted_version:
                return record
        return None

    def get_all(self) -> tuple[ModuleRecord, ...]:
        """Return a snapshot of every stored record in insertion order."""

        return self._snapshot()

    def find_members_by_name(self, name: str) -> Iterator[MemberRecord]:
        """Yield members whose name equals ``name`` case-insensitively.

        The snapshot is taken when this method is called; the iterator is
        consumed lazily.

        Args:
            name: Member name to match.

        Returns:
            Iterator[MemberRecord]: Matches in record, then declaration, order.
        """

        require_text(name, key="name", context="find_members_by_name")
        wanted = name.casefold()
        records = self._snapshot()
        return (member for record in records for member in record.members if member.name.casefold() == wanted)

    def find_members_by_owner_type(self, type_full_name: str) -> Iterator[MemberRecord]:
        """Yield members declared on ``type_full_name`` (case-insensitive)."""

        require_text(type_full_name, key="type_full_name", context="find_members_by_owner_type")
        wanted = type_full_name.casefold()
        records = self._snapshot()
        return (member for record in records for member in record.members if member.owner_type.casefold() == wanted)

    def find_types_by_name(self, name: str) -> Iterator[TypeRecord]:
        """Yield types whose simple or full name equals ``name`` case-insensitively."""

        require_text(name, key="name", context="find_types_by_name")
        wanted = name.casefold()
        records = self._snapshot()
        return (
            type_record
            for record in records
            for type_record in record.types
            if wanted in (type_record.name.casefold(), type_record.full_name.casefold())
        )

    def remove(self, module_id: str) -> bool:
        """Remove the record stored under ``module_id``.

        Returns:
            bool: ``True`` when a record was removed.
        """

        require_text(module_id, key="module_id", context="remove")
        with self._lock:
            removed = self._records.pop(module_id, None)
        if removed is not None:
            LOGGER.debug("Removed module %s v%s", removed.module_id, removed.version)
        return removed is not None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, module_id: object) -> bool:
        if not isinstance(module_id, str):
            return False
        with self._lock:
            return module_id in self._records

    def __repr__(self) -> str:
        return f"ModuleCatalog(modules={self.count()})"


__all__ = ["ModuleCatalog"]
