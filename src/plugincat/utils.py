# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Validation and normalisation helpers shared across the package."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from .errors import ValidationError

_ARTIFACT_SUFFIXES: Final[tuple[str, ...]] = (".py", ".pyc", ".pyd", ".so")


def require_text(value: object, *, key: str, context: str) -> str:
    """Return ``value`` when it is a non-blank string.

    Args:
        value: Raw argument supplied by the caller.
        key: Argument name used in error messages.
        context: Human-friendly prefix describing the validation context.

    Returns:
        str: ``value`` unchanged.

    Raises:
        ValidationError: If ``value`` is ``None``, not a string, or blank.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{context}: '{key}' must be a non-empty string")
    return value


def normalize_artifact_name(name: str) -> str:
    """Return the case-folded artifact name with any file suffix stripped.

    Args:
        name: Artifact or module name, optionally carrying a file suffix.

    Returns:
        str: Normalised name used for handle lookups.
    """
    lowered = name.strip().lower()
    for suffix in _ARTIFACT_SUFFIXES:
        if lowered.endswith(suffix):
            return lowered[: -len(suffix)]
    return lowered


def dedupe_preserving_order(values: Iterable[str]) -> tuple[str, ...]:
    """Return ``values`` without duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return tuple(ordered)


__all__ = [
    "dedupe_preserving_order",
    "normalize_artifact_name",
    "require_text",
]
