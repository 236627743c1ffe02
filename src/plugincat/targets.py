# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Platform-target tags and deterministic best-match selection.

A module ships one folder per platform target beneath its library folder.
Folder names are interpreter tags in the spirit of wheel tags:

* ``any`` matches every interpreter.
* ``py``, ``py3``, ``py311`` (or ``py3.11``) match any implementation of
  that Python version or newer within the same major version.
* ``cp312`` / ``pp310`` additionally require the CPython or PyPy
  implementation respectively.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final

GENERIC_IMPLEMENTATION: Final[str] = "py"
UNIVERSAL_TAG: Final[str] = "any"

_IMPLEMENTATION_ALIASES: Final[dict[str, str]] = {
    "cpython": "cp",
    "pypy": "pp",
    "ironpython": "ip",
    "jython": "jy",
}
_TAG_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<impl>py|cp|pp|ip|jy)(?:(?P<major>\d)(?:\.?(?P<minor>\d{1,2}))?)?$",
)


@dataclass(frozen=True, slots=True)
class PlatformTarget:
    """Parsed platform-target tag."""

    tag: str
    implementation: str | None
    major: int | None = None
    minor: int | None = None

    @property
    def is_universal(self) -> bool:
        return self.implementation is None

    @property
    def is_generic(self) -> bool:
        return self.implementation == GENERIC_IMPLEMENTATION

    @property
    def preference(self) -> tuple[int, int, int]:
        """Return the sort key ranking this target; greater is a better match.

        Newer versions win first, then implementation-specific tags over the
        generic ``py`` tag, then ``py`` over ``any``.
        """

        if self.is_universal:
            specificity = 0
        elif self.is_generic:
            specificity = 1
        else:
            specificity = 2
        return (self.major or 0, self.minor if self.minor is not None else -1, specificity)

    def is_compatible_with(self, host: PlatformTarget) -> bool:
        """Return whether code built for this target runs on ``host``.

        Args:
            host: Target describing the running interpreter.

        Returns:
            bool: ``True`` when the implementation and version are compatible.
        """

        if self.is_universal:
            return True
        if not self.is_generic and self.implementation != host.implementation:
            return False
        if self.major is None:
            return True
        if host.major is None or self.major != host.major:
            return False
        if self.minor is None:
            return True
        return host.minor is None or self.minor <= host.minor

    def __str__(self) -> str:
        return self.tag


def parse_target(tag: str) -> PlatformTarget | None:
    """Parse a platform-target folder name.

    Args:
        tag: Folder name such as ``py311`` or ``any``.

    Returns:
        PlatformTarget | None: Parsed target, or ``None`` when the name is
        not a recognised tag.
    """

    normalized = tag.strip().lower()
    if normalized == UNIVERSAL_TAG:
        return PlatformTarget(tag=tag, implementation=None)
    match = _TAG_PATTERN.match(normalized)
    if match is None:
        return None
    major = match.group("major")
    minor = match.group("minor")
    return PlatformTarget(
        tag=tag,
        implementation=match.group("impl"),
        major=int(major) if major is not None else None,
        minor=int(minor) if minor is not None else None,
    )


def host_target() -> PlatformTarget:
    """Return the target describing the running interpreter."""

    name = sys.implementation.name
    implementation = _IMPLEMENTATION_ALIASES.get(name, GENERIC_IMPLEMENTATION)
    info = sys.version_info
    return PlatformTarget(
        tag=f"{implementation}{info.major}{info.minor}",
        implementation=implementation,
        major=info.major,
        minor=info.minor,
    )


def resolve_host_target(override: str | None) -> PlatformTarget:
    """Return ``override`` parsed as the host target, or the running interpreter.

    Args:
        override: Optional configured host tag.

    Returns:
        PlatformTarget: Host target used for compatibility checks.

    Raises:
        ValueError: If ``override`` is not a recognised tag.
    """

    if override is None:
        return host_target()
    parsed = parse_target(override)
    if parsed is None:
        raise ValueError(f"unrecognised host target '{override}'")
    return parsed


def select_best_target(
    candidates: Iterable[str],
    host: PlatformTarget,
    allowed: Sequence[str] | None = None,
) -> PlatformTarget | None:
    """Return the most compatible target among ``candidates``.

    Args:
        candidates: Folder names found beneath the library folder.
        host: Target describing the interpreter that will load the code.
        allowed: Optional case-insensitive whitelist of folder names; empty
            or ``None`` allows every folder.

    Returns:
        PlatformTarget | None: Best compatible target, or ``None`` when no
        folder qualifies.
    """

    allowed_keys = {name.casefold() for name in allowed or ()}
    compatible: list[PlatformTarget] = []
    for name in candidates:
        if allowed_keys and name.casefold() not in allowed_keys:
            continue
        parsed = parse_target(name)
        if parsed is None or not parsed.is_compatible_with(host):
            continue
        compatible.append(parsed)
    if not compatible:
        return None
    # max() keeps the first of equal keys, so equal preferences fall back to folder-name order.
    ordered = sorted(compatible, key=lambda target: target.tag.casefold())
    return max(ordered, key=lambda target: target.preference)


__all__ = [
    "PlatformTarget",
    "host_target",
    "parse_target",
    "resolve_host_target",
    "select_best_target",
]
