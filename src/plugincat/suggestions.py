# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Nearby-name suggestions for failed lookups."""

from __future__ import annotations

from collections.abc import Sequence


def levenshtein(left: str, right: str) -> int:
    """Return the edit distance between ``left`` and ``right``.

    Args:
        left: First string.
        right: Second string.

    Returns:
        int: Minimum number of single-character insertions, deletions, or
        substitutions turning ``left`` into ``right``.
    """

    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    if not right:
        return len(left)
    previous = list(range(len(right) + 1))
    for row, left_char in enumerate(left, start=1):
        current = [row]
        for column, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[column] + 1, current[column - 1] + 1, previous[column - 1] + cost))
        previous = current
    return previous[-1]


def suggest_names(
    query: str,
    candidates: Sequence[str],
    *,
    limit: int = 5,
    max_distance: int = 3,
) -> tuple[str, ...]:
    """Rank ``candidates`` that resemble ``query``.

    Case-insensitive substring matches come first (in candidate order),
    followed by names within ``max_distance`` edits, closest first.

    Args:
        query: Name the caller asked for.
        candidates: Known names.
        limit: Maximum number of suggestions.
        max_distance: Largest accepted edit distance.

    Returns:
        tuple[str, ...]: At most ``limit`` suggestions.
    """

    needle = query.casefold()
    substring_matches: list[str] = []
    fuzzy: list[tuple[int, int, str]] = []
    for position, candidate in enumerate(candidates):
        folded = candidate.casefold()
        if needle in folded:
            substring_matches.append(candidate)
            continue
        distance = levenshtein(needle, folded)
        if distance <= max_distance:
            fuzzy.append((distance, position, candidate))
    fuzzy.sort()
    ranked = substring_matches + [candidate for _, _, candidate in fuzzy]
    return tuple(ranked[:limit])


def fallback_hints(candidates: Sequence[str], limit: int) -> tuple[str, ...]:
    """Return up to ``limit`` names, sorted, for callers with no close match."""

    return tuple(sorted(candidates, key=str.casefold)[:limit])


__all__ = ["fallback_hints", "levenshtein", "suggest_names"]
