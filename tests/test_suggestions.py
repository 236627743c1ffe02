# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for nearby-name suggestions."""

from __future__ import annotations

from plugincat.suggestions import fallback_hints, levenshtein, suggest_names


def test_levenshtein_distances() -> None:
    assert levenshtein("Greet", "Greet") == 0
    assert levenshtein("gret", "greet") == 1
    assert levenshtein("", "abc") == 3
    assert levenshtein("kitten", "sitting") == 3


def test_substring_matches_rank_before_fuzzy_matches() -> None:
    names = ["Grant", "GreetLater", "Greet", "Describe"]

    assert suggest_names("greet", names) == ("GreetLater", "Greet", "Grant")
    assert suggest_names("Gret", names) == ("Greet", "Grant")


def test_suggestions_respect_limit_and_distance() -> None:
    names = [f"Item{index}" for index in range(10)]

    assert len(suggest_names("item", names, limit=5)) == 5
    assert suggest_names("Zzzzzz", names, max_distance=3) == ()


def test_fallback_hints_are_sorted_case_insensitively() -> None:
    assert fallback_hints(["beta", "Alpha", "gamma"], 2) == ("Alpha", "beta")
