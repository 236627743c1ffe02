# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from plugincat import InvocationEngine, ModuleCatalog, ModuleRecord, ModuleScanner
from tests.helpers.plugins import PLUGIN_ARTIFACTS, SAMPLE_SOURCE, write_module


@pytest.fixture(autouse=True)
def _forget_plugin_modules() -> Iterator[None]:
    """Drop plugin artifacts registered in ``sys.modules`` by a test."""

    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        if name in PLUGIN_ARTIFACTS or name.startswith("_plugincat_"):
            sys.modules.pop(name, None)


@pytest.fixture
def sample_path(tmp_path: Path) -> Path:
    """Return a module folder shipping ``Sample`` for the ``py3`` and ``any`` targets."""

    return write_module(
        tmp_path / "sample",
        {
            "lib/py3/Sample.py": SAMPLE_SOURCE,
            "lib/any/Sample.py": "def Legacy() -> None:\n    return None\n",
            "lib/py2/Sample.py": "def Ancient() -> None:\n    return None\n",
        },
    )


@pytest.fixture
def sample_record(sample_path: Path) -> ModuleRecord:
    return ModuleScanner().scan(sample_path, "Sample", "1.0.0")


@pytest.fixture
def catalog(sample_record: ModuleRecord) -> ModuleCatalog:
    store = ModuleCatalog()
    store.add_or_update(sample_record)
    return store


@pytest.fixture
def engine(catalog: ModuleCatalog) -> InvocationEngine:
    return InvocationEngine(catalog)
