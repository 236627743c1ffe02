# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for name-based invocation and construction."""

from __future__ import annotations

import dataclasses
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import ModuleType

import pytest

from plugincat import (
    CatalogSettings,
    ConstructionFailedError,
    InstanceRequiredError,
    InvocationEngine,
    InvocationFailedError,
    MemberNotFoundError,
    MemberRecord,
    ModuleCatalog,
    ModuleLoadContext,
    ModuleNotResolvedError,
    ModuleRecord,
    ModuleScanner,
    OverloadMismatchError,
    ParameterRecord,
    ParameterTypeNotFoundError,
    TypeNotFoundError,
    UnexpectedInstanceError,
    ValidationError,
)
from plugincat.loading import qualified_module_name

from tests.helpers.plugins import write_module


def _member(catalog: ModuleCatalog, name: str) -> MemberRecord:
    return next(iter(catalog.find_members_by_name(name)))


def test_invoke_static_member(engine: InvocationEngine) -> None:
    assert engine.invoke_by_name("Greet", ["world"]) == "Hello, world!"
    assert engine.invoke_by_name("greet", ("Ada",)) == "Hello, Ada!"


def test_invoke_module_function_and_classmethod(engine: InvocationEngine) -> None:
    assert engine.invoke_by_name("Double", [21]) == 42
    widget = engine.invoke_by_name("Create", ["made"])
    assert engine.invoke_by_name("Describe", instance=widget) == "made:1"


def test_invoke_selects_overload_by_arity(engine: InvocationEngine) -> None:
    assert engine.invoke_by_name("Combine", ["left"]) == "left"
    assert engine.invoke_by_name("Combine", ["left", "right"]) == "left-right"


def test_invoke_instance_member_with_keyword_only_parameter(engine: InvocationEngine) -> None:
    widget = engine.create_instance("Sample.Widget", "w", 3)

    assert engine.invoke_by_name("Resize", [2], instance=widget) == 6
    assert engine.invoke_by_name("Rename", ["new", "!"], instance=widget) == "new!"
    assert widget.size == 6


def test_arity_mismatch_lists_candidates(engine: InvocationEngine) -> None:
    with pytest.raises(OverloadMismatchError) as excinfo:
        engine.invoke_by_name("Greet", [])

    error = excinfo.value
    assert error.argument_count == 0
    assert error.arities == (1,)
    assert error.candidates == ("static Sample.Greeter.Greet(name: str) -> str",)
    assert "Available arities: 1" in str(error)


def test_overload_mismatch_reports_every_arity(engine: InvocationEngine) -> None:
    with pytest.raises(OverloadMismatchError) as excinfo:
        engine.invoke_by_name("Combine", ["a", "b", "c"])

    assert excinfo.value.arities == (1, 2)
    assert len(excinfo.value.candidates) == 2


def test_unknown_member_suggests_close_names(engine: InvocationEngine) -> None:
    with pytest.raises(MemberNotFoundError) as excinfo:
        engine.invoke_by_name("Gret", ["world"])

    error = excinfo.value
    assert error.suggestions[0] == "Greet"
    assert len(error.suggestions) <= 5
    assert error.type_name is None
    assert "Did you mean: Greet" in str(error)


def test_unknown_member_without_close_match_lists_hints(catalog: ModuleCatalog) -> None:
    engine = InvocationEngine(catalog, settings=CatalogSettings(fallback_hint_limit=3))

    with pytest.raises(MemberNotFoundError) as excinfo:
        engine.invoke_by_name("Zzyzx")

    assert excinfo.value.suggestions == ()
    assert len(excinfo.value.hints) == 3
    assert "Available members include" in str(excinfo.value)


def test_blank_name_is_rejected(engine: InvocationEngine) -> None:
    with pytest.raises(ValidationError):
        engine.invoke_by_name("  ")
    with pytest.raises(ValidationError):
        InvocationEngine(None)  # type: ignore[arg-type]


def test_same_arity_tie_uses_catalog_order() -> None:
    catalog = ModuleCatalog()
    for module_id in ("Alpha", "Beta"):
        member = MemberRecord(
            owner_type=f"{module_id}.Tool",
            name="Ping",
            return_type="str",
            module_id=module_id,
            artifact=module_id,
            parameters=(ParameterRecord("value", "str"),),
            is_static=True,
        )
        catalog.add_or_update(ModuleRecord(module_id=module_id, version="1", artifacts=(module_id,), members=(member,)))

    chosen = InvocationEngine(catalog).select_member("ping", 1)

    assert chosen.module_id == "Alpha"


def test_unloaded_artifact_lists_known_modules(catalog: ModuleCatalog) -> None:
    ghost = MemberRecord(
        owner_type="Ghost.Spirit",
        name="Haunt",
        return_type="None",
        module_id="Ghost",
        artifact="Ghost",
        is_static=True,
    )
    catalog.add_or_update(ModuleRecord(module_id="Ghost", version="0.1", artifacts=("Ghost",), members=(ghost,)))

    with pytest.raises(ModuleNotResolvedError) as excinfo:
        InvocationEngine(catalog).invoke_by_name("Haunt")

    error = excinfo.value
    assert error.artifact == "Ghost"
    assert ("Sample", ("Sample",)) in error.known_modules
    assert "Known modules" in str(error)
    assert "Sample: Sample" in str(error)


def test_missing_owner_type(engine: InvocationEngine, catalog: ModuleCatalog) -> None:
    stale = dataclasses.replace(_member(catalog, "Greet"), owner_type="Sample.Vanished")

    with pytest.raises(TypeNotFoundError) as excinfo:
        engine.invoke_by_name_with_descriptor(stale, ["x"])

    assert excinfo.value.type_name == "Sample.Vanished"
    assert excinfo.value.artifact == "Sample"


def test_missing_parameter_type(engine: InvocationEngine, catalog: ModuleCatalog) -> None:
    stale = dataclasses.replace(
        _member(catalog, "Greet"),
        parameters=(ParameterRecord("name", "Sample.Missing"),),
    )

    with pytest.raises(ParameterTypeNotFoundError) as excinfo:
        engine.invoke_by_name_with_descriptor(stale, ["x"])

    assert excinfo.value.type_name == "Sample.Missing"
    assert excinfo.value.parameter == "name"


def test_member_missing_on_resolved_type(engine: InvocationEngine, catalog: ModuleCatalog) -> None:
    renamed = dataclasses.replace(_member(catalog, "Greet"), name="Vanish")
    retyped = dataclasses.replace(_member(catalog, "Greet"), parameters=(ParameterRecord("name", "int"),))
    demoted = dataclasses.replace(_member(catalog, "Greet"), is_static=False)

    for stale in (renamed, retyped, demoted):
        with pytest.raises(MemberNotFoundError) as excinfo:
            engine.invoke_by_name_with_descriptor(stale, ["x"], instance=object() if not stale.is_static else None)
        assert excinfo.value.type_name == "Sample.Greeter"


def test_instance_conventions(engine: InvocationEngine) -> None:
    widget = engine.create_instance("Widget", "w", 1)

    with pytest.raises(InstanceRequiredError):
        engine.invoke_by_name("Describe")
    with pytest.raises(UnexpectedInstanceError):
        engine.invoke_by_name("Greet", ["world"], instance=widget)


def test_invocation_failure_wraps_cause(engine: InvocationEngine) -> None:
    with pytest.raises(InvocationFailedError) as excinfo:
        engine.invoke_by_name("Fail", ["boom"])

    assert isinstance(excinfo.value.cause, RuntimeError)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert "boom" in str(excinfo.value)


def test_invoke_with_descriptor_checks_arity(engine: InvocationEngine, catalog: ModuleCatalog) -> None:
    greet = _member(catalog, "Greet")

    assert engine.invoke_by_name_with_descriptor(greet, ["you"]) == "Hello, you!"
    with pytest.raises(OverloadMismatchError):
        engine.invoke_by_name_with_descriptor(greet, [])
    with pytest.raises(ValidationError):
        engine.invoke_by_name_with_descriptor("Greet", ["you"])  # type: ignore[arg-type]


def test_create_instance_requires_matching_constructor(engine: InvocationEngine) -> None:
    with pytest.raises(ConstructionFailedError) as excinfo:
        engine.create_instance("Sample.Widget")

    error = excinfo.value
    assert error.type_name == "Sample.Widget"
    assert error.argument_types == ()
    assert error.constructors == ("Sample.Widget(name: str, size: int) -> None",)


def test_create_instance_checks_argument_types(engine: InvocationEngine) -> None:
    with pytest.raises(ConstructionFailedError) as excinfo:
        engine.create_instance("Sample.Widget", "w", "large")

    assert excinfo.value.argument_types == ("str", "str")


def test_create_instance_with_default_constructor(engine: InvocationEngine) -> None:
    counter = engine.create_instance("sample.counter")

    assert engine.invoke_by_name("Increment", [2], instance=counter) == 2
    assert engine.invoke_by_name("Increment", [3], instance=counter) == 5


def test_create_instance_rejects_ambiguous_and_abstract_types(engine: InvocationEngine) -> None:
    with pytest.raises(ConstructionFailedError, match="ambiguously"):
        engine.create_instance("Point", 1)
    point = engine.create_instance("Point", 1, 2)
    assert (point.x, point.y) == (1, 2)
    with pytest.raises(ConstructionFailedError, match="abstract"):
        engine.create_instance("Shape")


def test_create_instance_unknown_type_suggests(engine: InvocationEngine) -> None:
    with pytest.raises(TypeNotFoundError) as excinfo:
        engine.create_instance("Sample.Widgett")

    assert "Sample.Widget" in excinfo.value.suggestions


def test_handle_cache_and_eviction(engine: InvocationEngine, sample_path: Path) -> None:
    first = engine.resolve_handle("Sample", "Sample")

    assert engine.resolve_handle("Sample", "sample") is first
    ModuleScanner().scan(sample_path, "Sample", "1.0.0")
    assert engine.resolve_handle("Sample", "Sample") is first
    assert engine.evict("Sample", "Sample") == 1
    assert engine.evict("Sample", "Sample") == 0
    assert engine.resolve_handle("Sample", "Sample") is sys.modules[qualified_module_name("Sample", "Sample")]
    assert engine.evict("Sample") == 1


def test_resolve_handle_requires_matching_module(engine: InvocationEngine) -> None:
    with pytest.raises(ModuleNotResolvedError, match="of module 'Other'") as excinfo:
        engine.resolve_handle("Other", "Sample")

    assert excinfo.value.module_id == "Other"
    assert excinfo.value.known_modules == (("Sample", ("Sample",)),)


def test_concurrent_invocations_share_one_handle(engine: InvocationEngine) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda index: engine.invoke_by_name("Greet", [str(index)]), range(40)))

    assert results == [f"Hello, {index}!" for index in range(40)]
    assert engine.resolve_handle("Sample", "Sample") is sys.modules[qualified_module_name("Sample", "Sample")]


class _FreshHandleResolver:
    """Return a new module object per call once every caller is inside ``resolve``."""

    def __init__(self, callers: int) -> None:
        self.barrier = threading.Barrier(callers, timeout=10)
        self.created: list[ModuleType] = []
        self._lock = threading.Lock()

    def resolve(self, module_id: str, artifact: str) -> ModuleType:
        handle = ModuleType(f"{module_id}.{artifact}")
        with self._lock:
            self.created.append(handle)
        self.barrier.wait()
        return handle


def test_concurrent_first_resolutions_agree_on_one_handle(catalog: ModuleCatalog) -> None:
    callers = 8
    resolver = _FreshHandleResolver(callers)
    engine = InvocationEngine(catalog, resolver=resolver)

    with ThreadPoolExecutor(max_workers=callers) as pool:
        handles = list(pool.map(lambda _: engine.resolve_handle("Sample", "Sample"), range(callers)))

    assert len(resolver.created) == callers
    assert len({id(handle) for handle in resolver.created}) == callers
    winner = handles[0]
    assert all(handle is winner for handle in handles)
    assert winner in resolver.created
    assert engine.resolve_handle("Sample", "Sample") is winner


def test_modules_sharing_an_artifact_name_keep_separate_handles(tmp_path: Path) -> None:
    alpha = write_module(
        tmp_path / "alpha",
        {"lib/py3/Extra.py": "def Ping() -> str:\n    return 'alpha'\n\n\ndef AlphaOnly() -> str:\n    return 'only alpha'\n"},
    )
    beta = write_module(tmp_path / "beta", {"lib/py3/Extra.py": "def Ping() -> str:\n    return 'beta'\n"})
    scanner = ModuleScanner()
    catalog = ModuleCatalog()
    catalog.add_or_update(scanner.scan(alpha, "Alpha", "1.0.0"))
    catalog.add_or_update(scanner.scan(beta, "Beta", "1.0.0"))
    engine = InvocationEngine(catalog)

    pings = {member.module_id: member for member in catalog.find_members_by_name("Ping")}

    assert engine.invoke_by_name_with_descriptor(pings["Alpha"]) == "alpha"
    assert engine.invoke_by_name_with_descriptor(pings["Beta"]) == "beta"
    assert engine.invoke_by_name("AlphaOnly") == "only alpha"
    assert engine.resolve_handle("Alpha", "Extra") is not engine.resolve_handle("Beta", "Extra")


def test_isolated_modules_sharing_an_artifact_name_keep_separate_handles(tmp_path: Path) -> None:
    alpha = write_module(tmp_path / "alpha", {"lib/py3/Extra.py": "def Ping() -> str:\n    return 'alpha'\n"})
    beta = write_module(tmp_path / "beta", {"lib/py3/Extra.py": "def Ping() -> str:\n    return 'beta'\n"})
    scanner = ModuleScanner(CatalogSettings(use_isolation=True))
    catalog = ModuleCatalog()
    catalog.add_or_update(scanner.scan(alpha, "Alpha", "1.0.0"))
    catalog.add_or_update(scanner.scan(beta, "Beta", "1.0.0"))
    assert scanner.load_context is not None
    engine = InvocationEngine(catalog, load_contexts=[scanner.load_context])

    results = {
        member.module_id: engine.invoke_by_name_with_descriptor(member)
        for member in catalog.find_members_by_name("Ping")
    }

    assert results == {"Alpha": "alpha", "Beta": "beta"}
    scanner.load_context.unload()



def test_isolated_modules_are_invocable_until_unloaded(sample_path: Path) -> None:
    scanner = ModuleScanner(CatalogSettings(use_isolation=True))
    catalog = ModuleCatalog()
    catalog.add_or_update(scanner.scan(sample_path, "Sample", "1.0.0"))
    assert scanner.load_context is not None
    engine = InvocationEngine(catalog, load_contexts=[scanner.load_context])

    widget = engine.invoke_by_name("Create", ["iso"])
    assert engine.invoke_by_name("Describe", instance=widget) == "iso:1"
    assert engine.invoke_by_name("Greet", ["iso"]) == "Hello, iso!"

    scanner.load_context.unload()
    engine.clear_handle_cache()

    with pytest.raises(ModuleNotResolvedError):
        engine.invoke_by_name("Greet", ["iso"])


def test_register_context_after_construction(sample_path: Path) -> None:
    scanner = ModuleScanner(CatalogSettings(use_isolation=True))
    catalog = ModuleCatalog()
    catalog.add_or_update(scanner.scan(sample_path, "Sample", "1.0.0"))
    engine = InvocationEngine(catalog)

    with pytest.raises(ModuleNotResolvedError):
        engine.invoke_by_name("Greet", ["late"])

    assert scanner.load_context is not None
    engine.register_context(scanner.load_context)

    assert engine.invoke_by_name("Greet", ["late"]) == "Hello, late!"


class _RecordingResolver:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def resolve(self, module_id: str, artifact: str):
        self.calls.append((module_id, artifact))
        return sys.modules.get(qualified_module_name(module_id, artifact))


def test_custom_resolver_is_consulted_once_per_artifact(catalog: ModuleCatalog) -> None:
    resolver = _RecordingResolver()
    engine = InvocationEngine(catalog, resolver=resolver)

    engine.invoke_by_name("Greet", ["a"])
    engine.invoke_by_name("Double", [1])

    assert resolver.calls == [("Sample", "Sample")]
    with pytest.raises(ValidationError):
        engine.register_context(ModuleLoadContext("spare"))
