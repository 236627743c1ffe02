# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the immutable catalog metadata records."""

from __future__ import annotations

import dataclasses

import pytest

from plugincat import MemberRecord, ModuleRecord, ParameterKind, ParameterRecord, TypeRecord


def _member(**overrides: object) -> MemberRecord:
    values: dict[str, object] = {
        "owner_type": "Sample.Greeter",
        "name": "Greet",
        "return_type": "str",
        "module_id": "Sample",
        "artifact": "Sample",
        "parameters": [ParameterRecord("name", "str")],
        "is_static": True,
    }
    values.update(overrides)
    return MemberRecord(**values)  # type: ignore[arg-type]


def test_member_signature_and_arity() -> None:
    member = _member()

    assert member.arity == 1
    assert member.qualified_name == "Sample.Greeter.Greet"
    assert member.signature() == "static Sample.Greeter.Greet(name: str) -> str"
    assert isinstance(member.parameters, tuple)


def test_parameter_render_includes_default_and_keyword_marker() -> None:
    parameter = ParameterRecord("suffix", "str", is_optional=True, default="", kind=ParameterKind.KEYWORD_ONLY)

    assert parameter.render() == "*, suffix: str = ''"


def test_instance_member_signature_has_no_static_prefix() -> None:
    member = _member(is_static=False, parameters=())

    assert member.signature() == "Sample.Greeter.Greet() -> str"
    assert member.arity == 0


def test_module_record_coerces_sequences_and_reports_empty() -> None:
    empty = ModuleRecord(module_id="Sample", version="1.0.0")
    record = ModuleRecord(
        module_id="Sample",
        version="1.0.0",
        artifacts=["Sample"],
        types=[TypeRecord("Sample.Greeter", "Sample", "Greeter", "Sample", "Sample")],
        members=[_member()],
    )

    assert empty.is_empty()
    assert not record.is_empty()
    assert record.artifacts == ("Sample",)
    assert isinstance(record.types, tuple)
    assert record.key == ("Sample", "1.0.0")
    assert record.loaded_at.tzinfo is not None


def test_records_are_frozen() -> None:
    record = ModuleRecord(module_id="Sample", version="1.0.0")

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.version = "2.0.0"  # type: ignore[misc]
