# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Sample plugin sources and on-disk layout builders for tests."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from textwrap import dedent

SAMPLE_SOURCE = dedent(
    '''
    from __future__ import annotations

    import asyncio
    from typing import Protocol, overload

    from plugincat import synthetic


    class Greeter:
        """Static greeting helpers."""

        @staticmethod
        def Greet(name: str) -> str:
            return f"Hello, {name}!"

        @staticmethod
        def Fail(reason: str) -> str:
            raise RuntimeError(reason)

        @staticmethod
        async def GreetLater(name: str, delay: float) -> str:
            await asyncio.sleep(delay)
            return f"Hello later, {name}!"

        @staticmethod
        async def FailLater(reason: str) -> str:
            await asyncio.sleep(0)
            raise RuntimeError(reason)

        @staticmethod
        @synthetic
        def Generated() -> None:
            return None


    class Widget:
        def __init__(self, name: str, size: int) -> None:
            self.name = name
            self.size = size

        @property
        def Label(self) -> str:
            return self.name

        def Describe(self) -> str:
            return f"{self.name}:{self.size}"

        def Resize(self, factor: int) -> int:
            self.size *= factor
            return self.size

        def Rename(self, name: str, *, suffix: str = "") -> str:
            self.name = f"{name}{suffix}"
            return self.name

        @classmethod
        def Create(cls, name: str) -> Widget:
            return cls(name, 1)


    class Counter:
        def Increment(self, step: int) -> int:
            self.value = getattr(self, "value", 0) + step
            return self.value


    class Point:
        @overload
        def __init__(self, x: int) -> None: ...

        @overload
        def __init__(self, x: int, y: int = 0) -> None: ...

        def __init__(self, x, y=0):
            self.x = x
            self.y = y


    class Shape(Protocol):
        def Area(self) -> float: ...


    @synthetic
    class GeneratedProxy:
        def Forward(self) -> None:
            return None


    @overload
    def Combine(left: str) -> str: ...


    @overload
    def Combine(left: str, right: str) -> str: ...


    def Combine(left, right=None):
        return left if right is None else f"{left}-{right}"


    def Double(value: int) -> int:
        return value * 2


    def _helper() -> None:
        return None


    Anon = lambda: None  # noqa: E731
    '''
)

BROKEN_SOURCE = 'raise RuntimeError("broken artifact")\n'

EXITING_SOURCE = "import sys\n\nsys.exit(3)\n"

PLUGIN_ARTIFACTS = frozenset({"Sample", "Broken", "Extra"})


def write_module(root: Path, files: Mapping[str, str]) -> Path:
    """Write ``files`` (relative path → source) beneath ``root`` and return ``root``."""

    for relative, source in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source, encoding="utf-8")
    return root
