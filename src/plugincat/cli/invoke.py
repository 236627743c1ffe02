# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Invoke command: scan a module folder and call one of its static members."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.pretty import Pretty

from ..catalog import ModuleCatalog
from ..engine import InvocationEngine
from ..errors import PluginCatalogError
from ..scanner import ModuleScanner
from .shared import CLIError, build_cli_logger, exit_with, parse_cli_argument, resolve_settings


def run_invoke(
    path: Path,
    name: str,
    raw_args: list[str],
    *,
    module_id: str,
    version: str,
    root: Path,
    targets: list[str] | None = None,
    isolated: bool = False,
    console: Console | None = None,
) -> int:
    """Scan ``path``, catalog it, and invoke ``name`` with ``raw_args``.

    Awaitable members are run to completion on a fresh event loop.

    Args:
        path: Module folder containing the library folder.
        name: Member name to invoke.
        raw_args: Command-line arguments, parsed as JSON literals when possible.
        module_id: Catalog identifier for the module.
        version: Module version.
        root: Directory whose ``pyproject.toml`` supplies settings.
        targets: Optional platform-target whitelist.
        isolated: Whether to load artifacts into a private namespace.
        console: Optional console for rendering the result.

    Returns:
        int: ``0`` on success.
    """

    output = console or Console()
    logger = build_cli_logger(emoji=True)
    arguments = [parse_cli_argument(raw) for raw in raw_args]
    try:
        settings = resolve_settings(root, targets=targets, isolated=isolated)
        scanner = ModuleScanner(settings)
        record = scanner.scan(path, module_id, version)
        if record.is_empty():
            raise CLIError(f"No compatible artifacts found under {path}")
        catalog = ModuleCatalog()
        catalog.add_or_update(record)
        contexts = (scanner.load_context,) if scanner.load_context is not None else ()
        engine = InvocationEngine(catalog, settings=settings, load_contexts=contexts)
        member = engine.select_member(name, len(arguments))
        logger.debug(f"Selected {member.signature()}")
        if member.is_async:
            result = asyncio.run(engine.invoke_by_name_async(name, arguments))
        else:
            result = engine.invoke_by_name(name, arguments)
    except (CLIError, PluginCatalogError) as exc:
        exit_with(logger, exc)
    output.print(Pretty(result))
    return 0


def invoke_command(
    path: Annotated[Path, typer.Argument(help="Module folder to scan.")],
    name: Annotated[str, typer.Argument(help="Member name to invoke.")],
    module_id: Annotated[str, typer.Option("--id", help="Module identifier.")],
    version: Annotated[str, typer.Option("--version", help="Module version.")],
    args: Annotated[list[str] | None, typer.Argument(help="Arguments (JSON literals or plain strings).")] = None,
    target: Annotated[
        list[str] | None,
        typer.Option("--target", "-t", help="Allowed platform target (repeatable)."),
    ] = None,
    isolated: Annotated[bool, typer.Option("--isolated", help="Load artifacts into a private namespace.")] = False,
    root: Annotated[Path, typer.Option("--root", "-r", help="Directory holding pyproject.toml.")] = Path.cwd(),
) -> None:
    """Typer entry point mirroring :func:`run_invoke`."""

    exit_code = run_invoke(
        path,
        name,
        list(args or ()),
        module_id=module_id,
        version=version,
        root=root,
        targets=target,
        isolated=isolated,
    )
    raise typer.Exit(code=exit_code)


__all__ = ["invoke_command", "run_invoke"]
