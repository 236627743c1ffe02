# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Scan command: catalog the callable surface of one module folder."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic_core import to_jsonable_python
from rich.console import Console
from rich.table import Table

from ..diagnostics import DiagnosticCollector
from ..errors import PluginCatalogError
from ..models import ModuleRecord
from ..scanner import ModuleScanner
from .shared import CLIError, build_cli_logger, exit_with, resolve_settings


def record_payload(record: ModuleRecord) -> dict[str, object]:
    """Return a JSON-compatible mapping describing ``record``."""

    return to_jsonable_python(record, fallback=repr)


def build_types_table(record: ModuleRecord) -> Table:
    table = Table(title=f"Types in {record.module_id} v{record.version}", show_lines=False)
    table.add_column("Type", style="bold cyan")
    table.add_column("Artifact")
    table.add_column("Kind")
    for type_record in record.types:
        if type_record.is_interface:
            kind = "protocol"
        elif type_record.is_abstract:
            kind = "abstract"
        elif type_record.is_static:
            kind = "static"
        else:
            kind = "class"
        table.add_row(type_record.full_name, type_record.artifact, kind)
    return table


def build_members_table(record: ModuleRecord) -> Table:
    """Render every cataloged member of ``record`` with its signature."""

    table = Table(title=f"Members in {record.module_id} v{record.version}")
    table.add_column("Owner", style="cyan")
    table.add_column("Member", style="bold")
    table.add_column("Signature")
    table.add_column("Async", justify="center")
    for member in record.members:
        table.add_row(member.owner_type, member.name, member.signature(), "yes" if member.is_async else "")
    return table


def run_scan(
    path: Path,
    module_id: str,
    version: str,
    *,
    root: Path,
    targets: list[str] | None = None,
    isolated: bool = False,
    as_json: bool = False,
    console: Console | None = None,
) -> int:
    """Scan ``path`` and print the resulting record; return an exit status.

    Args:
        path: Module folder containing the library folder.
        module_id: Catalog identifier for the module.
        version: Module version.
        root: Directory whose ``pyproject.toml`` supplies settings.
        targets: Optional platform-target whitelist.
        isolated: Whether to load artifacts into a private namespace.
        as_json: Emit JSON instead of tables.
        console: Optional console for rendering.

    Returns:
        int: ``0`` on success.
    """

    output = console or Console()
    logger = build_cli_logger(emoji=not as_json)
    try:
        settings = resolve_settings(root, targets=targets, isolated=isolated)
        collector = DiagnosticCollector()
        record = ModuleScanner(settings).scan(path, module_id, version, on_diagnostic=collector)
    except (CLIError, PluginCatalogError) as exc:
        exit_with(logger, exc)

    if as_json:
        payload = record_payload(record)
        payload["diagnostics"] = list(collector.messages())
        typer.echo(json.dumps(payload, indent=2))
        return 0

    for diagnostic in collector.diagnostics:
        logger.warn(diagnostic.message)
    if record.is_empty():
        logger.warn(f"No compatible artifacts found under {path}")
        return 0
    logger.section(f"{record.module_id} {record.version}")
    logger.info(f"Platform target: {record.platform_target}")
    output.print(build_types_table(record))
    output.print(build_members_table(record))
    logger.ok(
        f"Scanned {len(record.artifacts)} artifact(s) for target {record.platform_target}: "
        f"{len(record.types)} type(s), {len(record.members)} member(s)",
    )
    return 0


def scan_command(
    path: Annotated[Path, typer.Argument(help="Module folder to scan.")],
    module_id: Annotated[str, typer.Option("--id", help="Module identifier.")],
    version: Annotated[str, typer.Option("--version", help="Module version.")],
    target: Annotated[
        list[str] | None,
        typer.Option("--target", "-t", help="Allowed platform target (repeatable)."),
    ] = None,
    isolated: Annotated[bool, typer.Option("--isolated", help="Load artifacts into a private namespace.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Emit the module record as JSON.")] = False,
    root: Annotated[Path, typer.Option("--root", "-r", help="Directory holding pyproject.toml.")] = Path.cwd(),
) -> None:
    """Typer entry point mirroring :func:`run_scan`."""

    exit_code = run_scan(path, module_id, version, root=root, targets=target, isolated=isolated, as_json=as_json)
    raise typer.Exit(code=exit_code)


__all__ = ["build_members_table", "build_types_table", "record_payload", "run_scan", "scan_command"]
