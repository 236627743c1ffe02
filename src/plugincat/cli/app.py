# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands."""

from __future__ import annotations

import typer

from .invoke import invoke_command
from .scan import scan_command

app = typer.Typer(help="Catalog and invoke the callable surface of plugin modules.", no_args_is_help=True)
app.command("scan")(scan_command)
app.command("invoke")(invoke_command)

__all__ = ["app"]
