# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, settings)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.text import Text

from ..config import CatalogSettings, load_settings
from ..console import detect_tty
from ..console import fail as console_fail
from ..console import info as console_info
from ..console import ok as console_ok
from ..console import section as console_section
from ..console import warn as console_warn
from ..errors import PluginCatalogError


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around console helpers respecting CLI emoji settings."""

    console: Console
    use_emoji: bool
    debug_enabled: bool = False

    def fail(self, message: str) -> None:
        console_fail(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        console_warn(message, use_emoji=self.use_emoji)

    def info(self, message: str) -> None:
        console_info(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        console_ok(message, use_emoji=self.use_emoji)

    def section(self, title: str) -> None:
        console_section(title, use_color=detect_tty())

    def debug(self, message: str) -> None:
        """Emit ``message`` with a dim ``[debug]`` prefix when debug output is on."""

        if self.debug_enabled:
            text = Text("[debug] ", style="bold cyan")
            text.append(message, style="dim")
            self.console.print(text)


def build_cli_logger(*, emoji: bool, debug: bool = False, no_color: bool = False) -> CLILogger:
    """Return a ``CLILogger`` bound to a dedicated Rich console.

    Args:
        emoji: Whether log output may include emoji glyphs.
        debug: Whether debug logging should be enabled.
        no_color: Whether terminal colour output should be disabled.

    Returns:
        CLILogger: Configured logger.
    """

    console = Console(no_color=no_color, highlight=False)
    return CLILogger(console=console, use_emoji=emoji, debug_enabled=debug)


def resolve_settings(root: Path, *, targets: list[str] | None, isolated: bool) -> CatalogSettings:
    """Load settings for ``root`` and apply command-line overrides.

    Raises:
        CLIError: If the configuration is invalid.
    """

    try:
        settings = load_settings(root)
    except PluginCatalogError as exc:
        raise CLIError(str(exc)) from exc
    updates: dict[str, object] = {}
    if targets:
        updates["allowed_targets"] = tuple(targets)
    if isolated:
        updates["use_isolation"] = True
    if not updates:
        return settings
    try:
        return CatalogSettings.model_validate({**settings.model_dump(), **updates})
    except ValueError as exc:
        raise CLIError(f"Invalid command-line override: {exc}") from exc


def parse_cli_argument(raw: str) -> object:
    """Interpret ``raw`` as a JSON literal, falling back to the plain string.

    ``42`` becomes an ``int``, ``"[1, 2]"`` a list, and ``world`` stays a string.
    """

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def exit_with(logger: CLILogger, exc: CLIError | PluginCatalogError) -> NoReturn:
    """Report ``exc`` and terminate the command with its exit status.

    Raises:
        typer.Exit: Always.
    """

    logger.fail(str(exc))
    code = exc.exit_code if isinstance(exc, CLIError) else 1
    raise typer.Exit(code=code)


__all__ = [
    "CLIError",
    "CLILogger",
    "build_cli_logger",
    "exit_with",
    "parse_cli_argument",
    "resolve_settings",
]
