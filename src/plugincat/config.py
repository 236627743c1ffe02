# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Settings for scanning and invocation, loaded from ``pyproject.toml`` and the environment."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError
from .targets import parse_target

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "plugincat"
ENV_PREFIX: Final[str] = "PLUGINCAT_"

_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(?:\{([^}]+)\}|([A-Za-z_][A-Za-z0-9_]*))")
_LIST_FIELDS: Final[frozenset[str]] = frozenset({"allowed_targets"})


class CatalogSettings(BaseModel):
    """Settings shared by the scanner and the invocation engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lib_folder: str = Field(default="lib", min_length=1)
    allowed_targets: tuple[str, ...] = ()
    host_target: str | None = None
    use_isolation: bool = False
    suggestion_limit: int = Field(default=5, ge=1)
    max_edit_distance: int = Field(default=3, ge=0)
    fallback_hint_limit: int = Field(default=10, ge=0)

    @field_validator("allowed_targets")
    @classmethod
    def _validate_targets(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Reject platform-target names that are not recognised tags.

        Args:
            value: Candidate target names.

        Returns:
            tuple[str, ...]: ``value`` unchanged when every entry parses.

        Raises:
            ValueError: If an entry is blank or not a recognised tag.
        """

        invalid = [name for name in value if not name.strip() or parse_target(name) is None]
        if invalid:
            raise ValueError(f"unrecognised platform targets: {', '.join(repr(name) for name in invalid)}")
        return value

    @field_validator("host_target")
    @classmethod
    def _validate_host(cls, value: str | None) -> str | None:
        if value is not None and parse_target(value) is None:
            raise ValueError(f"unrecognised host target {value!r}")
        return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    expanded: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            expanded[key] = _expand_env_string(value, env)
        elif isinstance(value, list):
            expanded[key] = [_expand_env_string(item, env) if isinstance(item, str) else item for item in value]
        else:
            expanded[key] = value
    return expanded


def _read_pyproject_section(path: Path) -> dict[str, Any]:
    """Return the ``[tool.plugincat]`` table from ``path``.

    Args:
        path: Location of a ``pyproject.toml`` document.

    Returns:
        dict[str, Any]: Section contents, empty when absent.

    Raises:
        ConfigError: If the document cannot be parsed or the section is not a table.
    """

    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    tool_section = document.get(PYPROJECT_TOOL_KEY)
    if not isinstance(tool_section, Mapping):
        return {}
    section = tool_section.get(PYPROJECT_SECTION_KEY)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{PYPROJECT_TOOL_KEY}.{PYPROJECT_SECTION_KEY}] in {path} must be a table")
    return {key.replace("-", "_"): value for key, value in section.items()}


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, raw in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name not in CatalogSettings.model_fields:
            continue
        if field_name in _LIST_FIELDS:
            overrides[field_name] = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            overrides[field_name] = raw
    return overrides


def load_settings(root: Path | None = None, env: Mapping[str, str] | None = None) -> CatalogSettings:
    """Build settings from defaults, ``pyproject.toml`` and ``PLUGINCAT_*`` variables.

    Later layers win: defaults, then ``[tool.plugincat]`` in ``root/pyproject.toml``,
    then environment variables such as ``PLUGINCAT_ALLOWED_TARGETS=py3,py311``.

    Args:
        root: Directory holding ``pyproject.toml``; ``None`` skips the file layer.
        env: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        CatalogSettings: Validated, frozen settings.

    Raises:
        ConfigError: If any layer holds invalid values.
    """

    environment = os.environ if env is None else env
    payload: dict[str, Any] = {}
    if root is not None:
        payload.update(_expand_env(_read_pyproject_section(root / PYPROJECT_FILENAME), environment))
    payload.update(_env_overrides(environment))
    try:
        return CatalogSettings.model_validate(payload)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid plugincat configuration: {exc}") from exc


__all__ = [
    "CatalogSettings",
    "ENV_PREFIX",
    "load_settings",
]
