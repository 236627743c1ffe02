# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog the callable surface of plugin modules and invoke members by name."""

from __future__ import annotations

from .catalog import ModuleCatalog
from .config import CatalogSettings, load_settings
from .diagnostics import DiagnosticCollector, DiagnosticLevel, ScanDiagnostic
from .engine import InvocationEngine
from .errors import (
    ConfigError,
    ConstructionFailedError,
    InstanceRequiredError,
    InvocationFailedError,
    MemberNotFoundError,
    ModuleNotResolvedError,
    NotAsyncError,
    OverloadMismatchError,
    ParameterTypeNotFoundError,
    PluginCatalogError,
    TypeNotFoundError,
    UnexpectedInstanceError,
    ValidationError,
)
from .interfaces import CatalogReader, CatalogStore, HandleResolver
from .loading import ModuleLoadContext
from .models import MemberRecord, ModuleRecord, ParameterKind, ParameterRecord, TypeRecord
from .naming import synthetic
from .scanner import ModuleScanner

__all__ = [
    "CatalogReader",
    "CatalogSettings",
    "CatalogStore",
    "ConfigError",
    "ConstructionFailedError",
    "DiagnosticCollector",
    "DiagnosticLevel",
    "HandleResolver",
    "InstanceRequiredError",
    "InvocationEngine",
    "InvocationFailedError",
    "MemberNotFoundError",
    "MemberRecord",
    "ModuleCatalog",
    "ModuleLoadContext",
    "ModuleNotResolvedError",
    "ModuleRecord",
    "ModuleScanner",
    "NotAsyncError",
    "OverloadMismatchError",
    "ParameterKind",
    "ParameterRecord",
    "ParameterTypeNotFoundError",
    "PluginCatalogError",
    "ScanDiagnostic",
    "TypeNotFoundError",
    "TypeRecord",
    "UnexpectedInstanceError",
    "ValidationError",
    "load_settings",
    "synthetic",
]
