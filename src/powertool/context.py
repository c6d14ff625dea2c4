"""
Per-invocation runtime context.

Built once at startup and passed explicitly to the dispatcher, validator,
help and command handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console

from powertool.commands.registry import CommandRegistry
from powertool.config import PowertoolConfig
from powertool.extensions.installer import ExtensionInstaller
from powertool.extensions.models import Extension, LoadError
from powertool.settings import SettingsStore


@dataclass
class RegistryContext:
    """Registry plus the state commands need to run."""

    registry: CommandRegistry
    config: PowertoolConfig
    extensions: list[Extension] = field(default_factory=list)
    load_errors: list[LoadError] = field(default_factory=list)
    installer: ExtensionInstaller | None = None
    settings: SettingsStore | None = None
    console: Console = field(default_factory=Console)

    def get_extension(self, name: str) -> Extension | None:
        lowered = name.lower()
        return next((e for e in self.extensions if e.name.lower() == lowered), None)
