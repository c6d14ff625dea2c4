"""
Extension manager - imports extension modules and collects their commands.
"""

from __future__ import annotations

import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType

from powertool.commands.models import CommandDefinition
from powertool.errors import ReasonCode
from powertool.extensions.api import ExtensionAPI
from powertool.extensions.loader import ManifestLoader, ScanResult
from powertool.extensions.models import Extension, LoadError
from powertool.logging import get_logger

logger = get_logger("extensions")

ENTRY_POINTS = ("register", "extension")


class ExtensionManager:
    """
    Loads the modules declared by each extension manifest.

    Each module must expose a ``register(api)`` (or ``extension(api)``)
    callable which registers commands through :class:`ExtensionAPI`.
    """

    def __init__(self, loader: ManifestLoader | None = None) -> None:
        self.loader = loader or ManifestLoader()
        self._extensions: dict[str, Extension] = {}
        self._commands: list[CommandDefinition] = []
        self._errors: list[LoadError] = []

    def _register_command(self, command: CommandDefinition) -> None:
        self._commands.append(command)

    @staticmethod
    def _import_from_path(module_name: str, path: Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load module from {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module

    def load_extension(self, extension: Extension) -> list[str]:
        """
        Import every module of *extension* and run its entry point.

        Returns:
            Names of the commands the extension registered
        """
        registered: list[str] = []
        api = ExtensionAPI(self, extension)
        for rel_path, path in zip(extension.module_paths, extension.module_files()):
            module_name = "powertool_ext_" + re.sub(
                r"\W", "_", f"{extension.name}_{Path(rel_path).with_suffix('')}"
            )
            before = len(self._commands)
            try:
                module = self._import_from_path(module_name, path)
                entry = next(
                    (getattr(module, n) for n in ENTRY_POINTS if callable(getattr(module, n, None))),
                    None,
                )
                if entry is None:
                    raise AttributeError(f"module defines none of {', '.join(ENTRY_POINTS)}()")
                entry(api)
            except Exception as e:
                del self._commands[before:]
                message = f"failed to load module {rel_path}: {e}"
                logger.warning("Extension %s: %s", extension.name, message)
                self._errors.append(
                    LoadError(path, ReasonCode.MODULE_LOAD_FAILED, message, extension.name)
                )
                continue
            registered.extend(c.name for c in self._commands[before:])

        extension.loaded_commands = registered
        self._extensions[extension.name] = extension
        logger.info(
            "Loaded extension: %s %s (%d commands)",
            extension.name,
            extension.version,
            len(registered),
        )
        return registered

    def load_all(self, root: Path) -> ScanResult:
        """
        Scan *root* and load every extension found.

        Returns:
            The scan result, with module load errors appended
        """
        scan = self.loader.scan(root)
        self._errors.extend(scan.errors)
        for extension in scan.extensions:
            self.load_extension(extension)
        scan.errors = list(self._errors)
        return scan

    def get_commands(self) -> list[CommandDefinition]:
        """All extension-registered commands, in load order."""
        return list(self._commands)

    def get_extension(self, name: str) -> Extension | None:
        return self._extensions.get(name)
