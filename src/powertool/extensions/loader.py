"""
Manifest loader.

Reads ``extension.json`` descriptors into :class:`Extension` records and scans
the extension root. Manifest format::

    {
      "name": "imagetools",
      "description": "Image filters",
      "version": "1.4.0",
      "author": "...",
      "license": "MIT",
      "homepage": "https://...",
      "source": "https://github.com/owner/imagetools",
      "modules": ["modules/filters.py"],
      "dependencies": {"powertool": ">=2.0", "owner/colorlib": ">=0.3"},
      "keywords": ["image", "filter"]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from powertool.errors import ManifestInvalidError, ManifestMissingError, PowertoolError
from powertool.extensions.models import (
    DEFAULT_VERSION,
    MANIFEST_FILE,
    Extension,
    LoadError,
)
from powertool.logging import get_logger
from powertool.versioning import Constraint, parse_constraint, parse_version

logger = get_logger("loader")


@dataclass
class ScanResult:
    """Extensions found under the extension root plus per-directory errors."""

    extensions: list[Extension] = field(default_factory=list)
    errors: list[LoadError] = field(default_factory=list)


def _require_string(data: dict[str, Any], key: str, path: Path) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ManifestInvalidError(f"{path}: missing required field '{key}'")
    return value.strip()


def _optional_string(data: dict[str, Any], key: str, path: Path) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ManifestInvalidError(f"{path}: field '{key}' must be a string")
    return value.strip()


def _string_list(data: dict[str, Any], key: str, path: Path) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestInvalidError(f"{path}: field '{key}' must be a list of strings")
    return [v.strip() for v in value if v.strip()]


class ManifestLoader:
    """Loads a single extension directory, or every directory under a root."""

    def __init__(self, manifest_name: str = MANIFEST_FILE) -> None:
        self.manifest_name = manifest_name

    def load(self, directory: Path) -> Extension:
        """
        Load the extension in *directory*.

        Raises:
            ManifestMissingError: No descriptor file in *directory*
            ManifestInvalidError: Unreadable JSON or missing/invalid fields
        """
        manifest_path = directory / self.manifest_name
        if not manifest_path.is_file():
            raise ManifestMissingError(f"{directory}: no {self.manifest_name}")

        try:
            with open(manifest_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ManifestInvalidError(f"{manifest_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestInvalidError(f"{manifest_path}: top level must be an object")

        return self.from_dict(data, directory)

    def from_dict(self, data: dict[str, Any], directory: Path) -> Extension:
        """Build an :class:`Extension` from parsed manifest data."""
        path = directory / self.manifest_name
        name = _optional_string(data, "name", path) or directory.name
        description = _require_string(data, "description", path)

        modules = _string_list(data, "modules", path)
        if not modules:
            raise ManifestInvalidError(f"{path}: 'modules' must list at least one module")
        for module in modules:
            pure = PurePosixPath(module)
            if pure.is_absolute() or ".." in pure.parts:
                raise ManifestInvalidError(f"{path}: module path escapes extension: {module}")

        raw_version = data.get("version", DEFAULT_VERSION)
        if isinstance(raw_version, (int, float)) and not isinstance(raw_version, bool):
            raw_version = str(raw_version)
        if not isinstance(raw_version, str) or not raw_version.strip():
            raise ManifestInvalidError(f"{path}: 'version' must be a non-empty string")

        raw_deps = data.get("dependencies") or {}
        if not isinstance(raw_deps, dict):
            raise ManifestInvalidError(f"{path}: 'dependencies' must be an object")
        dependencies: dict[str, Constraint] = {}
        for key, requirement in raw_deps.items():
            try:
                dependencies[str(key)] = parse_constraint(str(requirement))
            except ValueError as e:
                raise ManifestInvalidError(f"{path}: dependency '{key}': {e}") from e

        return Extension(
            name=name,
            description=description,
            install_path=directory,
            version=parse_version(raw_version),
            author=_optional_string(data, "author", path),
            license=_optional_string(data, "license", path),
            homepage=_optional_string(data, "homepage", path),
            source_url=_optional_string(data, "source", path),
            module_paths=modules,
            dependencies=dependencies,
            keywords=_string_list(data, "keywords", path),
        )

    def scan(self, root: Path) -> ScanResult:
        """
        Load every extension directory directly under *root*.

        Per-directory failures are recorded in the result and never stop the
        scan. An unreadable root yields an empty result.
        """
        result = ScanResult()
        if not root.exists():
            logger.debug("Extension root %s does not exist", root)
            return result
        try:
            directories = sorted(p for p in root.iterdir() if p.is_dir())
        except OSError as e:
            logger.warning("Cannot read extension root %s: %s", root, e)
            return result

        seen: dict[str, Path] = {}
        for directory in directories:
            if directory.name.startswith((".", "_")):
                continue
            try:
                extension = self.load(directory)
            except ManifestMissingError as e:
                logger.debug("Skipping %s: %s", directory, e)
                result.errors.append(LoadError(directory, e.code, str(e)))
                continue
            except PowertoolError as e:
                logger.warning("Invalid extension manifest in %s: %s", directory, e)
                result.errors.append(LoadError(directory, e.code, str(e)))
                continue

            if extension.name in seen:
                message = (
                    f"extension name '{extension.name}' already loaded from "
                    f"{seen[extension.name]}"
                )
                logger.warning("Skipping %s: %s", directory, message)
                result.errors.append(
                    LoadError(directory, ManifestInvalidError.code, message, extension.name)
                )
                continue

            seen[extension.name] = directory
            result.extensions.append(extension)
            logger.debug("Loaded manifest: %s %s (%s)", extension.name, extension.version, directory)

        logger.info("Found %d extensions under %s", len(result.extensions), root)
        return result
