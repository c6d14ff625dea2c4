"""
Data models for installed extensions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from powertool.errors import ReasonCode
from powertool.versioning import AnyVersion, Constraint, Version

MANIFEST_FILE = "extension.json"
DEFAULT_VERSION = "1.0.0"


@dataclass
class Extension:
    """An extension loaded from ``<root>/<name>/extension.json``."""

    name: str
    description: str
    install_path: Path
    version: AnyVersion = field(default_factory=lambda: Version((1, 0, 0), DEFAULT_VERSION))
    author: str = ""
    license: str = ""
    homepage: str = ""
    source_url: str = ""
    module_paths: list[str] = field(default_factory=list)
    dependencies: dict[str, Constraint] = field(default_factory=dict)
    keywords: list[str] = field(default_factory=list)
    loaded_commands: list[str] = field(default_factory=list)

    @property
    def directory_name(self) -> str:
        return self.install_path.name

    def module_files(self) -> list[Path]:
        """Absolute paths of the declared modules."""
        return [self.install_path / rel for rel in self.module_paths]


@dataclass
class LoadError:
    """A problem recorded while scanning or loading one extension."""

    path: Path
    code: ReasonCode
    message: str
    extension: str = ""
