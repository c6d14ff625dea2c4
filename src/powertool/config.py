"""
Configuration for powertool.

Loaded from a YAML file or constructed programmatically, with a couple of
environment overrides applied on top.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_SEARCH_PATHS = (
    Path("powertool.yaml"),
    Path.home() / ".config" / "powertool" / "config.yaml",
)


def _default_extension_root() -> Path:
    return Path.home() / ".powertool" / "extensions"


def _default_settings_file() -> Path:
    return Path.home() / ".config" / "powertool" / "settings.yaml"


@dataclass
class PowertoolConfig:
    """
    Main configuration.

    Example YAML:
        extension_root: ~/.powertool/extensions
        default_host: https://github.com
        vcs_executable: git
        interactive: true
        help_page_size: 20
    """

    extension_root: Path = field(default_factory=_default_extension_root)
    settings_file: Path = field(default_factory=_default_settings_file)

    # Installer
    default_host: str = "https://github.com"  # Base URL for owner/repo shorthand
    vcs_executable: str = "git"
    interactive: bool = True  # Prompt before installing missing dependencies

    # Dispatcher / help
    suggestion_threshold: float = 0.6
    help_page_size: int = 20
    core_precedence: bool = True  # Built-in commands win merge conflicts

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PowertoolConfig:
        """Create config from a dictionary."""
        defaults = cls()
        config = cls(
            extension_root=(
                Path(data["extension_root"]).expanduser()
                if data.get("extension_root")
                else defaults.extension_root
            ),
            settings_file=(
                Path(data["settings_file"]).expanduser()
                if data.get("settings_file")
                else defaults.settings_file
            ),
            default_host=data.get("default_host", defaults.default_host).rstrip("/"),
            vcs_executable=data.get("vcs_executable", defaults.vcs_executable),
            interactive=data.get("interactive", defaults.interactive),
            suggestion_threshold=data.get("suggestion_threshold", defaults.suggestion_threshold),
            help_page_size=data.get("help_page_size", defaults.help_page_size),
            core_precedence=data.get("core_precedence", defaults.core_precedence),
        )
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> PowertoolConfig:
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, content: str) -> PowertoolConfig:
        """Load config from a YAML string."""
        data = yaml.safe_load(content)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, path: Path | None = None) -> PowertoolConfig:
        """
        Load config from *path*, or the first existing search path.

        Falls back to defaults when no file is found. Environment overrides
        are applied last.
        """
        config: PowertoolConfig | None = None
        candidates = [path] if path is not None else list(CONFIG_SEARCH_PATHS)
        for candidate in candidates:
            if candidate.is_file():
                config = cls.from_yaml(candidate)
                break
        if config is None:
            config = cls()
        config.apply_env()
        return config

    def apply_env(self, environ: dict[str, str] | None = None) -> None:
        """Apply ``POWERTOOL_HOME`` and ``POWERTOOL_NONINTERACTIVE``."""
        env = os.environ if environ is None else environ
        home = env.get("POWERTOOL_HOME")
        if home:
            self.extension_root = Path(home).expanduser()
        if env.get("POWERTOOL_NONINTERACTIVE", "").lower() in ("1", "true", "yes"):
            self.interactive = False

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "extension_root": str(self.extension_root),
            "settings_file": str(self.settings_file),
            "default_host": self.default_host,
            "vcs_executable": self.vcs_executable,
            "interactive": self.interactive,
            "suggestion_threshold": self.suggestion_threshold,
            "help_page_size": self.help_page_size,
            "core_precedence": self.core_precedence,
        }
