"""
Extension system: manifests, module loading, installation and updates.
"""

from powertool.extensions.api import ExtensionAPI
from powertool.extensions.installer import (
    BatchSummary,
    ExtensionInstaller,
    OperationResult,
    Outcome,
    UpdateStatus,
)
from powertool.extensions.loader import ManifestLoader, ScanResult
from powertool.extensions.manager import ExtensionManager
from powertool.extensions.models import Extension, LoadError
from powertool.extensions.sources import ExtensionSource, find_dependency, parse_source

__all__ = [
    "BatchSummary",
    "Extension",
    "ExtensionAPI",
    "ExtensionInstaller",
    "ExtensionManager",
    "ExtensionSource",
    "LoadError",
    "ManifestLoader",
    "OperationResult",
    "Outcome",
    "ScanResult",
    "UpdateStatus",
    "find_dependency",
    "parse_source",
]
