"""
powertool - a command-line toolbox extended by git-hosted extensions.

Example:
    from powertool import PowertoolConfig, create_context, validate

    context = create_context(PowertoolConfig.load())
    report = validate(context.registry, context.extensions, context.load_errors)
"""

from powertool._version import __version__
from powertool.cli import create_context
from powertool.commands import (
    CommandDefinition,
    CommandRegistry,
    OptionGroup,
    Token,
    TokenKind,
    ValidationReport,
    build_registry,
    resolve,
    search,
    suggest,
    validate,
)
from powertool.config import PowertoolConfig
from powertool.context import RegistryContext
from powertool.errors import (
    InvalidSourceError,
    ManifestInvalidError,
    ManifestMissingError,
    PowertoolError,
    ReasonCode,
)
from powertool.extensions import (
    Extension,
    ExtensionInstaller,
    ExtensionManager,
    ManifestLoader,
    OperationResult,
    Outcome,
    parse_source,
)
from powertool.extensions.sources import CORE_DEPENDENCY as CORE_NAME
from powertool.versioning import (
    Constraint,
    RawVersion,
    Version,
    compare_tag,
    compare_versions,
    parse_constraint,
    parse_version,
    satisfies,
)

__all__ = [
    "CORE_NAME",
    "CommandDefinition",
    "CommandRegistry",
    "Constraint",
    "Extension",
    "ExtensionInstaller",
    "ExtensionManager",
    "InvalidSourceError",
    "ManifestInvalidError",
    "ManifestLoader",
    "ManifestMissingError",
    "OperationResult",
    "OptionGroup",
    "Outcome",
    "PowertoolConfig",
    "PowertoolError",
    "RawVersion",
    "ReasonCode",
    "RegistryContext",
    "Token",
    "TokenKind",
    "ValidationReport",
    "Version",
    "__version__",
    "build_registry",
    "compare_tag",
    "compare_versions",
    "create_context",
    "parse_constraint",
    "parse_source",
    "parse_version",
    "resolve",
    "satisfies",
    "search",
    "suggest",
    "validate",
]
