"""
Registry and extension validation.

Produces a structured report of errors and warnings; nothing here raises.
The caller decides how to present the report.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from powertool._version import __version__
from powertool.commands.registry import CommandRegistry
from powertool.errors import ReasonCode
from powertool.extensions.models import Extension, LoadError
from powertool.extensions.sources import CORE_DEPENDENCY, find_dependency
from powertool.logging import get_logger
from powertool.versioning import satisfies

logger = get_logger("validator")

_WARNING_LOAD_CODES = {ReasonCode.MANIFEST_MISSING}


@dataclass(frozen=True)
class ValidationIssue:
    """One finding of the validator."""

    code: ReasonCode
    subject: str  # extension name, "registry", or a path
    message: str
    related: tuple[str, ...] = ()


@dataclass
class ValidationReport:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, code: ReasonCode, subject: str, message: str, *related: str) -> None:
        self.errors.append(ValidationIssue(code, subject, message, tuple(related)))

    def warn(self, code: ReasonCode, subject: str, message: str, *related: str) -> None:
        self.warnings.append(ValidationIssue(code, subject, message, tuple(related)))

    def by_code(self, code: ReasonCode) -> list[ValidationIssue]:
        return [i for i in self.errors + self.warnings if i.code is code]


def _check_registry(registry: CommandRegistry, report: ValidationReport) -> None:
    seen: set[tuple[str, frozenset[str]]] = set()

    def add(key: str, first: str, first_owner: str, second: str, second_owner: str) -> None:
        marker = (key, frozenset((f"{first}@{first_owner}", f"{second}@{second_owner}")))
        if marker in seen:
            return
        seen.add(marker)
        report.error(
            ReasonCode.DUPLICATE_NAME_OR_ALIAS,
            "registry",
            f"'{key}' is used by both {first} ({first_owner}) and {second} ({second_owner})",
            first,
            second,
        )

    for conflict in registry.conflicts:
        add(conflict.key, conflict.kept, conflict.kept_owner, conflict.dropped, conflict.dropped_owner)

    claimed: dict[str, list[tuple[str, str]]] = {}
    for command in registry.list_commands():
        for key in dict.fromkeys(command.keys()):
            claimed.setdefault(key, []).append((command.name, command.owner))
    for key, claimants in claimed.items():
        for i, (first, first_owner) in enumerate(claimants):
            for second, second_owner in claimants[i + 1:]:
                add(key, first, first_owner, second, second_owner)


def _check_extension(
    extension: Extension,
    extensions: list[Extension],
    core_version: str,
    default_host: str,
    report: ValidationReport,
) -> None:
    name = extension.name or extension.directory_name
    if not extension.name:
        report.error(ReasonCode.MANIFEST_INVALID, name, "missing 'name'")
    if not extension.description:
        report.error(ReasonCode.MANIFEST_INVALID, name, "missing 'description'")
    if not extension.module_paths:
        report.error(ReasonCode.MANIFEST_INVALID, name, "'modules' is empty")

    for key, constraint in extension.dependencies.items():
        if key == CORE_DEPENDENCY:
            if not satisfies(core_version, constraint):
                report.error(
                    ReasonCode.DEPENDENCY_VERSION_MISMATCH,
                    name,
                    f"{name} requires {CORE_DEPENDENCY} {constraint}, found {core_version}",
                    CORE_DEPENDENCY,
                )
            continue

        others = [e for e in extensions if e is not extension]
        match = find_dependency(key, others, default_host)
        if match is None:
            report.error(
                ReasonCode.DEPENDENCY_MISSING,
                name,
                f"{name} requires {key} {constraint}, which is not installed",
                key,
            )
            continue
        if match.by_name:
            report.warn(
                ReasonCode.DEPENDENCY_MATCHED_BY_NAME,
                name,
                f"dependency {key} matched {match.extension.name} by directory name only; "
                "declare 'source' in its manifest",
                key,
            )
        if not satisfies(match.extension.version, constraint):
            report.error(
                ReasonCode.DEPENDENCY_VERSION_MISMATCH,
                name,
                f"{name} requires {key} {constraint}, found {match.extension.version}",
                key,
            )

    if not extension.loaded_commands:
        report.warn(ReasonCode.NO_COMMANDS, name, f"{name} declares modules but registered no commands")


def validate(
    registry: CommandRegistry,
    extensions: Iterable[Extension],
    load_errors: Iterable[LoadError] = (),
    core_version: str = __version__,
    default_host: str = "https://github.com",
) -> ValidationReport:
    """
    Validate the merged registry and every loaded extension.

    Args:
        registry: The merged command registry
        extensions: Loaded extensions
        load_errors: Errors recorded while scanning/loading extensions
        core_version: Version checked against ``powertool`` dependencies
        default_host: Host used to expand ``owner/repo`` dependency keys

    Returns:
        Report with errors and warnings
    """
    report = ValidationReport()
    extension_list = list(extensions)

    for load_error in load_errors:
        subject = load_error.extension or str(load_error.path)
        if load_error.code in _WARNING_LOAD_CODES:
            report.warn(load_error.code, subject, load_error.message)
        else:
            report.error(load_error.code, subject, load_error.message)

    _check_registry(registry, report)
    for extension in extension_list:
        _check_extension(extension, extension_list, core_version, default_host, report)

    logger.debug("Validation: %d errors, %d warnings", len(report.errors), len(report.warnings))
    return report
