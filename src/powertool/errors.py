"""
Error taxonomy shared by the loader, validator, installer and dispatcher.
"""

from __future__ import annotations

from enum import Enum


class ReasonCode(str, Enum):
    """Why an operation failed, was skipped, or produced a report issue."""

    MANIFEST_MISSING = "manifest_missing"
    MANIFEST_INVALID = "manifest_invalid"
    DEPENDENCY_MISSING = "dependency_missing"
    DEPENDENCY_VERSION_MISMATCH = "dependency_version_mismatch"
    DUPLICATE_NAME_OR_ALIAS = "duplicate_name_or_alias"
    VCS_UNAVAILABLE = "vcs_unavailable"
    CLONE_FAILED = "clone_failed"
    CHECKOUT_FAILED = "checkout_failed"
    FETCH_FAILED = "fetch_failed"
    PULL_FAILED = "pull_failed"
    NO_TAGS_FOUND = "no_tags_found"
    PATH_CONFLICT = "path_conflict"
    NOT_VERSION_CONTROLLED = "not_version_controlled"

    # Reasons outside the core taxonomy
    ALREADY_CURRENT = "already_current"
    EXTENSION_NOT_FOUND = "extension_not_found"
    INVALID_SOURCE = "invalid_source"
    NO_COMMANDS = "no_commands"
    MODULE_LOAD_FAILED = "module_load_failed"
    DEPENDENCY_MATCHED_BY_NAME = "dependency_matched_by_name"


class PowertoolError(Exception):
    """Base error carrying a :class:`ReasonCode`."""

    code: ReasonCode = ReasonCode.MANIFEST_INVALID

    def __init__(self, message: str, code: ReasonCode | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ManifestMissingError(PowertoolError):
    """The extension directory has no descriptor file."""

    code = ReasonCode.MANIFEST_MISSING


class ManifestInvalidError(PowertoolError):
    """The descriptor exists but is unreadable or lacks required fields."""

    code = ReasonCode.MANIFEST_INVALID


class InvalidSourceError(PowertoolError):
    """An install source is neither ``owner/repo`` nor a repository URL."""

    code = ReasonCode.INVALID_SOURCE
