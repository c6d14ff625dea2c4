"""
Command model, registry, validation and dispatch.
"""

from powertool.commands.dispatch import levenshtein, resolve, search, similarity, suggest
from powertool.commands.models import (
    CORE_OWNER,
    CommandDefinition,
    OptionGroup,
    Token,
    TokenKind,
    coerce_option_groups,
)
from powertool.commands.registry import CommandRegistry, MergeConflict, build_registry
from powertool.commands.validator import ValidationIssue, ValidationReport, validate

__all__ = [
    "CORE_OWNER",
    "CommandDefinition",
    "CommandRegistry",
    "MergeConflict",
    "OptionGroup",
    "Token",
    "TokenKind",
    "ValidationIssue",
    "ValidationReport",
    "build_registry",
    "coerce_option_groups",
    "levenshtein",
    "resolve",
    "search",
    "similarity",
    "suggest",
    "validate",
]
