"""
Build argument parsers from a command's option groups.
"""

from __future__ import annotations

import argparse

from powertool.commands.models import CommandDefinition, Token, TokenKind


class CommandUsageError(Exception):
    """Arguments did not match the command's grammar."""


class _CommandArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise CommandUsageError(f"{self.prog}: {message}")


def dest_for(label: str) -> str:
    return label.lstrip("-").replace("-", "_").replace(" ", "_")


def build_parser(command: CommandDefinition) -> argparse.ArgumentParser:
    """
    Union of all option groups as one parser.

    Positionals keep first-seen order and are required only if every group
    requires them. A flag followed by a type hint takes a value; other flags
    are booleans.
    """
    usage = " | ".join(command.usages())
    parser = _CommandArgumentParser(
        prog=command.name,
        description=command.summary,
        usage=usage,
        add_help=False,
    )

    positionals: dict[str, list[Token]] = {}
    flags: dict[str, tuple[Token, Token | None]] = {}
    for group in command.option_groups:
        tokens = list(group.tokens)
        for index, token in enumerate(tokens):
            if token.kind.is_positional:
                positionals.setdefault(token.label, []).append(token)
            elif token.kind.is_flag and token.label not in flags:
                following = tokens[index + 1] if index + 1 < len(tokens) else None
                hint = following if following and following.kind is TokenKind.TYPE_HINT else None
                flags[token.label] = (token, hint)

    group_count = len(command.option_groups)
    for label, occurrences in positionals.items():
        required = len(occurrences) == group_count and all(
            t.kind is TokenKind.REQUIRED_POSITIONAL for t in occurrences
        )
        parser.add_argument(
            dest_for(label),
            nargs=None if required else "?",
            metavar=label,
            help=occurrences[0].description or None,
        )

    for label, (token, hint) in flags.items():
        if hint is not None:
            value_type = int if hint.label in ("int", "n", "number") else str
            parser.add_argument(
                label,
                dest=dest_for(label),
                type=value_type,
                metavar=hint.label,
                help=token.description or None,
            )
        else:
            parser.add_argument(label, dest=dest_for(label), action="store_true", help=token.description or None)
    return parser


def parse_arguments(command: CommandDefinition, argv: list[str]) -> argparse.Namespace:
    """
    Parse *argv* for *command*.

    Raises:
        CommandUsageError: On unknown or missing arguments
    """
    return build_parser(command).parse_args(argv)
