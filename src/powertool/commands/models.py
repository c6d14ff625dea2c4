"""
Data models for commands and their invocation grammar.

A command has one or more alternative syntaxes (``OptionGroup``), each an
ordered sequence of ``Token`` values. Older manifests and extensions describe
syntax as usage strings or token dicts; :func:`coerce_option_groups` adapts
every accepted shape once, at registration time.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CORE_OWNER = "core"

_USAGE_TOKEN = re.compile(r"\[[^\]]*\]|<[^>]*>|\{[^}]*\}|\S+")


class TokenKind(str, Enum):
    """Kind of one syntax element."""

    REQUIRED_POSITIONAL = "required"
    OPTIONAL_POSITIONAL = "optional"
    FLAG = "flag"
    OPTIONAL_FLAG = "optional_flag"
    TYPE_HINT = "type"

    @property
    def is_positional(self) -> bool:
        return self in (TokenKind.REQUIRED_POSITIONAL, TokenKind.OPTIONAL_POSITIONAL)

    @property
    def is_flag(self) -> bool:
        return self in (TokenKind.FLAG, TokenKind.OPTIONAL_FLAG)


_KIND_ALIASES = {
    "required_positional": TokenKind.REQUIRED_POSITIONAL,
    "optional_positional": TokenKind.OPTIONAL_POSITIONAL,
    "type_hint": TokenKind.TYPE_HINT,
    "hint": TokenKind.TYPE_HINT,
}


@dataclass(frozen=True)
class Token:
    """One syntax element of a command's invocation grammar."""

    kind: TokenKind
    label: str
    description: str = ""

    def render(self) -> str:
        if self.kind is TokenKind.REQUIRED_POSITIONAL:
            return f"<{self.label}>"
        if self.kind is TokenKind.OPTIONAL_POSITIONAL:
            return f"[{self.label}]"
        if self.kind is TokenKind.OPTIONAL_FLAG:
            return f"[{self.label}]"
        if self.kind is TokenKind.TYPE_HINT:
            return f"{{{self.label}}}"
        return self.label

    @classmethod
    def from_usage(cls, text: str) -> Token:
        """Parse a single usage-string element (``<x>``, ``[x]``, ``--x``, ``{x}``)."""
        if text.startswith("<") and text.endswith(">"):
            return cls(TokenKind.REQUIRED_POSITIONAL, text[1:-1].strip())
        if text.startswith("{") and text.endswith("}"):
            return cls(TokenKind.TYPE_HINT, text[1:-1].strip())
        if text.startswith("[") and text.endswith("]"):
            inner = text[1:-1].strip()
            if inner.startswith("-"):
                return cls(TokenKind.OPTIONAL_FLAG, inner)
            return cls(TokenKind.OPTIONAL_POSITIONAL, inner)
        if text.startswith("-"):
            return cls(TokenKind.FLAG, text)
        return cls(TokenKind.REQUIRED_POSITIONAL, text)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        raw_kind = str(data.get("kind", TokenKind.REQUIRED_POSITIONAL.value)).lower()
        kind = _KIND_ALIASES.get(raw_kind) or TokenKind(raw_kind)
        return cls(kind=kind, label=str(data["label"]), description=data.get("description", ""))


@dataclass(frozen=True)
class OptionGroup:
    """One alternative syntax: an ordered sequence of tokens."""

    tokens: tuple[Token, ...] = ()

    def usage(self, command_name: str = "") -> str:
        parts = [command_name] if command_name else []
        parts.extend(token.render() for token in self.tokens)
        return " ".join(parts)

    @classmethod
    def from_usage(cls, usage: str) -> OptionGroup:
        return cls(tuple(Token.from_usage(part) for part in _USAGE_TOKEN.findall(usage)))


def _coerce_group(raw: Any) -> OptionGroup:
    if isinstance(raw, OptionGroup):
        return raw
    if isinstance(raw, str):
        return OptionGroup.from_usage(raw)
    if isinstance(raw, Token):
        return OptionGroup((raw,))
    if isinstance(raw, dict):
        return OptionGroup((Token.from_dict(raw),))
    if isinstance(raw, Iterable):
        tokens: list[Token] = []
        for item in raw:
            if isinstance(item, Token):
                tokens.append(item)
            elif isinstance(item, dict):
                tokens.append(Token.from_dict(item))
            elif isinstance(item, str):
                tokens.extend(OptionGroup.from_usage(item).tokens)
            else:
                raise TypeError(f"Unsupported syntax token: {item!r}")
        return OptionGroup(tuple(tokens))
    raise TypeError(f"Unsupported syntax group: {raw!r}")


def coerce_option_groups(raw: Any) -> list[OptionGroup]:
    """
    Normalize any accepted syntax description into a list of option groups.

    Accepted shapes:
    - ``None`` -> no groups
    - ``"<name> [--force]"`` -> one group
    - ``["<name>", "--all"]`` -> one group per string
    - ``[{"kind": "required", "label": "name"}, ...]`` -> one group of tokens
    - ``[[...], [...]]`` -> one group per inner list
    - ``OptionGroup`` / ``Token`` objects, alone or in lists
    """
    if raw is None:
        return []
    if isinstance(raw, (str, OptionGroup, Token)):
        return [_coerce_group(raw)]
    items = list(raw)
    if not items:
        return []
    # A flat list of token dicts or Token objects is a single group
    if all(isinstance(item, (dict, Token)) for item in items):
        return [_coerce_group(items)]
    return [_coerce_group(item) for item in items]


@dataclass
class CommandDefinition:
    """A command contributed by core or an extension."""

    name: str
    summary: str = ""
    aliases: tuple[str, ...] = ()
    option_groups: list[OptionGroup] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    display_position: int | None = None
    owner: str = CORE_OWNER
    action: Callable[..., Any] | None = None

    def __post_init__(self) -> None:
        self.aliases = tuple(self.aliases)
        self.option_groups = coerce_option_groups(self.option_groups)

    @property
    def is_core(self) -> bool:
        return self.owner == CORE_OWNER

    def keys(self) -> list[str]:
        """Name followed by aliases, lowercased."""
        return [self.name.lower()] + [alias.lower() for alias in self.aliases]

    def usages(self) -> list[str]:
        if not self.option_groups:
            return [self.name]
        return [group.usage(self.name) for group in self.option_groups]

    def all_tokens(self) -> list[Token]:
        return [token for group in self.option_groups for token in group.tokens]
