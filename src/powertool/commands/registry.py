"""
Command registry.

Merges built-in and extension-contributed commands into a single namespace
keyed case-insensitively by name and alias. Collisions are resolved while
merging and every one of them is recorded so the validator can report it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from powertool.commands.models import CommandDefinition
from powertool.logging import get_logger

logger = get_logger("registry")


@dataclass(frozen=True)
class MergeConflict:
    """A name or alias claimed by two commands during the merge."""

    key: str
    kept: str
    kept_owner: str
    dropped: str
    dropped_owner: str

    def describe(self) -> str:
        return (
            f"'{self.key}' claimed by {self.dropped} ({self.dropped_owner}) "
            f"and {self.kept} ({self.kept_owner}); {self.kept} wins"
        )


class CommandRegistry:
    """
    The merged set of all commands.

    Precedence while merging:
    - With ``core_precedence`` a built-in command never loses a name or alias
      to an extension; the extension command is dropped (name clash) or loses
      the alias.
    - An alias never replaces another command's primary name.
    - Otherwise the later insertion wins.
    """

    def __init__(self, core_precedence: bool = True) -> None:
        self.core_precedence = core_precedence
        self._commands: dict[str, CommandDefinition] = {}
        self._keys: dict[str, str] = {}  # lowercased name/alias -> command name
        self._conflicts: list[MergeConflict] = []

    @property
    def conflicts(self) -> list[MergeConflict]:
        return list(self._conflicts)

    @property
    def alias_index(self) -> dict[str, str]:
        """Lowercased alias (and name) to command name."""
        return dict(self._keys)

    def _protected(self, existing: CommandDefinition, incoming: CommandDefinition) -> bool:
        return self.core_precedence and existing.is_core and not incoming.is_core

    def _record(self, key: str, kept: CommandDefinition, dropped: CommandDefinition) -> None:
        conflict = MergeConflict(
            key=key,
            kept=kept.name,
            kept_owner=kept.owner,
            dropped=dropped.name,
            dropped_owner=dropped.owner,
        )
        self._conflicts.append(conflict)
        logger.warning("Command conflict: %s", conflict.describe())

    def _remove(self, name: str) -> None:
        self._commands.pop(name, None)
        self._keys = {k: v for k, v in self._keys.items() if v != name}

    def add(self, command: CommandDefinition) -> bool:
        """
        Insert *command*, resolving collisions.

        Returns:
            False if the command was dropped entirely
        """
        name_key = command.name.lower()
        owner_name = self._keys.get(name_key)
        if owner_name is not None:
            existing = self._commands[owner_name]
            if self._protected(existing, command):
                self._record(name_key, kept=existing, dropped=command)
                return False
            self._record(name_key, kept=command, dropped=existing)
            if existing.name.lower() == name_key:
                self._remove(existing.name)

        self._commands[command.name] = command
        self._keys[name_key] = command.name

        for alias in command.aliases:
            key = alias.lower()
            if key == name_key:
                continue
            owner_name = self._keys.get(key)
            if owner_name is not None and owner_name != command.name:
                existing = self._commands[owner_name]
                # an alias never takes over another command's primary name
                if self._protected(existing, command) or existing.name.lower() == key:
                    self._record(key, kept=existing, dropped=command)
                    continue
                self._record(key, kept=command, dropped=existing)
            self._keys[key] = command.name
        return True

    def extend(self, commands: Iterable[CommandDefinition]) -> None:
        for command in commands:
            self.add(command)

    def get(self, name: str) -> CommandDefinition | None:
        """Get a command by its primary name (case-insensitive)."""
        owner = self._keys.get(name.lower())
        if owner is None or owner.lower() != name.lower():
            return None
        return self._commands.get(owner)

    def lookup(self, key: str) -> CommandDefinition | None:
        """Get a command by name or alias (case-insensitive)."""
        owner = self._keys.get(key.lower())
        return self._commands.get(owner) if owner is not None else None

    def list_commands(self) -> list[CommandDefinition]:
        """All commands sorted by display position, then name."""
        return sorted(
            self._commands.values(),
            key=lambda c: (c.display_position is None, c.display_position or 0, c.name),
        )

    def owners(self) -> list[str]:
        return sorted({c.owner for c in self._commands.values()})

    def by_owner(self, owner: str) -> list[CommandDefinition]:
        return [c for c in self.list_commands() if c.owner.lower() == owner.lower()]

    def names(self) -> list[str]:
        return sorted(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(self.list_commands())

    def __len__(self) -> int:
        return len(self._commands)


def build_registry(
    builtins: Iterable[CommandDefinition],
    extension_commands: Iterable[CommandDefinition] = (),
    core_precedence: bool = True,
) -> CommandRegistry:
    """Build a fresh registry: built-ins first, then extensions in scan order."""
    registry = CommandRegistry(core_precedence=core_precedence)
    registry.extend(builtins)
    registry.extend(extension_commands)
    logger.debug(
        "Registry built: %d commands, %d conflicts",
        len(registry),
        len(registry.conflicts),
    )
    return registry
