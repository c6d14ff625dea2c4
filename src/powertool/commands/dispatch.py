"""
Command resolution, suggestions and keyword search.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from powertool.commands.models import CommandDefinition
from powertool.commands.registry import CommandRegistry

SUGGESTION_THRESHOLD = 0.6

# Search relevance weights
NAME_EXACT = 100
NAME_PREFIX = 75
NAME_SUBSTRING = 50
ALIAS_EXACT = 90
ALIAS_PREFIX = 65
ALIAS_SUBSTRING = 40
SUMMARY_WORD = 30
SUMMARY_SUBSTRING = 20
OPTION_MATCH = 10


def levenshtein(a: str, b: str, case_sensitive: bool = False) -> int:
    """Classic edit distance with unit insertion, deletion and substitution costs."""
    if not case_sensitive:
        a, b = a.lower(), b.lower()
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str, case_sensitive: bool = False) -> float:
    """``1 - distance / max(len)``; 1.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b, case_sensitive) / longest


def resolve(registry: CommandRegistry, token: str) -> CommandDefinition | None:
    """Exact, case-insensitive match of *token* against names and aliases."""
    if not token:
        return None
    return registry.lookup(token.strip())


def suggest(
    registry: CommandRegistry,
    token: str,
    threshold: float = SUGGESTION_THRESHOLD,
) -> list[str]:
    """
    Command names close to *token*.

    A name is suggested when its similarity exceeds *threshold* or when one
    string contains the other. Output is deduplicated and sorted.
    """
    needle = token.strip().lower()
    if not needle:
        return []
    found: set[str] = set()
    for name in registry.names():
        candidate = name.lower()
        if similarity(candidate, needle) > threshold or needle in candidate or candidate in needle:
            found.add(name)
    return sorted(found)


@dataclass(frozen=True)
class SearchHit:
    command: CommandDefinition
    score: int

    @property
    def name(self) -> str:
        return self.command.name


def _tiered(value: str, term: str, exact: int, prefix: int, substring: int) -> int:
    if value == term:
        return exact
    if value.startswith(term):
        return prefix
    if term in value:
        return substring
    return 0


def score_command(command: CommandDefinition, term: str) -> int:
    """Relevance of *command* for a lowercased search *term*."""
    score = _tiered(command.name.lower(), term, NAME_EXACT, NAME_PREFIX, NAME_SUBSTRING)

    score += max(
        (
            _tiered(alias.lower(), term, ALIAS_EXACT, ALIAS_PREFIX, ALIAS_SUBSTRING)
            for alias in command.aliases
        ),
        default=0,
    )

    summary = command.summary.lower()
    if re.search(rf"\b{re.escape(term)}\b", summary):
        score += SUMMARY_WORD
    elif term in summary:
        score += SUMMARY_SUBSTRING

    for token in command.all_tokens():
        if term in token.label.lower() or term in token.description.lower():
            score += OPTION_MATCH
            break
    return score


def search(registry: CommandRegistry, term: str) -> list[SearchHit]:
    """Commands matching *term*, by descending score then ascending name."""
    needle = term.strip().lower()
    if not needle:
        return []
    hits = [
        SearchHit(command, score)
        for command in registry.list_commands()
        if (score := score_command(command, needle)) > 0
    ]
    return sorted(hits, key=lambda h: (-h.score, h.name))
