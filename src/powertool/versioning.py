"""
Version and dependency-constraint resolution.

Versions are dotted numeric strings (``1.2.0``, ``2.0.0.15``). Anything that
does not parse that way is kept as a :class:`RawVersion` and compared
lexically, which is deliberately weaker than numeric ordering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

_NUMERIC_VERSION = re.compile(r"^\d+(?:\.\d+)*$")
_CONSTRAINT = re.compile(r"^\s*(>=|<=|==|=|>|<)?\s*(.*?)\s*$")


@dataclass(frozen=True)
class Version:
    """A structured version: non-negative integer components."""

    components: tuple[int, ...]
    text: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.text or ".".join(str(c) for c in self.components)

    def padded(self, length: int) -> tuple[int, ...]:
        """Components padded with trailing zeros to *length*."""
        return self.components + (0,) * (length - len(self.components))


@dataclass(frozen=True)
class RawVersion:
    """A version string that could not be parsed as dotted numbers."""

    text: str

    def __str__(self) -> str:
        return self.text


AnyVersion = Union[Version, RawVersion]


class Operator(str, Enum):
    EQ = "="
    GE = ">="
    LE = "<="
    GT = ">"
    LT = "<"


@dataclass(frozen=True)
class Constraint:
    """An operator plus the version it is applied against."""

    operator: Operator
    target: AnyVersion

    def __str__(self) -> str:
        return f"{self.operator.value}{self.target}"


def parse_version(value: str | AnyVersion) -> AnyVersion:
    """Parse *value* into a :class:`Version`, or keep it as a :class:`RawVersion`."""
    if isinstance(value, (Version, RawVersion)):
        return value
    text = str(value).strip()
    if _NUMERIC_VERSION.match(text):
        return Version(tuple(int(part) for part in text.split(".")), text=text)
    return RawVersion(text)


def parse_constraint(requirement: str) -> Constraint:
    """
    Parse a requirement string such as ``">=1.2.0"`` or ``"2.0"``.

    The operator defaults to ``=`` when absent; ``==`` is accepted as ``=``.

    Raises:
        ValueError: If no target version remains after the operator.
    """
    match = _CONSTRAINT.match(requirement or "")
    op_text, target = (match.group(1), match.group(2)) if match else (None, "")
    if not target:
        raise ValueError(f"Empty version requirement: {requirement!r}")
    if op_text in (None, "=="):
        op_text = "="
    return Constraint(operator=Operator(op_text), target=parse_version(target))


def compare_versions(a: str | AnyVersion, b: str | AnyVersion) -> int:
    """
    Compare two versions, returning -1, 0 or 1.

    Structured versions compare component-wise with missing trailing
    components treated as 0. If either side is raw, both are compared as
    strings.
    """
    left = parse_version(a)
    right = parse_version(b)
    if isinstance(left, Version) and isinstance(right, Version):
        width = max(len(left.components), len(right.components))
        lhs: tuple[int, ...] | str = left.padded(width)
        rhs: tuple[int, ...] | str = right.padded(width)
    else:
        lhs, rhs = str(left), str(right)
    return (lhs > rhs) - (lhs < rhs)  # type: ignore[operator]


def satisfies(current: str | AnyVersion, constraint: str | Constraint) -> bool:
    """Check whether *current* meets *constraint*."""
    if isinstance(constraint, str):
        constraint = parse_constraint(constraint)
    result = compare_versions(current, constraint.target)
    if constraint.operator is Operator.EQ:
        return result == 0
    if constraint.operator is Operator.GE:
        return result >= 0
    if constraint.operator is Operator.LE:
        return result <= 0
    if constraint.operator is Operator.GT:
        return result > 0
    return result < 0


def strip_tag_prefix(tag: str) -> str:
    """Drop one leading ``v``/``V`` from a tag name."""
    tag = tag.strip()
    if tag[:1] in ("v", "V"):
        return tag[1:]
    return tag


def compare_tag(tag_a: str, tag_b: str) -> int:
    """Compare two tag names (or a version and a tag) ignoring a ``v`` prefix."""
    return compare_versions(strip_tag_prefix(tag_a), strip_tag_prefix(tag_b))
