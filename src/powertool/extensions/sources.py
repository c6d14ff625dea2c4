"""
Extension source parsing and dependency matching.

Supported source formats:
- ``owner/repo`` -> ``<default_host>/owner/repo``
- ``https://host/owner/repo(.git)``, ``ssh://...``, ``file://...``
- ``git@host:owner/repo(.git)``
- an absolute local path to a repository
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from powertool.errors import InvalidSourceError
from powertool.extensions.models import Extension

CORE_DEPENDENCY = "powertool"

_SHORTHAND = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_SCP_URL = re.compile(r"^[\w.-]+@([\w.-]+):(.+)$")


@dataclass(frozen=True)
class ExtensionSource:
    """Where an extension is cloned from."""

    name: str
    url: str
    shorthand: str = ""


def _strip_git_suffix(segment: str) -> str:
    return segment[:-4] if segment.lower().endswith(".git") else segment


def trailing_segment(url: str) -> str:
    """Last path segment of *url* without a ``.git`` suffix."""
    path = url.strip().rstrip("/")
    scp = _SCP_URL.match(path)
    if scp:
        path = scp.group(2)
    elif "://" in path:
        path = path.split("://", 1)[1].partition("/")[2]
    if not path:
        return ""
    return _strip_git_suffix(re.split(r"[/:]", path)[-1])


def is_url(source: str) -> bool:
    return "://" in source or bool(_SCP_URL.match(source)) or source.startswith("/")


def parse_source(source: str, default_host: str = "https://github.com") -> ExtensionSource:
    """
    Parse an install source.

    Raises:
        InvalidSourceError: Neither shorthand nor URL, or no usable name
    """
    source = source.strip()
    if _SHORTHAND.match(source) and not source.startswith("."):
        owner, repo = source.split("/", 1)
        repo = _strip_git_suffix(repo)
        if not repo:
            raise InvalidSourceError(f"Invalid source: {source}")
        return ExtensionSource(
            name=repo,
            url=f"{default_host.rstrip('/')}/{owner}/{repo}",
            shorthand=f"{owner}/{repo}",
        )
    if is_url(source):
        name = trailing_segment(source)
        if not name:
            raise InvalidSourceError(f"Cannot derive extension name from {source}")
        return ExtensionSource(name=name, url=source)
    raise InvalidSourceError(f"Source must be owner/repo or a repository URL: {source}")


def normalize_url(url: str) -> str:
    """Reduce a repository URL to ``host/path`` lowercased, without ``.git``."""
    url = url.strip().rstrip("/")
    scp = _SCP_URL.match(url)
    if scp:
        url = f"{scp.group(1)}/{scp.group(2)}"
    elif "://" in url:
        url = url.split("://", 1)[1]
        url = url.split("@", 1)[-1]
    return _strip_git_suffix(url).lower()


def dependency_url(key: str, default_host: str = "https://github.com") -> str:
    """Normalized URL a dependency key refers to."""
    if _SHORTHAND.match(key):
        return normalize_url(f"{default_host.rstrip('/')}/{key}")
    return normalize_url(key)


@dataclass(frozen=True)
class DependencyMatch:
    """An installed extension satisfying a dependency key."""

    extension: Extension
    by_name: bool = False  # True when matched on directory name only


def find_dependency(
    key: str,
    extensions: Iterable[Extension],
    default_host: str = "https://github.com",
) -> DependencyMatch | None:
    """
    Find the installed extension a dependency key refers to.

    A key without ``/`` is an extension name. Otherwise the extension's
    declared ``source`` URL must equal the key's URL; failing that, the
    extension's directory (or name) equal to the key's trailing segment is
    accepted and flagged with ``by_name``.
    """
    candidates = list(extensions)
    if "/" not in key and not is_url(key):
        found = next((e for e in candidates if e.name == key), None)
        return DependencyMatch(found) if found else None

    wanted = dependency_url(key, default_host)
    for extension in candidates:
        if extension.source_url and normalize_url(extension.source_url) == wanted:
            return DependencyMatch(extension)

    segment = trailing_segment(key)
    for extension in candidates:
        if segment in (extension.directory_name, extension.name):
            return DependencyMatch(extension, by_name=True)
    return None
