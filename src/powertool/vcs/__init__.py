"""Version-control backends."""

from powertool.vcs.base import CONTROL_MARKER, VcsResult, VersionControlClient
from powertool.vcs.git import GitClient

__all__ = [
    "CONTROL_MARKER",
    "GitClient",
    "VcsResult",
    "VersionControlClient",
]
