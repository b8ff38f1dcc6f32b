"""Compare installed mods against the registry."""

from typing import Sequence

from .installed import InstalledMods
from .registry import RemoteModEntry


def find_matching(
    registry: Sequence[RemoteModEntry], installed: InstalledMods
) -> list[RemoteModEntry]:
    """Registry entries whose display name matches an installed mod name."""
    return [entry for entry in registry if entry.display_name in installed.names]


def find_outdated(
    matching: Sequence[RemoteModEntry], installed: InstalledMods
) -> list[RemoteModEntry]:
    """Matched entries whose version string differs from the installed one."""
    return [
        entry
        for entry in matching
        if installed.versions.get(entry.display_name) != entry.version
    ]
