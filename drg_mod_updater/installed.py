"""Installed mod detection from pak filenames."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .errors import DirectoryReadError

logger = logging.getLogger(__name__)

NAME_SEPARATOR = " - "
PAK_SUFFIX = "_P.pak"
VERSION_MARKER = "V"
DEFAULT_VERSION = "1"


@dataclass
class InstalledMods:
    """Mods found in the Paks directory.

    ``names`` keeps every parsed name in listing order, duplicates included.
    ``versions`` holds one version per name; a later file with the same name
    overwrites the earlier one.
    """

    names: list[str] = field(default_factory=list)
    versions: dict[str, str] = field(default_factory=dict)

    def add(self, name: str, version: str) -> None:
        self.names.append(name)
        self.versions[name] = version

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.versions)


def parse_pak_filename(filename: str) -> tuple[str, str] | None:
    """
    Parse a user mod pak filename into (name, version).

    Expected format: ``<Name> - V<version>_P.pak``. The version defaults to
    "1" when the ``V`` segment is missing or empty, and is trimmed after that. Returns None for paks without the
    " - " separator (game paks, not user mods).
    """
    parts = filename.split(NAME_SEPARATOR, 1)
    if len(parts) < 2:
        return None

    name, rest = parts
    rest = rest.removesuffix(PAK_SUFFIX)

    # Only the segment between the first and second "V" counts
    segments = rest.split(VERSION_MARKER)
    raw_version = segments[1] if len(segments) > 1 else ""

    # Default before trimming: "V _P.pak" is an empty version, not "1"
    return name.strip(), (raw_version or DEFAULT_VERSION).strip()


def parse_installed(file_names: Iterable[str]) -> InstalledMods:
    """Build the installed mod view from a directory listing.

    The listing is sorted first, so for duplicate names the version from the
    lexicographically last file wins ("Foo - V2" beats "Foo - V1", but note
    "Foo - V10" loses to "Foo - V9").
    """
    installed = InstalledMods()
    for filename in sorted(file_names):
        parsed = parse_pak_filename(filename)
        if parsed is None:
            continue
        name, version = parsed
        installed.add(name, version)
    return installed


def read_installed(mods_dir: Path) -> InstalledMods:
    """List the mods directory and parse the pak filenames in it."""
    try:
        file_names = os.listdir(mods_dir)
    except OSError as e:
        raise DirectoryReadError(f"Cannot read mods directory {mods_dir}: {e}") from e

    installed = parse_installed(file_names)
    logger.debug(
        "Found %d installed mods in %s (%d files)", len(installed), mods_dir, len(file_names)
    )
    return installed
