"""Game directory detection and mods path resolution."""

import re
from pathlib import Path

from .config import PAK_SUBPATH
from .errors import GameDirError

DRG_STEAM_APP_ID = "548430"

# Common Steam install locations
STEAM_PATHS = [
    Path.home() / ".steam" / "debian-installation",
    Path.home() / ".steam" / "steam",
    Path.home() / ".local" / "share" / "Steam",
    Path("/usr/share/steam"),
    Path("C:/Program Files (x86)/Steam"),
    Path("C:/Program Files/Steam"),
]


def find_steam_root(candidates: list[Path] | None = None) -> Path | None:
    """Find the Steam installation root directory."""
    for path in candidates if candidates is not None else STEAM_PATHS:
        vdf = path / "config" / "libraryfolders.vdf"
        if vdf.exists():
            return path
    return None


def parse_library_folders(steam_root: Path) -> list[Path]:
    """Parse libraryfolders.vdf to get all Steam library paths."""
    vdf_path = steam_root / "config" / "libraryfolders.vdf"
    if not vdf_path.exists():
        return []

    text = vdf_path.read_text()
    paths = []
    # Match "path" values in Valve KV1 format; Windows paths escape backslashes
    for match in re.finditer(r'"path"\s+"([^"]+)"', text):
        lib_path = Path(match.group(1).replace("\\\\", "\\"))
        if lib_path.exists():
            paths.append(lib_path)

    return paths


def find_game_dir(candidates: list[Path] | None = None) -> Path | None:
    """Find the Deep Rock Galactic install directory in the Steam libraries."""
    steam_root = find_steam_root(candidates)
    if not steam_root:
        return None

    for lib_path in parse_library_folders(steam_root):
        manifest = lib_path / "steamapps" / f"appmanifest_{DRG_STEAM_APP_ID}.acf"
        if manifest.exists():
            match = re.search(r'"installdir"\s+"([^"]+)"', manifest.read_text())
            if match:
                game_dir = lib_path / "steamapps" / "common" / match.group(1)
                if game_dir.exists():
                    return game_dir

    return None


def resolve_mods_dir(path: Path) -> Path:
    """
    Resolve the Paks directory from a game directory argument.

    A path that already points into Paks is used as is; anything else is
    treated as the game root and FSD/Content/Paks is appended.
    """
    path = Path(path).expanduser().resolve()
    if not path.exists():
        raise GameDirError(f"Directory does not exist: {path}")

    mods_dir = path if "Paks" in path.parts else path / PAK_SUBPATH
    if not mods_dir.is_dir():
        raise GameDirError(
            f"No Paks directory found at {mods_dir}. "
            "Please provide the Deep Rock Galactic installation directory."
        )
    return mods_dir
