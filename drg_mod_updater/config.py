"""Runtime configuration for drg-mod-updater."""

from dataclasses import dataclass
from pathlib import Path

REGISTRY_URL = "https://raw.githubusercontent.com/ArcticEcho/DRG-Mods/main/Mod%20Index.json"
PAK_SUBPATH = Path("FSD") / "Content" / "Paks"
USER_AGENT = "drg-mod-updater/0.1.0"
CHUNK_SIZE = 8192
REGISTRY_ENVVAR = "DRG_MOD_REGISTRY"


@dataclass
class UpdaterConfig:
    """Settings for a single update run."""

    mods_dir: Path
    registry_url: str = REGISTRY_URL
