"""Client for the community mod registry."""

import locale
import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from .config import REGISTRY_URL, USER_AGENT
from .errors import RegistryFetchError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("DisplayName", "Version", "DownloadUrl")


@dataclass(frozen=True)
class RemoteModEntry:
    """One mod from the registry."""

    slug: str
    display_name: str
    version: str
    download_url: str
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def pak_filename(self) -> str:
        """Filename the downloaded pak is saved under."""
        return f"{self.display_name} - V{self.version} _P.pak"

    @classmethod
    def from_dict(cls, slug: str, data: dict[str, Any]) -> "RemoteModEntry":
        return cls(
            slug=slug,
            display_name=str(data["DisplayName"]),
            version=str(data["Version"]),
            download_url=str(data["DownloadUrl"]),
            extra={k: v for k, v in data.items() if k not in REQUIRED_FIELDS},
        )


class RegistryClient:
    """Fetches the mod index JSON (slug -> entry)."""

    def __init__(self, url: str = REGISTRY_URL, session: requests.Session | None = None):
        self.url = url
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def _get_json(self) -> Any:
        try:
            response = self.session.get(self.url)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RegistryFetchError(f"Failed to fetch mod registry from {self.url}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise RegistryFetchError(f"Mod registry is not valid JSON: {e}") from e

    def fetch(self) -> dict[str, RemoteModEntry]:
        """
        Fetch the registry.

        A partial registry is never returned: any entry that is not an
        object or lacks DisplayName, Version or DownloadUrl makes the whole
        registry unusable.

        Raises RegistryFetchError.
        """
        data = self._get_json()
        if not isinstance(data, dict):
            raise RegistryFetchError(
                f"Unexpected registry format: expected an object, got {type(data).__name__}"
            )

        entries: dict[str, RemoteModEntry] = {}
        for slug, item in data.items():
            if not isinstance(item, dict):
                raise RegistryFetchError(f"Malformed registry entry {slug!r}: not an object")
            missing = [f for f in REQUIRED_FIELDS if f not in item]
            if missing:
                raise RegistryFetchError(
                    f"Malformed registry entry {slug!r}: missing {', '.join(missing)}"
                )
            entries[slug] = RemoteModEntry.from_dict(slug, item)

        logger.debug("Fetched %d registry entries from %s", len(entries), self.url)
        return entries


def _display_name_key(entry: RemoteModEntry) -> tuple[str, str]:
    return (locale.strxfrm(entry.display_name.casefold()), entry.display_name)


def sort_registry(entries: dict[str, RemoteModEntry]) -> list[RemoteModEntry]:
    """Flatten the registry into a list ordered by display name."""
    return sorted(entries.values(), key=_display_name_key)
