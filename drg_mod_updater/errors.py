"""Exception hierarchy for drg-mod-updater."""


class UpdaterError(Exception):
    """Base exception for updater errors."""

    pass


class GameDirError(UpdaterError):
    """Raised when the game or mods directory cannot be resolved."""

    pass


class RegistryFetchError(UpdaterError):
    """Raised when the remote mod registry cannot be fetched or parsed."""

    pass


class DirectoryReadError(UpdaterError):
    """Raised when the mods directory cannot be listed."""

    pass


class ProbeError(UpdaterError):
    """Raised when the size probe for a download fails."""

    pass


class DownloadError(UpdaterError):
    """Raised when a mod file download fails."""

    pass


class WriteError(UpdaterError):
    """Raised when a downloaded mod file cannot be written to disk."""

    pass
