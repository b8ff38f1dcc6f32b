"""Service layer: the update run, separate from the CLI."""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import requests

from .concurrency import join_fail_fast
from .config import UpdaterConfig
from .downloader import DownloadOutcome, Downloader
from .errors import UpdaterError
from .installed import InstalledMods, read_installed
from .progress import ProgressCallback, SerializedCallback, StepEvent, noop_progress
from .reconcile import find_matching, find_outdated
from .registry import RegistryClient, RemoteModEntry, sort_registry

logger = logging.getLogger(__name__)

# registry fetch start/end, directory read start/end, finish
TOTAL_STEPS = 5


@dataclass
class CheckResult:
    registry: list[RemoteModEntry]
    installed: InstalledMods
    matching: list[RemoteModEntry]
    outdated: list[RemoteModEntry]


@dataclass
class Finished:
    """The run completed; some downloads may have failed."""

    updated_count: int
    outdated: list[RemoteModEntry] = field(default_factory=list)
    failures: list[DownloadOutcome] = field(default_factory=list)


@dataclass
class Aborted:
    """The run stopped before any download was attempted."""

    reason: str
    error: Exception | None = None


RunResult = Finished | Aborted


class _StepReporter:
    def __init__(self, callback: ProgressCallback):
        self._callback = SerializedCallback(callback)
        self._completed = 0
        self._lock = threading.Lock()

    def __call__(self, step: str, message: str) -> None:
        with self._lock:
            self._completed += 1
            self._callback(StepEvent(step, message, self._completed, TOTAL_STEPS))


class ModUpdater:
    """Checks installed mods against the registry and downloads updates."""

    def __init__(
        self,
        config: UpdaterConfig,
        session: requests.Session | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.on_progress = on_progress or noop_progress

    def _fetch_registry(self, step: _StepReporter) -> list[RemoteModEntry]:
        step("registry", "Fetching mod registry...")
        client = RegistryClient(self.config.registry_url, session=self.session)
        registry = sort_registry(client.fetch())
        step("registry", f"Fetched {len(registry)} registry entries")
        return registry

    def _read_installed(self, step: _StepReporter, mods_dir: Path) -> InstalledMods:
        step("installed", "Reading installed mods...")
        installed = read_installed(mods_dir)
        step("installed", f"Found {len(installed)} installed mods")
        return installed

    def _check(self, step: _StepReporter) -> CheckResult:
        mods_dir = self.config.mods_dir
        registry, installed = join_fail_fast(
            [
                lambda: self._fetch_registry(step),
                lambda: self._read_installed(step, mods_dir),
            ]
        )

        matching = find_matching(registry, installed)
        outdated = find_outdated(matching, installed)
        logger.info(
            "%d installed mods, %d in registry, %d outdated",
            len(installed),
            len(matching),
            len(outdated),
        )
        return CheckResult(
            registry=registry, installed=installed, matching=matching, outdated=outdated
        )

    def check(self) -> CheckResult:
        """Fetch the registry and installed mods and reconcile them, without downloading.

        Raises RegistryFetchError or DirectoryReadError.
        """
        return self._check(_StepReporter(noop_progress))

    def run(self) -> RunResult:
        """Run a full update: check, then download every outdated mod."""
        step = _StepReporter(self.on_progress)

        try:
            result = self._check(step)
        except UpdaterError as e:
            logger.error("Failed to get data: %s", e)
            return Aborted(reason=str(e), error=e)

        outcomes: list[DownloadOutcome] = []
        if result.outdated:
            downloader = Downloader(session=self.session, on_progress=self.on_progress)
            outcomes = downloader.download_all(result.outdated, self.config.mods_dir)

        failures = [o for o in outcomes if not o.success]
        updated = len(outcomes) - len(failures)
        if failures:
            logger.error("%d of %d downloads failed", len(failures), len(outcomes))

        step("finished", "Finished updating mods")
        return Finished(updated_count=updated, outdated=result.outdated, failures=failures)
