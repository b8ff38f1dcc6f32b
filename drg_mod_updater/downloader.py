"""Concurrent mod file downloads with progress tracking."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import requests

from .concurrency import join_settled
from .config import CHUNK_SIZE, USER_AGENT
from .errors import DownloadError, ProbeError, UpdaterError, WriteError
from .progress import (
    FileDoneEvent,
    FileProgressEvent,
    ProgressCallback,
    SerializedCallback,
    noop_progress,
)
from .registry import RemoteModEntry

logger = logging.getLogger(__name__)


@dataclass
class DownloadTask:
    """One outdated mod and where its new pak goes."""

    entry: RemoteModEntry
    target_path: Path

    @property
    def filename(self) -> str:
        return self.target_path.name

    @classmethod
    def for_entry(cls, entry: RemoteModEntry, mods_dir: Path) -> "DownloadTask":
        return cls(entry=entry, target_path=Path(mods_dir) / entry.pak_filename)


@dataclass
class DownloadOutcome:
    """Result of one download task."""

    task: DownloadTask
    success: bool
    error: Exception | None = None
    bytes_written: int = 0


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial download %s: %s", path, e)


class _CompletionCounter:
    def __init__(self, total: int):
        self.total = total
        self.finished: set[str] = set()


class Downloader:
    """Downloads mod paks into the mods directory, all at once."""

    def __init__(
        self,
        session: requests.Session | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.on_progress = SerializedCallback(on_progress or noop_progress)
        self._lock = threading.Lock()

    def probe_size(self, url: str) -> int | None:
        """
        Ask the server for the file size with a HEAD request.

        Returns None when the server does not send a usable content-length.
        Raises ProbeError if the request itself fails.
        """
        try:
            response = self.session.head(url, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProbeError(f"Size probe failed for {url}: {e}") from e

        content_length = response.headers.get("content-length")
        if content_length is None or not content_length.isdigit():
            return None
        return int(content_length)

    def download_mod(self, task: DownloadTask) -> int:
        """
        Stream one mod file to its target path.

        The body is written to a hidden temp file next to the target and
        renamed into place once complete.

        Returns the number of bytes written.
        """
        url = task.entry.download_url
        filename = task.filename

        try:
            total_size = self.probe_size(url)
        except ProbeError as e:
            logger.warning("%s; progress for %s will be indeterminate", e, filename)
            total_size = None

        self.on_progress(FileProgressEvent(filename=filename, transferred=0, total=total_size))

        try:
            response = self.session.get(url, stream=True)
        except requests.RequestException as e:
            raise DownloadError(f"Failed to download {filename}: {e}") from e

        temp_path = task.target_path.with_name(f".downloading_{filename}")
        bytes_downloaded = 0
        try:
            response.raise_for_status()
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        bytes_downloaded += len(chunk)
                        self.on_progress(
                            FileProgressEvent(
                                filename=filename,
                                transferred=bytes_downloaded,
                                total=total_size,
                            )
                        )
            temp_path.replace(task.target_path)
        # RequestException is an OSError subclass, so it has to come first
        except requests.RequestException as e:
            _discard(temp_path)
            raise DownloadError(f"Failed to download {filename}: {e}") from e
        except OSError as e:
            _discard(temp_path)
            raise WriteError(f"Failed to write {task.target_path}: {e}") from e
        except Exception:
            _discard(temp_path)
            raise
        finally:
            response.close()

        return bytes_downloaded

    def _finish(self, outcome: DownloadOutcome, counter: _CompletionCounter) -> None:
        with self._lock:
            # A task whose first report failed must not be counted twice
            if outcome.task.filename in counter.finished:
                return
            counter.finished.add(outcome.task.filename)
            self.on_progress(
                FileDoneEvent(
                    filename=outcome.task.filename,
                    success=outcome.success,
                    completed=len(counter.finished),
                    total=counter.total,
                    error=str(outcome.error) if outcome.error else "",
                )
            )

    def _run_task(self, task: DownloadTask, counter: _CompletionCounter) -> DownloadOutcome:
        try:
            size = self.download_mod(task)
        except UpdaterError as e:
            logger.error("%s", e)
            outcome = DownloadOutcome(task=task, success=False, error=e)
        else:
            logger.info("Downloaded %s (%d bytes)", task.filename, size)
            outcome = DownloadOutcome(task=task, success=True, bytes_written=size)
        self._finish(outcome, counter)
        return outcome

    def download_all(
        self, entries: Sequence[RemoteModEntry], mods_dir: Path
    ) -> list[DownloadOutcome]:
        """
        Download every entry concurrently and wait for all of them.

        A failed download never stops the others. Outcomes are returned in
        the same order as ``entries``.
        """
        tasks = [DownloadTask.for_entry(entry, mods_dir) for entry in entries]
        counter = _CompletionCounter(len(tasks))

        settled = join_settled(
            [lambda task=task: self._run_task(task, counter) for task in tasks]
        )

        outcomes = []
        for task, result in zip(tasks, settled):
            if result.ok:
                outcomes.append(result.value)
                continue
            logger.error("Unexpected error downloading %s", task.filename, exc_info=result.error)
            outcome = DownloadOutcome(task=task, success=False, error=result.error)
            self._finish(outcome, counter)
            outcomes.append(outcome)
        return outcomes
