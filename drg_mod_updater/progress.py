"""Progress events and display sinks."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Union

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepEvent:
    """A stage of the run started or finished."""

    step: str
    message: str
    completed: int
    total: int
    kind: str = "step"


@dataclass(frozen=True)
class FileProgressEvent:
    """Bytes written so far for one download. ``total`` is None when unknown."""

    filename: str
    transferred: int
    total: int | None
    kind: str = "file-progress"


@dataclass(frozen=True)
class FileDoneEvent:
    """A download reached a terminal state."""

    filename: str
    success: bool
    completed: int
    total: int
    error: str = ""
    kind: str = "file-done"


ProgressEvent = Union[StepEvent, FileProgressEvent, FileDoneEvent]
ProgressCallback = Callable[[ProgressEvent], None]


def noop_progress(event: ProgressEvent) -> None:
    pass


class SerializedCallback:
    """Wraps a callback so events from worker threads are delivered one at a time."""

    def __init__(self, callback: ProgressCallback):
        self._callback = callback
        self._lock = threading.Lock()

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            try:
                self._callback(event)
            except Exception:
                # A broken display must not fail the download that reported to it
                logger.exception("Progress listener failed on %s event", event.kind)


class RichProgressSink:
    """Renders progress events as rich progress bars."""

    def __init__(self, console: Console | None = None):
        self.progress = Progress(
            TextColumn("[bold blue]{task.fields[filename]}", justify="right"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
        )
        self._steps: TaskID | None = None
        self._downloads: TaskID | None = None
        self._files: dict[str, TaskID] = {}
        self._transferred: dict[str, int] = {}

    def __enter__(self) -> "RichProgressSink":
        self.progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.progress.stop()

    def __call__(self, event: ProgressEvent) -> None:
        if isinstance(event, StepEvent):
            self._on_step(event)
        elif isinstance(event, FileProgressEvent):
            self._on_file_progress(event)
        elif isinstance(event, FileDoneEvent):
            self._on_file_done(event)

    def _on_step(self, event: StepEvent) -> None:
        if self._steps is None:
            self._steps = self.progress.add_task(
                "steps", filename="Checking mods", total=event.total
            )
        self.progress.update(self._steps, completed=event.completed, total=event.total)

    def _file_task(self, filename: str) -> TaskID:
        task_id = self._files.get(filename)
        if task_id is None:
            # Truncate long names
            task_id = self.progress.add_task("download", filename=filename[:40], total=None)
            self._files[filename] = task_id
        return task_id

    def _on_file_progress(self, event: FileProgressEvent) -> None:
        task_id = self._file_task(event.filename)
        self._transferred[event.filename] = event.transferred
        self.progress.update(task_id, completed=event.transferred, total=event.total)

    def _on_file_done(self, event: FileDoneEvent) -> None:
        if self._downloads is None:
            self._downloads = self.progress.add_task(
                "downloads", filename="Mods updated", total=event.total
            )
        self.progress.update(self._downloads, completed=event.completed)

        task_id = self._file_task(event.filename)
        if event.success:
            size = self._transferred.get(event.filename) or 1
            self.progress.update(task_id, total=size, completed=size)
        else:
            self.progress.console.print(f"[red]Error:[/red] {event.error}")
