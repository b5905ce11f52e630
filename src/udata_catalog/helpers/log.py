"""Configure Rich console + file logging, and the log capability handed to operations."""

import logging
from abc import ABC, abstractmethod

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn

from udata_catalog.settings import LOG_PATH

terminal = Console()

_ready = False


def init_logging(level: int = logging.INFO) -> logging.Logger:
    """Set up the 'udata_catalog' logger (idempotent)."""
    global _ready

    logger = logging.getLogger("udata_catalog")
    if _ready:
        return logger

    logger.setLevel(level)

    # Pretty console output via Rich
    ch = RichHandler(console=terminal, show_path=False, markup=True)
    ch.setLevel(level)

    # Persistent log file
    fh = logging.FileHandler(LOG_PATH, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s - %(message)s"))

    logger.addHandler(ch)
    logger.addHandler(fh)

    _ready = True
    return logger


class PluginLog(ABC):
    """Reporting capability passed explicitly into every catalog operation."""

    @abstractmethod
    def info(self, msg: str, extra: dict | None = None) -> None:
        """Informational message."""

    @abstractmethod
    def warning(self, msg: str, extra: dict | None = None) -> None:
        """Something unexpected that does not stop the operation."""

    @abstractmethod
    def error(self, msg: str, extra: dict | None = None) -> None:
        """A failure, usually followed by an exception."""

    @abstractmethod
    def step(self, msg: str) -> None:
        """Start of a new phase of the operation."""

    @abstractmethod
    def task(self, key: str, msg: str, total: int) -> None:
        """Declare a countable task."""

    @abstractmethod
    def progress(self, key: str, progress: int, total: int | None = None) -> None:
        """Advance a task declared with :meth:`task`."""


class ConsoleLog(PluginLog):
    """Route operation messages to the 'udata_catalog' logger.

    Tasks are rendered as Rich progress bars on the shared terminal.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger("udata_catalog")
        self._bars: Progress | None = None
        self._tasks: dict[str, TaskID] = {}

    def info(self, msg: str, extra: dict | None = None) -> None:
        self._emit(logging.INFO, msg, extra)

    def warning(self, msg: str, extra: dict | None = None) -> None:
        self._emit(logging.WARNING, msg, extra)

    def error(self, msg: str, extra: dict | None = None) -> None:
        self._emit(logging.ERROR, msg, extra)

    def _emit(self, level: int, msg: str, extra: dict | None) -> None:
        if extra:
            self._log.log(level, "%s %s", msg, extra)
        else:
            self._log.log(level, "%s", msg)

    def step(self, msg: str) -> None:
        self._log.info("[bold underline]%s[/bold underline]", msg)

    def task(self, key: str, msg: str, total: int) -> None:
        if self._bars is None:
            self._bars = Progress(
                TextColumn("[cyan]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=terminal,
                transient=False,
            )
            self._bars.start()
        self._tasks[key] = self._bars.add_task(f"{key}: {msg}", total=total)

    def progress(self, key: str, progress: int, total: int | None = None) -> None:
        if self._bars is None or key not in self._tasks:
            return
        task_id = self._tasks[key]
        self._bars.update(task_id, completed=progress, total=total)
        if self._bars.finished:
            self._bars.stop()
            self._bars = None
            self._tasks.clear()
