"""Progress and diagnostic lines printed while indexing."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from .classify import ResultTally
from .text import Messages, Styles
from .utils import format_elapsed


def styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


class ProgressReporter:
    """Render indexing diagnostics on a rich console.

    Paths are escaped so bracketed file names are not read as markup.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def _print(self, text: str, style: str) -> None:
        self.console.print(styled(text, style), soft_wrap=True)

    def read_progress(self, count: int) -> None:
        self._print(Messages.INFO_READ_PROGRESS.format(count=count), Styles.INFO)

    def processed(self, count: int, tally: ResultTally) -> None:
        self._print(
            Messages.INFO_PROCESSED.format(count=count, tally=tally.describe()),
            Styles.INFO,
        )

    def running_long(self, path: str, elapsed: float) -> None:
        self._print(
            Messages.WARNING_RUNNING_LONG.format(elapsed=format_elapsed(elapsed), path=escape(path)),
            Styles.WARNING,
        )

    def abandoned(self, path: str, elapsed: float) -> None:
        self._print(
            Messages.WARNING_ABANDONED.format(elapsed=format_elapsed(elapsed), path=escape(path)),
            Styles.ERROR,
        )

    def finished_long(self, path: str, elapsed: float) -> None:
        self._print(
            Messages.WARNING_FINISHED_LONG.format(elapsed=format_elapsed(elapsed), path=escape(path)),
            Styles.WARNING,
        )

    def waiting(self, running: int) -> None:
        self._print(Messages.WARNING_WAITING.format(running=running), Styles.WARNING)

    def unit_failed(self, path: str, error: BaseException) -> None:
        self._print(
            Messages.WARNING_UNIT_FAILED.format(path=escape(path), reason=escape(str(error))),
            Styles.ERROR,
        )

    def walk_error(self, path: str, error: BaseException) -> None:
        self._print(
            Messages.WARNING_WALK_ERROR.format(path=escape(path), reason=escape(str(error))),
            Styles.WARNING,
        )

    def draining(self) -> None:
        self._print(Messages.INFO_DRAINING, Styles.INFO)

    def removing(self, total: int) -> None:
        self._print(Messages.INFO_REMOVING.format(total=total), Styles.INFO)

    def removed(self, count: int, total: int) -> None:
        self._print(Messages.INFO_REMOVED.format(count=count, total=total), Styles.INFO)
