"""Console output: rich logging, export progress and the end-of-run summary."""

import logging
from collections import Counter, deque
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, cast

from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

if TYPE_CHECKING:
    from src.models.export_summary import ExportIssuesSummary

SUCCESS = 25
NOTICE = 21

_CUSTOM_LEVELS = {"SUCCESS": SUCCESS, "NOTICE": NOTICE}

_FILE_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"

_OUTCOME_STYLES = {
    "exported": "green",
    "skipped": "dim",
    "unmapped": "yellow",
    "failed": "bold red",
}


class ExportLogger(Protocol):
    """The ``export`` logger with the SUCCESS and NOTICE levels attached."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def notice(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def success(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


console = Console(
    theme=Theme(
        {
            "logging.level.notice": "cyan",
            "logging.level.success": "bold green",
            "logging.level.warning": "yellow",
            "logging.level.error": "bold red",
        },
    ),
)


def _log_method(level: int):
    def log(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(level):
            self._log(level, message, args, stacklevel=2, **kwargs)

    return log


def _numeric_level(level: str) -> int:
    name = level.upper()
    if name in _CUSTOM_LEVELS:
        return _CUSTOM_LEVELS[name]
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(level: str = "INFO", log_file: Path | str | None = None) -> ExportLogger:
    """Send all log records to the rich console and, optionally, a log file.

    Args:
        level: Level name, including the custom NOTICE and SUCCESS levels
        log_file: File that receives the same records in plain text

    Returns:
        The ``export`` logger

    """
    for name, value in _CUSTOM_LEVELS.items():
        logging.addLevelName(value, name)
    setattr(logging.Logger, "success", _log_method(SUCCESS))
    setattr(logging.Logger, "notice", _log_method(NOTICE))

    numeric_level = _numeric_level(level)
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, markup=False, log_time_format="[%X]"),
    ]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(numeric_level)
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, format="%(message)s", handlers=handlers, force=True)

    logger = logging.getLogger("export")
    logger.debug("Logging at %s, log file: %s", logging.getLevelName(numeric_level), log_file)
    return cast("ExportLogger", logger)


class ExportProgress:
    """Progress bar over the items of a run, with a tally of item outcomes.

    Use as a context manager; outside of one, outcomes are only counted.
    """

    def __init__(self, total: int, description: str = "Exporting items", recent: int = 5) -> None:
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        self.task_id = self.progress.add_task(description, total=total)
        self.outcomes: Counter[str] = Counter()
        self.recent: deque[tuple[str, str]] = deque(maxlen=recent)
        self.live: Live | None = None

    def __enter__(self) -> "ExportProgress":
        self.live = Live(self._render(), console=console, refresh_per_second=4)
        self.live.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None

    @property
    def completed(self) -> int:
        return sum(self.outcomes.values())

    def record(self, key: str, outcome: str) -> None:
        """Count one processed item under ``outcome``."""
        self.outcomes[outcome] += 1
        self.recent.append((key, outcome))
        self.progress.advance(self.task_id)
        if self.live is not None:
            self.live.update(self._render())

    def _render(self) -> Panel:
        tally = "  ".join(f"{outcome}: {count}" for outcome, count in sorted(self.outcomes.items()))
        recent = Table.grid(padding=(0, 1))
        for key, outcome in self.recent:
            recent.add_row(Text(key, style=_OUTCOME_STYLES.get(outcome, "")), Text(outcome, style="dim"))
        return Panel.fit(
            Group(self.progress, Text(tally or "waiting for items", style="dim"), recent),
            title="Export",
            border_style="blue",
        )


def build_summary_table(summary: "ExportIssuesSummary") -> Table:
    """Render the unmapped types, states and users of a run as a table."""
    table = Table(title="Export summary", show_lines=False)
    table.add_column("Category", style="bold")
    table.add_column("Work item type")
    table.add_column("Value")

    for issue_type in sorted(summary.unmapped_issue_types):
        table.add_row("Unmapped issue type", "", issue_type)
    for wi_type, states in sorted(summary.unmapped_issue_states.items()):
        for state in sorted(states):
            table.add_row("Unmapped state", wi_type, state)
    for user in sorted(summary.unmapped_users):
        table.add_row("Unmapped user", "", user)

    return table


def print_export_summary(summary: "ExportIssuesSummary") -> None:
    """Print the end-of-run summary to the console."""
    if summary.is_empty():
        console.print(Text("Export finished without unmapped types, states or users.", style="bold green"))
        return
    console.print(build_summary_table(summary))
