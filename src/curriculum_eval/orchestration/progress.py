"""Progress tracking with Rich console output."""

import logging
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from curriculum_eval.models.bundle import CurriculumBundle
from curriculum_eval.models.results import CurriculumTestReport

logger = logging.getLogger("curriculum_eval.orchestration.progress")


class ProgressTracker:
    """Tracks and displays example run progress using Rich."""

    def __init__(
        self,
        console: Optional[Console] = None,
        show_progress: bool = True,
    ):
        """Initialize the progress tracker.

        Args:
            console: Rich console for output (created if not provided).
            show_progress: Whether to show progress bar.
        """
        self._console = console or Console()
        self._show_progress = show_progress
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None
        self._total = 0
        self._completed = 0

    @property
    def completed(self) -> int:
        return self._completed

    def set_total(self, total: int) -> None:
        """Set the total number of examples to run."""
        self._total = total
        self._completed = 0

        if self._show_progress:
            self._create_progress_bar()

    def _create_progress_bar(self) -> None:
        """Create and start the progress bar."""
        if self._progress is not None:
            self._progress.update(self._task_id, total=self._total, completed=0)
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("•"),
            TimeElapsedColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Running examples", total=self._total)

    def update(self, completed: int, total: int, current_item: str = "") -> None:
        """Update progress.

        Signature matches the runner's progress callback.

        Args:
            completed: Number of completed examples.
            total: Total number of examples.
            current_item: Id of the example that just finished.
        """
        if total != self._total:
            self.set_total(total)
        self._completed = completed

        if self._progress and self._task_id is not None:
            display_item = current_item
            if len(display_item) > 50:
                display_item = "..." + display_item[-47:]

            description = f"Ran: {display_item}" if current_item else "Running examples"
            self._progress.update(self._task_id, completed=completed, description=description)

    def finish(self, report: Optional[CurriculumTestReport] = None) -> None:
        """Stop the progress bar and print a short summary."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task_id = None

        self._console.print()
        if report is None:
            self._console.print(f"[bold green]✓ Completed:[/] {self._completed} examples")
            return

        self._console.print(f"[bold green]✓ Passed:[/] {report.passed_examples} examples")
        if report.failed_examples > 0:
            self._console.print(f"[bold red]✗ Failed:[/] {report.failed_examples} examples")

    def display_bundle_summary(self, bundle: CurriculumBundle) -> None:
        """Display a table of sections in a bundle."""
        table = Table(title="Curriculum Summary")

        table.add_column("Section", style="cyan", max_width=40)
        table.add_column("Context")
        table.add_column("Examples", justify="right")
        table.add_column("Source", max_width=40)

        for section in bundle.sections:
            table.add_row(
                section.id,
                section.context or "-",
                str(section.example_count),
                section.source_file,
            )

        self._console.print(table)
        self._console.print(
            f"{bundle.metadata.total_sections} sections, "
            f"{bundle.metadata.total_examples} examples, "
            f"{len(bundle.contexts)} contexts"
        )

    def display_summary_table(self, report: CurriculumTestReport) -> None:
        """Display per-context results of a run."""
        if not report.groups:
            self._console.print("[yellow]No examples were run[/]")
            return

        table = Table(title="Example Results")

        table.add_column("Context", style="cyan")
        table.add_column("Sections", justify="right")
        table.add_column("Passed", justify="right")
        table.add_column("Failed", justify="right")

        for group in report.groups:
            failed = sum(1 for e in group.examples if not e.passed)
            table.add_row(
                group.context,
                str(len(group.sections)),
                str(len(group.examples) - failed),
                f"[red]{failed}[/]" if failed > 0 else "0",
            )

        table.add_row(
            "[bold]Total[/]",
            str(len(report.sections)),
            str(report.passed_examples),
            f"[red]{report.failed_examples}[/]" if report.failed_examples > 0 else "0",
        )

        self._console.print(table)

    def print_status(self, message: str, style: str = "") -> None:
        """Print a status message."""
        if style:
            self._console.print(f"[{style}]{message}[/]")
        else:
            self._console.print(message)

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self._console.print(f"[bold red]Error:[/] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self._console.print(f"[bold yellow]Warning:[/] {message}")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(f"[bold green]✓[/] {message}")
