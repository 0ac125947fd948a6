"""Main CLI entry point for curriculum-eval."""

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape

from curriculum_eval import __version__
from curriculum_eval.config import CurriculumEvalConfig, load_config
from curriculum_eval.config.defaults import DEFAULT_OUTPUT_DIR, DEFAULT_WATCH_INTERVAL
from curriculum_eval.connection import create_connection
from curriculum_eval.context import (
    ContextRegistry,
    CurriculumLoader,
    CurriculumWatcher,
    build_link_index,
    find_broken_links,
)
from curriculum_eval.errors import CurriculumEvalError
from curriculum_eval.evaluators.example_runner import format_test_result
from curriculum_eval.models.bundle import CurriculumBundle
from curriculum_eval.models.results import CurriculumTestReport
from curriculum_eval.orchestration import CurriculumTestRunner, ProgressTracker
from curriculum_eval.output import BundleWriter, CSVWriter, MarkdownWriter
from curriculum_eval.utils.logging import setup_logging

app = typer.Typer(
    name="curriculum-eval",
    help="Validate runnable TypeQL examples embedded in curriculum markdown.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"curriculum-eval version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Curriculum Example Evaluation.

    Parse lesson markdown, bundle it with its contexts, and check every
    example against TypeDB.
    """
    pass


ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]

RootOption = Annotated[
    Optional[Path],
    typer.Option(
        "--root",
        "-r",
        help="Curriculum content directory.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
]

OutputOption = Annotated[
    Optional[Path],
    typer.Option(
        "--output",
        "-o",
        help="Output directory for generated files.",
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        help="Verbosity level (0=quiet, 1=normal, 2=verbose, 3=debug).",
        min=0,
        max=3,
        count=True,
    ),
]

LogFileOption = Annotated[
    Optional[Path],
    typer.Option(
        "--log-file",
        help="Also write DEBUG logs to this file.",
        dir_okay=False,
    ),
]


def _content_root(cfg: CurriculumEvalConfig) -> Path:
    """Content root from CLI or config, or exit with an error."""
    if cfg.content.root is None:
        console.print("[bold red]Error:[/bold red] No content root given (use --root or the config file)")
        sys.exit(2)
    return cfg.content.root


def _output_dir(cfg: CurriculumEvalConfig) -> Path:
    return cfg.output_path or Path(DEFAULT_OUTPUT_DIR)


def _loader(cfg: CurriculumEvalConfig) -> CurriculumLoader:
    return CurriculumLoader(
        _content_root(cfg),
        contexts_dir=cfg.content.contexts_dir,
        language=cfg.content.language,
    )


def _setup_logging(cfg: CurriculumEvalConfig, show_time: bool = False) -> None:
    setup_logging(
        verbosity=cfg.output.verbosity,
        log_file=cfg.output.log_file,
        show_time=show_time,
    )


def _fail(e: Exception, verbose: int) -> None:
    console.print(f"\n[bold red]Error:[/bold red] {e}")
    if verbose >= 2:
        console.print_exception()
    sys.exit(1)


@app.command()
def build(
    root: RootOption = None,
    output: OutputOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    log_file: LogFileOption = None,
) -> None:
    """Parse all content and write the curriculum bundle as JSON.

    Example:
        curriculum-eval build --root ./docs/curriculum --output ./dist
    """
    cfg = load_config(
        config_path=config, root=root, output=output, verbose=verbose, log_file=log_file
    )
    _setup_logging(cfg)

    try:
        bundle = asyncio.run(_loader(cfg).load())
    except CurriculumEvalError as e:
        _fail(e, verbose)

    tracker = ProgressTracker(console=console, show_progress=False)
    tracker.display_bundle_summary(bundle)

    path = BundleWriter(_output_dir(cfg), cfg.output.bundle_filename).write(bundle)
    console.print()
    console.print(f"[bold]Bundle:[/bold] {path}")


@app.command()
def check(
    root: RootOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    log_file: LogFileOption = None,
) -> None:
    """Check content for authoring problems without running anything.

    Reports parse warnings, duplicate example ids, unresolved contexts and
    broken cross-links. Exits with code 1 on duplicate ids or broken links.

    Example:
        curriculum-eval check --root ./docs/curriculum
    """
    cfg = load_config(config_path=config, root=root, verbose=verbose, log_file=log_file)
    _setup_logging(cfg)

    try:
        bundle = asyncio.run(_loader(cfg).load())
    except CurriculumEvalError as e:
        _fail(e, verbose)

    if not _report_problems(bundle):
        sys.exit(1)
    console.print("[bold green]✓[/] No blocking problems found")


def _report_problems(bundle: CurriculumBundle) -> bool:
    """Print content problems. Returns False if any are blocking."""
    for warning in bundle.diagnostics:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}", highlight=False)

    for context, section_ids in bundle.unresolved_contexts().items():
        console.print(
            f"[yellow]Warning:[/yellow] Context '{context}' not found "
            f"(used by {', '.join(section_ids)})"
        )

    duplicates = bundle.duplicate_example_ids()
    for example_id, locations in duplicates.items():
        console.print(
            f"[red]Duplicate example id[/red] '{escape(example_id)}': "
            f"{', '.join(str(loc) for loc in locations)}"
        )

    broken = find_broken_links(build_link_index(bundle.sections), bundle.sections)
    for link in broken:
        console.print(f"[red]Broken link[/red] {escape(str(link))}", highlight=False)

    console.print(
        f"{bundle.metadata.total_sections} sections, {bundle.metadata.total_examples} examples, "
        f"{len(duplicates)} duplicate ids, {len(broken)} broken links"
    )
    return not duplicates and not broken


@app.command()
def test(
    root: RootOption = None,
    output: OutputOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    log_file: LogFileOption = None,
    address: Annotated[
        Optional[str],
        typer.Option(
            "--address",
            "-a",
            help="TypeDB HTTP address (e.g. http://localhost:8000).",
        ),
    ] = None,
    context: Annotated[
        Optional[str],
        typer.Option(
            "--context",
            help="Only run sections using this context ('default' for none).",
        ),
    ] = None,
    prefix: Annotated[
        Optional[str],
        typer.Option(
            "--prefix",
            "-p",
            help="Only run sections whose id starts with this prefix.",
        ),
    ] = None,
    keep_databases: Annotated[
        bool,
        typer.Option(
            "--keep-databases",
            help="Leave lesson databases in place after the run.",
        ),
    ] = False,
) -> None:
    """Run every example against TypeDB and report the verdicts.

    Exits with code 1 if any example fails.

    Example:
        curriculum-eval test --root ./docs/curriculum --address http://localhost:8000
    """
    cfg = load_config(
        config_path=config,
        root=root,
        output=output,
        address=address,
        context=context,
        prefix=prefix,
        keep_databases=keep_databases or None,
        verbose=verbose,
        log_file=log_file,
    )
    _setup_logging(cfg)
    content_root = _content_root(cfg)

    console.print("[bold green]Running curriculum examples[/bold green]")
    console.print(f"  Content: {content_root}")
    console.print(f"  TypeDB:  {cfg.database.address}")
    console.print()

    tracker = ProgressTracker(console=console, show_progress=verbose < 2)
    try:
        report = asyncio.run(_run_examples(cfg, tracker))
    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        _fail(e, verbose)

    tracker.finish(report)
    tracker.display_summary_table(report)

    for failure in report.failures():
        console.print(format_test_result(failure), markup=False, highlight=False)

    output_dir = _output_dir(cfg)
    csv_path = CSVWriter(output_dir, cfg.output.csv_filename).write(report)
    report_path = MarkdownWriter(output_dir, cfg.output.report_filename).write(report)
    console.print()
    console.print("[bold]Output files:[/bold]")
    console.print(f"  CSV:    {csv_path}")
    console.print(f"  Report: {report_path}")

    if not report.all_passed:
        sys.exit(1)


async def _run_examples(cfg: CurriculumEvalConfig, tracker: ProgressTracker) -> CurriculumTestReport:
    """Load content and run it against the configured server."""
    bundle = await _loader(cfg).load()
    connection = create_connection(cfg.database)
    try:
        runner = CurriculumTestRunner(
            connection,
            ContextRegistry.from_bundle(bundle),
            database_prefix=cfg.runner.database_prefix,
            keep_databases=cfg.runner.keep_databases,
        )
        return await runner.run(
            bundle.sections,
            context_filter=cfg.runner.context_filter,
            section_prefix=cfg.runner.section_prefix,
            progress_callback=tracker.update,
            content_root=str(cfg.content.root),
        )
    finally:
        await connection.close()


@app.command()
def watch(
    root: RootOption = None,
    output: OutputOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    log_file: LogFileOption = None,
    interval: Annotated[
        float,
        typer.Option(
            "--interval",
            "-i",
            help="Seconds between checks for changed files.",
            min=0.1,
        ),
    ] = DEFAULT_WATCH_INTERVAL,
) -> None:
    """Rebuild the bundle JSON whenever content files change.

    Example:
        curriculum-eval watch --root ./docs/curriculum --output ./dist
    """
    cfg = load_config(
        config_path=config, root=root, output=output, verbose=verbose, log_file=log_file
    )
    _setup_logging(cfg, show_time=True)

    watcher = CurriculumWatcher(_loader(cfg))
    writer = BundleWriter(_output_dir(cfg), cfg.output.bundle_filename)

    console.print(f"[bold green]Watching[/bold green] {watcher.content_root} (Ctrl+C to stop)")
    try:
        asyncio.run(watcher.watch(interval=interval, on_reload=writer.write))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
