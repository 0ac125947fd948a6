"""Run every curriculum example, one throwaway database per context."""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from curriculum_eval.config.defaults import DEFAULT_CONTEXT_GROUP, DEFAULT_DATABASE_PREFIX
from curriculum_eval.connection.protocol import DatabaseConnection
from curriculum_eval.context.content_loader import load_curriculum
from curriculum_eval.context.registry import (
    ContextRegistry,
    create_database_with_context,
    lesson_database_name,
    reset_database,
)
from curriculum_eval.evaluators import example_runner
from curriculum_eval.models.results import (
    ContextGroupResult,
    CurriculumTestReport,
    ExampleTestResult,
    SectionTestResult,
)
from curriculum_eval.models.section import ParsedSection

logger = logging.getLogger("curriculum_eval.orchestration.runner")

# (completed, total, current item)
ProgressCallback = Callable[[int, int, str], None]


def group_sections_by_context(
    sections: Iterable[ParsedSection],
) -> dict[str, list[ParsedSection]]:
    """Group sections that have examples by context name.

    Sections without a context go to the "default" group. Groups and the
    sections within them keep input order.
    """
    groups: dict[str, list[ParsedSection]] = {}
    for section in sections:
        if not section.examples:
            continue
        groups.setdefault(section.context or DEFAULT_CONTEXT_GROUP, []).append(section)
    return groups


class CurriculumTestRunner:
    """Runs examples grouped by context against fresh databases.

    Each group gets its own database: created empty, seeded from its
    context when that context is registered, and dropped afterwards.
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        registry: ContextRegistry,
        database_prefix: str = DEFAULT_DATABASE_PREFIX,
        keep_databases: bool = False,
        run_id: Optional[str] = None,
    ):
        """Initialize the runner.

        Args:
            connection: Database connection used for every query.
            registry: Contexts available for setup.
            database_prefix: Prefix of the databases created per group.
            keep_databases: Leave databases in place after the run.
            run_id: Suffix making database names unique (random if omitted).
        """
        self._connection = connection
        self._registry = registry
        self._database_prefix = database_prefix
        self._keep_databases = keep_databases
        self.run_id = run_id or uuid.uuid4().hex[:8]

    def database_name(self, context: str) -> str:
        """Database name used for a context group in this run."""
        return lesson_database_name(context, f"_{self.run_id}", self._database_prefix)

    async def run(
        self,
        sections: list[ParsedSection],
        context_filter: Optional[str] = None,
        section_prefix: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        content_root: str = "",
    ) -> CurriculumTestReport:
        """Run the examples of the given sections.

        Args:
            sections: Sections to run (sections without examples are skipped).
            context_filter: Only run the group with this context name.
            section_prefix: Only run sections whose id starts with this.
            progress_callback: Called after every example.
            content_root: Recorded in the report.

        Returns:
            CurriculumTestReport with one entry per context group.
        """
        report = CurriculumTestReport(content_root=content_root)

        selected = [
            s for s in sections
            if section_prefix is None or s.id.startswith(section_prefix)
        ]
        groups = group_sections_by_context(selected)
        if context_filter is not None:
            groups = {k: v for k, v in groups.items() if k == context_filter}

        total = sum(s.example_count for group in groups.values() for s in group)
        logger.info(f"Running {total} examples in {len(groups)} context groups")

        completed = 0

        def on_example(example_id: str) -> None:
            nonlocal completed
            completed += 1
            if progress_callback:
                progress_callback(completed, total, example_id)

        for context, group_sections in groups.items():
            report.groups.append(await self.run_group(context, group_sections, on_example))

        report.completed_at = datetime.now()
        logger.info(
            f"Finished: {report.passed_examples}/{report.total_examples} examples passed"
        )
        return report

    async def run_group(
        self,
        context: str,
        sections: list[ParsedSection],
        on_example: Optional[Callable[[str], None]] = None,
    ) -> ContextGroupResult:
        """Set up one database for a context and run its sections in order."""
        database = self.database_name(context)
        group = ContextGroupResult(context=context, database=database)

        try:
            try:
                await self._setup(context, database)
            except Exception as e:
                group.setup_error = example_runner.error_message(e)
                logger.error(f"Setup of context '{context}' failed: {group.setup_error}")
                group.sections = [
                    self._failed_section(section, f"Context setup failed: {group.setup_error}", on_example)
                    for section in sections
                ]
                return group

            for section in sections:
                group.sections.append(await self._run_section(database, section, on_example))
        finally:
            await self._teardown(database)

        return group

    async def _setup(self, context: str, database: str) -> None:
        if self._registry.has(context):
            await create_database_with_context(self._connection, database, self._registry, context)
            logger.debug(f"Database {database} ready with context '{context}'")
            return

        if context != DEFAULT_CONTEXT_GROUP:
            logger.warning(
                f"Context '{context}' is not registered; running its sections on an empty database"
            )
        await reset_database(self._connection, database)

    async def _teardown(self, database: str) -> None:
        if self._keep_databases:
            logger.info(f"Keeping database {database}")
            return
        try:
            await self._connection.delete_database(database)
        except Exception as e:
            logger.warning(f"Could not delete database {database}: {e}")

    async def _run_section(
        self,
        database: str,
        section: ParsedSection,
        on_example: Optional[Callable[[str], None]],
    ) -> SectionTestResult:
        result = await example_runner.test_section(
            self._connection,
            database,
            section,
            on_result=(lambda r: on_example(r.example_id)) if on_example else None,
        )
        logger.info(example_runner.format_section_result(result))
        return result

    @staticmethod
    def _failed_section(
        section: ParsedSection,
        error: str,
        on_example: Optional[Callable[[str], None]],
    ) -> SectionTestResult:
        results = []
        for example in section.examples:
            results.append(ExampleTestResult(
                example_id=example.id,
                passed=False,
                error=error,
                query=example.query,
                source=example.source,
            ))
            if on_example:
                on_example(example.id)
        return SectionTestResult(
            section_id=section.id,
            section_title=section.title,
            context=section.context,
            examples=results,
        )


async def run_curriculum(
    content_root: Path,
    connection: DatabaseConnection,
    context_filter: Optional[str] = None,
    section_prefix: Optional[str] = None,
    keep_databases: bool = False,
    progress_callback: Optional[ProgressCallback] = None,
) -> CurriculumTestReport:
    """Load a curriculum and run all of its examples.

    Args:
        content_root: Root directory of the curriculum content.
        connection: Database connection.
        context_filter: Only run this context group.
        section_prefix: Only run sections whose id starts with this.
        keep_databases: Leave databases in place after the run.
        progress_callback: Called after every example.

    Returns:
        CurriculumTestReport for the run.
    """
    bundle = await load_curriculum(content_root)
    for context, section_ids in bundle.unresolved_contexts().items():
        logger.warning(
            f"Context '{context}' used by {', '.join(section_ids)} has no context directory"
        )

    runner = CurriculumTestRunner(
        connection,
        ContextRegistry.from_bundle(bundle),
        keep_databases=keep_databases,
    )
    return await runner.run(
        bundle.sections,
        context_filter=context_filter,
        section_prefix=section_prefix,
        progress_callback=progress_callback,
        content_root=str(content_root),
    )
