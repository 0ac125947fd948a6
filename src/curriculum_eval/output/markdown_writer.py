"""Markdown report writer for example runs."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape

from curriculum_eval.models.results import CurriculumTestReport

logger = logging.getLogger("curriculum_eval.output.markdown")


class MarkdownWriter:
    """Writes a run report in Markdown."""

    def __init__(
        self,
        output_path: Path,
        filename: str = "report.md",
    ):
        """Initialize the Markdown writer.

        Args:
            output_path: Directory to write the report.
            filename: Name of the report file.
        """
        self._output_path = output_path
        self._filename = filename

        try:
            self._env = Environment(
                loader=PackageLoader("curriculum_eval.output", "templates"),
                autoescape=select_autoescape(["html", "xml"]),
                trim_blocks=True,
                lstrip_blocks=True,
            )
        except ValueError:
            # Fallback if templates not found
            self._env = None

    @property
    def filepath(self) -> Path:
        """Full path to the report file."""
        return self._output_path / self._filename

    def write(self, report: CurriculumTestReport) -> Path:
        """Write the report file.

        Args:
            report: Report of the run.

        Returns:
            Path to the written report file.
        """
        self._output_path.mkdir(parents=True, exist_ok=True)

        content = self.render(report)
        with open(self.filepath, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"Wrote report to {self.filepath}")
        return self.filepath

    def render(self, report: CurriculumTestReport) -> str:
        """Render the report to Markdown text."""
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        if self._env:
            template = self._env.get_template("report.md.j2")
            return template.render(report=report, generated_at=generated_at)
        return self._generate_report(report, generated_at)

    def _generate_report(self, report: CurriculumTestReport, generated_at: str) -> str:
        """Generate report without template (fallback)."""
        lines = []

        lines.append("# Curriculum Example Report")
        lines.append("")
        lines.append(f"**Generated:** {generated_at}")
        lines.append(f"**Content root:** {report.content_root}")
        lines.append(f"**Examples run:** {report.total_examples}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Passed:** {report.passed_examples}")
        lines.append(f"- **Failed:** {report.failed_examples}")
        lines.append(f"- **Pass rate:** {report.pass_rate:.1f}%")
        lines.append("")

        lines.append("## Results by Context")
        lines.append("")
        lines.append("| Context | Database | Sections | Passed | Failed |")
        lines.append("|---------|----------|----------|--------|--------|")
        for group in report.groups:
            failed = sum(1 for e in group.examples if not e.passed)
            lines.append(
                f"| {group.context} | {group.database} | {len(group.sections)} "
                f"| {len(group.examples) - failed} | {failed} |"
            )
        lines.append("")

        failures = report.failures()
        if failures:
            lines.append("## Failures")
            lines.append("")
            for result in failures:
                lines.append(f"### {result.example_id}")
                lines.append("")
                lines.append(f"- **Source:** {result.source}")
                lines.append(f"- **Error:** {result.error}")
                lines.append("")
                lines.append("```typeql")
                lines.append(result.query)
                lines.append("```")
                lines.append("")

        return "\n".join(lines)
