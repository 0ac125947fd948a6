"""CSV output writer for example verdicts."""

import csv
import io
import logging
from pathlib import Path

from curriculum_eval.models.results import CurriculumTestReport

logger = logging.getLogger("curriculum_eval.output.csv")

CSV_COLUMNS = [
    "context",
    "database",
    "section_id",
    "section_title",
    "example_id",
    "source",
    "passed",
    "error",
    "actual_results",
    "expected_min",
    "expected_max",
    "execution_time_ms",
]


class CSVWriter:
    """Writes one CSV row per example result."""

    def __init__(self, output_path: Path, filename: str = "results.csv"):
        """Initialize the CSV writer.

        Args:
            output_path: Directory to write the CSV file.
            filename: Name of the CSV file.
        """
        self._output_path = output_path
        self._filename = filename

    @property
    def filepath(self) -> Path:
        """Full path to the CSV file."""
        return self._output_path / self._filename

    def write(self, report: CurriculumTestReport) -> Path:
        """Write a run's results to CSV.

        Args:
            report: Report of the run.

        Returns:
            Path to the written CSV file.
        """
        self._output_path.mkdir(parents=True, exist_ok=True)

        with open(self.filepath, "w", newline="", encoding="utf-8") as f:
            _write_rows(f, report)

        logger.info(f"Wrote {report.total_examples} results to {self.filepath}")
        return self.filepath


def _write_rows(f, report: CurriculumTestReport) -> None:
    writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
    writer.writeheader()

    for group in report.groups:
        for section in group.sections:
            for result in section.examples:
                bounds = result.expected_results
                writer.writerow({
                    "context": group.context,
                    "database": group.database,
                    "section_id": section.section_id,
                    "section_title": section.section_title,
                    "example_id": result.example_id,
                    "source": result.source,
                    "passed": result.passed,
                    "error": result.error or "",
                    "actual_results": "" if result.actual_results is None else result.actual_results,
                    "expected_min": "" if bounds is None or bounds.min is None else bounds.min,
                    "expected_max": "" if bounds is None or bounds.max is None else bounds.max,
                    "execution_time_ms": round(result.execution_time_ms, 2),
                })


def report_to_csv_string(report: CurriculumTestReport) -> str:
    """Convert a report to CSV text (for testing/debugging)."""
    output = io.StringIO()
    _write_rows(output, report)
    return output.getvalue()
