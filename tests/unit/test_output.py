"""Tests for output writers."""

import csv
import json

import pytest

from curriculum_eval.context.content_loader import load_curriculum
from curriculum_eval.models.results import (
    ContextGroupResult,
    CurriculumTestReport,
    ExampleTestResult,
    ResultBounds,
    SectionTestResult,
)
from curriculum_eval.output.bundle_writer import BundleWriter, bundle_from_json, bundle_to_json
from curriculum_eval.output.csv_writer import CSV_COLUMNS, CSVWriter, report_to_csv_string
from curriculum_eval.output.markdown_writer import MarkdownWriter


@pytest.fixture
def sample_report() -> CurriculumTestReport:
    """Create a sample run report with one failure."""
    return CurriculumTestReport(
        content_root="docs/curriculum",
        groups=[
            ContextGroupResult(
                context="social-network",
                database="learn_social_network_ab12",
                sections=[
                    SectionTestResult(
                        section_id="intro",
                        section_title="Intro",
                        context="social-network",
                        examples=[
                            ExampleTestResult(
                                example_id="list-people",
                                passed=True,
                                actual_results=3,
                                expected_results=ResultBounds(min=3),
                                execution_time_ms=4.567,
                                query="match $p isa person;",
                                source="01-basics/intro.md:9",
                            ),
                            ExampleTestResult(
                                example_id="count-friends",
                                passed=False,
                                error="Expected at most 1 results but got 4",
                                actual_results=4,
                                expected_results=ResultBounds(max=1),
                                query="match $f isa friendship;",
                                source="01-basics/intro.md:20",
                            ),
                        ],
                    ),
                ],
            ),
            ContextGroupResult(
                context="default",
                database="learn_default_ab12",
                sections=[
                    SectionTestResult(
                        section_id="define-types",
                        section_title="Defining Types",
                        examples=[
                            ExampleTestResult(
                                example_id="define-city",
                                passed=True,
                                query="define entity city;",
                                source="02-schema/define.md:3",
                            ),
                        ],
                    ),
                ],
            ),
        ],
    )


class TestBundleWriter:
    """Tests for BundleWriter."""

    @pytest.mark.asyncio
    async def test_write_and_read_back(self, curriculum_dir, tmp_path):
        """Test that a written bundle loads back unchanged."""
        bundle = await load_curriculum(curriculum_dir)
        writer = BundleWriter(tmp_path / "dist")

        path = writer.write(bundle)

        assert path == tmp_path / "dist" / "curriculum.json"
        assert not (path.parent / "curriculum.json.tmp").exists()
        assert bundle_from_json(path.read_text()) == bundle

    @pytest.mark.asyncio
    async def test_json_shape(self, curriculum_dir):
        bundle = await load_curriculum(curriculum_dir)

        data = json.loads(bundle_to_json(bundle))

        assert set(data) == {"sections", "contexts", "loaded_contexts", "metadata", "diagnostics"}
        assert data["metadata"]["total_examples"] == 6
        example = data["sections"][0]["examples"][0]
        assert example["type"] == "example"
        assert example["expect"] == {"results": True, "min": 3, "max": None, "error": None}

    @pytest.mark.asyncio
    async def test_overwrites(self, curriculum_dir, tmp_path):
        bundle = await load_curriculum(curriculum_dir)
        writer = BundleWriter(tmp_path, filename="bundle.json")
        (tmp_path / "bundle.json").write_text("stale")

        writer.write(bundle)

        assert bundle_from_json(writer.filepath.read_text()).metadata.total_sections == 3


class TestCSVWriter:
    """Tests for CSVWriter."""

    def test_write_csv(self, sample_report, tmp_path):
        """Test writing CSV file."""
        writer = CSVWriter(tmp_path)

        path = writer.write(sample_report)

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 3
        assert list(rows[0]) == CSV_COLUMNS
        assert rows[0]["example_id"] == "list-people"
        assert rows[0]["passed"] == "True"
        assert rows[0]["expected_min"] == "3"
        assert rows[0]["expected_max"] == ""
        assert rows[0]["execution_time_ms"] == "4.57"
        assert rows[1]["error"] == "Expected at most 1 results but got 4"
        assert rows[2]["context"] == "default"
        assert rows[2]["actual_results"] == ""

    def test_csv_string(self, sample_report):
        content = report_to_csv_string(sample_report)

        assert content.splitlines()[0] == ",".join(CSV_COLUMNS)
        assert "learn_social_network_ab12" in content

    def test_empty_report(self, tmp_path):
        path = CSVWriter(tmp_path, filename="empty.csv").write(CurriculumTestReport())

        assert path.read_text().strip() == ",".join(CSV_COLUMNS)


class TestMarkdownWriter:
    """Tests for MarkdownWriter."""

    def test_write_report(self, sample_report, tmp_path):
        """Test writing the Markdown report."""
        writer = MarkdownWriter(tmp_path)

        path = writer.write(sample_report)

        content = path.read_text()
        assert "# Curriculum Example Report" in content
        assert "**Content root:** docs/curriculum" in content
        assert "- **Passed:** 2" in content
        assert "- **Failed:** 1" in content
        assert "- **Pass rate:** 66.7%" in content
        assert "| social-network | learn_social_network_ab12 | 1 | 1 | 1 |" in content
        assert "| default | learn_default_ab12 | 1 | 1 | 0 |" in content
        assert "### count-friends" in content
        assert "match $f isa friendship;" in content
        assert "### list-people" not in content

    def test_no_failures_section_when_all_pass(self, tmp_path):
        content = MarkdownWriter(tmp_path).render(CurriculumTestReport())

        assert "## Failures" not in content
        assert "- **Pass rate:** 100.0%" in content

    def test_fallback_matches_template(self, sample_report, tmp_path):
        """Test that the template-free fallback reports the same facts."""
        writer = MarkdownWriter(tmp_path)
        writer._env = None

        content = writer.render(sample_report)

        assert "| social-network | learn_social_network_ab12 | 1 | 1 | 1 |" in content
        assert "### count-friends" in content
        assert "- **Pass rate:** 66.7%" in content
