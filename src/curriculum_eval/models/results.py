"""Example test result models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ResultBounds(BaseModel):
    """Result-count bounds that were checked for an example."""

    min: Optional[int] = None
    max: Optional[int] = None


class ExampleTestResult(BaseModel):
    """Verdict for a single example."""

    example_id: str
    passed: bool
    error: Optional[str] = None
    actual_results: Optional[int] = None  # Row count for match queries
    expected_results: Optional[ResultBounds] = None
    execution_time_ms: float = 0.0
    query: str
    source: str  # "file:line"

    @property
    def query_preview(self) -> str:
        """First 60 characters of the query on a single line."""
        preview = self.query[:60].replace("\n", " ")
        return preview + "..." if len(self.query) > 60 else preview


class SectionTestResult(BaseModel):
    """Verdicts for every example in a section."""

    section_id: str
    section_title: str
    context: Optional[str] = None
    examples: list[ExampleTestResult] = Field(default_factory=list)
    total_time_ms: float = 0.0

    @property
    def all_passed(self) -> bool:
        """Whether every example passed."""
        return all(e.passed for e in self.examples)

    @property
    def passed_count(self) -> int:
        """Number of passing examples."""
        return sum(1 for e in self.examples if e.passed)


class ContextGroupResult(BaseModel):
    """Results for all sections that share a context database."""

    context: str
    database: str
    sections: list[SectionTestResult] = Field(default_factory=list)
    setup_error: Optional[str] = None

    @property
    def examples(self) -> list[ExampleTestResult]:
        """All example results of the group in run order."""
        return [e for s in self.sections for e in s.examples]


class CurriculumTestReport(BaseModel):
    """Aggregated verdicts of a whole validation run."""

    content_root: str = ""
    groups: list[ContextGroupResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def sections(self) -> list[SectionTestResult]:
        """All section results in run order."""
        return [s for g in self.groups for s in g.sections]

    @property
    def total_examples(self) -> int:
        """Number of examples run."""
        return sum(len(g.examples) for g in self.groups)

    @property
    def passed_examples(self) -> int:
        """Number of passing examples."""
        return sum(1 for g in self.groups for e in g.examples if e.passed)

    @property
    def failed_examples(self) -> int:
        """Number of failing examples."""
        return self.total_examples - self.passed_examples

    @property
    def all_passed(self) -> bool:
        """Whether the run had no failures."""
        return self.failed_examples == 0

    @property
    def pass_rate(self) -> float:
        """Percentage of passing examples."""
        if self.total_examples == 0:
            return 100.0
        return (self.passed_examples / self.total_examples) * 100

    @property
    def duration_seconds(self) -> Optional[float]:
        """Run duration, if the run has completed."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def failures(self) -> list[ExampleTestResult]:
        """All failing example results."""
        return [e for g in self.groups for e in g.examples if not e.passed]
