"""Parsed curriculum content models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from curriculum_eval.models.enums import DiagnosticCode, ExampleType


class ParsedHeading(BaseModel):
    """A heading extracted from markdown content."""

    id: str  # Slugified heading text for anchor links
    text: str
    level: int = Field(ge=1, le=6)
    line: int  # 1-based, relative to the section body

    model_config = ConfigDict(frozen=True)


class ExampleExpectation(BaseModel):
    """Declarative pass/fail criteria for an example."""

    results: Optional[bool] = None
    min: Optional[int] = None
    max: Optional[int] = None
    error: Optional[str] = None  # Substring expected in the error ('invalid' type)

    model_config = ConfigDict(frozen=True)


class ParsedExample(BaseModel):
    """An annotated code example from a markdown code fence."""

    id: str
    type: ExampleType
    query: str
    expect: Optional[ExampleExpectation] = None
    notes: Optional[str] = None

    # Source information
    source_file: str
    line_number: int

    model_config = ConfigDict(frozen=True)

    @property
    def source(self) -> str:
        """Source location as "file:line"."""
        return f"{self.source_file}:{self.line_number}"


class ParsedSection(BaseModel):
    """A parsed curriculum lesson file."""

    id: str
    title: str
    context: Optional[str] = None  # Which dataset the examples run against
    requires: list[str] = Field(default_factory=list)  # Prerequisite section ids
    headings: list[ParsedHeading] = Field(default_factory=list)
    examples: list[ParsedExample] = Field(default_factory=list)
    raw_content: str = ""  # Markdown body without front matter
    source_file: str

    model_config = ConfigDict(frozen=True)

    @property
    def example_count(self) -> int:
        """Number of examples in the section."""
        return len(self.examples)


class SourceLocation(BaseModel):
    """Where an example was declared."""

    source_file: str
    line_number: int

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.source_file}:{self.line_number}"


class ParseDiagnostic(BaseModel):
    """A recoverable problem found while parsing a section."""

    code: DiagnosticCode
    message: str
    source_file: str
    line: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        location = self.source_file if self.line is None else f"{self.source_file}:{self.line}"
        return f"{location}: {self.message}"


class ParseResult(BaseModel):
    """A parsed section together with the diagnostics collected on the way."""

    section: ParsedSection
    diagnostics: list[ParseDiagnostic] = Field(default_factory=list)

    @property
    def has_diagnostics(self) -> bool:
        """Whether any problem was reported."""
        return len(self.diagnostics) > 0
