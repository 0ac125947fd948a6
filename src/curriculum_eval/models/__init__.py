"""Domain models for the curriculum evaluation system."""

from curriculum_eval.models.bundle import (
    BundleMetadata,
    CurriculumBundle,
    IndexedExample,
    SectionNavItem,
)
from curriculum_eval.models.context import ContextFiles, ContextMeta, LoadedContext
from curriculum_eval.models.enums import DiagnosticCode, ExampleType, TransactionType
from curriculum_eval.models.results import (
    ContextGroupResult,
    CurriculumTestReport,
    ExampleTestResult,
    ResultBounds,
    SectionTestResult,
)
from curriculum_eval.models.section import (
    ExampleExpectation,
    ParseDiagnostic,
    ParsedExample,
    ParsedHeading,
    ParsedSection,
    ParseResult,
    SourceLocation,
)

__all__ = [
    "BundleMetadata",
    "ContextFiles",
    "ContextGroupResult",
    "ContextMeta",
    "CurriculumBundle",
    "CurriculumTestReport",
    "DiagnosticCode",
    "ExampleExpectation",
    "ExampleTestResult",
    "ExampleType",
    "IndexedExample",
    "LoadedContext",
    "ParseDiagnostic",
    "ParsedExample",
    "ParsedHeading",
    "ParsedSection",
    "ParseResult",
    "ResultBounds",
    "SectionNavItem",
    "SectionTestResult",
    "SourceLocation",
    "TransactionType",
]
