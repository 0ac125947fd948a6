"""Example evaluators."""

from curriculum_eval.evaluators.example_runner import (
    format_section_result,
    format_test_result,
    validate_results,
)

__all__ = [
    "format_section_result",
    "format_test_result",
    "validate_results",
]
