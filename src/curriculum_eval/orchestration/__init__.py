"""Orchestration for curriculum example runs."""

from curriculum_eval.orchestration.progress import ProgressTracker
from curriculum_eval.orchestration.runner import (
    CurriculumTestRunner,
    group_sections_by_context,
    run_curriculum,
)

__all__ = [
    "CurriculumTestRunner",
    "ProgressTracker",
    "group_sections_by_context",
    "run_curriculum",
]
