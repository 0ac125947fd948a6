"""Configuration management for the curriculum evaluation system."""

from curriculum_eval.config.loader import find_config_file, load_config
from curriculum_eval.config.models import (
    ContentConfig,
    CurriculumEvalConfig,
    DatabaseConfig,
    OutputConfig,
    RunnerConfig,
)

__all__ = [
    "ContentConfig",
    "CurriculumEvalConfig",
    "DatabaseConfig",
    "OutputConfig",
    "RunnerConfig",
    "find_config_file",
    "load_config",
]
