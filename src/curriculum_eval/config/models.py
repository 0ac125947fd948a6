"""Pydantic configuration models for the curriculum evaluation system."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from curriculum_eval.config.defaults import (
    DEFAULT_ADDRESS,
    DEFAULT_CONTEXTS_DIR,
    DEFAULT_DATABASE_PREFIX,
    DEFAULT_LANGUAGE,
    DEFAULT_PASSWORD,
    DEFAULT_USERNAME,
)


class ContentConfig(BaseModel):
    """Where curriculum content lives and how it is tagged."""

    root: Optional[Path] = None
    contexts_dir: str = DEFAULT_CONTEXTS_DIR
    language: str = DEFAULT_LANGUAGE


class DatabaseConfig(BaseModel):
    """TypeDB connection configuration."""

    address: str = DEFAULT_ADDRESS
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=600.0)
    retry_attempts: int = Field(default=3, ge=1, le=10)


class RunnerConfig(BaseModel):
    """Example runner behavior."""

    database_prefix: str = DEFAULT_DATABASE_PREFIX
    keep_databases: bool = False
    context_filter: Optional[str] = None
    section_prefix: Optional[str] = None


class OutputConfig(BaseModel):
    """Output configuration."""

    bundle_filename: str = "curriculum.json"
    csv_filename: str = "results.csv"
    report_filename: str = "report.md"
    log_file: Optional[Path] = None
    verbosity: int = Field(default=1, ge=0, le=3)


class CurriculumEvalConfig(BaseModel):
    """Root configuration model for the evaluation system."""

    content: ContentConfig = Field(default_factory=ContentConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    output_path: Optional[Path] = None

    model_config = ConfigDict(extra="ignore")  # Ignore unknown fields in config file
