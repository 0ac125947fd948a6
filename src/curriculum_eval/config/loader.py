"""Configuration loading and merging logic."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from curriculum_eval.config.defaults import (
    CONFIG_SEARCH_PATHS,
    ENV_ADDRESS,
    ENV_PASSWORD,
    ENV_USERNAME,
)
from curriculum_eval.config.models import CurriculumEvalConfig


def find_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file.

    Args:
        explicit_path: Explicitly specified config file path (from CLI).

    Returns:
        Path to config file if found, None otherwise.
    """
    if explicit_path is not None:
        if explicit_path.exists():
            return explicit_path
        raise FileNotFoundError(f"Config file not found: {explicit_path}")

    for search_path in CONFIG_SEARCH_PATHS:
        if search_path.exists():
            return search_path

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def merge_cli_overrides(
    config: CurriculumEvalConfig,
    root: Optional[Path] = None,
    output: Optional[Path] = None,
    address: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    context: Optional[str] = None,
    prefix: Optional[str] = None,
    keep_databases: Optional[bool] = None,
    verbose: Optional[int] = None,
    log_file: Optional[Path] = None,
) -> CurriculumEvalConfig:
    """Merge CLI overrides into the configuration.

    CLI arguments take precedence over config file values.

    Args:
        config: Base configuration.
        root: Content root directory.
        output: Output directory path.
        address: TypeDB HTTP address.
        username: TypeDB username.
        password: TypeDB password.
        context: Only run sections using this context.
        prefix: Only run sections whose id starts with this prefix.
        keep_databases: Leave lesson databases in place after the run.
        verbose: Verbosity level override.
        log_file: File that also receives DEBUG logs.

    Returns:
        Configuration with CLI overrides applied.
    """
    data = config.model_dump()

    if root is not None:
        data["content"]["root"] = root
    if output is not None:
        data["output_path"] = output

    if address is not None:
        data["database"]["address"] = address
    if username is not None:
        data["database"]["username"] = username
    if password is not None:
        data["database"]["password"] = password

    if context is not None:
        data["runner"]["context_filter"] = context
    if prefix is not None:
        data["runner"]["section_prefix"] = prefix
    if keep_databases is not None:
        data["runner"]["keep_databases"] = keep_databases

    if verbose is not None:
        data["output"]["verbosity"] = verbose
    if log_file is not None:
        data["output"]["log_file"] = log_file

    return CurriculumEvalConfig.model_validate(data)


def load_config(
    config_path: Optional[Path] = None,
    **cli_overrides: Any,
) -> CurriculumEvalConfig:
    """Load configuration with CLI overrides.

    Configuration is loaded from the following sources (in order of priority):
    1. CLI arguments (highest priority)
    2. Environment variables
    3. Config file (if found)
    4. Default values (lowest priority)

    Args:
        config_path: Explicit config file path (from --config CLI option).
        **cli_overrides: CLI argument overrides.

    Returns:
        Merged configuration object.
    """
    config = CurriculumEvalConfig()

    found_config = find_config_file(config_path)
    if found_config is not None:
        config = CurriculumEvalConfig.model_validate(load_config_file(found_config))

    env_overrides = {
        "address": os.environ.get(ENV_ADDRESS),
        "username": os.environ.get(ENV_USERNAME),
        "password": os.environ.get(ENV_PASSWORD),
    }
    for key, value in env_overrides.items():
        if value and cli_overrides.get(key) is None:
            cli_overrides[key] = value

    return merge_cli_overrides(config, **cli_overrides)
