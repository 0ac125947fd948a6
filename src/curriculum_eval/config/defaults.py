"""Default configuration values for the curriculum evaluation system."""

from pathlib import Path

# Default configuration file name
DEFAULT_CONFIG_FILENAME = "curriculum-eval.config.json"

# Search paths for configuration file (in order of priority)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / DEFAULT_CONFIG_FILENAME,
    Path.home() / ".config" / "curriculum-eval" / "config.json",
]

# Default output directory name
DEFAULT_OUTPUT_DIR = "curriculum-output"

# Content layout
DEFAULT_CONTEXTS_DIR = "_contexts"
DEFAULT_LANGUAGE = "typeql"
WATCHED_EXTENSIONS = (".md", ".yaml", ".yml", ".tql")

# TypeDB HTTP endpoint (TypeDB 3.x)
DEFAULT_ADDRESS = "http://localhost:8000"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "password"

# Prefix for throwaway lesson databases
DEFAULT_DATABASE_PREFIX = "learn_"

# Group name for sections that declare no context
DEFAULT_CONTEXT_GROUP = "default"

# Seconds between content polls in watch mode
DEFAULT_WATCH_INTERVAL = 1.0

# Environment variables that override the config file
ENV_ADDRESS = "CURRICULUM_EVAL_ADDRESS"
ENV_USERNAME = "CURRICULUM_EVAL_USERNAME"
ENV_PASSWORD = "CURRICULUM_EVAL_PASSWORD"
