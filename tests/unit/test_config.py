"""Tests for configuration loading."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from curriculum_eval.config import loader
from curriculum_eval.config.defaults import ENV_ADDRESS, ENV_PASSWORD
from curriculum_eval.config.loader import find_config_file, load_config, merge_cli_overrides
from curriculum_eval.config.models import CurriculumEvalConfig, DatabaseConfig
from curriculum_eval.utils.logging import setup_logging, verbosity_level


@pytest.fixture(autouse=True)
def no_search_paths(monkeypatch):
    """Keep config files on the developer's machine out of the tests."""
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [])
    monkeypatch.delenv(ENV_ADDRESS, raising=False)
    monkeypatch.delenv(ENV_PASSWORD, raising=False)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "curriculum-eval.config.json"
    path.write_text(json.dumps({
        "content": {"root": "lessons", "language": "typeql"},
        "database": {"address": "http://file:8000", "retry_attempts": 4},
        "runner": {"database_prefix": "ci_"},
        "unknown_section": {"ignored": True},
    }))
    return path


class TestConfigModels:
    """Tests for the configuration models."""

    def test_defaults(self):
        config = CurriculumEvalConfig()

        assert config.content.root is None
        assert config.content.contexts_dir == "_contexts"
        assert config.database.address == "http://localhost:8000"
        assert config.runner.database_prefix == "learn_"
        assert config.runner.keep_databases is False
        assert config.output.verbosity == 1
        assert config.output_path is None

    def test_bounds(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(retry_attempts=0)
        with pytest.raises(ValidationError):
            DatabaseConfig(timeout_seconds=0.5)


class TestLoadConfig:
    """Tests for load_config and friends."""

    def test_no_file(self):
        assert find_config_file() is None
        assert load_config() == CurriculumEvalConfig()

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_config_file(tmp_path / "nope.json")

    def test_explicit_file(self, config_file):
        config = load_config(config_file)

        assert config.content.root == Path("lessons")
        assert config.database.address == "http://file:8000"
        assert config.database.retry_attempts == 4
        assert config.runner.database_prefix == "ci_"

    def test_search_paths(self, config_file, monkeypatch):
        monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [Path("/nonexistent"), config_file])

        assert find_config_file() == config_file

    def test_cli_overrides_win(self, config_file):
        config = load_config(
            config_file,
            root=Path("content"),
            address="http://cli:1",
            keep_databases=True,
            context="social-network",
            verbose=2,
        )

        assert config.content.root == Path("content")
        assert config.database.address == "http://cli:1"
        assert config.runner.keep_databases is True
        assert config.runner.context_filter == "social-network"
        assert config.output.verbosity == 2
        assert config.runner.database_prefix == "ci_"

    def test_environment_over_file(self, config_file, monkeypatch):
        monkeypatch.setenv(ENV_ADDRESS, "http://env:2")
        monkeypatch.setenv(ENV_PASSWORD, "from-env")

        config = load_config(config_file)

        assert config.database.address == "http://env:2"
        assert config.database.password == "from-env"

    def test_cli_over_environment(self, monkeypatch):
        monkeypatch.setenv(ENV_ADDRESS, "http://env:2")

        assert load_config(address="http://cli:1").database.address == "http://cli:1"

    def test_merge_leaves_base_untouched(self):
        base = CurriculumEvalConfig()

        merged = merge_cli_overrides(base, output=Path("out"), prefix="match")

        assert merged.output_path == Path("out")
        assert merged.runner.section_prefix == "match"
        assert base.output_path is None


class TestLogging:
    """Tests for logging setup."""

    @pytest.fixture(autouse=True)
    def reset_handlers(self):
        yield
        logger = logging.getLogger("curriculum_eval")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    @pytest.mark.parametrize(
        "verbosity,expected",
        [
            (0, logging.WARNING),
            (1, logging.INFO),
            (2, logging.DEBUG),
            (3, logging.DEBUG),
        ],
    )
    def test_verbosity_level(self, verbosity: int, expected: int):
        assert verbosity_level(verbosity) == expected

    def test_levels(self):
        assert setup_logging(0).level == logging.WARNING
        assert setup_logging(2).level == logging.DEBUG

        logger = setup_logging(1)
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_library_loggers(self):
        setup_logging(1)
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_logging(3)
        assert logging.getLogger("httpcore").level == logging.DEBUG

    def test_log_file_receives_debug(self, tmp_path):
        """Test that the log file gets DEBUG records at normal verbosity."""
        log_file = tmp_path / "logs" / "run.log"

        logger = setup_logging(1, log_file=log_file)
        logging.getLogger("curriculum_eval.context.content_loader").debug("loaded context")
        logging.getLogger("curriculum_eval.context.content_loader").warning("written to file")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert "DEBUG    curriculum_eval.context.content_loader: loaded context" in content
        assert "written to file" in content
        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.INFO

    def test_setup_again_replaces_handlers(self, tmp_path):
        file_handler = setup_logging(1, log_file=tmp_path / "first.log").handlers[-1]

        logger = setup_logging(1)

        assert len(logger.handlers) == 1
        assert file_handler not in logger.handlers
        assert file_handler.stream is None

    def test_config_log_file_override(self, tmp_path):
        config = load_config(log_file=tmp_path / "run.log", verbose=0)

        assert config.output.log_file == tmp_path / "run.log"
        assert config.output.verbosity == 0
