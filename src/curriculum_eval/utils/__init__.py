"""Utility modules for curriculum evaluation."""

from curriculum_eval.utils.logging import setup_logging, verbosity_level

__all__ = ["setup_logging", "verbosity_level"]
