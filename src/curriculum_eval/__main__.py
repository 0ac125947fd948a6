"""Entry point for running curriculum-eval as a module.

Usage:
    python -m curriculum_eval [command] [options]
"""

from curriculum_eval.cli.main import app

if __name__ == "__main__":
    app()
