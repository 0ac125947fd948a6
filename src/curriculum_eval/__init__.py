"""Curriculum Example Evaluation.

Parses annotated curriculum markdown into lessons and TypeQL examples,
bundles them with their schema/seed contexts, and validates every example
against a live TypeDB server.
"""

__version__ = "0.1.0"

from curriculum_eval.models.enums import ExampleType, TransactionType

__all__ = [
    "__version__",
    "ExampleType",
    "TransactionType",
]
