"""Output generation for bundles and run reports."""

from curriculum_eval.output.bundle_writer import BundleWriter
from curriculum_eval.output.csv_writer import CSVWriter
from curriculum_eval.output.markdown_writer import MarkdownWriter

__all__ = [
    "BundleWriter",
    "CSVWriter",
    "MarkdownWriter",
]
