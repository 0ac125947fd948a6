"""Curriculum content loading: section parsing, contexts and links."""

from curriculum_eval.context.content_loader import CurriculumLoader, load_curriculum
from curriculum_eval.context.links import build_link_index, find_broken_links, parse_links
from curriculum_eval.context.registry import (
    ContextRegistry,
    apply_context,
    create_database_with_context,
    lesson_database_name,
    load_and_apply_context,
)
from curriculum_eval.context.section_parser import (
    SectionParser,
    find_duplicate_example_ids,
    get_example_ids,
    parse_section,
    slugify,
    validate_section,
)
from curriculum_eval.context.statement_splitter import split_statements
from curriculum_eval.context.watcher import CurriculumWatcher

__all__ = [
    "ContextRegistry",
    "CurriculumLoader",
    "CurriculumWatcher",
    "SectionParser",
    "apply_context",
    "build_link_index",
    "create_database_with_context",
    "find_broken_links",
    "find_duplicate_example_ids",
    "get_example_ids",
    "lesson_database_name",
    "load_and_apply_context",
    "load_curriculum",
    "parse_links",
    "parse_section",
    "slugify",
    "split_statements",
    "validate_section",
]
