"""The aggregate curriculum bundle produced by the content loader."""

from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from curriculum_eval.models.context import ContextMeta, LoadedContext
from curriculum_eval.models.section import ParsedExample, ParsedSection, SourceLocation


class BundleMetadata(BaseModel):
    """Summary information about a bundle build."""

    generated_at: str  # ISO-8601, UTC
    total_examples: int = 0
    total_sections: int = 0

    model_config = ConfigDict(frozen=True)


class IndexedExample(ParsedExample):
    """An example annotated with the section it belongs to."""

    section_id: str
    section_title: str


class SectionNavItem(BaseModel):
    """Navigation entry derived from a section's file path."""

    id: str
    title: str
    path: list[str] = Field(default_factory=list)  # Directory parts of the source file
    context: Optional[str] = None
    example_count: int = 0


class CurriculumBundle(BaseModel):
    """All sections and contexts of a curriculum, built in one pass.

    A bundle is replaced wholesale when content changes; it is never patched.
    """

    sections: list[ParsedSection] = Field(default_factory=list)
    contexts: list[ContextMeta] = Field(default_factory=list)
    loaded_contexts: dict[str, LoadedContext] = Field(default_factory=dict)
    metadata: BundleMetadata
    diagnostics: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def get_section_by_id(self, section_id: str) -> Optional[ParsedSection]:
        """Get a section by its id, or None."""
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def get_sections_by_context(self, context_name: str) -> list[ParsedSection]:
        """Get all sections that run against a context."""
        return [s for s in self.sections if s.context == context_name]

    def get_example_by_id(
        self, example_id: str
    ) -> Optional[tuple[ParsedSection, ParsedExample]]:
        """Look up an example across all sections.

        Returns:
            (section, example) for the first match, or None.
        """
        for section in self.sections:
            for example in section.examples:
                if example.id == example_id:
                    return section, example
        return None

    def get_all_examples(self) -> list[IndexedExample]:
        """Flatten every example, annotated with its section id and title."""
        return [
            IndexedExample(
                **example.model_dump(),
                section_id=section.id,
                section_title=section.title,
            )
            for section in self.sections
            for example in section.examples
        ]

    def get_example_ids_for_section(self, section_id: str) -> list[str]:
        """Example ids of a section, or an empty list if it doesn't exist."""
        section = self.get_section_by_id(section_id)
        return [e.id for e in section.examples] if section else []

    def has_context(self, context_name: str) -> bool:
        """Whether a context with this name was discovered."""
        return any(c.name == context_name for c in self.contexts)

    def get_context(self, context_name: str) -> Optional[ContextMeta]:
        """Context metadata by name, or None."""
        for context in self.contexts:
            if context.name == context_name:
                return context
        return None

    def get_section_navigation(self) -> list[SectionNavItem]:
        """Sections organised by their file path hierarchy."""
        return [
            SectionNavItem(
                id=s.id,
                title=s.title,
                path=list(PurePosixPath(s.source_file).parent.parts),
                context=s.context,
                example_count=s.example_count,
            )
            for s in self.sections
        ]

    def duplicate_example_ids(self) -> dict[str, list[SourceLocation]]:
        """Example ids declared in more than one place."""
        # Imported here to keep models free of parser imports at module load
        from curriculum_eval.context.section_parser import find_duplicate_example_ids

        return find_duplicate_example_ids(self.sections)

    def unresolved_contexts(self) -> dict[str, list[str]]:
        """Context names referenced by sections but not loaded.

        Returns:
            Mapping of context name to the ids of sections referencing it.
        """
        missing: dict[str, list[str]] = {}
        for section in self.sections:
            if section.context and section.context not in self.loaded_contexts:
                missing.setdefault(section.context, []).append(section.id)
        return missing
