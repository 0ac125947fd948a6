"""Build a curriculum bundle from a content directory."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiofiles
import yaml

from curriculum_eval.config.defaults import DEFAULT_CONTEXTS_DIR, DEFAULT_LANGUAGE
from curriculum_eval.context.section_parser import (
    SectionParser,
    find_duplicate_example_ids,
    validate_section,
)
from curriculum_eval.errors import ContentRootError
from curriculum_eval.models.bundle import BundleMetadata, CurriculumBundle
from curriculum_eval.models.context import ContextMeta, LoadedContext
from curriculum_eval.models.section import ParsedSection

logger = logging.getLogger("curriculum_eval.context.content_loader")

CONTEXT_YAML = "context.yaml"
SCHEMA_FILE = "schema.tql"
SEED_FILE = "seed.tql"


class CurriculumLoader:
    """Loads every section and context under a content root.

    Layout::

        <root>/
            01-basics/intro.md          section (nested dirs allowed)
            _drafts/wip.md              ignored ("_" prefix)
            _contexts/<name>/
                context.yaml            optional, "description" field
                schema.tql
                seed.tql
    """

    def __init__(
        self,
        content_root: Path,
        contexts_dir: str = DEFAULT_CONTEXTS_DIR,
        language: str = DEFAULT_LANGUAGE,
    ):
        """Initialize the loader.

        Args:
            content_root: Root directory of the curriculum content.
            contexts_dir: Name of the contexts directory under the root.
            language: Language tag of annotated example fences.
        """
        self.content_root = Path(content_root)
        self.contexts_dir = contexts_dir
        self._parser = SectionParser(language)

    async def load(self) -> CurriculumBundle:
        """Load the whole curriculum into a new bundle.

        Returns:
            CurriculumBundle with sections sorted by source file.

        Raises:
            ContentRootError: If the content root cannot be read.
        """
        markdown_files = self.find_markdown_files()
        diagnostics: list[str] = []

        sections = []
        for path in markdown_files:
            section = await self._load_section(path, diagnostics)
            if section is not None:
                sections.append(section)
        sections.sort(key=lambda s: s.source_file)

        for example_id, locations in find_duplicate_example_ids(sections).items():
            message = (
                f"Duplicate example id '{example_id}' at "
                f"{', '.join(str(loc) for loc in locations)}"
            )
            logger.error(message)
            diagnostics.append(message)

        contexts, loaded_contexts = await self.load_contexts()

        total_examples = sum(s.example_count for s in sections)
        logger.info(
            f"Loaded {len(sections)} sections, {total_examples} examples "
            f"and {len(contexts)} contexts from {self.content_root}"
        )

        return CurriculumBundle(
            sections=sections,
            contexts=contexts,
            loaded_contexts=loaded_contexts,
            metadata=BundleMetadata(
                generated_at=datetime.now(timezone.utc).isoformat(),
                total_examples=total_examples,
                total_sections=len(sections),
            ),
            diagnostics=diagnostics,
        )

    def find_markdown_files(self) -> list[Path]:
        """Find all section files, skipping "_"-prefixed files and directories.

        Raises:
            ContentRootError: If the content root cannot be read.
        """
        if not self.content_root.is_dir():
            raise ContentRootError(f"Content root is not a directory: {self.content_root}")
        try:
            return self._walk(self.content_root)
        except OSError as e:
            raise ContentRootError(f"Cannot read content root {self.content_root}: {e}") from e

    def _walk(self, directory: Path) -> list[Path]:
        files = []
        for entry in sorted(directory.iterdir()):
            if entry.name.startswith("_"):
                continue
            if entry.is_dir():
                try:
                    files.extend(self._walk(entry))
                except OSError as e:
                    logger.warning(f"Could not read directory {self._relative(entry)}: {e}")
            elif entry.is_file() and entry.suffix == ".md":
                files.append(entry)
        return files

    async def _load_section(
        self, path: Path, diagnostics: list[str]
    ) -> Optional[ParsedSection]:
        """Read and parse one section file, or None if it cannot be read."""
        source_file = path.relative_to(self.content_root).as_posix()
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {source_file}: {e}")
            diagnostics.append(f"{source_file}: could not be read ({e})")
            return None

        result = self._parser.parse(content, source_file)
        for diagnostic in result.diagnostics:
            logger.warning(str(diagnostic))
            diagnostics.append(str(diagnostic))

        for warning in validate_section(result.section):
            logger.warning(warning)
            diagnostics.append(warning)

        return result.section

    async def load_contexts(self) -> tuple[list[ContextMeta], dict[str, LoadedContext]]:
        """Load every context directory.

        Returns:
            (metadata list, loaded contexts by name), both in name order.
        """
        contexts_root = self.content_root / self.contexts_dir
        if not contexts_root.is_dir():
            logger.debug(f"No contexts directory at {contexts_root}")
            return [], {}

        try:
            context_dirs = sorted(p for p in contexts_root.iterdir() if p.is_dir())
        except OSError as e:
            logger.warning(f"Could not read contexts directory {self._relative(contexts_root)}: {e}")
            return [], {}

        contexts: list[ContextMeta] = []
        loaded: dict[str, LoadedContext] = {}
        for context_dir in context_dirs:
            name = context_dir.name
            meta = await self._read_yaml(context_dir / CONTEXT_YAML)
            description = str(meta.get("description") or "")
            schema_path = context_dir / SCHEMA_FILE
            seed_path = context_dir / SEED_FILE

            contexts.append(ContextMeta(
                name=name,
                description=description,
                schema_file=self._relative(schema_path),
                seed_file=self._relative(seed_path),
            ))
            loaded[name] = LoadedContext(
                name=name,
                description=description,
                schema_text=await self._read_optional(schema_path, "schema"),
                seed=await self._read_optional(seed_path, "seed"),
            )
            logger.debug(f"Loaded context '{name}'")

        return contexts, loaded

    async def _read_optional(self, path: Path, kind: str) -> str:
        """Read a context file, returning "" if it is missing or unreadable."""
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {kind} file {self._relative(path)}: {e}")
            return ""

    async def _read_yaml(self, path: Path) -> dict[str, Any]:
        """Read context.yaml, returning {} if it is missing or invalid."""
        if not path.exists():
            return {}
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(await f.read())
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Could not read {self._relative(path)}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.content_root).as_posix()


async def load_curriculum(
    content_root: Path,
    contexts_dir: str = DEFAULT_CONTEXTS_DIR,
    language: str = DEFAULT_LANGUAGE,
) -> CurriculumBundle:
    """Load a curriculum bundle from a content directory."""
    return await CurriculumLoader(content_root, contexts_dir, language).load()
