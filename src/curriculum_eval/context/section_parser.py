"""Parse curriculum markdown files into structured sections.

A section file is markdown with an optional YAML front-matter block::

    ---
    id: match-basics
    title: Basic Pattern Matching
    context: social-network
    requires: [types-intro]
    ---

and zero or more annotated code fences::

    ```typeql:example[id=first-match, expect=results, min=1]
    match $p isa person;
    ```

Parsing never raises on malformed content. Problems are collected as
ParseDiagnostic objects and the offending item is defaulted or skipped.
"""

import logging
import re
from typing import Any, Optional

import frontmatter
import yaml

from curriculum_eval.models.enums import DiagnosticCode, ExampleType
from curriculum_eval.models.section import (
    ExampleExpectation,
    ParseDiagnostic,
    ParsedExample,
    ParsedHeading,
    ParsedSection,
    ParseResult,
    SourceLocation,
)

logger = logging.getLogger("curriculum_eval.context.section_parser")

DEFAULT_LANGUAGE = "typeql"
DEFAULT_TITLE = "Untitled"

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*$")
FENCE_PATTERN = re.compile(r"^\s{0,3}(`{3,}|~{3,})(.*)$")
TAGGED_FENCE_PATTERN = re.compile(
    r"^(?P<language>[\w+-]+):(?P<type>\w+)\[(?P<attrs>[^\]]*)\]\s*$"
)
# key=value, key="double quoted", key='single quoted'
ATTRIBUTE_PATTERN = re.compile(r"""(\w+)=(?:"([^"]*)"|'([^']*)'|([^\s,"']+))""")
FRONT_MATTER_BLOCK = re.compile(r"\A-{3,}\s*\n.*?\n-{3,}[ \t]*(?:\n|\Z)", re.DOTALL)

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug.

    Lowercases, collapses runs of non-alphanumerics to "-" and trims dashes.
    Applying it to an existing slug returns the slug unchanged.
    """
    return _SLUG_SEPARATORS.sub("-", text.lower()).strip("-")


class _OpenFence:
    """A fenced block being scanned."""

    def __init__(
        self,
        marker: str,
        line: int,
        type_token: Optional[str] = None,
        attrs: str = "",
    ):
        self.marker = marker
        self.line = line
        self.type_token = type_token
        self.attrs = attrs
        self.body: list[str] = []

    @property
    def is_tagged(self) -> bool:
        return self.type_token is not None

    def closes(self, line: str) -> bool:
        stripped = line.strip()
        return (
            stripped.startswith(self.marker)
            and set(stripped) == {self.marker[0]}
        )


class SectionParser:
    """Single-pass scanner over the lines of a section body."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        """Initialize the parser.

        Args:
            language: Language tag that marks annotated fences
                (``<language>:<type>[...]``). Other fences are ignored.
        """
        self.language = language

    def parse(self, markdown: str, source_file: str) -> ParseResult:
        """Parse a markdown document into a section.

        Args:
            markdown: Raw markdown including any front matter.
            source_file: Source label used for defaults and diagnostics.

        Returns:
            ParseResult with the section and every diagnostic collected.
        """
        diagnostics: list[ParseDiagnostic] = []
        metadata, body = self._split_front_matter(markdown, source_file, diagnostics)

        section_id = self._string_field(metadata.get("id"))
        if not section_id:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.MISSING_ID,
                message="Section is missing required 'id' field in front matter",
                source_file=source_file,
            ))
            section_id = slugify(source_file)

        title = self._string_field(metadata.get("title"))
        if not title:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.MISSING_TITLE,
                message="Section is missing required 'title' field in front matter",
                source_file=source_file,
            ))
            title = DEFAULT_TITLE

        headings, examples = self._scan(body, source_file, diagnostics)

        section = ParsedSection(
            id=section_id,
            title=title,
            context=self._string_field(metadata.get("context")),
            requires=self._string_list(metadata.get("requires")),
            headings=headings,
            examples=examples,
            raw_content=body,
            source_file=source_file,
        )
        return ParseResult(section=section, diagnostics=diagnostics)

    def _split_front_matter(
        self,
        markdown: str,
        source_file: str,
        diagnostics: list[ParseDiagnostic],
    ) -> tuple[dict[str, Any], str]:
        """Separate the front-matter metadata from the body."""
        try:
            post = frontmatter.loads(markdown)
            return dict(post.metadata), post.content
        except (yaml.YAMLError, ValueError) as e:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.INVALID_FRONT_MATTER,
                message=f"Could not parse front matter: {e}",
                source_file=source_file,
                line=1,
            ))
            return {}, FRONT_MATTER_BLOCK.sub("", markdown, count=1).strip()

    def _scan(
        self,
        body: str,
        source_file: str,
        diagnostics: list[ParseDiagnostic],
    ) -> tuple[list[ParsedHeading], list[ParsedExample]]:
        """Scan body lines for headings and annotated fences."""
        headings: list[ParsedHeading] = []
        examples: list[ParsedExample] = []
        slug_counts: dict[str, int] = {}
        used_ids: set[str] = set()
        fence: Optional[_OpenFence] = None

        for line_number, line in enumerate(body.split("\n"), start=1):
            if fence is not None:
                if fence.closes(line):
                    if fence.is_tagged:
                        example = self._build_example(fence, source_file, diagnostics)
                        if example is not None:
                            examples.append(example)
                    fence = None
                else:
                    fence.body.append(line)
                continue

            fence_match = FENCE_PATTERN.match(line)
            if fence_match:
                fence = self._open_fence(fence_match, line_number)
                continue

            heading_match = HEADING_PATTERN.match(line)
            if heading_match:
                text = heading_match.group(2).strip()
                slug = slugify(text)
                seen = slug_counts.get(slug, 0)
                heading_id = slug if seen == 0 else f"{slug}-{seen}"
                # Ids stay unique even when a heading text slugs to a generated id
                while heading_id in used_ids:
                    seen += 1
                    heading_id = f"{slug}-{seen}"
                slug_counts[slug] = seen + 1
                used_ids.add(heading_id)
                headings.append(ParsedHeading(
                    id=heading_id,
                    text=text,
                    level=len(heading_match.group(1)),
                    line=line_number,
                ))

        if fence is not None and fence.is_tagged:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.UNTERMINATED_FENCE,
                message=f"Example fence '{fence.type_token}' is never closed",
                source_file=source_file,
                line=fence.line,
            ))

        return headings, examples

    def _open_fence(self, match: re.Match, line_number: int) -> _OpenFence:
        """Start a fenced block, tagged if the info string is an annotation."""
        marker, info = match.group(1), match.group(2).strip()
        tagged = TAGGED_FENCE_PATTERN.match(info) if marker.startswith("`") else None
        if tagged and tagged.group("language") == self.language:
            return _OpenFence(
                marker=marker,
                line=line_number,
                type_token=tagged.group("type"),
                attrs=tagged.group("attrs"),
            )
        return _OpenFence(marker=marker, line=line_number)

    def _build_example(
        self,
        fence: _OpenFence,
        source_file: str,
        diagnostics: list[ParseDiagnostic],
    ) -> Optional[ParsedExample]:
        """Turn a closed annotated fence into an example, or skip it."""
        example_type = ExampleType.from_token(fence.type_token or "")
        if example_type is None:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.UNKNOWN_EXAMPLE_TYPE,
                message=(
                    f"Invalid example type '{fence.type_token}'. "
                    f"Valid types: {', '.join(t.value for t in ExampleType)}"
                ),
                source_file=source_file,
                line=fence.line,
            ))
            return None

        attrs = parse_attributes(fence.attrs)
        example_id = attrs.get("id")
        if not example_id:
            diagnostics.append(ParseDiagnostic(
                code=DiagnosticCode.MISSING_EXAMPLE_ID,
                message="Example is missing required 'id' attribute",
                source_file=source_file,
                line=fence.line,
            ))
            return None

        return ParsedExample(
            id=example_id,
            type=example_type,
            query=_trim_blank_lines(fence.body),
            expect=self._build_expectation(attrs, source_file, fence.line, diagnostics),
            notes=attrs.get("notes"),
            source_file=source_file,
            line_number=fence.line,
        )

    def _build_expectation(
        self,
        attrs: dict[str, str],
        source_file: str,
        line: int,
        diagnostics: list[ParseDiagnostic],
    ) -> Optional[ExampleExpectation]:
        """Build the expectation from fence attributes."""
        fields: dict[str, Any] = {}

        if attrs.get("expect") in ("results", "success"):
            fields["results"] = True

        for key in ("min", "max"):
            if key not in attrs:
                continue
            try:
                fields[key] = int(attrs[key])
            except ValueError:
                diagnostics.append(ParseDiagnostic(
                    code=DiagnosticCode.INVALID_ATTRIBUTE,
                    message=f"Ignoring non-numeric '{key}' value '{attrs[key]}'",
                    source_file=source_file,
                    line=line,
                ))

        if attrs.get("error"):
            fields["error"] = attrs["error"]

        return ExampleExpectation(**fields) if fields else None

    @staticmethod
    def _string_field(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def _string_list(value: Any) -> list[str]:
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(v) for v in value if v is not None]
        return []


def parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse a fence attribute list.

    Accepts ``key=value``, ``key="quoted value"`` and ``key='quoted value'``
    in any order, separated by commas and/or whitespace.

    Args:
        attr_string: Text between the brackets of the fence annotation.

    Returns:
        Mapping of attribute names to values (later keys win).
    """
    attrs: dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(attr_string):
        key = match.group(1)
        value = next(g for g in match.groups()[1:] if g is not None)
        attrs[key] = value
    return attrs


def _trim_blank_lines(lines: list[str]) -> str:
    """Join lines, dropping blank lines at both ends only."""
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def parse_section_with_diagnostics(
    markdown: str,
    source_file: str,
    language: str = DEFAULT_LANGUAGE,
) -> ParseResult:
    """Parse a section and return it with its diagnostics."""
    return SectionParser(language).parse(markdown, source_file)


def parse_section(
    markdown: str,
    source_file: str,
    language: str = DEFAULT_LANGUAGE,
) -> ParsedSection:
    """Parse a curriculum markdown file into a section.

    Diagnostics are logged as warnings; use parse_section_with_diagnostics
    to receive them instead.

    Args:
        markdown: Raw markdown content.
        source_file: Source file label for defaults and error reporting.
        language: Language tag of annotated fences.

    Returns:
        The parsed section.
    """
    result = parse_section_with_diagnostics(markdown, source_file, language)
    for diagnostic in result.diagnostics:
        logger.warning(str(diagnostic))
    return result.section


def get_example_ids(section: ParsedSection) -> list[str]:
    """Example ids of a section in source order."""
    return [e.id for e in section.examples]


def find_duplicate_example_ids(
    sections: list[ParsedSection],
) -> dict[str, list[SourceLocation]]:
    """Find example ids declared more than once across sections.

    Args:
        sections: Sections to check.

    Returns:
        Mapping of duplicated id to every location declaring it.
    """
    seen: dict[str, list[SourceLocation]] = {}
    for section in sections:
        for example in section.examples:
            seen.setdefault(example.id, []).append(
                SourceLocation(source_file=example.source_file, line_number=example.line_number)
            )
    return {eid: locations for eid, locations in seen.items() if len(locations) > 1}


def validate_section(section: ParsedSection) -> list[str]:
    """Check a parsed section for common authoring issues.

    Returns:
        Human-readable warning messages (empty if none).
    """
    warnings = []

    if not section.id:
        warnings.append(f"Section in {section.source_file} has no ID")

    if not section.title or section.title == DEFAULT_TITLE:
        warnings.append(f"Section {section.id} in {section.source_file} has no title")

    for example in section.examples:
        if example.type == ExampleType.EXAMPLE and example.expect is None:
            warnings.append(
                f"Example '{example.id}' at {example.source} has no expectations defined"
            )
        if example.type == ExampleType.INVALID and not (example.expect and example.expect.error):
            warnings.append(
                f"Invalid example '{example.id}' at {example.source} "
                f"has no expected error pattern"
            )

    if not section.headings:
        warnings.append(f"Section {section.id} in {section.source_file} has no headings")

    return warnings
