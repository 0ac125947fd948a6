"""Cross-links between curriculum sections.

Link syntax inside section markdown:

- ``[[ref:match]]``: reference entry for a keyword
- ``[[learn:first-queries]]`` or ``[[first-queries]]``: another section
- ``[[#heading-id]]``: heading in the current section
- ``[[learn:first-queries#variables]]``: heading in another section
- ``[[ref:match|Match Clause]]``: any of the above with display text
"""

import logging
import re
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from curriculum_eval.models.section import ParsedSection

logger = logging.getLogger("curriculum_eval.context.links")

LINK_PATTERN = re.compile(
    r"\[\[(?:(learn|ref):)?([a-z0-9-]+)?(?:#([a-z0-9-]+))?(?:\|([^\]]+))?\]\]",
    re.IGNORECASE,
)


class LinkType(str, Enum):
    """Kind of link target."""

    LEARN = "learn"
    REF = "ref"
    HEADING = "heading"


class ParsedLink(BaseModel):
    """A cross-link found in section content."""

    type: LinkType
    target_id: str  # Section id for learn/ref, heading id for heading links
    heading_id: Optional[str] = None
    raw_text: str
    line_number: int
    display_text: Optional[str] = None


class SectionLinks(BaseModel):
    """Outbound links of one section."""

    section_id: str
    outbound: list[ParsedLink] = Field(default_factory=list)


class BacklinkEntry(BaseModel):
    """A section linking to some target."""

    source_section_id: str
    link: ParsedLink


class BrokenLink(BaseModel):
    """A link whose target does not exist."""

    section_id: str
    source_file: str
    link: ParsedLink
    reason: str

    def __str__(self) -> str:
        return f"{self.source_file}:{self.link.line_number}: {self.link.raw_text} ({self.reason})"


class LinkIndex(BaseModel):
    """Forward and reverse link index for a curriculum."""

    by_section_id: dict[str, SectionLinks] = Field(default_factory=dict)
    backlinks: dict[str, list[BacklinkEntry]] = Field(default_factory=dict)  # "learn:x" / "ref:x"
    referenced_keywords: set[str] = Field(default_factory=set)
    referenced_sections: set[str] = Field(default_factory=set)


def parse_links(content: str, source_file: str) -> list[ParsedLink]:
    """Parse all cross-links from markdown content.

    Args:
        content: Markdown text.
        source_file: Source label used in log messages.

    Returns:
        Links in source order. Malformed links are logged and skipped.
    """
    links = []
    for match in LINK_PATTERN.finditer(content):
        prefix, target_id, heading_id, display_text = match.groups()
        line_number = content.count("\n", 0, match.start()) + 1

        if prefix:
            link_type = LinkType(prefix.lower())
        elif target_id:
            link_type = LinkType.LEARN
        elif heading_id:
            link_type = LinkType.HEADING
            target_id, heading_id = heading_id, None
        else:
            logger.warning(f"Invalid link '{match.group(0)}' at {source_file}:{line_number}")
            continue

        if not target_id:
            logger.warning(f"Link missing target at {source_file}:{line_number}: {match.group(0)}")
            continue

        links.append(ParsedLink(
            type=link_type,
            target_id=target_id,
            heading_id=heading_id,
            raw_text=match.group(0),
            line_number=line_number,
            display_text=display_text,
        ))
    return links


def parse_section_links(section: ParsedSection) -> SectionLinks:
    """Parse the outbound links of a section."""
    return SectionLinks(
        section_id=section.id,
        outbound=parse_links(section.raw_content, section.source_file),
    )


def build_link_index(sections: Iterable[ParsedSection]) -> LinkIndex:
    """Build the link index for a set of sections."""
    index = LinkIndex()
    for section in sections:
        section_links = parse_section_links(section)
        index.by_section_id[section.id] = section_links

        for link in section_links.outbound:
            if link.type == LinkType.REF:
                index.referenced_keywords.add(link.target_id)
            elif link.type == LinkType.LEARN:
                index.referenced_sections.add(link.target_id)
            else:
                continue
            key = f"{link.type.value}:{link.target_id}"
            index.backlinks.setdefault(key, []).append(
                BacklinkEntry(source_section_id=section.id, link=link)
            )
    return index


def get_outbound_links(index: LinkIndex, section_id: str) -> list[ParsedLink]:
    """Outbound links of a section, or [] if unknown."""
    section_links = index.by_section_id.get(section_id)
    return section_links.outbound if section_links else []


def get_backlinks(index: LinkIndex, link_type: LinkType, target_id: str) -> list[BacklinkEntry]:
    """Every link pointing at a learn section or reference keyword."""
    return index.backlinks.get(f"{LinkType(link_type).value}:{target_id}", [])


def get_sections_referencing_keyword(index: LinkIndex, keyword: str) -> list[str]:
    """Ids of sections that link to a reference keyword, without repeats."""
    entries = index.backlinks.get(f"ref:{keyword}", [])
    return list(dict.fromkeys(e.source_section_id for e in entries))


def find_broken_links(index: LinkIndex, sections: Iterable[ParsedSection]) -> list[BrokenLink]:
    """Find learn and heading links whose targets do not exist.

    Reference links are not checked; reference content lives elsewhere.
    """
    by_id = {s.id: s for s in sections}
    broken = []

    for section_id, section_links in index.by_section_id.items():
        section = by_id.get(section_id)
        if section is None:
            continue

        def report(link: ParsedLink, reason: str) -> None:
            broken.append(BrokenLink(
                section_id=section_id,
                source_file=section.source_file,
                link=link,
                reason=reason,
            ))

        for link in section_links.outbound:
            if link.type == LinkType.HEADING:
                if not _has_heading(section, link.target_id):
                    report(link, f"Heading '{link.target_id}' not found in section")
            elif link.type == LinkType.LEARN:
                target = by_id.get(link.target_id)
                if target is None:
                    report(link, f"Learn section '{link.target_id}' not found")
                elif link.heading_id and not _has_heading(target, link.heading_id):
                    report(
                        link,
                        f"Heading '{link.heading_id}' not found in target section '{link.target_id}'",
                    )

    return broken


def _has_heading(section: ParsedSection, heading_id: str) -> bool:
    return any(h.id == heading_id for h in section.headings)


def get_link_path(link: ParsedLink) -> str:
    """URL path for a link."""
    if link.type == LinkType.HEADING:
        return f"#{link.target_id}"
    base = "/learn" if link.type == LinkType.LEARN else "/reference"
    path = f"{base}/{link.target_id}"
    if link.heading_id:
        path += f"#{link.heading_id}"
    return path


def get_link_display_text(link: ParsedLink, sections: Iterable[ParsedSection]) -> str:
    """Text to show for a link.

    Explicit display text wins, then the target section title (with heading
    text for anchored links), then a prettified target id.
    """
    if link.display_text:
        return link.display_text

    if link.type == LinkType.LEARN:
        target = next((s for s in sections if s.id == link.target_id), None)
        if target is not None:
            if link.heading_id:
                heading = next((h for h in target.headings if h.id == link.heading_id), None)
                if heading is not None:
                    return f"{target.title} - {heading.text}"
            return target.title

    if link.type == LinkType.REF:
        return link.target_id[:1].upper() + link.target_id[1:]

    return link.target_id.replace("-", " ")
