"""Split markdown into heading-rooted sections."""

from __future__ import annotations

import logging
import re
from typing import List, Sequence, Tuple

from content_editor.services.alignment.models import HeadingRef, Section
from content_editor.services.alignment.normalize import normalize_heading

logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")


def match_heading(line: str) -> Tuple[int, str] | None:
    """Return (level, raw text) when the line is an ATX heading."""
    match = HEADING_PATTERN.match(line)
    if not match:
        return None
    return len(match.group(1)), match.group(2)


def split_lines(markdown: str) -> List[str]:
    return markdown.split("\n") if markdown else []


def split_preamble(markdown: str) -> Tuple[List[str], List[Section]]:
    """
    Split a document into the lines before its first heading and its sections.

    Fenced code is not tracked: a ``#`` line inside a fence starts a section.
    """
    preamble: List[str] = []
    sections: List[Section] = []
    current: Section | None = None

    for line in split_lines(markdown):
        parsed = match_heading(line)
        if parsed is None:
            if current is None:
                preamble.append(line)
            else:
                current.body_lines.append(line)
            continue
        if current is not None:
            sections.append(current)
        level, text = parsed
        current = Section(
            heading=text,
            level=level,
            normalized_heading=normalize_heading(text),
            line=line,
            body_lines=[],
        )

    if current is not None:
        sections.append(current)

    logger.debug("Parsed %d sections (%d preamble lines)", len(sections), len(preamble))
    return preamble, sections


def parse_sections(markdown: str) -> List[Section]:
    """Ordered sections of the document; content before the first heading is not included."""
    _, sections = split_preamble(markdown)
    return sections


def join_sections(sections: Sequence[Section], preamble: Sequence[str] = ()) -> str:
    lines: List[str] = list(preamble)
    for section in sections:
        lines.extend(section.lines())
    return "\n".join(lines)


def extract_headings(markdown: str) -> List[HeadingRef]:
    headings: List[HeadingRef] = []
    for idx, line in enumerate(split_lines(markdown)):
        parsed = match_heading(line)
        if parsed is None:
            continue
        level, text = parsed
        headings.append(
            HeadingRef(text=text, level=level, normalized=normalize_heading(text), line_index=idx)
        )
    return headings
