"""Splice regenerated section bodies into the original document structure."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Sequence

from content_editor.services.alignment.highlights import build_highlights, plan_steps
from content_editor.services.alignment.models import HighlightSection, MergedDocument, Section
from content_editor.services.alignment.resolver import resolve_highlights
from content_editor.services.alignment.sections import split_preamble

logger = logging.getLogger(__name__)


def _first_by_heading(sections: Sequence[Section]) -> Dict[str, Section]:
    lookup: Dict[str, Section] = {}
    for section in sections:
        lookup.setdefault(section.normalized_heading, section)
    return lookup


def merge_sections(
    original_markdown: str,
    regenerated_markdown: str,
    highlights: Sequence[HighlightSection],
) -> MergedDocument:
    """
    Keep the original outline and replace only the bodies targeted by highlights.

    A section is replaced when a highlight's ``normalized_key`` equals its heading key
    and the highlight's resolved key (or its own key) names a regenerated section.
    Regenerated sections that are never targeted are dropped, as are highlights that
    produce no splice. Each highlight splices at most once. Lines before the first
    heading of the original are kept as they are.
    """
    preamble, original_sections = split_preamble(original_markdown)
    _, regenerated_sections = split_preamble(regenerated_markdown)
    regenerated_by_key = _first_by_heading(regenerated_sections)

    highlights_by_key: Dict[str, HighlightSection] = {}
    for highlight in highlights:
        highlights_by_key.setdefault(highlight.normalized_key, highlight)

    lines: List[str] = list(preamble)
    merged_highlights: List[HighlightSection] = []
    spliced: set[str] = set()

    for section in original_sections:
        lines.append(section.line)
        highlight = highlights_by_key.get(section.normalized_heading)
        replacement = None
        if highlight is not None and highlight.id not in spliced:
            target_key = highlight.resolved_normalized_key or highlight.normalized_key
            replacement = regenerated_by_key.get(target_key)

        if replacement is None or highlight is None:
            lines.extend(section.body_lines)
            continue

        lines.extend(replacement.body_lines)
        spliced.add(highlight.id)
        merged_highlights.append(
            replace(
                highlight,
                steps=list(highlight.steps),
                resolved_heading=replacement.heading,
                resolved_normalized_key=replacement.normalized_heading,
            )
        )

    logger.debug(
        "Merged %d sections, spliced %d of %d highlights",
        len(original_sections),
        len(merged_highlights),
        len(highlights),
    )
    return MergedDocument(content="\n".join(lines), highlights=merged_highlights)


def align_regeneration(
    original_markdown: str, regenerated_markdown: str, plan: Mapping[str, Any] | None
) -> MergedDocument:
    """Build, resolve and merge highlights for one regeneration response."""
    highlights = build_highlights(plan_steps(plan))
    resolved = resolve_highlights(highlights, regenerated_markdown)
    return merge_sections(original_markdown, regenerated_markdown, resolved)
