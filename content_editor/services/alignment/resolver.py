"""Anchor highlight sections to headings of the regenerated document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from content_editor.services.alignment.models import HeadingRef, HighlightSection
from content_editor.services.alignment.normalize import key_tokens
from content_editor.services.alignment.sections import extract_headings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeadingCandidate:
    heading: HeadingRef
    score: int


def exact_match(
    highlight: HighlightSection, headings: Sequence[HeadingRef]
) -> Optional[HeadingRef]:
    for heading in headings:
        if heading.normalized == highlight.normalized_key:
            return heading
    return None


def overlap_score(tokens: Sequence[str], heading: HeadingRef) -> int:
    """Sum of lengths of tokens found as substrings of the heading key."""
    return sum(len(token) for token in tokens if token in heading.normalized)


def candidate_order(candidate: HeadingCandidate) -> tuple[int, int]:
    return (-candidate.score, candidate.heading.level)


def rank_candidates(
    highlight: HighlightSection, headings: Sequence[HeadingRef]
) -> List[HeadingCandidate]:
    """Scored headings, best first: highest score, then shallowest level, then document order."""
    tokens = key_tokens(highlight.match_text)
    if not tokens:
        return []
    scored = [HeadingCandidate(heading=h, score=overlap_score(tokens, h)) for h in headings]
    ranked = [c for c in scored if c.score > 0]
    ranked.sort(key=candidate_order)
    return ranked


def resolve_heading(
    highlight: HighlightSection, headings: Sequence[HeadingRef]
) -> Optional[HeadingRef]:
    heading = exact_match(highlight, headings)
    if heading is not None:
        return heading
    ranked = rank_candidates(highlight, headings)
    return ranked[0].heading if ranked else None


def resolve_highlights(
    highlights: Sequence[HighlightSection], regenerated_markdown: str
) -> List[HighlightSection]:
    """Return copies of the highlights with resolution fields set where a heading was found."""
    headings = extract_headings(regenerated_markdown)
    resolved: List[HighlightSection] = []
    misses = 0
    for highlight in highlights:
        heading = resolve_heading(highlight, headings)
        if heading is None:
            misses += 1
            resolved.append(
                replace(
                    highlight,
                    steps=list(highlight.steps),
                    resolved_heading=None,
                    resolved_normalized_key=None,
                )
            )
            continue
        resolved.append(
            replace(
                highlight,
                steps=list(highlight.steps),
                resolved_heading=heading.text,
                resolved_normalized_key=heading.normalized,
            )
        )
    logger.debug(
        "Resolved %d/%d highlights against %d headings",
        len(highlights) - misses,
        len(highlights),
        len(headings),
    )
    return resolved
