"""Collapse a regeneration plan into highlight sections."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

from content_editor.services.alignment.models import HighlightSection, HighlightStep, PlanStep
from content_editor.services.alignment.normalize import normalize_heading

logger = logging.getLogger(__name__)

StepLike = Union[PlanStep, Mapping[str, Any]]


def plan_steps(plan: Mapping[str, Any] | None) -> List[PlanStep]:
    """Read ``plan["step_plan"]``, skipping entries that are not usable steps."""
    if not plan:
        return []
    raw_steps = plan.get("step_plan")
    if not isinstance(raw_steps, list):
        return []
    steps: List[PlanStep] = []
    for position, item in enumerate(raw_steps, start=1):
        if not isinstance(item, Mapping):
            continue
        step = PlanStep.from_dict(item, position)
        if step is not None:
            steps.append(step)
    return steps


def _coerce(steps: Iterable[StepLike]) -> List[PlanStep]:
    result: List[PlanStep] = []
    for position, item in enumerate(steps, start=1):
        if isinstance(item, PlanStep):
            result.append(item)
            continue
        step = PlanStep.from_dict(item, position)
        if step is not None:
            result.append(step)
    return result


def build_highlights(steps: Iterable[StepLike]) -> List[HighlightSection]:
    """
    Group plan steps by normalized focus area.

    The first step for a key creates the highlight; later steps append to it and
    replace ``match_text`` when their focus area is strictly longer. Ids count up
    from 1 in order of first appearance after sorting by step number.
    """
    ordered = sorted(_coerce(steps), key=lambda s: s.step)
    by_key: dict[str, HighlightSection] = {}

    for step in ordered:
        key = normalize_heading(step.focus_area)
        if not key:
            continue
        entry = HighlightStep(
            step_number=step.step, action=step.action, success_signal=step.success_signal
        )
        existing = by_key.get(key)
        if existing is None:
            by_key[key] = HighlightSection(
                id=str(len(by_key) + 1),
                match_text=step.focus_area,
                normalized_key=key,
                steps=[entry],
            )
            continue
        existing.steps.append(entry)
        if len(step.focus_area) > len(existing.match_text):
            existing.match_text = step.focus_area

    highlights = list(by_key.values())
    logger.debug("Built %d highlights from %d plan steps", len(highlights), len(ordered))
    return highlights
