"""Typed models for sections, highlights and merged documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


@dataclass(frozen=True)
class Section:
    heading: str
    level: int
    normalized_heading: str
    line: str
    body_lines: List[str] = field(default_factory=list)

    def lines(self) -> List[str]:
        return [self.line, *self.body_lines]


@dataclass(frozen=True)
class HeadingRef:
    text: str
    level: int
    normalized: str
    line_index: int


@dataclass(frozen=True)
class PlanStep:
    step: int
    focus_area: str
    action: Optional[str] = None
    success_signal: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], position: int) -> Optional["PlanStep"]:
        """Build a step from loosely shaped model output; None if it has no focus area."""
        focus = data.get("focus_area")
        if not isinstance(focus, str) or not focus.strip():
            return None
        raw_step = data.get("step")
        try:
            number = int(raw_step)
        except (TypeError, ValueError):
            number = position
        action = data.get("action")
        signal = data.get("success_signal")
        return cls(
            step=number,
            focus_area=focus,
            action=action if isinstance(action, str) else None,
            success_signal=signal if isinstance(signal, str) else None,
        )


@dataclass(frozen=True)
class HighlightStep:
    step_number: int
    action: Optional[str] = None
    success_signal: Optional[str] = None


@dataclass
class HighlightSection:
    id: str
    match_text: str
    normalized_key: str
    steps: List[HighlightStep] = field(default_factory=list)
    resolved_heading: Optional[str] = None
    resolved_normalized_key: Optional[str] = None

    @property
    def key(self) -> str:
        return self.normalized_key

    @property
    def footnote(self) -> Optional[int]:
        """Numeric marker shown next to the heading; None for ids that are not numbers."""
        return int(self.id) if self.id.isdecimal() else None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_heading is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_text": self.match_text,
            "normalized_key": self.normalized_key,
            "steps": [
                {
                    "step_number": s.step_number,
                    "action": s.action,
                    "success_signal": s.success_signal,
                }
                for s in self.steps
            ],
            "resolved_heading": self.resolved_heading,
            "resolved_normalized_key": self.resolved_normalized_key,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HighlightSection":
        steps = [
            HighlightStep(
                step_number=int(item.get("step_number", 0)),
                action=item.get("action"),
                success_signal=item.get("success_signal"),
            )
            for item in data.get("steps") or []
        ]
        return cls(
            id=str(data["id"]),
            match_text=str(data.get("match_text", "")),
            normalized_key=str(data.get("normalized_key", "")),
            steps=steps,
            resolved_heading=data.get("resolved_heading"),
            resolved_normalized_key=data.get("resolved_normalized_key"),
        )


@dataclass
class MergedDocument:
    content: str
    highlights: List[HighlightSection]
