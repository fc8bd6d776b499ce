"""Block-level rendering of merged markdown with highlight tracking."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, List, Optional, Sequence, Tuple, Union

from content_editor.services.alignment.inline import format_inline
from content_editor.services.alignment.models import HighlightSection
from content_editor.services.alignment.normalize import normalize_heading
from content_editor.services.alignment.sections import match_heading, split_lines

logger = logging.getLogger(__name__)

RULE_PATTERN = re.compile(r"^[-*_]{3,}$")
BULLET_PATTERN = re.compile(r"^[-*+]\s")
TASK_PATTERN = re.compile(r"^[-*+]\s\[([ xX])\]\s?")
ORDERED_PATTERN = re.compile(r"^(\d+)\.\s")
FAQ_PATTERN = re.compile(r"^\*\*([QA]):\*\*\s*")
CALLOUT_PATTERN = re.compile(r"^>\s*\[!(.*?)\]\s*")
TABLE_SEPARATOR = re.compile(r"^\|?(\s*:?-+:?\s*\|)+\s*:?-*:?\s*$")


class RenderMode(str, Enum):
    HIGHLIGHTED = "highlighted"
    PLAIN = "plain"


@dataclass(kw_only=True)
class Block:
    kind: ClassVar[str] = "block"
    active_highlight_key: Optional[str] = None
    selected: bool = False


@dataclass
class HeadingBlock(Block):
    kind: ClassVar[str] = "heading"
    level: int
    text: str
    highlight_key: Optional[str] = None
    footnote: Optional[int] = None


@dataclass
class CodeBlock(Block):
    kind: ClassVar[str] = "code"
    language: str
    lines: List[str] = field(default_factory=list)


@dataclass
class BlockquoteBlock(Block):
    kind: ClassVar[str] = "blockquote"
    text: str


@dataclass
class RuleBlock(Block):
    kind: ClassVar[str] = "rule"


@dataclass
class ListItemBlock(Block):
    kind: ClassVar[str] = "list_item"
    text: str
    ordered: bool = False
    number: Optional[int] = None
    checked: Optional[bool] = None


@dataclass
class TableBlock(Block):
    kind: ClassVar[str] = "table"
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)


@dataclass
class FAQBlock(Block):
    kind: ClassVar[str] = "faq"
    is_question: bool
    text: str


@dataclass
class CalloutBlock(Block):
    kind: ClassVar[str] = "callout"
    variant: str
    text: str


@dataclass
class BlankBlock(Block):
    kind: ClassVar[str] = "blank"


@dataclass
class ParagraphBlock(Block):
    kind: ClassVar[str] = "paragraph"
    text: str


# --- highlight state machine ---


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Highlighted:
    key: str
    level: int


HighlightState = Union[Idle, Highlighted]
IDLE = Idle()


def advance(state: HighlightState, level: int, highlight_key: Optional[str]) -> HighlightState:
    """
    Transition on a heading line.

    A matched heading opens a region at its level. An unmatched heading closes the
    current region when it is at the same or a shallower level, and inherits it otherwise.
    """
    if highlight_key is not None:
        return Highlighted(key=highlight_key, level=level)
    if isinstance(state, Highlighted) and level <= state.level:
        return IDLE
    return state


def active_key(state: HighlightState) -> Optional[str]:
    return state.key if isinstance(state, Highlighted) else None


def find_highlight(
    heading_text: str, highlights: Sequence[HighlightSection]
) -> Optional[HighlightSection]:
    """Exact key match, then a key inside the heading key, then raw match text in the heading."""
    normalized = normalize_heading(heading_text)

    def keys(h: HighlightSection) -> List[str]:
        return [k for k in (h.normalized_key, h.resolved_normalized_key) if k]

    for highlight in highlights:
        if normalized and normalized in keys(highlight):
            return highlight
    if normalized:
        for highlight in highlights:
            if any(k in normalized for k in keys(highlight)):
                return highlight
    lowered = heading_text.lower()
    for highlight in highlights:
        needle = highlight.match_text.strip().lower()
        if needle and needle in lowered:
            return highlight
    return None


# --- block rules ---

Rule = Callable[[List[str], int], Optional[Tuple[Block, int]]]


def _read_fence(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if not lines[i].startswith("```"):
        return None
    language = lines[i][3:].strip()
    body: List[str] = []
    j = i + 1
    while j < len(lines) and not lines[j].startswith("```"):
        body.append(lines[j])
        j += 1
    return CodeBlock(language=language, lines=body), min(j + 1, len(lines))


def _read_callout(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    match = CALLOUT_PATTERN.match(lines[i])
    if not match:
        return None
    variant = match.group(1).strip().upper() or "NOTE"
    return CalloutBlock(variant=variant, text=lines[i][match.end() :]), i + 1


def _read_blockquote(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if not lines[i].startswith("> "):
        return None
    return BlockquoteBlock(text=lines[i][2:]), i + 1


def _read_rule(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if not RULE_PATTERN.match(lines[i]):
        return None
    return RuleBlock(), i + 1


def _read_task(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    match = TASK_PATTERN.match(lines[i])
    if not match:
        return None
    checked = match.group(1).lower() == "x"
    return ListItemBlock(text=lines[i][match.end() :], checked=checked), i + 1


def _read_bullet(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if not BULLET_PATTERN.match(lines[i]):
        return None
    return ListItemBlock(text=lines[i][2:]), i + 1


def _read_ordered(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    match = ORDERED_PATTERN.match(lines[i])
    if not match:
        return None
    return (
        ListItemBlock(text=lines[i][match.end() :], ordered=True, number=int(match.group(1))),
        i + 1,
    )


def _cells(row: str) -> List[str]:
    stripped = row.strip().removeprefix("|").removesuffix("|")
    return [cell.strip() for cell in stripped.split("|")]


def _read_table(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if not lines[i].startswith("|"):
        return None
    j = i
    while j < len(lines) and lines[j].startswith("|"):
        j += 1
    run = lines[i:j]
    if len(run) == 1:
        return ParagraphBlock(text=run[0]), j
    body = run[2:] if TABLE_SEPARATOR.match(run[1]) else run[1:]
    return TableBlock(headers=_cells(run[0]), rows=[_cells(r) for r in body]), j


def _read_faq(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    match = FAQ_PATTERN.match(lines[i])
    if not match:
        return None
    return FAQBlock(is_question=match.group(1) == "Q", text=lines[i][match.end() :]), i + 1


def _read_blank(lines: List[str], i: int) -> Optional[Tuple[Block, int]]:
    if lines[i].strip():
        return None
    return BlankBlock(), i + 1


BLOCK_RULES: Tuple[Rule, ...] = (
    _read_fence,
    _read_callout,
    _read_blockquote,
    _read_rule,
    _read_task,
    _read_bullet,
    _read_ordered,
    _read_table,
    _read_faq,
    _read_blank,
)


def read_block(lines: List[str], i: int) -> Tuple[Block, int]:
    """Apply the first matching rule at ``lines[i]``; anything else is a paragraph line."""
    for rule in BLOCK_RULES:
        result = rule(lines, i)
        if result is not None:
            return result
    return ParagraphBlock(text=lines[i]), i + 1


def render_blocks(
    markdown: str,
    highlights: Sequence[HighlightSection] = (),
    selected_key: Optional[str] = None,
    mode: RenderMode = RenderMode.HIGHLIGHTED,
) -> List[Block]:
    """Walk the markdown once, emitting blocks tagged with the highlight region they sit in."""
    lines = split_lines(markdown)
    tracking = mode == RenderMode.HIGHLIGHTED and bool(highlights)
    state: HighlightState = IDLE
    blocks: List[Block] = []
    i = 0

    while i < len(lines):
        parsed = match_heading(lines[i])
        block: Block
        if parsed is not None:
            level, text = parsed
            highlight = find_highlight(text, highlights) if tracking else None
            state = advance(state, level, highlight.key if highlight else None)
            block = HeadingBlock(
                level=level,
                text=text.strip(),
                highlight_key=highlight.key if highlight else None,
                footnote=highlight.footnote if highlight else None,
            )
            i += 1
        else:
            block, i = read_block(lines, i)

        block.active_highlight_key = active_key(state)
        block.selected = selected_key is not None and block.active_highlight_key == selected_key
        blocks.append(block)

    logger.debug("Rendered %d blocks from %d lines", len(blocks), len(lines))
    return blocks


def block_to_dict(block: Block) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": block.kind, **asdict(block)}
    text = data.get("text")
    if isinstance(text, str):
        data["html"] = format_inline(text)
    return data
