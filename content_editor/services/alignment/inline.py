"""Inline markdown to HTML for rendered blocks."""

from __future__ import annotations

import html
import re
from typing import List

# one level of nested parentheses is allowed inside a link target
URL_GROUP = r"\(((?:[^()]|\([^()]*\))+)\)"
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]" + URL_GROUP)
LINK_PATTERN = re.compile(r"\[([^\]]+)\]" + URL_GROUP)
SAFE_URL_PATTERN = re.compile(r"^(?:https?:|mailto:|/|#)", re.IGNORECASE)
BOLD_PATTERNS = (re.compile(r"\*\*(.*?)\*\*"), re.compile(r"__(.*?)__"))
ITALIC_PATTERNS = (re.compile(r"\*(.*?)\*"), re.compile(r"(?<!\w)_(.*?)_(?!\w)"))
STRIKE_PATTERN = re.compile(r"~~(.*?)~~")
CODE_PATTERN = re.compile(r"`(.*?)`")
PLACEHOLDER = "\x00{}\x00"
PLACEHOLDER_PATTERN = re.compile(r"\x00(\d+)\x00")


def is_safe_url(url: str) -> bool:
    return bool(SAFE_URL_PATTERN.match(url.strip()))


def format_inline(text: str) -> str:
    """
    Escape the text, then convert code spans, images, links, emphasis and strikethrough.

    Code spans and generated tags are set aside before the emphasis passes so their
    contents are never reformatted. Links and images whose target is not http(s),
    mailto, a path or a fragment stay as escaped text.
    """
    stash: List[str] = []

    def keep(fragment: str) -> str:
        stash.append(fragment)
        return PLACEHOLDER.format(len(stash) - 1)

    def code(match: re.Match[str]) -> str:
        return keep(f"<code>{match.group(1)}</code>")

    def image(match: re.Match[str]) -> str:
        alt, url = match.group(1), match.group(2).strip()
        if not is_safe_url(url):
            return match.group(0)
        return keep(f'<img src="{url}" alt="{alt}" />')

    def link(match: re.Match[str]) -> str:
        label, url = match.group(1), match.group(2).strip()
        if not is_safe_url(url):
            return match.group(0)
        opening = f'<a href="{url}" target="_blank" rel="noopener noreferrer">'
        return keep(opening) + label + keep("</a>")

    out = html.escape(text.replace("\x00", ""))
    out = CODE_PATTERN.sub(code, out)
    out = IMAGE_PATTERN.sub(image, out)
    out = LINK_PATTERN.sub(link, out)
    for pattern in BOLD_PATTERNS:
        out = pattern.sub(r"<strong>\1</strong>", out)
    for pattern in ITALIC_PATTERNS:
        out = pattern.sub(r"<em>\1</em>", out)
    out = STRIKE_PATTERN.sub(r"<del>\1</del>", out)
    out = PLACEHOLDER_PATTERN.sub(lambda m: stash[int(m.group(1))], out)
    return out.replace("\n", "<br />")
