"""Heading normalization shared by every alignment step."""

from __future__ import annotations

import re

NON_KEY_CHARS = re.compile(r"[^a-z0-9\s]")
WHITESPACE_RUN = re.compile(r"\s+")


def normalize_heading(text: str) -> str:
    """Lowercase, drop everything outside [a-z0-9 ] and collapse whitespace."""
    lowered = text.lower()
    cleaned = NON_KEY_CHARS.sub("", lowered)
    cleaned = WHITESPACE_RUN.sub(" ", cleaned)
    return cleaned.strip()


def key_tokens(text: str) -> list[str]:
    """Whitespace tokens of the normalized text."""
    normalized = normalize_heading(text)
    return normalized.split(" ") if normalized else []
