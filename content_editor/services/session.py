"""Editor session state for loading, regenerating and merging page content."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from content_editor.services.alignment.highlights import build_highlights, plan_steps
from content_editor.services.alignment.merger import merge_sections
from content_editor.services.alignment.models import HighlightSection, MergedDocument
from content_editor.services.alignment.resolver import resolve_highlights
from content_editor.services.fetch.models import PageContent, PageContentRequest
from content_editor.services.fetch.scraper import ContentFetchError
from content_editor.services.regeneration.service import (
    RegenerationError,
    RegenerationRequest,
    RegenerationResult,
)

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, request: PageContentRequest) -> PageContent: ...


class Regenerator(Protocol):
    def regenerate(self, request: RegenerationRequest) -> RegenerationResult: ...


@dataclass
class PageState:
    key: str
    content: Optional[PageContent] = None
    regeneration: Optional[RegenerationResult] = None
    merged: Optional[MergedDocument] = None
    highlights: List[HighlightSection] = field(default_factory=list)
    error: Optional[str] = None
    loading: bool = False
    regenerating: bool = False


class EditorSession:
    """
    Per-user editing session over many pages.

    Only one page is active at a time. Network calls run in worker threads and their
    results are applied only if the page they were started for is still active when
    they finish. Fetched content is cached per page for the life of the session.
    """

    def __init__(self, fetcher: Fetcher, regenerator: Regenerator | None = None) -> None:
        self.fetcher = fetcher
        self.regenerator = regenerator
        self.active_key: Optional[str] = None
        self._cache: Dict[str, PageContent] = {}
        self._pages: Dict[str, PageState] = {}

    def page_state(self, key: str) -> PageState:
        if key not in self._pages:
            self._pages[key] = PageState(key=key)
        return self._pages[key]

    def select_page(self, key: str) -> PageState:
        if key != self.active_key:
            logger.debug("Active page %s -> %s", self.active_key, key)
        self.active_key = key
        return self.page_state(key)

    def cached_content(self, key: str) -> Optional[PageContent]:
        return self._cache.get(key)

    def _is_stale(self, key: str, action: str) -> bool:
        if self.active_key == key:
            return False
        logger.info("Discarding %s result for %s; active page is %s", action, key, self.active_key)
        return True

    async def load_content(self, key: str, request: PageContentRequest) -> Optional[PageState]:
        """Load content for ``key`` and make it the active page; None if the result went stale."""
        state = self.select_page(key)
        cached = self._cache.get(key)
        if cached is not None:
            state.content = cached
            state.error = None
            return state

        state.loading = True
        state.error = None
        try:
            content = await asyncio.to_thread(self.fetcher.fetch, request)
        except ContentFetchError as exc:
            if self._is_stale(key, "fetch"):
                return None
            logger.warning("Content fetch failed for %s: %s", key, exc)
            state.error = str(exc)
            return state
        finally:
            state.loading = False

        if self._is_stale(key, "fetch"):
            return None
        self._cache[key] = content
        state.content = content
        return state

    async def regenerate(
        self,
        key: str,
        *,
        model: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
        persona: Optional[str] = None,
        objective: Optional[str] = None,
    ) -> Optional[PageState]:
        """Regenerate ``key`` as the active page and merge the result; None if it went stale."""
        if self.regenerator is None:
            raise RegenerationError("Content regeneration is not configured")
        state = self.select_page(key)
        if state.content is None:
            raise RegenerationError("Load the page content before regenerating")

        state.highlights = []
        state.merged = None
        state.regeneration = None
        state.error = None
        state.regenerating = True

        original = state.content.markdown
        request = RegenerationRequest(
            original_content=original,
            model=model,
            metadata=metadata or {},
            context=context or {},
            page_url=state.content.resolved_url,
            persona=persona,
            objective=objective,
        )
        try:
            result = await asyncio.to_thread(self.regenerator.regenerate, request)
        except RegenerationError as exc:
            if self._is_stale(key, "regeneration"):
                return None
            logger.warning("Regeneration failed for %s: %s", key, exc)
            state.error = str(exc)
            return state
        finally:
            state.regenerating = False

        if self._is_stale(key, "regeneration"):
            return None

        highlights = resolve_highlights(build_highlights(plan_steps(result.plan)), result.content)
        merged = merge_sections(original, result.content, highlights)
        state.regeneration = result
        state.merged = merged
        state.highlights = merged.highlights
        logger.info(
            "Regenerated %s: %d of %d highlights spliced",
            key,
            len(merged.highlights),
            len(highlights),
        )
        return state
