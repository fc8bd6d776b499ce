"""Fetch a page and turn its readable content into markdown."""

from __future__ import annotations

import datetime as dt
import logging
import re
import time
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import unquote, urlsplit

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup, Tag

from content_editor.services.fetch.models import (
    CandidateUrl,
    ContentBlock,
    FetchWarning,
    PageContent,
    PageContentRequest,
    PageMetadata,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3
BACKOFF_SECONDS = [0.5, 1.0, 2.0]
REQUEST_TIMEOUT = 20.0
HOSTNAME_PATTERN = re.compile(r"[a-z0-9-]+\.[a-z]{2,}", re.IGNORECASE)
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
BLOCK_TAGS = [*HEADING_TAGS, "p", "li", "blockquote"]


class ContentFetchError(Exception):
    """Raised when page content could not be retrieved."""


def sanitize_candidate_url(raw: Optional[str]) -> Optional[str]:
    """Return an absolute http(s) URL for the value, or None if it cannot be one."""
    if not raw or not isinstance(raw, str):
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None
    if re.match(r"^https?://", trimmed, re.IGNORECASE):
        return trimmed
    if trimmed.startswith("//"):
        return f"https:{trimmed}"
    if HOSTNAME_PATTERN.search(trimmed):
        return "https://" + trimmed.lstrip("/")
    return None


def canonicalize_page_url(raw: Optional[str]) -> str:
    """Reduce a URL to ``host/path`` with ``www.`` and trailing slash removed."""
    if not raw or not raw.strip():
        return ""
    candidate = raw.strip()
    if not re.match(r"^https?://", candidate, re.IGNORECASE):
        if candidate.startswith("//"):
            candidate = f"https:{candidate}"
        else:
            candidate = "https://" + candidate.lstrip("/")
    parts = urlsplit(candidate)
    host = (parts.hostname or "").lower()
    host = host[4:] if host.startswith("www.") else host
    if not host:
        return ""
    path = re.sub(r"/+", "/", unquote(parts.path or "/"))
    if not path.startswith("/"):
        path = f"/{path}"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return f"{host}{path}"


def page_key(request: PageContentRequest) -> str:
    """Identity of the page a request is for; used as the session cache key."""
    raws = (request.normalized_url, request.url, request.mapping_target_url, *request.source_urls)
    for raw in raws:
        key = canonicalize_page_url(raw)
        if key:
            return key
    return ""


def candidate_urls(request: PageContentRequest) -> List[CandidateUrl]:
    """Ordered, de-duplicated URLs to try for a request."""
    seen: set[str] = set()
    result: List[CandidateUrl] = []

    def add(raw: Optional[str], label: str) -> None:
        url = sanitize_candidate_url(raw)
        if url and url not in seen:
            seen.add(url)
            result.append(CandidateUrl(url=url, label=label))

    add(request.mapping.target_url if request.mapping else None, "mapping.targetUrl")
    add(request.mapping_target_url, "mappingTargetUrl")
    add(request.normalized_url, "normalizedUrl")
    add(request.url, "url")
    for source in request.source_urls:
        add(source, "sourceUrl")

    if not result:
        raise ContentFetchError("No valid URLs provided to load page content.")
    return result


@dataclass
class FetchContext:
    session: requests.Session
    rate_limit_seconds: float
    user_agent: str
    timeout: float = REQUEST_TIMEOUT
    last_request_ts: float = 0.0

    def wait_for_rate_limit(self) -> None:
        now = time.time()
        elapsed = now - self.last_request_ts
        if elapsed < self.rate_limit_seconds:
            time.sleep(self.rate_limit_seconds - elapsed)

    def update_timestamp(self) -> None:
        self.last_request_ts = time.time()


def polite_get(ctx: FetchContext, url: str) -> requests.Response:
    """GET with rate limit, retries, and backoff on 429/5xx."""
    headers = {"User-Agent": ctx.user_agent}
    for attempt in range(DEFAULT_RETRIES):
        ctx.wait_for_rate_limit()
        try:
            resp = ctx.session.get(url, headers=headers, timeout=ctx.timeout)
            ctx.update_timestamp()
        except requests.RequestException:  # network / timeout
            if attempt == DEFAULT_RETRIES - 1:
                raise
            time.sleep(BACKOFF_SECONDS[min(attempt, len(BACKOFF_SECONDS) - 1)])
            continue

        if resp.status_code in {429, 500, 502, 503, 504}:
            if attempt == DEFAULT_RETRIES - 1:
                resp.raise_for_status()
            delay = BACKOFF_SECONDS[min(attempt, len(BACKOFF_SECONDS) - 1)]
            time.sleep(delay)
            continue
        resp.raise_for_status()
        return resp
    return resp  # pragma: no cover - logically unreachable


def _clean_container(container: Tag) -> None:
    for tag in container.find_all(["header", "footer", "nav", "aside", "script", "style"]):
        tag.decompose()


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": name})
    if isinstance(tag, Tag):
        value = str(tag.get("content", "") or "").strip()
        return value or None
    return None


def extract_page(html: str) -> PageMetadata:
    """Extract title, meta tags, heading outline and ordered content blocks."""
    soup = BeautifulSoup(html, "lxml")
    title_tag = soup.find("title") or soup.find("h1")
    title = title_tag.get_text(strip=True) if title_tag else None

    container = soup.body or soup
    _clean_container(container)

    headings: dict[str, List[str]] = {}
    for level in ("h1", "h2", "h3"):
        texts = [h.get_text(strip=True) for h in container.find_all(level)]
        headings[level] = [t for t in texts if t]

    blocks: List[ContentBlock] = []
    paragraph_count = 0
    for element in container.find_all(BLOCK_TAGS):
        if element.name == "p" and element.find_parent(["li", "blockquote"]):
            continue
        text = element.get_text(separator=" ", strip=True)
        if not text:
            continue
        list_type = None
        if element.name == "li":
            parent = element.find_parent(["ol", "ul"])
            list_type = "ordered" if parent is not None and parent.name == "ol" else "unordered"
        if element.name == "p":
            paragraph_count += 1
        blocks.append(ContentBlock(type=element.name, text=text, list_type=list_type))

    return PageMetadata(
        title=title or None,
        description=_meta_content(soup, "description"),
        keywords=_meta_content(soup, "keywords"),
        headings={level: items for level, items in headings.items() if items},
        content_blocks=blocks,
        paragraph_count=paragraph_count,
    )


def format_blocks_as_markdown(
    title: Optional[str], url: Optional[str], blocks: List[ContentBlock], scraped_at: str
) -> str:
    """Render extracted blocks as markdown, one block per paragraph."""
    page_title = title or "Page Content Preview"
    lines: List[str] = [f"# {page_title}"]
    if url:
        lines.append(f"_Source: [{url}]({url})_")

    list_buffer: List[str] = []
    list_type: Optional[str] = None

    def flush_list() -> None:
        nonlocal list_buffer, list_type
        for idx, item in enumerate(list_buffer, start=1):
            lines.append(f"{idx}. {item}" if list_type == "ordered" else f"- {item}")
        list_buffer = []
        list_type = None

    skipped_title = False
    for block in blocks:
        text = block.text.strip()
        if not text:
            continue
        if block.type == "li":
            current = "ordered" if block.list_type == "ordered" else "unordered"
            if list_type and list_type != current:
                flush_list()
            list_type = current
            list_buffer.append(text)
            continue
        flush_list()
        if block.type in HEADING_TAGS:
            if block.type == "h1" and text == page_title and not skipped_title:
                skipped_title = True
                continue
            lines.append(f"{'#' * int(block.type[1])} {text}")
        elif block.type == "blockquote":
            lines.append(f"> {text}")
        else:
            lines.append(text)
    flush_list()

    lines.append("---")
    lines.append(f"_Scraped at: {scraped_at}_")
    return "\n\n".join(lines)


class ContentFetcher:
    """Loads page content for a request, trying each candidate URL in turn."""

    def __init__(
        self,
        user_agent: str,
        rate_limit_seconds: float = 0.0,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.ctx = FetchContext(
            session=session or requests.Session(),
            rate_limit_seconds=rate_limit_seconds,
            user_agent=user_agent,
            timeout=timeout,
        )

    def fetch(self, request: PageContentRequest) -> PageContent:
        candidates = candidate_urls(request)
        attempted: List[CandidateUrl] = []
        warnings: List[FetchWarning] = []

        for candidate in candidates:
            attempted.append(candidate)
            logger.info("Fetching %s (source: %s)", candidate.url, candidate.label)
            try:
                resp = polite_get(self.ctx, candidate.url)
            except requests.RequestException as exc:
                logger.warning("Failed to fetch %s: %s", candidate.url, exc)
                warnings.append(
                    FetchWarning(url=candidate.url, source=candidate.label, message=str(exc))
                )
                continue

            metadata = extract_page(resp.text)
            scraped_at = dt.datetime.now(dt.timezone.utc).isoformat()
            markdown = format_blocks_as_markdown(
                metadata.title, candidate.url, metadata.content_blocks, scraped_at
            )
            return PageContent(
                markdown=markdown,
                resolved_url=candidate.url,
                requested_url=request.url,
                attempted_urls=attempted,
                metadata=metadata,
                scraped_at=scraped_at,
                warnings=warnings,
            )

        last = warnings[-1]
        raise ContentFetchError(
            f"Failed to load content. Last attempt ({last.url}) responded with: {last.message}"
        )
