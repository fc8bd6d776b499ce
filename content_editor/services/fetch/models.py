"""Typed models for page content requests and results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class UrlMapping:
    source_url: str
    target_url: str
    note: Optional[str] = None


@dataclass
class PageContentRequest:
    url: Optional[str] = None
    normalized_url: Optional[str] = None
    mapping: Optional[UrlMapping] = None
    mapping_target_url: Optional[str] = None
    source_urls: List[str] = field(default_factory=list)


@dataclass
class ContentBlock:
    type: str
    text: str
    list_type: Optional[str] = None


@dataclass
class CandidateUrl:
    url: str
    label: str


@dataclass
class FetchWarning:
    url: str
    source: Optional[str] = None
    message: Optional[str] = None


@dataclass
class PageMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    headings: Dict[str, List[str]] = field(default_factory=dict)
    content_blocks: List[ContentBlock] = field(default_factory=list)
    paragraph_count: int = 0


@dataclass
class PageContent:
    markdown: str
    resolved_url: Optional[str]
    requested_url: Optional[str]
    attempted_urls: List[CandidateUrl]
    metadata: PageMetadata
    scraped_at: str
    warnings: List[FetchWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
