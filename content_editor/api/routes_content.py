"""Routes for loading, regenerating, aligning and rendering page content."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from content_editor.config import Settings, get_settings
from content_editor.services.alignment.merger import align_regeneration
from content_editor.services.alignment.models import HighlightSection, MergedDocument
from content_editor.services.alignment.renderer import RenderMode, block_to_dict, render_blocks
from content_editor.services.fetch.models import PageContentRequest, UrlMapping
from content_editor.services.fetch.scraper import ContentFetchError, ContentFetcher
from content_editor.services.regeneration.service import (
    ContentRegenerator,
    RegenerationError,
    RegenerationRequest,
    build_regenerator,
)

router = APIRouter(prefix="/content", tags=["content"])


class UrlMappingIn(BaseModel):
    source_url: str = ""
    target_url: str
    note: str | None = None


class PageContentIn(BaseModel):
    url: str | None = None
    normalized_url: str | None = None
    mapping: UrlMappingIn | None = None
    mapping_target_url: str | None = None
    source_urls: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_some_url(self) -> "PageContentIn":
        has_mapping = self.mapping is not None and bool(self.mapping.target_url)
        if not (
            self.url or self.normalized_url or self.mapping_target_url or self.source_urls
        ) and not has_mapping:
            raise ValueError("At least one URL must be provided to load page content.")
        return self

    def to_request(self) -> PageContentRequest:
        mapping = None
        if self.mapping is not None:
            mapping = UrlMapping(
                source_url=self.mapping.source_url,
                target_url=self.mapping.target_url,
                note=self.mapping.note,
            )
        return PageContentRequest(
            url=self.url,
            normalized_url=self.normalized_url,
            mapping=mapping,
            mapping_target_url=self.mapping_target_url,
            source_urls=list(self.source_urls),
        )


class HighlightStepOut(BaseModel):
    step_number: int
    action: str | None = None
    success_signal: str | None = None


class HighlightOut(BaseModel):
    id: str
    match_text: str
    normalized_key: str
    steps: list[HighlightStepOut] = Field(default_factory=list)
    resolved_heading: str | None = None
    resolved_normalized_key: str | None = None


class MergedOut(BaseModel):
    content: str
    highlights: list[HighlightOut]

    @classmethod
    def from_document(cls, document: MergedDocument) -> "MergedOut":
        return cls(
            content=document.content,
            highlights=[HighlightOut(**h.to_dict()) for h in document.highlights],
        )


class RegenerateIn(BaseModel):
    original_content: str
    model: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict)
    page_url: str | None = None
    persona: str | None = None
    objective: str | None = None


class RegenerateOut(BaseModel):
    model: str
    content: str
    summary: dict[str, Any]
    intent: dict[str, Any]
    plan: dict[str, Any]
    rewrite_meta: dict[str, Any] | None = None
    usage: dict[str, Any]
    merged: MergedOut


class AlignIn(BaseModel):
    original: str
    regenerated: str
    plan: dict[str, Any] | None = None


class RenderIn(BaseModel):
    markdown: str
    highlights: list[HighlightOut] = Field(default_factory=list)
    selected_highlight: Optional[str] = None
    mode: RenderMode = RenderMode.HIGHLIGHTED


class RenderOut(BaseModel):
    blocks: list[dict[str, Any]]


def get_fetcher(settings: Annotated[Settings, Depends(get_settings)]) -> ContentFetcher:
    return ContentFetcher(
        user_agent=settings.fetch_user_agent,
        rate_limit_seconds=settings.fetch_rate_limit_seconds,
        timeout=settings.fetch_timeout_seconds,
    )


def get_regenerator(settings: Annotated[Settings, Depends(get_settings)]) -> ContentRegenerator:
    try:
        return build_regenerator(settings)
    except RegenerationError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc


@router.post("/page-content", status_code=status.HTTP_200_OK)
def page_content(
    payload: PageContentIn, fetcher: Annotated[ContentFetcher, Depends(get_fetcher)]
) -> dict[str, Any]:
    """Fetch a page and return its content as markdown with extraction metadata."""
    try:
        content = fetcher.fetch(payload.to_request())
    except ContentFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return content.to_dict()


@router.post("/regenerate", response_model=RegenerateOut, status_code=status.HTTP_200_OK)
def regenerate(
    payload: RegenerateIn,
    settings: Annotated[Settings, Depends(get_settings)],
    regenerator: Annotated[ContentRegenerator, Depends(get_regenerator)],
) -> RegenerateOut:
    """Regenerate page content and merge the targeted sections into the original."""
    if len(payload.original_content.strip()) < settings.regen_min_content_chars:
        raise HTTPException(
            status_code=422,
            detail="Original content is required for regeneration.",
        )
    request = RegenerationRequest(
        original_content=payload.original_content,
        model=payload.model,
        metadata=payload.metadata,
        context=payload.context,
        page_url=payload.page_url,
        persona=payload.persona,
        objective=payload.objective,
    )
    try:
        result = regenerator.regenerate(request)
    except RegenerationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    merged = align_regeneration(payload.original_content, result.content, result.plan)
    return RegenerateOut(**result.to_dict(), merged=MergedOut.from_document(merged))


@router.post("/align", response_model=MergedOut)
def align(payload: AlignIn) -> MergedOut:
    """Merge a regenerated document into the original using a step plan."""
    merged = align_regeneration(payload.original, payload.regenerated, payload.plan)
    return MergedOut.from_document(merged)


@router.post("/render", response_model=RenderOut)
def render(payload: RenderIn) -> RenderOut:
    """Render markdown into typed blocks tagged with their highlight region."""
    highlights = [HighlightSection.from_dict(h.model_dump()) for h in payload.highlights]
    blocks = render_blocks(
        payload.markdown,
        highlights,
        selected_key=payload.selected_highlight,
        mode=payload.mode,
    )
    return RenderOut(blocks=[block_to_dict(b) for b in blocks])
