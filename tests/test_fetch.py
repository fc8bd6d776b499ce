from pathlib import Path
from typing import Any

import pytest
import requests  # type: ignore[import-untyped]

from content_editor.services.fetch.models import PageContentRequest, UrlMapping
from content_editor.services.fetch.scraper import (
    ContentFetchError,
    ContentFetcher,
    candidate_urls,
    canonicalize_page_url,
    extract_page,
    format_blocks_as_markdown,
    page_key,
    sanitize_candidate_url,
)

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.calls: list[str] = []

    def get(self, url: str, headers: dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append(url)
        outcome = self.routes.get(url, FakeResponse(404))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("content_editor.services.fetch.scraper.time.sleep", lambda s: None)


def test_sanitize_candidate_url() -> None:
    assert sanitize_candidate_url(" https://acme.test/a ") == "https://acme.test/a"
    assert sanitize_candidate_url("//cdn.acme.test/x") == "https://cdn.acme.test/x"
    assert sanitize_candidate_url("acme.test/pricing") == "https://acme.test/pricing"
    assert sanitize_candidate_url("localhost") is None
    assert sanitize_candidate_url("   ") is None
    assert sanitize_candidate_url(None) is None


def test_canonicalize_page_url_and_page_key() -> None:
    assert canonicalize_page_url("https://www.Acme.test/Pricing/?a=1") == "acme.test/Pricing"
    assert canonicalize_page_url("acme.test//a//b/") == "acme.test/a/b"
    assert canonicalize_page_url("") == ""
    request = PageContentRequest(url="https://www.acme.test/pricing/")
    assert page_key(request) == "acme.test/pricing"
    assert page_key(PageContentRequest()) == ""


def test_candidate_urls_order_and_dedupe() -> None:
    request = PageContentRequest(
        url="https://acme.test/pricing",
        normalized_url="https://acme.test/pricing",
        mapping=UrlMapping(source_url="old", target_url="acme.test/pricing-new"),
        mapping_target_url="not a url",
        source_urls=["https://acme.test/legacy"],
    )
    assert [(c.url, c.label) for c in candidate_urls(request)] == [
        ("https://acme.test/pricing-new", "mapping.targetUrl"),
        ("https://acme.test/pricing", "normalizedUrl"),
        ("https://acme.test/legacy", "sourceUrl"),
    ]
    with pytest.raises(ContentFetchError, match="No valid URLs"):
        candidate_urls(PageContentRequest(url="nope"))


def test_extract_page_reads_meta_outline_and_blocks() -> None:
    page = extract_page(load_fixture("page_sample.html"))
    assert page.title == "Acme Pricing"
    assert page.description == "Plans for teams of every size"
    assert page.keywords == "pricing, plans"
    assert page.headings == {"h1": ["Acme Pricing"], "h2": ["Plans", "Setup"]}
    assert page.paragraph_count == 1
    assert [(b.type, b.text, b.list_type) for b in page.content_blocks] == [
        ("h1", "Acme Pricing", None),
        ("p", "Simple plans for every team.", None),
        ("h2", "Plans", None),
        ("li", "Starter", "unordered"),
        ("li", "Pro", "unordered"),
        ("h2", "Setup", None),
        ("li", "Sign up", "ordered"),
        ("li", "Invite your team", "ordered"),
        ("blockquote", "Best tool we bought this year.", None),
    ]


def test_format_blocks_as_markdown() -> None:
    page = extract_page(load_fixture("page_sample.html"))
    markdown = format_blocks_as_markdown(
        page.title, "https://acme.test/pricing", page.content_blocks, "2026-01-01T00:00:00+00:00"
    )
    assert markdown == "\n\n".join(
        [
            "# Acme Pricing",
            "_Source: [https://acme.test/pricing](https://acme.test/pricing)_",
            "Simple plans for every team.",
            "## Plans",
            "- Starter",
            "- Pro",
            "## Setup",
            "1. Sign up",
            "2. Invite your team",
            "> Best tool we bought this year.",
            "---",
            "_Scraped at: 2026-01-01T00:00:00+00:00_",
        ]
    )
    assert format_blocks_as_markdown(None, None, [], "now").startswith("# Page Content Preview")


def test_fetcher_falls_back_to_next_candidate() -> None:
    session = FakeSession(
        {"https://acme.test/pricing": FakeResponse(200, load_fixture("page_sample.html"))}
    )
    fetcher = ContentFetcher(user_agent="test-agent", session=session)
    request = PageContentRequest(
        url="https://acme.test/pricing",
        mapping=UrlMapping(source_url="", target_url="https://acme.test/moved"),
    )

    content = fetcher.fetch(request)

    assert content.resolved_url == "https://acme.test/pricing"
    assert content.requested_url == "https://acme.test/pricing"
    assert [c.label for c in content.attempted_urls] == ["mapping.targetUrl", "url"]
    assert [(w.url, w.source) for w in content.warnings] == [
        ("https://acme.test/moved", "mapping.targetUrl")
    ]
    assert content.markdown.startswith("# Acme Pricing\n\n_Source: [https://acme.test/pricing]")
    assert content.metadata.title == "Acme Pricing"
    assert content.to_dict()["metadata"]["headings"]["h2"] == ["Plans", "Setup"]


def test_fetcher_retries_server_errors_then_reports_last_failure() -> None:
    session = FakeSession(
        {
            "https://acme.test/a": FakeResponse(503),
            "https://acme.test/b": requests.ConnectionError("connection reset"),
        }
    )
    fetcher = ContentFetcher(user_agent="test-agent", session=session)
    request = PageContentRequest(url="https://acme.test/a", source_urls=["https://acme.test/b"])

    with pytest.raises(ContentFetchError) as excinfo:
        fetcher.fetch(request)

    assert str(excinfo.value) == (
        "Failed to load content. Last attempt (https://acme.test/b) responded with: "
        "connection reset"
    )
    assert session.calls == ["https://acme.test/a"] * 3 + ["https://acme.test/b"] * 3
