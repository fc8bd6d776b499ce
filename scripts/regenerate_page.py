"""CLI: load a page, regenerate it, and print the merged markdown."""

from __future__ import annotations

import argparse
import asyncio
import sys

from content_editor.config import configure_logging, get_settings
from content_editor.services.fetch.models import PageContentRequest
from content_editor.services.fetch.scraper import ContentFetcher, page_key
from content_editor.services.regeneration.service import RegenerationError, build_regenerator
from content_editor.services.session import EditorSession


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Regenerate a page and merge targeted sections.")
    parser.add_argument("url", help="Page URL to load.")
    parser.add_argument("--model", default=None, help="Model name (defaults to REGEN_MODEL).")
    parser.add_argument("--persona", default=None, help="Target persona for the rewrite.")
    parser.add_argument("--objective", default=None, help="Business objective for the rewrite.")
    parser.add_argument(
        "--show-original", action="store_true", help="Print the fetched markdown first."
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    fetcher = ContentFetcher(
        user_agent=settings.fetch_user_agent,
        rate_limit_seconds=settings.fetch_rate_limit_seconds,
        timeout=settings.fetch_timeout_seconds,
    )
    try:
        regenerator = build_regenerator(settings)
    except RegenerationError as exc:
        print(f"Regeneration error: {exc}", file=sys.stderr)
        return 1

    session = EditorSession(fetcher, regenerator)
    request = PageContentRequest(url=args.url)
    key = page_key(request)

    state = await session.load_content(key, request)
    if state is None or state.content is None:
        message = state.error if state else "request superseded"
        print(f"Fetch error: {message}", file=sys.stderr)
        return 1
    if args.show_original:
        print(state.content.markdown)
        print("\n" + "=" * 80 + "\n")

    state = await session.regenerate(
        key, model=args.model, persona=args.persona, objective=args.objective
    )
    if state is None or state.merged is None:
        message = state.error if state else "request superseded"
        print(f"Regeneration error: {message}", file=sys.stderr)
        return 1

    print(state.merged.content)
    print(f"\n[regen] {len(state.highlights)} section(s) replaced:", file=sys.stderr)
    for highlight in state.highlights:
        print(f"  [{highlight.id}] {highlight.resolved_heading}", file=sys.stderr)
    return 0


def main() -> int:
    configure_logging()
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
