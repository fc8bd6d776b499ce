"""CLI: merge a regenerated markdown file into an original using a plan file."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

from content_editor.config import configure_logging
from content_editor.services.alignment.merger import align_regeneration
from content_editor.services.alignment.renderer import RenderMode, render_blocks


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Align regenerated markdown with an original.")
    parser.add_argument("original", help="Original markdown file.")
    parser.add_argument("regenerated", help="Regenerated markdown file.")
    parser.add_argument("plan", help="JSON file with a plan (object with step_plan) or a step list.")
    parser.add_argument("--out", default=None, help="Write merged markdown here instead of stdout.")
    parser.add_argument(
        "--blocks", action="store_true", help="Print rendered blocks with highlight keys."
    )
    return parser.parse_args()


def load_plan(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return {"step_plan": data}
    if isinstance(data, dict):
        return data
    return {}


def main() -> int:
    configure_logging()
    args = parse_args()
    original = Path(args.original).read_text(encoding="utf-8")
    regenerated = Path(args.regenerated).read_text(encoding="utf-8")
    merged = align_regeneration(original, regenerated, load_plan(Path(args.plan)))

    if args.out:
        Path(args.out).write_text(merged.content, encoding="utf-8")
        print(f"[align] saved to {args.out}")
    else:
        print(merged.content)

    for highlight in merged.highlights:
        print(f"[align] [{highlight.id}] {highlight.match_text} -> {highlight.resolved_heading}")

    if args.blocks:
        for block in render_blocks(merged.content, merged.highlights, mode=RenderMode.HIGHLIGHTED):
            key = block.active_highlight_key or "-"
            print(f"{key:>24} | {block.kind}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
