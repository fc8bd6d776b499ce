"""Prompt builders for the four regeneration stages."""

from __future__ import annotations

import json
from typing import Any, Mapping

SUMMARY_SYSTEM = (
    "You are Stage 1 (Content Summarization) analyst for the RAID G-SEO framework. "
    "Distill the source page into concise, strategically actionable signals."
)
INTENT_SYSTEM = (
    "You operate Stage 2 (Intent Inference + 4W Multi-Role Reflection) of the RAID G-SEO "
    "framework. Build structured, user-centered intent hypotheses."
)
PLAN_SYSTEM = (
    "You are Stage 3 (Step Planning) strategist of the RAID G-SEO framework. Translate refined "
    "intent into sequenced optimization steps that guard against semantic drift."
)
REWRITE_SYSTEM = (
    "You are Stage 4 (Intent-Aligned Rewriting) editor for the RAID G-SEO framework. Produce "
    "regenerated content that follows the planned steps and supports LLM visibility."
)

SUMMARY_SCHEMA = """{
  "summary": "2-3 sentence executive synopsis capturing the page's promise",
  "core_value_proposition": ["bullet", "..."],
  "structural_outline": [
    {"section": "Section name", "purpose": "Why it exists", "coverage_score": "high|medium|low"}
  ],
  "search_intent_hypotheses": ["navigational", "informational: ...", "..."],
  "content_gaps": ["missing data or proof point", "..."],
  "risk_flags": ["outdated info", "thin coverage", "..."]
}"""

INTENT_SCHEMA = """{
  "initial_intent": {
    "statement": "Initial guess of hidden user task",
    "supporting_queries": ["query variant", "..."],
    "confidence": "high|medium|low"
  },
  "reflection": {
    "who": [{"role": "Primary seeker", "motivation": "Why they search", "knowledge_level": "novice|intermediate|expert"}],
    "what": [{"role": "Role name", "needs": ["need1"], "critical_facts": ["fact"]}],
    "why": [{"role": "Role name", "mismatch": "gap between current page and need", "impact": "risk of gap"}],
    "how": {"generalization_strategy": "How to broaden appeal without losing focus", "content_principles": ["principle1"]}
  },
  "refined_intent": {
    "intent_statement": "Search intent expressed as outcome + evidence expectation",
    "micro_moments": ["moment1"],
    "success_criteria": ["LLM should cite X", "User should learn Y"],
    "alignment_notes": ["guardrail for tone"]
  }
}"""

PLAN_SCHEMA = """{
  "optimization_objectives": [
    {"objective": "What to improve", "intent_link": "Which refined intent element it supports", "evidence": "Data or proof to include"}
  ],
  "step_plan": [
    {
      "step": 1,
      "focus_area": "Heading / section / feature",
      "action": "Specific rewrite action",
      "reasoning": "Why this matters for LLM visibility",
      "success_signal": "Observable cue in regenerated content"
    }
  ],
  "tone_and_voice": {"voice": "authoritative|friendly|technical", "reading_level": "grade target", "style_guidelines": ["rule1"]},
  "metadata_directives": {"title": "Indicative rewritten title", "description": "Meta description aligned with intent", "schema": ["FAQ", "HowTo"]}
}"""

REWRITE_SCHEMA = """{
  "content": "Final regenerated Markdown string",
  "highlights": ["Key improvement", "..."],
  "cta_recommendations": ["Next action suggestion", "..."],
  "metadata": {
    "title": "Updated H1/title",
    "description": "Summary blurb for preview",
    "faq": [{"question": "FAQ?", "answer": "Concise answer aligning with intent"}]
  }
}"""

REWRITE_INSTRUCTIONS = """Instructions:
- Apply every step in the plan; do not invent new steps unless necessary for coherence.
- Treat the source markdown as the baseline. Every existing H1-H4 section must remain present and keep its heading text.
- Expand sections according to the plan so the final draft is at least as comprehensive as the original.
- Keep the heading used as each step's focus area so edits can be mapped back to the page.
- Embed statistics, citations, and entity clarity where suggested; insert "[Source]" placeholders for new external references.
- Output MUST be full Markdown (no prose commentary or JSON outside the required schema)."""


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def truncate(value: str, max_chars: int = 6000) -> str:
    if len(value) <= max_chars:
        return value
    return f"{value[:max_chars]}\n\n...[truncated]"


def _metadata_lines(metadata: Mapping[str, Any]) -> list[str]:
    lines: list[str] = []
    if metadata.get("title"):
        lines.append(f"Title: {metadata['title']}")
    if metadata.get("description"):
        lines.append(f"Description: {metadata['description']}")
    keywords = metadata.get("keywords")
    if isinstance(keywords, list) and keywords:
        lines.append(f"Keywords: {', '.join(str(k) for k in keywords)}")
    elif isinstance(keywords, str) and keywords:
        lines.append(f"Keywords: {keywords}")
    headings = metadata.get("headings")
    if isinstance(headings, Mapping):
        heading_lines = [
            f"{level.upper()}: {' | '.join(headings[level])}"
            for level in ("h1", "h2", "h3")
            if isinstance(headings.get(level), list) and headings[level]
        ]
        if heading_lines:
            lines.append("Headings:\n" + "\n".join(heading_lines))
    return lines


def _context_lines(
    context: Mapping[str, Any], page_url: str | None, persona: str | None, objective: str | None
) -> list[str]:
    lines: list[str] = []
    if page_url:
        lines.append(f"Primary URL: {page_url}")
    if context.get("resolvedUrl"):
        lines.append(f"Resolved URL: {context['resolvedUrl']}")
    if persona:
        lines.append(f"Target persona: {persona}")
    if objective:
        lines.append(f"Business objective: {objective}")
    if context.get("llmJourney"):
        lines.append(f"LLM Journey Stage: {context['llmJourney']}")
    if context.get("trafficSummary"):
        lines.append(f"Traffic Summary: {context['trafficSummary']}")
    citations = context.get("citations")
    details = citations.get("details") if isinstance(citations, Mapping) else None
    if isinstance(details, list) and details:
        rows = [
            f"- {item.get('platform') or 'unknown'} -> {item.get('url')}"
            for item in details[:5]
            if isinstance(item, Mapping)
        ]
        if rows:
            lines.append("Recent citations:\n" + "\n".join(rows))
    return lines


def build_summary_prompt(
    original: str,
    metadata: Mapping[str, Any],
    context: Mapping[str, Any],
    page_url: str | None,
    persona: str | None,
    objective: str | None,
) -> str:
    meta = "\n".join(_metadata_lines(metadata)) or "No metadata supplied"
    ctx = "\n".join(_context_lines(context, page_url, persona, objective))
    return (
        "You are provided with the raw page content that needs to be understood before regeneration.\n\n"
        f"=== Page Signals ===\n{meta}\n\n"
        f"=== Context ===\n{ctx or 'No additional context supplied'}\n\n"
        f'=== Source Content (Markdown) ===\n"""{original}"""\n\n'
        f"Respond STRICTLY in JSON with the following schema:\n{SUMMARY_SCHEMA}"
    )


def _page_snapshot(
    metadata: Mapping[str, Any],
    context: Mapping[str, Any],
    page_url: str | None,
    persona: str | None,
    objective: str | None,
) -> str:
    return _dump(
        {
            "pageUrl": page_url,
            "persona": persona,
            "objective": objective,
            "metadata": dict(metadata),
            "context": dict(context),
        }
    )


def build_intent_prompt(
    original: str,
    summary: Any,
    metadata: Mapping[str, Any],
    context: Mapping[str, Any],
    page_url: str | None,
    persona: str | None,
    objective: str | None,
) -> str:
    return (
        "We are operating Stage 2 of RAID G-SEO. Leverage the summary and raw content to infer "
        "user intent with 4W multi-role reflection.\n\n"
        f"=== Prior Summary ===\n{_dump(summary)}\n\n"
        f"=== Metadata Snapshot ===\n{_page_snapshot(metadata, context, page_url, persona, objective)}\n\n"
        f'=== Source Content Sample (truncated) ===\n"""{original}"""\n\n'
        f"Respond STRICTLY in JSON with schema:\n{INTENT_SCHEMA}"
    )


def build_plan_prompt(
    summary: Any,
    intent: Any,
    metadata: Mapping[str, Any],
    context: Mapping[str, Any],
    page_url: str | None,
    persona: str | None,
    objective: str | None,
) -> str:
    return (
        "We are at Stage 3 of RAID G-SEO. Convert the refined intent into a transparent "
        "optimization plan that minimizes semantic drift. Use existing section headings as focus areas.\n\n"
        f"=== Summary ===\n{_dump(summary)}\n\n"
        f"=== Intent Model ===\n{_dump(intent)}\n\n"
        f"=== Page Context ===\n{_page_snapshot(metadata, context, page_url, persona, objective)}\n\n"
        f"Respond STRICTLY in JSON with schema:\n{PLAN_SCHEMA}"
    )


def build_rewrite_prompt(
    original: str,
    summary: Any,
    intent: Any,
    plan: Any,
    metadata: Mapping[str, Any],
    context: Mapping[str, Any],
    page_url: str | None,
    persona: str | None,
    objective: str | None,
) -> str:
    return (
        "Stage 4 of RAID G-SEO: Execute the rewrite. Follow the plan exactly, enriching content "
        "for LLM visibility while preserving factual integrity.\n\n"
        f"=== Inputs ===\nSummary: {_dump(summary)}\nIntent: {_dump(intent)}\nPlan: {_dump(plan)}\n\n"
        f"=== Additional Context ===\n{_page_snapshot(metadata, context, page_url, persona, objective)}\n\n"
        f'=== Original Content (Markdown) ===\n"""{original}"""\n\n'
        f"{REWRITE_INSTRUCTIONS}\n\n"
        f"Respond STRICTLY in JSON with schema:\n{REWRITE_SCHEMA}"
    )
