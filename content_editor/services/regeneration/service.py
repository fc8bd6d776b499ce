"""Four-stage page content regeneration (summary, intent, plan, rewrite)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from content_editor.config import Settings
from content_editor.services.llm.client import ChatResult, LLMClient, LLMError
from content_editor.services.llm.json_repair import JSONRepairError, parse_model_json
from content_editor.services.regeneration import prompts

logger = logging.getLogger(__name__)


class RegenerationError(Exception):
    """Raised when regenerated content could not be produced."""


@dataclass
class RegenerationRequest:
    original_content: str
    model: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)
    page_url: Optional[str] = None
    persona: Optional[str] = None
    objective: Optional[str] = None


@dataclass
class RegenerationResult:
    model: str
    content: str
    summary: Dict[str, Any]
    intent: Dict[str, Any]
    plan: Dict[str, Any]
    rewrite_meta: Optional[Dict[str, Any]]
    usage: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "content": self.content,
            "summary": self.summary,
            "intent": self.intent,
            "plan": self.plan,
            "rewrite_meta": self.rewrite_meta,
            "usage": self.usage,
        }


@dataclass(frozen=True)
class StageConfig:
    system_prompt: str
    temperature: float
    max_tokens: int


STAGE_CONFIG: Dict[str, StageConfig] = {
    "summarization": StageConfig(prompts.SUMMARY_SYSTEM, 0.3, 900),
    "intent": StageConfig(prompts.INTENT_SYSTEM, 0.4, 1100),
    "plan": StageConfig(prompts.PLAN_SYSTEM, 0.35, 900),
    "rewrite": StageConfig(prompts.REWRITE_SYSTEM, 0.45, 2500),
}


class ContentRegenerator:
    """Runs the regeneration stages against one chat completion client."""

    def __init__(
        self,
        client: LLMClient,
        *,
        timeout_s: float = 120.0,
        min_content_chars: int = 50,
        intent_truncate_chars: int = 9000,
    ) -> None:
        self.client = client
        self.timeout_s = timeout_s
        self.min_content_chars = min_content_chars
        self.intent_truncate_chars = intent_truncate_chars

    def _run_stage(
        self, stage: str, model: str, user_prompt: str
    ) -> tuple[Dict[str, Any], ChatResult]:
        config = STAGE_CONFIG[stage]
        logger.info("Stage %s started (model=%s)", stage, model)
        try:
            result = self.client.chat(
                messages=[
                    {"role": "system", "content": config.system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                model=model,
                timeout_s=self.timeout_s,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
            data = parse_model_json(result.text)
        except (LLMError, JSONRepairError) as exc:
            logger.error("Stage %s failed: %s", stage, exc)
            raise RegenerationError(f"Content regeneration failed: {exc}") from exc
        logger.info("Stage %s finished (tokens=%d)", stage, result.total_tokens)
        return data, result

    def regenerate(self, request: RegenerationRequest) -> RegenerationResult:
        original = request.original_content or ""
        if len(original.strip()) < self.min_content_chars:
            raise RegenerationError(
                "Original content is required and must contain at least "
                f"{self.min_content_chars} characters"
            )
        model = request.model or self.client.default_model
        meta: Mapping[str, Any] = request.metadata or {}
        ctx: Mapping[str, Any] = request.context or {}
        page = (request.page_url, request.persona, request.objective)
        tokens: Dict[str, int] = {}

        summary, reply = self._run_stage(
            "summarization",
            model,
            prompts.build_summary_prompt(original, meta, ctx, *page),
        )
        tokens["summarization"] = reply.total_tokens

        intent, reply = self._run_stage(
            "intent",
            model,
            prompts.build_intent_prompt(
                prompts.truncate(original, self.intent_truncate_chars), summary, meta, ctx, *page
            ),
        )
        tokens["intent"] = reply.total_tokens

        plan, reply = self._run_stage(
            "plan", model, prompts.build_plan_prompt(summary, intent, meta, ctx, *page)
        )
        tokens["plan"] = reply.total_tokens

        rewrite, reply = self._run_stage(
            "rewrite",
            model,
            prompts.build_rewrite_prompt(original, summary, intent, plan, meta, ctx, *page),
        )
        tokens["rewrite"] = reply.total_tokens

        content = rewrite.get("content")
        if not isinstance(content, str) or not content.strip():
            raise RegenerationError("AI response did not include regenerated content")

        step_plan = plan.get("step_plan")
        logger.info(
            "Regeneration complete model=%s steps=%d tokens=%d",
            model,
            len(step_plan) if isinstance(step_plan, list) else 0,
            sum(tokens.values()),
        )
        rewrite_meta = rewrite.get("metadata")
        return RegenerationResult(
            model=model,
            content=content,
            summary=summary,
            intent=intent,
            plan=plan,
            rewrite_meta=rewrite_meta if isinstance(rewrite_meta, dict) else None,
            usage={"total_tokens": sum(tokens.values()), "per_stage": tokens},
        )


def build_regenerator(settings: Settings) -> ContentRegenerator:
    """Wire a regenerator from application settings."""
    if not settings.openrouter_api_key:
        raise RegenerationError("OPENROUTER_API_KEY is required for content regeneration")
    client = LLMClient(
        base_url=settings.openrouter_base_url,
        api_key=settings.openrouter_api_key,
        default_model=settings.regen_model,
        referer=settings.openrouter_referer,
        title=settings.openrouter_title,
    )
    return ContentRegenerator(
        client,
        timeout_s=settings.regen_timeout_seconds,
        min_content_chars=settings.regen_min_content_chars,
        intent_truncate_chars=settings.regen_intent_truncate_chars,
    )
