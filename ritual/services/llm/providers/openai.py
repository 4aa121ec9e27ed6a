from __future__ import annotations

import asyncio
import json
import logging
import time

from openai import AsyncOpenAI

from ritual.services.llm.prompts import PROMPT_VERSION, build_rewrite_prompt
from ritual.services.llm.types import LLMUsage, RewriteNoteInput, RewriteNoteOutput

logger = logging.getLogger("ritual.llm")


class OpenAIProvider:
    def __init__(self, model: str, client: AsyncOpenAI | None = None):
        self.client = client or AsyncOpenAI()
        self.model = model

    async def rewrite_note(self, payload: RewriteNoteInput, *, timeout_ms: int) -> RewriteNoteOutput:
        start = time.perf_counter()
        logger.info("llm:openai request model=%s timeout_ms=%s", self.model, timeout_ms)
        try:
            resp = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=build_rewrite_prompt(payload),
                    temperature=0.7,
                    response_format={"type": "json_object"},
                ),
                timeout=timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            logger.warning("llm:openai timeout model=%s timeout_ms=%s", self.model, timeout_ms)
            raise
        latency_ms = int((time.perf_counter() - start) * 1000)
        content = resp.choices[0].message.content if resp.choices else "{}"
        try:
            note = json.loads(content or "{}").get("note")
        except (ValueError, AttributeError):
            note = None
        return RewriteNoteOutput(
            note=note if isinstance(note, str) else None,
            usage=LLMUsage(
                model=self.model,
                prompt_version=payload.prompt_version or PROMPT_VERSION,
                latency_ms=latency_ms,
                tokens_in=getattr(resp.usage, "prompt_tokens", 0) if resp.usage else 0,
                tokens_out=getattr(resp.usage, "completion_tokens", 0) if resp.usage else 0,
            ),
        )
