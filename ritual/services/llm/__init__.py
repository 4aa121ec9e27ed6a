from __future__ import annotations

import logging

from ritual.core.config import settings
from ritual.recs.notes import is_note_safe
from ritual.services.llm.prompts import PROMPT_VERSION
from ritual.services.llm.providers.base import NoteProvider, NullProvider
from ritual.services.llm.types import RewriteNoteInput

logger = logging.getLogger("ritual.llm")


def build_note_provider() -> NoteProvider:
    if not settings.LLM_ENABLED:
        return NullProvider()
    name = (settings.LLM_PROVIDER or "null").lower()
    if name == "openai":
        from ritual.services.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(settings.LLM_MODEL_NOTES)
    return NullProvider()


class NoteWriter:
    """Optionally rewrites template notes; anything that fails the note rules is dropped."""

    def __init__(self, provider: NoteProvider | None = None, timeout_ms: int | None = None) -> None:
        self.provider = provider or NullProvider()
        self.timeout_ms = timeout_ms or settings.LLM_NOTE_TIMEOUT_MS

    async def polish(self, payload: RewriteNoteInput) -> str:
        payload.prompt_version = payload.prompt_version or PROMPT_VERSION
        try:
            out = await self.provider.rewrite_note(payload, timeout_ms=self.timeout_ms)
        except Exception as e:
            logger.warning("confidence-note llm failed reason=%s", e)
            return payload.draft
        if not is_note_safe(out.note):
            logger.info("confidence-note llm output rejected model=%s", out.usage.model)
            return payload.draft
        return out.note.strip()
