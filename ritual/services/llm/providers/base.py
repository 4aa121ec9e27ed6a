from __future__ import annotations

from typing import Protocol

from ritual.services.llm.types import LLMUsage, RewriteNoteInput, RewriteNoteOutput


class NoteProvider(Protocol):
    async def rewrite_note(self, payload: RewriteNoteInput, *, timeout_ms: int) -> RewriteNoteOutput:
        ...


class NullProvider:
    """Safety net provider used when LLM is disabled; keeps the template note."""

    name = "disabled"

    async def rewrite_note(self, payload: RewriteNoteInput, *, timeout_ms: int) -> RewriteNoteOutput:
        return RewriteNoteOutput(
            note=payload.draft,
            usage=LLMUsage(model=self.name, prompt_version=payload.prompt_version or ""),
        )
