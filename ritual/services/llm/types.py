from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class LLMUsage(BaseModel):
    model: str
    prompt_version: str
    latency_ms: int = 0
    tokens_in: int = 0
    tokens_out: int = 0


class RewriteNoteInput(BaseModel):
    draft: str
    style: str = "encouraging"
    weather: str
    colors: List[str] = Field(default_factory=list)
    occasion: Optional[str] = None
    prompt_version: Optional[str] = None


class RewriteNoteOutput(BaseModel):
    note: Optional[str] = None
    usage: LLMUsage
