from __future__ import annotations

from typing import Any, Dict, List

from ritual.services.llm.types import RewriteNoteInput

PROMPT_VERSION = "note-v1"

SYSTEM_PROMPT = (
    "You write one short confidence note (max 2 sentences) for someone about to wear an outfit. "
    "Address the reader as 'you'. Mention the weather or occasion given. "
    "Never comment on body shape, weight or culture, and never use negative words. "
    'Respond as JSON: {"note": "..."}'
)

STYLE_HINTS = {
    "encouraging": "Warm and encouraging.",
    "witty": "Light, playful and a little witty.",
    "poetic": "Lyrical and poetic, but plain enough to read aloud.",
}


def build_rewrite_prompt(payload: RewriteNoteInput) -> List[Dict[str, Any]]:
    details = [f"Tone: {STYLE_HINTS.get(payload.style, STYLE_HINTS['encouraging'])}", f"Weather: {payload.weather}"]
    if payload.occasion:
        details.append(f"Occasion: {payload.occasion}")
    if payload.colors:
        details.append(f"Colors: {', '.join(payload.colors)}")
    details.append(f"Draft note: {payload.draft}")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(details)},
    ]
