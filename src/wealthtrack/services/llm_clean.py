"""Helpers to scrub Poe/Gemini planning chatter and code fences from model outputs."""
from __future__ import annotations

import json
import re
from typing import Any


def clean_llm_output(text: str) -> str:
    """Remove 'Thinking.../Planning' scaffolding and leading quotes."""
    if not text:
        return ""
    cleaned = str(text).strip()
    cleaned = re.sub(r"(?is)^\s*\*?(?:Thinking|Planning)[^.]*\*?.*?(?:\n{2,}|$)", "", cleaned)
    cleaned = re.sub(r"(?im)^>.*\n", "", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def parse_json_payload(raw: str) -> Any:
    """Parse a JSON object or array out of a model reply.

    Tries the raw text, then a fenced block, then the outermost bracketed span.

    Raises:
        ValueError: when no candidate parses.
    """
    text = clean_llm_output(raw)
    candidates = [text]
    fenced = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
    if fenced:
        candidates.append(fenced.group(1))
    for opener, closer in (("[", "]"), ("{", "}")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except (TypeError, ValueError):
            continue
    raise ValueError("Unable to parse JSON from model response.")
