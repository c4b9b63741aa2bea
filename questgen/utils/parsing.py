"""Shared parsing utilities for agent responses."""

import json
import re

# Opening fence at the very start (optional language tag), closing fence at the very end.
_OPEN_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*(?:\n|$)")
_CLOSE_FENCE_RE = re.compile(r"[ \t]*```$")
_FIRST_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)\n?\s*```", re.DOTALL)


def strip_fences(text: str) -> str:
    """Remove a markdown code fence around the reply, if present.

    The opening and closing fences are handled separately, so a truncated
    reply that never closes its fence still loses the opening one. A fence
    that only surrounds part of the text is left alone, so prose with
    embedded code blocks survives intact.
    """
    if not text:
        return ""
    text = text.strip()
    lone = text.count("```") == 1
    opening = _OPEN_FENCE_RE.match(text)
    closing = _CLOSE_FENCE_RE.search(text)
    if opening and closing and closing.start() < opening.end():
        closing = None

    start, end = 0, len(text)
    if opening and (closing or lone):
        start = opening.end()
    if closing and (opening or lone):
        end = closing.start()
    return text[start:end].strip()


def parse_json_object(text: str) -> dict | None:
    """Best-effort parse of a JSON object from an LLM reply.

    Tries the unwrapped text first, then the first fenced block anywhere in
    the reply. Returns None when no JSON object can be recovered.
    """
    candidates = [strip_fences(text)]
    match = _FIRST_FENCE_RE.search(text or "")
    if match:
        candidates.append(match.group(1).strip())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(data, dict):
            return data
    return None


def message_text(content) -> str:
    """Flatten a chat message ``content`` (str or list of parts) to plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return "" if content is None else str(content)
