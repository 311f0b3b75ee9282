"""Utilities for turning assistant replies into speakable text.

Replies are written for a chat window: markdown emphasis, bullet lists,
links, code and raw JSON. Voice mode must never feed those to synthesis
verbatim, and must keep spoken replies short.
"""

from __future__ import annotations

import re
from typing import Any

_CODE_BLOCK_RE = re.compile(r"```.*?(```|$)", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`]*)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EMPHASIS_RE = re.compile(r"(\*\*|__|\*)(\S(?:.*?\S)?)\1")
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+", re.MULTILINE)


def _looks_like_json(text: str) -> bool:
    # Partial or invalid JSON is still not something to read aloud.
    t = (text or "").strip()
    return t.startswith("{") or t.startswith("[")


def _split_sentences(text: str) -> list[str]:
    t = (text or "").strip()
    if not t:
        return []
    parts = re.split(r"(?<=[.!?])\s+", t)
    return [p.strip() for p in parts if p and p.strip()]


def strip_markdown(text: str) -> str:
    """Remove chat formatting, keeping the words."""
    s = _CODE_BLOCK_RE.sub(" ", text)
    s = _LINK_RE.sub(r"\1", s)
    s = _INLINE_CODE_RE.sub(r"\1", s)
    s = _HEADING_RE.sub("", s)

    # Each list item becomes its own sentence.
    lines = []
    for line in s.splitlines():
        item = _BULLET_RE.sub("", line).strip()
        if not item:
            continue
        if line != item and item[-1] not in ".!?:":
            item += "."
        lines.append(item)
    s = " ".join(lines)

    s = _EMPHASIS_RE.sub(r"\2", s)
    return re.sub(r"\s+", " ", s).strip()


def to_speakable_text(text: str, *, max_chars: int = 600) -> tuple[str | None, dict[str, Any]]:
    """Return (speakable_text_or_None, debug_info).

    Rules:
    - JSON replies are not spoken.
    - Code blocks are dropped; markdown is reduced to plain words.
    - Whole sentences are kept up to `max_chars`; a single over-long sentence
      is cut and marked with an ellipsis.
    """
    debug: dict[str, Any] = {
        "input_chars": len(text or ""),
        "skipped": False,
        "skip_reason": None,
        "truncated": False,
        "output_chars": 0,
        "sentences": 0,
    }

    raw = (text or "").strip()
    if not raw:
        debug.update({"skipped": True, "skip_reason": "empty"})
        return None, debug

    if _looks_like_json(raw):
        debug.update({"skipped": True, "skip_reason": "contained_json"})
        return None, debug

    plain = strip_markdown(raw)
    if not plain:
        debug.update({"skipped": True, "skip_reason": "empty_after_filter"})
        return None, debug

    kept: list[str] = []
    length = 0
    for sentence in _split_sentences(plain):
        extra = len(sentence) + (1 if kept else 0)
        if length + extra > max_chars:
            debug["truncated"] = True
            break
        kept.append(sentence)
        length += extra

    if kept:
        speak = " ".join(kept)
    else:
        speak = plain[: max(0, max_chars - 1)].rstrip() + "…"
        debug["truncated"] = True

    debug["output_chars"] = len(speak)
    debug["sentences"] = len(_split_sentences(speak))
    return speak, debug
