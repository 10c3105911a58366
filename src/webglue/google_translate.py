"""
Google Translate through the unofficial `gtx` client endpoint.

The answer is a nested list rather than an object:
  [[["Bonjour", "Hello", null, null, 10], ...], null, "en", ...]
element 0 holds the translated segments, element 2 the detected source language.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from . import _http
from .errors import ParseError

logger = logging.getLogger(__name__)

SERVICE = "translate"
TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"


class Translation(BaseModel):
    text: str
    source_language: Optional[str] = None
    target_language: str
    segments: List[str] = Field(default_factory=list)


def parse_translation(payload: Any, target: str) -> Translation:
    if not isinstance(payload, list) or not payload:
        raise ParseError(SERVICE, "expected a non-empty list")
    raw_segments = payload[0] or []
    if not isinstance(raw_segments, list):
        raise ParseError(SERVICE, "element 0 is not a list of segments")
    segments: List[str] = []
    for seg in raw_segments:
        # trailing transliteration rows have a null translation
        if isinstance(seg, list) and seg and isinstance(seg[0], str):
            segments.append(seg[0])
    source = payload[2] if len(payload) > 2 and isinstance(payload[2], str) else None
    return Translation(
        text="".join(segments),
        source_language=source,
        target_language=target,
        segments=segments,
    )


def translate(text: str, to: str = "en", source: str = "auto") -> Translation:
    """Translate `text` into language `to` (ISO code). `source="auto"` lets Google detect it."""
    if not text.strip():
        return Translation(text="", source_language=None if source == "auto" else source, target_language=to)
    params = {"client": "gtx", "sl": source, "tl": to, "dt": "t", "q": text}
    payload = _http.get_json(TRANSLATE_URL, service=SERVICE, params=params)
    result = parse_translation(payload, to)
    logger.debug("[translate] %s -> %s: %d segments", result.source_language, to, len(result.segments))
    return result
