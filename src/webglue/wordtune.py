"""
Wordtune rewrite suggestions (the limited, no-login endpoint used by the web demo).

Suggestions come back either as [text, score] pairs or as {"text": ...} objects,
depending on the action; both are accepted.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, field_validator

from . import _http
from ._schema import parse_as

logger = logging.getLogger(__name__)

SERVICE = "wordtune"
REWRITE_URL = "https://api.wordtune.com/rewrite-limited"
ACTIONS = ("REWRITE", "SHORTEN", "EXPAND", "FORMAL", "CASUAL")


class _RewriteResponse(BaseModel):
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("suggestions", mode="before")
    @classmethod
    def _flatten(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("suggestions must be a list")
        out: List[str] = []
        for item in value:
            text: Union[str, None] = None
            if isinstance(item, str):
                text = item
            elif isinstance(item, list) and item and isinstance(item[0], str):
                text = item[0]
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                text = item["text"]
            if text is None:
                raise ValueError(f"unrecognised suggestion: {item!r}")
            out.append(text)
        return out


def _payload(text: str, action: str) -> Dict[str, Any]:
    return {
        "action": action,
        "text": text,
        "start": 0,
        "end": len(text),
        "selection": {"wholeText": text, "start": 0, "end": len(text)},
    }


def rewrite(text: str, *, action: str = "REWRITE") -> List[str]:
    """Return Wordtune's alternative phrasings for `text`, de-duplicated, best first."""
    action = action.upper()
    if action not in ACTIONS:
        raise ValueError(f"action must be one of {', '.join(ACTIONS)}")
    if not text.strip():
        return []
    data = _http.post_json(
        REWRITE_URL,
        service=SERVICE,
        json=_payload(text, action),
        headers={"Origin": "https://www.wordtune.com", "Referer": "https://www.wordtune.com/"},
    )
    suggestions = parse_as(_RewriteResponse, data, SERVICE).suggestions
    seen: set[str] = set()
    unique: List[str] = []
    for s in suggestions:
        s = s.strip()
        if s and s not in seen:
            seen.add(s)
            unique.append(s)
    logger.debug("[wordtune] %s: %d suggestions", action, len(unique))
    return unique
