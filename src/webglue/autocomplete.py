"""Google search suggestions (the autocomplete dropdown)."""
from __future__ import annotations

from typing import Any, List

from . import _http
from .errors import ParseError

SERVICE = "autocomplete"
SUGGEST_URL = "https://suggestqueries.google.com/complete/search"


def parse_suggestions(payload: Any) -> List[str]:
    # ["query", ["suggestion 1", "suggestion 2", ...], ...]
    if not isinstance(payload, list) or len(payload) < 2 or not isinstance(payload[1], list):
        raise ParseError(SERVICE, "expected [query, [suggestions...]]")
    return [s for s in payload[1] if isinstance(s, str)]


def autocomplete(query: str, *, hl: str = "en", client: str = "firefox") -> List[str]:
    if not query.strip():
        return []
    payload = _http.get_json(SUGGEST_URL, service=SERVICE, params={"client": client, "q": query, "hl": hl})
    return parse_suggestions(payload)
