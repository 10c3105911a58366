"""
Search a Notion workspace through the web app's internal API (/api/v3/search).

Authentication is the `token_v2` browser cookie; the workspace is identified by its
space id. Both default to NOTION_TOKEN_V2 / NOTION_SPACE_ID (see webglue.config).

Titles are rich-text arrays in recordMap.block[<id>].value.properties.title, e.g.
[["Meeting notes"], [" 2024", [["b"]]]]. Highlights wrap matches in custom tags
(<gzkNfoUU>...</gzkNfoUU>) which are stripped.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from . import _http
from ._schema import parse_as
from .config import get_api_keys

logger = logging.getLogger(__name__)

SERVICE = "notion"
SEARCH_URL = "https://www.notion.so/api/v3/search"
PAGE_BASE = "https://www.notion.so/"

_TAG_RE = re.compile(r"</?[a-zA-Z][\w-]*>")


class NotionResult(BaseModel):
    id: str
    title: str = ""
    highlight: Optional[str] = None
    score: Optional[float] = None

    @property
    def url(self) -> str:
        return PAGE_BASE + self.id.replace("-", "")


class _Highlight(BaseModel):
    text: Optional[str] = None
    title: Optional[str] = None


class _Hit(BaseModel):
    id: str
    score: Optional[float] = None
    highlight: Optional[_Highlight] = None


class _SearchResponse(BaseModel):
    results: List[_Hit] = Field(default_factory=list)
    recordMap: Dict[str, Any] = Field(default_factory=dict)


def rich_text_to_str(value: Any) -> str:
    if not isinstance(value, list):
        return ""
    parts = []
    for chunk in value:
        if isinstance(chunk, list) and chunk and isinstance(chunk[0], str):
            parts.append(chunk[0])
    return "".join(parts)


def strip_highlight(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return _TAG_RE.sub("", text)


def _block_title(record_map: Dict[str, Any], block_id: str) -> str:
    block = (record_map.get("block") or {}).get(block_id) or {}
    value = block.get("value") or {}
    # newer responses nest the record one level deeper
    if isinstance(value.get("value"), dict):
        value = value["value"]
    props = value.get("properties") or {}
    return rich_text_to_str(props.get("title"))


def parse_search(payload: Any) -> List[NotionResult]:
    data = parse_as(_SearchResponse, payload, SERVICE)
    out: List[NotionResult] = []
    for hit in data.results:
        title = _block_title(data.recordMap, hit.id)
        hl = hit.highlight
        if not title and hl is not None and hl.title:
            title = strip_highlight(hl.title) or ""
        out.append(
            NotionResult(
                id=hit.id,
                title=title,
                highlight=strip_highlight(hl.text) if hl is not None else None,
                score=hit.score,
            )
        )
    return out


def _search_body(query: str, space_id: str, limit: int) -> Dict[str, Any]:
    return {
        "type": "BlocksInSpace",
        "query": query,
        "spaceId": space_id,
        "limit": int(limit),
        "filters": {
            "isDeletedOnly": False,
            "excludeTemplates": False,
            "isNavigableOnly": False,
            "requireEditPermissions": False,
            "ancestors": [],
            "createdBy": [],
            "editedBy": [],
            "lastEditedTime": {},
            "createdTime": {},
        },
        "sort": "Relevance",
        "source": "quick_find",
    }


def notion_search(
    query: str,
    *,
    token_v2: Optional[str] = None,
    space_id: Optional[str] = None,
    limit: int = 20,
) -> List[NotionResult]:
    keys = get_api_keys()
    token = token_v2 or keys.require("notion_token_v2")
    space = space_id or keys.require("notion_space_id")
    payload = _http.post_json(
        SEARCH_URL,
        service=SERVICE,
        json=_search_body(query, space, limit),
        cookies={"token_v2": token},
    )
    results = parse_search(payload)
    logger.info("[notion] %d results for %r", len(results), query)
    return results
