"""
Grammar checking via Ginger (JSONP, single request) and Cram (submit + poll).

Both return a GrammarResult: the original text, the text with the first suggestion
of every correction applied, and the corrections with Python-style [start, end)
character offsets.

Ginger: GingerTheTextFull answers `callback({...});` with Corrections whose
From/To offsets are inclusive.
Cram: POST /check returns a job id; GET /check/<id> until status == "complete".
"""
from __future__ import annotations

import json
import logging
import re
import threading
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from . import _http
from ._schema import parse_as
from .errors import ParseError, ServiceError
from .polling import PollingJob, PollResult, PollSettings

logger = logging.getLogger(__name__)

GINGER_URL = "https://services.gingersoftware.com/Ginger/correct/jsonSecured/GingerTheTextFull"
GINGER_API_KEY = "GingerWebsite"
GINGER_CLIENT_VERSION = "2.0"
GINGER_CALLBACK = "jQuery"

CRAM_API = "https://api.cram.com/v1/grammar"


class GrammarCorrection(BaseModel):
    start: int
    end: int
    original: str
    suggestions: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    message: Optional[str] = None


class GrammarResult(BaseModel):
    text: str
    corrected: str
    corrections: List[GrammarCorrection] = Field(default_factory=list)


def apply_corrections(text: str, corrections: List[GrammarCorrection]) -> str:
    """Apply the first suggestion of each correction, right to left; overlapping ones are skipped."""
    fixed = text
    limit = len(text)
    for c in sorted(corrections, key=lambda c: c.start, reverse=True):
        if not c.suggestions or c.end > limit or c.start < 0 or c.start > c.end:
            continue
        fixed = fixed[: c.start] + c.suggestions[0] + fixed[c.end:]
        limit = c.start
    return fixed


# ---- Ginger ----

class _GingerSuggestion(BaseModel):
    Text: str
    CategoryId: Optional[int] = None


class _GingerCorrection(BaseModel):
    From: int
    To: int
    Suggestions: List[_GingerSuggestion] = Field(default_factory=list)
    TopCategoryId: Optional[int] = None


class _GingerResponse(BaseModel):
    Corrections: List[_GingerCorrection] = Field(default_factory=list)


_JSONP_RE = re.compile(r"^[\w$.]*\s*\((.*)\)\s*;?\s*$", re.S)


def strip_jsonp(body: str, service: str = "ginger") -> Any:
    body = body.strip()
    m = _JSONP_RE.match(body)
    inner = m.group(1) if m else body
    try:
        return json.loads(inner)
    except ValueError as e:
        raise ParseError(service, f"no JSON object in JSONP body ({e})") from e


def parse_ginger(text: str, payload: Any) -> GrammarResult:
    data = parse_as(_GingerResponse, payload, "ginger")
    corrections: List[GrammarCorrection] = []
    for c in data.Corrections:
        start, end = c.From, c.To + 1
        corrections.append(
            GrammarCorrection(
                start=start,
                end=end,
                original=text[start:end],
                suggestions=[s.Text for s in c.Suggestions],
                category=str(c.TopCategoryId) if c.TopCategoryId is not None else None,
            )
        )
    return GrammarResult(text=text, corrected=apply_corrections(text, corrections), corrections=corrections)


def ginger_check(text: str, *, lang: str = "US") -> GrammarResult:
    if not text.strip():
        return GrammarResult(text=text, corrected=text)
    params = {
        "callback": GINGER_CALLBACK,
        "text": text,
        "apiKey": GINGER_API_KEY,
        "clientVersion": GINGER_CLIENT_VERSION,
        "lang": lang,
    }
    resp = _http.request("GET", GINGER_URL, service="ginger", params=params)
    result = parse_ginger(text, strip_jsonp(resp.text))
    logger.info("[ginger] %d corrections", len(result.corrections))
    return result


# ---- Cram ----

class _CramIssue(BaseModel):
    offset: int
    length: int
    message: Optional[str] = None
    category: Optional[str] = None
    replacements: List[str] = Field(default_factory=list)


class _CramStatus(BaseModel):
    status: Optional[str] = None
    error: Any = None
    issues: List[_CramIssue] = Field(default_factory=list)


class _CramSubmitted(BaseModel):
    id: str


def parse_cram(text: str, status: _CramStatus) -> GrammarResult:
    corrections = [
        GrammarCorrection(
            start=i.offset,
            end=i.offset + i.length,
            original=text[i.offset: i.offset + i.length],
            suggestions=list(i.replacements),
            category=i.category,
            message=i.message,
        )
        for i in status.issues
    ]
    return GrammarResult(text=text, corrected=apply_corrections(text, corrections), corrections=corrections)


def cram_check(
    text: str,
    *,
    settings: Optional[PollSettings] = None,
    cancel_event: Optional[threading.Event] = None,
    base_url: str = CRAM_API,
) -> GrammarResult:
    if not text.strip():
        return GrammarResult(text=text, corrected=text)
    data = _http.post_json(f"{base_url}/check", service="cram", json={"text": text})
    if isinstance(data, dict) and data.get("error"):
        raise ServiceError("cram", str(data["error"]), payload=data)
    job_id = parse_as(_CramSubmitted, data, "cram").id
    logger.info("[cram] Submitted grammar check %s", job_id)

    def check() -> PollResult[_CramStatus]:
        raw = _http.get_json(f"{base_url}/check/{job_id}", service="cram")
        status = parse_as(_CramStatus, raw, "cram")
        if status.error:
            return PollResult(error=status.error)
        return PollResult(done=status.status == "complete", value=status)

    job: PollingJob[_CramStatus] = PollingJob(check, name="cram", settings=settings, cancel_event=cancel_event)
    return parse_cram(text, job.run())
