"""
Request helpers shared by the clients.

- request: retry on connection errors/timeouts, one wait-and-retry on HTTP 429,
  status checking that turns 4xx/5xx answers into ServiceError
- get_json / post_json: decode JSON bodies, raising ParseError on garbage
- save_stream: write a streamed response to disk in 1 KiB chunks via a .part file

Defaults can be tuned with WEBGLUE_TIMEOUT and WEBGLUE_TRIES.
"""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .errors import ParseError, RequestFailed, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = float(os.getenv("WEBGLUE_TIMEOUT", "30"))
DEFAULT_TRIES = int(os.getenv("WEBGLUE_TRIES", "3"))
RETRY_PAUSE = 2.0
RATE_LIMIT_WAIT = 60.0

# Several endpoints answer differently (or not at all) to non-browser agents
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept-Language": "en-US,en;q=0.9",
}


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("error", "message", "err", "detail"):
            val = data.get(key)
            if isinstance(val, str) and val:
                return val
            if isinstance(val, dict) and isinstance(val.get("message"), str):
                return val["message"]
    text = (resp.text or "").strip()
    return text[:200] if text else "request failed"


def raise_for_status(resp: requests.Response, service: str) -> None:
    if resp.status_code >= 400:
        try:
            payload: Any = resp.json()
        except ValueError:
            payload = None
        raise ServiceError(service, _error_message(resp), status_code=resp.status_code, payload=payload)


def request(
    method: str,
    url: str,
    *,
    service: str,
    tries: Optional[int] = None,
    timeout: Optional[float] = None,
    check: bool = True,
    rate_limit_wait: float = RATE_LIMIT_WAIT,
    **kwargs: Any,
) -> requests.Response:
    """Send one request with retries. Extra kwargs go to requests.request."""
    tries = tries or DEFAULT_TRIES
    timeout = timeout or DEFAULT_TIMEOUT
    headers = dict(DEFAULT_HEADERS)
    headers.update(kwargs.pop("headers", None) or {})

    attempt = 0
    rate_limited = False
    last_error: Optional[BaseException] = None
    while attempt < tries:
        try:
            resp = requests.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            attempt += 1
            last_error = e
            logger.warning("[%s] Connection error: %s. Retrying (%d/%d)...", service, e, attempt, tries)
            if attempt < tries:
                time.sleep(RETRY_PAUSE)
            continue
        if resp.status_code == 429 and not rate_limited:
            rate_limited = True
            logger.warning("[%s] Rate limit exceeded. Waiting %.0f seconds before retrying...", service, rate_limit_wait)
            time.sleep(rate_limit_wait)
            continue
        logger.debug("[%s] %s %s -> %s", service, method, url, resp.status_code)
        if check:
            raise_for_status(resp, service)
        return resp
    raise RequestFailed(service, url, last_error)


def decode_json(resp: requests.Response, service: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise ParseError(service, f"body is not JSON ({e})") from e


def get_json(url: str, *, service: str, **kwargs: Any) -> Any:
    return decode_json(request("GET", url, service=service, **kwargs), service)


def post_json(url: str, *, service: str, **kwargs: Any) -> Any:
    return decode_json(request("POST", url, service=service, **kwargs), service)


def save_stream(resp: requests.Response, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    # only a complete download ever lands at out_path
    part = out_path.with_name(out_path.name + ".part")
    try:
        with open(part, "wb") as f:
            for chunk in resp.iter_content(1024):
                if chunk:
                    f.write(chunk)
        part.replace(out_path)
    finally:
        part.unlink(missing_ok=True)
    return out_path
